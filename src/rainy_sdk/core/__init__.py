# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

"""
Core package for the Rainy SDK.

Provides shared infrastructure used by the client:
- types: Retry policy, classified errors, attempt outcomes, stream frames
- errors: All custom exceptions and the error classifier
- models: Request/response dataclasses
- config: ConfigLoader for centralized configuration
- constants: Default values and magic numbers
"""

from .types import (
    ErrorKind,
    FrameKind,
    RetryPolicy,
    ClassifiedError,
    AttemptOutcome,
    StreamFrame,
)

from .errors import (
    # Exceptions
    RainyError,
    ConfigurationError,
    ValidationError,
    APIError,
    RetriesExhaustedError,
    StreamedAPIError,
    StreamInterruptedError,
    # Classification
    classify_error,
    classify_exception,
    classify_response,
    classify_provider_error,
    classify_malformed,
    # Utilities
    mask_credential,
    get_retry_after,
    extract_retry_after_from_body,
    is_rate_limit_error,
    is_server_error,
)

from .config import (
    ClientSettings,
    ConfigLoader,
    get_config_loader,
    load_client_settings,
    load_retry_policy,
)

__all__ = [
    # Types
    "ErrorKind",
    "FrameKind",
    "RetryPolicy",
    "ClassifiedError",
    "AttemptOutcome",
    "StreamFrame",
    # Exceptions
    "RainyError",
    "ConfigurationError",
    "ValidationError",
    "APIError",
    "RetriesExhaustedError",
    "StreamedAPIError",
    "StreamInterruptedError",
    # Classification
    "classify_error",
    "classify_exception",
    "classify_response",
    "classify_provider_error",
    "classify_malformed",
    # Utilities
    "mask_credential",
    "get_retry_after",
    "extract_retry_after_from_body",
    "is_rate_limit_error",
    "is_server_error",
    # Config
    "ClientSettings",
    "ConfigLoader",
    "get_config_loader",
    "load_client_settings",
    "load_retry_policy",
]
