# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

"""
Rainy SDK: async Python client for the Rainy API.

Chat completions (plain and streamed), API key management, Cowork tier
gating and deep research, with classified errors and policy-driven retries.
"""

import logging

from .core.constants import VERSION
from .auth import AuthConfig
from .client import (
    RainyClient,
    StreamingSession,
    RetryExecutor,
    BackoffScheduler,
    SSEDecoder,
    ModelResolver,
)
from .core.types import (
    ErrorKind,
    FrameKind,
    RetryPolicy,
    ClassifiedError,
    AttemptOutcome,
    StreamFrame,
)
from .core.errors import (
    RainyError,
    ConfigurationError,
    ValidationError,
    APIError,
    RetriesExhaustedError,
    StreamedAPIError,
    StreamInterruptedError,
    classify_error,
)
from .core.models import (
    MessageRole,
    ChatMessage,
    ThinkingLevel,
    ThinkingConfig,
    ChatCompletionRequest,
    ChatCompletionResponse,
    ChatCompletionChunk,
    RequestMetadata,
    HealthStatus,
    AvailableModels,
    ApiKey,
    ResearchProvider,
    ResearchDepth,
    ResearchConfig,
    DeepResearchResponse,
)
from .cowork import CoworkTier, CoworkCapabilities, filter_models_by_tier

__version__ = VERSION

# Silence "No handler found" warnings for applications that do not
# configure logging.
logging.getLogger("rainy_sdk").addHandler(logging.NullHandler())

__all__ = [
    "__version__",
    # Client
    "RainyClient",
    "AuthConfig",
    "StreamingSession",
    "RetryExecutor",
    "BackoffScheduler",
    "SSEDecoder",
    "ModelResolver",
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
    "classify_error",
    # Models
    "MessageRole",
    "ChatMessage",
    "ThinkingLevel",
    "ThinkingConfig",
    "ChatCompletionRequest",
    "ChatCompletionResponse",
    "ChatCompletionChunk",
    "RequestMetadata",
    "HealthStatus",
    "AvailableModels",
    "ApiKey",
    "ResearchProvider",
    "ResearchDepth",
    "ResearchConfig",
    "DeepResearchResponse",
    # Cowork
    "CoworkTier",
    "CoworkCapabilities",
    "filter_models_by_tier",
]
