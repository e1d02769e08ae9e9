# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

"""
Provider package for the Rainy SDK.

- catalog: Provider identities, model ids and per-provider retry defaults
- error_shapes: Provider-specific error envelope extraction
"""

from .catalog import (
    OPENAI,
    ANTHROPIC,
    GROQ,
    CEREBRAS,
    GEMINI,
    ENOSISLABS,
    ALL_PROVIDERS,
    MODELS_BY_PROVIDER,
    LEGACY_MODEL_ALIASES,
    PROVIDER_RETRY_DEFAULTS,
    provider_for_model,
)
from .error_shapes import (
    ProviderErrorInfo,
    ERROR_EXTRACTORS,
    extract_provider_error,
    parse_duration,
)

__all__ = [
    # Providers
    "OPENAI",
    "ANTHROPIC",
    "GROQ",
    "CEREBRAS",
    "GEMINI",
    "ENOSISLABS",
    "ALL_PROVIDERS",
    # Catalog
    "MODELS_BY_PROVIDER",
    "LEGACY_MODEL_ALIASES",
    "PROVIDER_RETRY_DEFAULTS",
    "provider_for_model",
    # Error shapes
    "ProviderErrorInfo",
    "ERROR_EXTRACTORS",
    "extract_provider_error",
    "parse_duration",
]
