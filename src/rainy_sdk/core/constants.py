# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

"""
Constants and default values for the Rainy SDK.

All tunable defaults live here so the ConfigLoader, the client and the
retry pipeline share one import point.
"""

# =============================================================================
# LIBRARY
# =============================================================================

VERSION = "0.1.0"

# Logging
LIB_LOGGER_NAME = "rainy_sdk"

DEFAULT_USER_AGENT = f"rainy-sdk-python/{VERSION}"

# =============================================================================
# API
# =============================================================================

DEFAULT_BASE_URL = "https://rainy-api-v2-179843975974.us-west1.run.app"
API_PREFIX = "/api/v1"

# Proprietary key format
API_KEY_PREFIX = "ra-"

# Per-request HTTP timeout (seconds)
DEFAULT_TIMEOUT = 30.0

# Whole-call deadline across every retry (seconds). None disables it.
DEFAULT_GLOBAL_TIMEOUT = None

# Response headers carrying request metadata
HEADER_REQUEST_ID = "x-request-id"
HEADER_PROVIDER = "x-provider"
HEADER_TOKENS_USED = "x-tokens-used"
HEADER_CREDITS_USED = "x-credits-used"
HEADER_CREDITS_REMAINING = "x-credits-remaining"
HEADER_RETRY_AFTER = "retry-after"

# =============================================================================
# RETRY & BACKOFF
# =============================================================================

DEFAULT_MAX_ATTEMPTS = 4  # 1 initial attempt + 3 retries
DEFAULT_BASE_DELAY = 1.0
DEFAULT_MAX_DELAY = 30.0
DEFAULT_JITTER_FACTOR = 0.25

# In-band provider error codes that are safe to retry. Anything else is
# treated as permanent.
RETRYABLE_PROVIDER_CODES = frozenset(
    {
        "overloaded",
        "overloaded_error",
        "capacity",
        "capacity_exceeded",
        "server_error",
        "service_unavailable",
        "unavailable",
        "resource_exhausted",
        "rate_limit_exceeded",
        "internal",
        "internal_error",
        "timeout",
    }
)

# =============================================================================
# STREAMING
# =============================================================================

STREAM_DONE_SENTINEL = "[DONE]"
EVENT_STREAM_CONTENT_TYPE = "text/event-stream"

# =============================================================================
# ENVIRONMENT VARIABLES
# =============================================================================

ENV_API_KEY = "RAINY_API_KEY"
ENV_BASE_URL = "RAINY_BASE_URL"
ENV_TIMEOUT = "RAINY_TIMEOUT"
ENV_ENABLE_RETRY = "RAINY_ENABLE_RETRY"
ENV_GLOBAL_TIMEOUT = "RAINY_GLOBAL_TIMEOUT"

# Retry overrides. Each also accepts a _{PROVIDER} suffix which beats the
# global value, e.g. RAINY_MAX_ATTEMPTS_GROQ=6
ENV_PREFIX_MAX_ATTEMPTS = "RAINY_MAX_ATTEMPTS"
ENV_PREFIX_BASE_DELAY = "RAINY_BASE_DELAY"
ENV_PREFIX_MAX_DELAY = "RAINY_MAX_DELAY"
ENV_PREFIX_JITTER_FACTOR = "RAINY_JITTER_FACTOR"

__all__ = [
    "VERSION",
    "LIB_LOGGER_NAME",
    "DEFAULT_USER_AGENT",
    "DEFAULT_BASE_URL",
    "API_PREFIX",
    "API_KEY_PREFIX",
    "DEFAULT_TIMEOUT",
    "DEFAULT_GLOBAL_TIMEOUT",
    "HEADER_REQUEST_ID",
    "HEADER_PROVIDER",
    "HEADER_TOKENS_USED",
    "HEADER_CREDITS_USED",
    "HEADER_CREDITS_REMAINING",
    "HEADER_RETRY_AFTER",
    "DEFAULT_MAX_ATTEMPTS",
    "DEFAULT_BASE_DELAY",
    "DEFAULT_MAX_DELAY",
    "DEFAULT_JITTER_FACTOR",
    "RETRYABLE_PROVIDER_CODES",
    "STREAM_DONE_SENTINEL",
    "EVENT_STREAM_CONTENT_TYPE",
    "ENV_API_KEY",
    "ENV_BASE_URL",
    "ENV_TIMEOUT",
    "ENV_ENABLE_RETRY",
    "ENV_GLOBAL_TIMEOUT",
    "ENV_PREFIX_MAX_ATTEMPTS",
    "ENV_PREFIX_BASE_DELAY",
    "ENV_PREFIX_MAX_DELAY",
    "ENV_PREFIX_JITTER_FACTOR",
]
