# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

"""
Client package for the Rainy API.

Public API:
    RainyClient: Main client class for making API requests
    StreamingSession: Async iterator over a streamed completion

Components (for advanced usage):
    RetryExecutor: Retry loop driving single attempts
    BackoffScheduler: Delay computation between attempts
    SSEDecoder: Incremental server-sent event decoder
    ModelResolver: Model name resolution and filtering
"""

from .rainy_client import RainyClient
from .streaming import StreamingSession

# Also expose components for advanced usage
from .backoff import BackoffScheduler, next_delay
from .executor import RetryExecutor, unwrap_result
from .sse import SSEDecoder, decode_stream
from .models import ModelResolver
from .types import RetryState, ExecutionResult

__all__ = [
    # Main public API
    "RainyClient",
    "StreamingSession",
    # Components
    "RetryExecutor",
    "unwrap_result",
    "BackoffScheduler",
    "next_delay",
    "SSEDecoder",
    "decode_stream",
    "ModelResolver",
    # Types
    "RetryState",
    "ExecutionResult",
]
