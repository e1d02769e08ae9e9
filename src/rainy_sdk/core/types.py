# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

"""
Shared type definitions for the Rainy SDK.

Dataclasses used by the retry pipeline: the retry policy, classified
errors, per-attempt outcomes and decoded stream frames.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from .constants import (
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_BASE_DELAY,
    DEFAULT_MAX_DELAY,
    DEFAULT_JITTER_FACTOR,
)


# =============================================================================
# ENUMS
# =============================================================================


class ErrorKind(str, Enum):
    """Category of a failed attempt."""

    NETWORK = "network"  # Connection refused/reset, DNS, protocol errors
    TIMEOUT = "timeout"  # Connect/read timeout or HTTP 408
    RATE_LIMITED = "rate_limited"  # HTTP 429
    SERVER_ERROR = "server_error"  # HTTP 5xx
    CLIENT_ERROR = "client_error"  # Other 4xx and anything unrecognised
    PROVIDER_ERROR = "provider_error"  # Error embedded in a 2xx body or stream
    MALFORMED = "malformed"  # 2xx body that could not be decoded


class FrameKind(str, Enum):
    """Kind of a decoded stream frame."""

    DATA = "data"
    DONE = "done"
    PARSE_ERROR = "parse_error"


# =============================================================================
# RETRY POLICY
# =============================================================================


@dataclass(frozen=True)
class RetryPolicy:
    """
    Retry configuration. Immutable once built.

    All durations are in seconds.

    Attributes:
        max_attempts: Total attempts including the first one (>= 1)
        base_delay: Delay before the first retry (> 0)
        max_delay: Upper bound for computed delays (>= base_delay)
        jitter_factor: Symmetric jitter, 0.25 means +/-25% (0..1)
    """

    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    base_delay: float = DEFAULT_BASE_DELAY
    max_delay: float = DEFAULT_MAX_DELAY
    jitter_factor: float = DEFAULT_JITTER_FACTOR

    def __post_init__(self) -> None:
        # Imported here to keep types importable without the error module
        from .errors import ConfigurationError

        if isinstance(self.max_attempts, bool) or not isinstance(
            self.max_attempts, int
        ):
            raise ConfigurationError(
                f"max_attempts must be an integer, got {self.max_attempts!r}"
            )
        if self.max_attempts < 1:
            raise ConfigurationError(
                f"max_attempts must be >= 1, got {self.max_attempts}"
            )
        if not math.isfinite(self.base_delay) or self.base_delay <= 0:
            raise ConfigurationError(
                f"base_delay must be > 0, got {self.base_delay}"
            )
        if not math.isfinite(self.max_delay) or self.max_delay < self.base_delay:
            raise ConfigurationError(
                f"max_delay ({self.max_delay}) must be >= base_delay ({self.base_delay})"
            )
        if not 0.0 <= self.jitter_factor <= 1.0:
            raise ConfigurationError(
                f"jitter_factor must be within [0, 1], got {self.jitter_factor}"
            )

    @classmethod
    def from_max_retries(cls, max_retries: int, **kwargs: Any) -> "RetryPolicy":
        """Build a policy from a retry count (attempts = retries + 1)."""
        return cls(max_attempts=max_retries + 1, **kwargs)

    @classmethod
    def no_retry(cls) -> "RetryPolicy":
        """A policy that performs exactly one attempt."""
        return cls(max_attempts=1)

    @property
    def max_retries(self) -> int:
        return self.max_attempts - 1


# =============================================================================
# CLASSIFIED ERROR
# =============================================================================


@dataclass(frozen=True)
class ClassifiedError:
    """
    A failed attempt reduced to what the retry loop needs to know.

    A non-retryable error never carries a suggested delay; one passed in is
    dropped on construction.
    """

    kind: ErrorKind
    retryable: bool
    message: str
    suggested_delay: Optional[float] = None
    raw_status: Optional[int] = None
    code: Optional[str] = None
    provider: Optional[str] = None
    request_id: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.retryable and self.suggested_delay is not None:
            object.__setattr__(self, "suggested_delay", None)
        if self.suggested_delay is not None and self.suggested_delay < 0:
            object.__setattr__(self, "suggested_delay", 0.0)

    def __str__(self) -> str:
        parts = [self.kind.value]
        if self.raw_status is not None:
            parts.append(f"HTTP {self.raw_status}")
        if self.code:
            parts.append(self.code)
        return f"[{' '.join(parts)}] {self.message}"


# =============================================================================
# ATTEMPT OUTCOME
# =============================================================================


@dataclass(frozen=True)
class AttemptOutcome:
    """
    Result of a single attempt: either a payload or a classified error.

    Use the ``success`` / ``failure`` constructors rather than building
    instances directly.
    """

    ok: bool
    payload: Any = None
    error: Optional[ClassifiedError] = None

    @classmethod
    def success(cls, payload: Any) -> "AttemptOutcome":
        """Create a successful outcome."""
        return cls(ok=True, payload=payload)

    @classmethod
    def failure(cls, error: ClassifiedError) -> "AttemptOutcome":
        """Create a failed outcome."""
        return cls(ok=False, error=error)


# =============================================================================
# STREAM FRAMES
# =============================================================================


@dataclass(frozen=True)
class StreamFrame:
    """
    One decoded server-sent event.

    DATA frames carry the decoded fragment, PARSE_ERROR frames carry a
    message and the raw payload, DONE marks the end-of-stream sentinel.
    """

    kind: FrameKind
    fragment: Any = None
    message: Optional[str] = None
    raw: Optional[str] = None
    event: Optional[str] = field(default=None, compare=False)

    @classmethod
    def data(cls, fragment: Any, event: Optional[str] = None) -> "StreamFrame":
        return cls(kind=FrameKind.DATA, fragment=fragment, event=event)

    @classmethod
    def done(cls) -> "StreamFrame":
        return cls(kind=FrameKind.DONE)

    @classmethod
    def parse_error(cls, message: str, raw: Optional[str] = None) -> "StreamFrame":
        return cls(kind=FrameKind.PARSE_ERROR, message=message, raw=raw)

    @property
    def is_data(self) -> bool:
        return self.kind == FrameKind.DATA

    @property
    def is_done(self) -> bool:
        return self.kind == FrameKind.DONE

    @property
    def is_parse_error(self) -> bool:
        return self.kind == FrameKind.PARSE_ERROR


__all__ = [
    "ErrorKind",
    "FrameKind",
    "RetryPolicy",
    "ClassifiedError",
    "AttemptOutcome",
    "StreamFrame",
]
