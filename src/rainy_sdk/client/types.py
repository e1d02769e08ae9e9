# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

"""
Client-specific type definitions.

Types that are only used within the client package.
Shared types are in core/types.py.
"""

from dataclasses import dataclass, field
from typing import Any, List, Optional

from ..core.types import ClassifiedError


@dataclass
class RetryState:
    """
    State tracking for a retry loop.

    Used by RetryExecutor to track attempts, waits and the latest error.
    """

    attempts: int = 0
    delays: List[float] = field(default_factory=list)
    last_error: Optional[ClassifiedError] = None

    def record_attempt(self) -> int:
        """Record that an attempt is starting. Returns its 1-based number."""
        self.attempts += 1
        return self.attempts

    def record_failure(self, error: ClassifiedError) -> None:
        self.last_error = error

    def record_delay(self, delay: float) -> None:
        self.delays.append(delay)

    @property
    def total_delay(self) -> float:
        return sum(self.delays)


@dataclass
class ExecutionResult:
    """
    Result of executing an operation under a retry policy.

    Returned by RetryExecutor.execute to indicate outcome.
    """

    success: bool
    response: Optional[Any] = None
    error: Optional[ClassifiedError] = None
    attempts: int = 0
    exhausted: bool = False  # Failed with a retryable error and no retries left
    delays: List[float] = field(default_factory=list)

