# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

"""
Retry executor.

Runs a single-attempt operation under a RetryPolicy. Attempts of one call
are strictly sequential: attempt N+1 never starts before attempt N has
produced its outcome and the backoff delay has elapsed.

Cancellation is asyncio task cancellation. Cancelling the task that awaits
execute() interrupts the pending attempt or backoff sleep immediately and
propagates CancelledError; no further attempt is started.
"""

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Optional

from ..core.errors import APIError, RetriesExhaustedError
from ..core.types import AttemptOutcome, RetryPolicy
from .backoff import BackoffScheduler
from .types import ExecutionResult, RetryState

lib_logger = logging.getLogger("rainy_sdk")

# A single attempt. Must not raise for expected failures: transport errors
# and bad responses are returned as AttemptOutcome.failure.
Operation = Callable[[], Awaitable[AttemptOutcome]]


def unwrap_result(result: ExecutionResult) -> Any:
    """
    Return the payload of a successful result or raise.

    Raises:
        RetriesExhaustedError: the last error was retryable but no attempts
            (or no time before the deadline) remained
        APIError: the call failed with a non-retryable error
    """
    if result.success:
        return result.response
    if result.exhausted:
        raise RetriesExhaustedError(result.error, result.attempts)
    raise APIError(result.error)


class RetryExecutor:
    """
    Drives attempts, classification results and backoff waits.

    The sleep function and clock are injectable so tests can observe delays
    without waiting.
    """

    def __init__(
        self,
        scheduler: Optional[BackoffScheduler] = None,
        sleep: Optional[Callable[[float], Awaitable[Any]]] = None,
        clock: Optional[Callable[[], float]] = None,
    ):
        """
        Initialize the RetryExecutor.

        Args:
            scheduler: Backoff scheduler (defaults to an unseeded one)
            sleep: Awaitable sleep used between attempts (asyncio.sleep)
            clock: Monotonic clock used for deadlines (time.monotonic)
        """
        self._scheduler = scheduler or BackoffScheduler()
        self._sleep = sleep or asyncio.sleep
        self._clock = clock or time.monotonic

    @property
    def clock(self) -> Callable[[], float]:
        return self._clock

    async def execute(
        self,
        operation: Operation,
        policy: RetryPolicy,
        deadline: Optional[float] = None,
        description: str = "Request",
    ) -> ExecutionResult:
        """
        Run operation until it succeeds, fails permanently or retries run out.

        Args:
            operation: Zero-argument coroutine function performing one attempt
            policy: Retry policy
            deadline: Absolute time on the executor clock after which no new
                attempt is started
            description: Label used in log messages

        Returns:
            ExecutionResult. On failure ``error`` holds the last
            ClassifiedError and ``exhausted`` tells whether retries ran out.
        """
        state = RetryState()

        while True:
            attempt = state.record_attempt()
            lib_logger.debug(
                f"{description}: attempt {attempt}/{policy.max_attempts}"
            )

            outcome = await operation()

            if outcome.ok:
                if attempt > 1:
                    lib_logger.info(
                        f"{description} succeeded on attempt {attempt}/{policy.max_attempts}"
                    )
                return ExecutionResult(
                    success=True,
                    response=outcome.payload,
                    attempts=attempt,
                    delays=list(state.delays),
                )

            error = outcome.error
            state.record_failure(error)

            if not error.retryable:
                lib_logger.debug(
                    f"{description} failed with non-retryable error on attempt {attempt}: {error}"
                )
                return ExecutionResult(
                    success=False,
                    error=error,
                    attempts=attempt,
                    delays=list(state.delays),
                )

            delay = self._scheduler.next_delay(
                attempt, policy, error.suggested_delay
            )
            if delay is None:
                lib_logger.error(
                    f"{description} failed after {attempt} attempt(s): {error}"
                )
                return ExecutionResult(
                    success=False,
                    error=error,
                    attempts=attempt,
                    exhausted=True,
                    delays=list(state.delays),
                )

            if deadline is not None and self._clock() + delay > deadline:
                lib_logger.warning(
                    f"{description}: next retry in {delay:.2f}s would pass the deadline. "
                    f"Giving up after {attempt} attempt(s): {error}"
                )
                return ExecutionResult(
                    success=False,
                    error=error,
                    attempts=attempt,
                    exhausted=True,
                    delays=list(state.delays),
                )

            lib_logger.warning(
                f"{description} failed (attempt {attempt}/{policy.max_attempts}), "
                f"retrying in {delay:.2f}s: {error}"
            )
            await self._sleep(delay)
            state.record_delay(delay)

    async def run(
        self,
        operation: Operation,
        policy: RetryPolicy,
        deadline: Optional[float] = None,
        description: str = "Request",
    ) -> Any:
        """Like execute(), but returns the payload or raises (see unwrap_result)."""
        result = await self.execute(operation, policy, deadline, description)
        return unwrap_result(result)
