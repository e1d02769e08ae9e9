# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

"""
Streaming session.

Opens a streaming request through the RetryExecutor, then decodes the
response body with an SSEDecoder and hands frames to the caller as an
async iterator.

Retries only cover establishing the stream. Once the first byte of a 2xx
event stream has been accepted, a transport failure surfaces as
StreamInterruptedError and is never retried, since fragments may already
have been delivered.

The HTTP response is closed when the stream ends, when the caller stops
iterating (break, exception, cancellation) and when aclose() is called,
whichever comes first.
"""

import logging
from typing import Any, AsyncIterator, Awaitable, Callable, Optional

import httpx

from ..core.errors import StreamInterruptedError, classify_exception
from ..core.types import AttemptOutcome, RetryPolicy, StreamFrame
from .executor import RetryExecutor, unwrap_result
from .sse import SSEDecoder, decode_stream

lib_logger = logging.getLogger("rainy_sdk")

# Establishes one streaming connection. Succeeds with an httpx.Response
# whose status is 2xx and whose body has not been read.
Connector = Callable[[], Awaitable[AttemptOutcome]]


class StreamingSession:
    """
    A single streamed call. Iterate it once.

    Usage:
        async with client.stream_chat_completion(request) as session:
            async for frame in session:
                if frame.is_data:
                    print(frame.fragment.content, end="")
    """

    def __init__(
        self,
        connect: Connector,
        policy: RetryPolicy,
        executor: Optional[RetryExecutor] = None,
        parse_fragment: Optional[Callable[[Any], Any]] = None,
        provider: Optional[str] = None,
        global_timeout: Optional[float] = None,
        description: str = "Stream",
    ):
        """
        Args:
            connect: Coroutine function performing one connection attempt
            policy: Retry policy for establishing the connection
            executor: RetryExecutor to use (a default one if omitted)
            parse_fragment: Converts each decoded JSON payload to a fragment
            provider: Provider identity for in-band error recognition
            global_timeout: Seconds, from open(), after which no new
                connection attempt is started
            description: Label used in log messages
        """
        self._connect = connect
        self._policy = policy
        self._executor = executor or RetryExecutor()
        self._parse = parse_fragment
        self._provider = provider
        self._global_timeout = global_timeout
        self._description = description

        self._response: Optional[httpx.Response] = None
        self._iterator: Optional[AsyncIterator[StreamFrame]] = None
        self._attempts = 0
        self._opened = False
        self._closed = False

    # =========================================================================
    # STATE
    # =========================================================================

    @property
    def response(self) -> Optional[httpx.Response]:
        """The underlying HTTP response once opened."""
        return self._response

    @property
    def attempts(self) -> int:
        """Connection attempts used to open the stream."""
        return self._attempts

    @property
    def closed(self) -> bool:
        return self._closed

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    async def open(self) -> "StreamingSession":
        """
        Establish the stream, retrying under the policy.

        Raises:
            APIError / RetriesExhaustedError: if no connection could be made
            RuntimeError: if the session was already opened or closed
        """
        if self._opened or self._closed:
            raise RuntimeError("StreamingSession can only be opened once")
        self._opened = True

        deadline = (
            self._executor.clock() + self._global_timeout
            if self._global_timeout is not None
            else None
        )
        result = await self._executor.execute(
            self._connect, self._policy, deadline, self._description
        )
        self._attempts = result.attempts
        self._response = unwrap_result(result)
        lib_logger.debug(
            f"{self._description}: stream established after {result.attempts} attempt(s)"
        )
        return self

    async def aclose(self) -> None:
        """
        Release the connection. Idempotent.

        Returns only after the HTTP response has been closed.
        """
        if self._closed:
            return
        self._closed = True

        response, self._response = self._response, None
        if response is not None:
            await response.aclose()

        iterator = self._iterator
        if iterator is not None and not getattr(iterator, "ag_running", False):
            await iterator.aclose()

    async def __aenter__(self) -> "StreamingSession":
        if not self._opened:
            await self.open()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    # =========================================================================
    # ITERATION
    # =========================================================================

    def __aiter__(self) -> AsyncIterator[StreamFrame]:
        if self._iterator is not None:
            raise RuntimeError("StreamingSession can only be iterated once")
        if not self._opened:
            raise RuntimeError("StreamingSession must be opened before iterating")
        self._iterator = self._frames()
        return self._iterator

    async def _frames(self) -> AsyncIterator[StreamFrame]:
        response = self._response
        if response is None:
            return

        decoder = SSEDecoder(self._parse, provider=self._provider)
        frames = decode_stream(response.aiter_bytes(), decoder)
        try:
            try:
                async for frame in frames:
                    yield frame
            except httpx.StreamError:
                if self._closed:
                    # Closed from aclose() while a read was pending
                    return
                raise
            except httpx.TransportError as e:
                if self._closed:
                    return
                classified = classify_exception(e, self._provider)
                lib_logger.warning(
                    f"{self._description} interrupted mid-stream: {classified}"
                )
                raise StreamInterruptedError(classified) from e
        finally:
            await frames.aclose()
            if not self._closed:
                self._closed = True
                self._response = None
                await response.aclose()
