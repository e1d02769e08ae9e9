# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

"""
Server-Sent Events frame decoder.

Turns an arbitrarily chunked byte stream into StreamFrames. Chunk
boundaries may fall anywhere: inside a line, inside a multi-byte UTF-8
sequence or between the CR and LF of a line ending. Decoding is
incremental, so the frames produced do not depend on how the input was
split.

Rules:
- Lines end with LF, CRLF or CR. A blank line terminates an event.
- Lines starting with ':' are comments. Fields other than data/event are
  ignored.
- Multiple data lines of one event are joined with LF.
- A data payload equal to the end sentinel ([DONE]) yields one DONE frame;
  nothing is decoded after it.
- A payload that is not JSON, or not the expected fragment shape, yields a
  PARSE_ERROR frame and decoding continues.
- A payload carrying a provider error terminates decoding; the error is
  exposed as ``decoder.error`` (a StreamedAPIError).
- A non-empty incomplete event left when the input ends yields a
  PARSE_ERROR frame; an empty one is dropped.
"""

import codecs
import json
import logging
from typing import Any, AsyncIterable, AsyncIterator, Callable, List, Optional, Union

from ..core.constants import STREAM_DONE_SENTINEL
from ..core.errors import StreamedAPIError, classify_provider_error
from ..core.types import StreamFrame
from ..providers.error_shapes import ProviderErrorInfo, extract_provider_error

lib_logger = logging.getLogger("rainy_sdk")


class SSEDecoder:
    """
    Incremental SSE decoder. One instance per stream.

    Usage:
        decoder = SSEDecoder(ChatCompletionChunk.from_dict)
        for chunk in byte_chunks:
            frames = decoder.feed(chunk)
        frames = decoder.close()
    """

    def __init__(
        self,
        parse_fragment: Optional[Callable[[Any], Any]] = None,
        provider: Optional[str] = None,
        done_sentinel: str = STREAM_DONE_SENTINEL,
    ):
        """
        Args:
            parse_fragment: Converts a decoded JSON payload into a fragment.
                Should raise KeyError/TypeError/ValueError on a bad shape.
                When omitted the JSON value itself is the fragment.
            provider: Provider identity used to recognise in-band errors
            done_sentinel: Payload marking the end of the stream
        """
        self._parse = parse_fragment
        self._provider = provider
        self._sentinel = done_sentinel
        self._utf8 = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""
        self._terminated = False
        self._error: Optional[StreamedAPIError] = None

    @property
    def terminated(self) -> bool:
        """True once DONE, an in-band error or close() has been seen."""
        return self._terminated

    @property
    def error(self) -> Optional[StreamedAPIError]:
        """The in-band provider error that terminated the stream, if any."""
        return self._error

    def feed(self, chunk: Union[bytes, str]) -> List[StreamFrame]:
        """
        Decode the next chunk of input.

        Args:
            chunk: Raw bytes (or already-decoded text)

        Returns:
            Frames completed by this chunk, in order. Empty once terminated.
        """
        if self._terminated:
            return []
        text = self._utf8.decode(chunk) if isinstance(chunk, bytes) else chunk
        return self._consume(text, final=False)

    def close(self) -> List[StreamFrame]:
        """
        Signal end of input and flush.

        Returns:
            A PARSE_ERROR frame for a non-empty incomplete event, or nothing
        """
        if self._terminated:
            return []
        return self._consume(self._utf8.decode(b"", final=True), final=True)

    # =========================================================================
    # INTERNAL METHODS
    # =========================================================================

    def _consume(self, text: str, final: bool) -> List[StreamFrame]:
        pending = self._buffer + text
        carry = ""
        # A trailing CR may be the first half of a CRLF split across chunks
        if not final and pending.endswith("\r"):
            pending, carry = pending[:-1], "\r"
        pending = pending.replace("\r\n", "\n").replace("\r", "\n")

        frames: List[StreamFrame] = []
        while True:
            end = pending.find("\n\n")
            if end < 0:
                break
            block, pending = pending[:end], pending[end + 2 :]
            frame = self._dispatch(block)
            if frame is not None:
                frames.append(frame)
            if self._terminated:
                self._buffer = ""
                return frames

        if final:
            self._buffer = ""
            self._terminated = True
            if self._has_content(pending):
                lib_logger.warning(
                    f"Stream ended with an incomplete event: {pending[:200]!r}"
                )
                frames.append(
                    StreamFrame.parse_error(
                        "Stream ended with an incomplete event", raw=pending
                    )
                )
            return frames

        self._buffer = pending + carry
        return frames

    @staticmethod
    def _has_content(block: str) -> bool:
        """True if a block holds anything other than blank and comment lines."""
        for line in block.split("\n"):
            if line and not line.startswith(":"):
                return True
        return False

    def _dispatch(self, block: str) -> Optional[StreamFrame]:
        """Turn one complete event block into a frame (or nothing)."""
        data_lines: List[str] = []
        event: Optional[str] = None

        for line in block.split("\n"):
            if not line or line.startswith(":"):
                continue
            name, sep, value = line.partition(":")
            if sep and value.startswith(" "):
                value = value[1:]
            if name == "data":
                data_lines.append(value)
            elif name == "event":
                event = value

        if not data_lines:
            return None

        payload = "\n".join(data_lines)
        if payload.strip() == self._sentinel:
            self._terminated = True
            return StreamFrame.done()

        try:
            decoded = json.loads(payload)
        except ValueError as e:
            lib_logger.warning(f"Skipping stream frame with invalid JSON: {e}")
            return StreamFrame.parse_error(f"Invalid JSON: {e}", raw=payload)

        info = (
            extract_provider_error(decoded, self._provider)
            if isinstance(decoded, (dict, list))
            else None
        )
        if info is None and event == "error":
            info = ProviderErrorInfo(message=payload)
        if info is not None:
            classified = classify_provider_error(info, provider=self._provider)
            lib_logger.warning(f"Provider error received in stream: {classified}")
            self._error = StreamedAPIError(classified, data=decoded)
            self._terminated = True
            return None

        if self._parse is None:
            return StreamFrame.data(decoded, event=event)
        try:
            fragment = self._parse(decoded)
        except (KeyError, TypeError, ValueError) as e:
            lib_logger.warning(f"Skipping stream frame with unexpected shape: {e!r}")
            return StreamFrame.parse_error(
                f"Unexpected fragment shape: {e!r}", raw=payload
            )
        return StreamFrame.data(fragment, event=event)


async def decode_stream(
    chunks: AsyncIterable[Union[bytes, str]], decoder: SSEDecoder
) -> AsyncIterator[StreamFrame]:
    """
    Decode an async byte stream into frames.

    Stops after DONE. Raises the decoder's StreamedAPIError after yielding
    every frame that preceded it.
    """
    async for chunk in chunks:
        for frame in decoder.feed(chunk):
            yield frame
            if frame.is_done:
                return
        if decoder.error is not None:
            raise decoder.error
        if decoder.terminated:
            return

    for frame in decoder.close():
        yield frame
