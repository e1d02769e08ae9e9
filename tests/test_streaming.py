"""
Tests for StreamingSession through RainyClient.stream_chat_completion.

Covers retrying the connection, mid-stream failures and release of the
HTTP response on every exit path.
"""

import asyncio
import json

import httpx
import pytest

from rainy_sdk import (
    APIError,
    ChatCompletionRequest,
    ChatMessage,
    ErrorKind,
    RetriesExhaustedError,
    StreamedAPIError,
    StreamInterruptedError,
)
from rainy_sdk.client.streaming import StreamingSession
from rainy_sdk.core.types import AttemptOutcome, RetryPolicy

from conftest import TrackingStream, chunk_payload, event_stream_response, sse_event


class StallingStream(TrackingStream):
    """Yields the first chunks, then waits until released before the rest."""

    def __init__(self, chunks, stall_after):
        super().__init__(chunks)
        self.stall_after = stall_after
        self.release = asyncio.Event()

    async def __aiter__(self):
        for index, chunk in enumerate(self.chunks):
            if index == self.stall_after:
                await self.release.wait()
            yield chunk


def _request(model="gpt-4o"):
    return ChatCompletionRequest(model=model, messages=[ChatMessage.user("Hi")])


def _hello_stream():
    return TrackingStream(
        [
            sse_event(chunk_payload("Hel")),
            sse_event(chunk_payload("lo")),
            sse_event(chunk_payload("!", "stop")),
            b"data: [DONE]\n\n",
        ]
    )


@pytest.mark.asyncio
async def test_stream_yields_fragments_in_order(make_client):
    stream = _hello_stream()
    seen = {}

    def handler(request):
        seen["body"] = json.loads(request.content)
        seen["accept"] = request.headers["accept"]
        return event_stream_response(stream)

    async with make_client(handler) as client:
        async with client.stream_chat_completion(_request()) as session:
            text = "".join([f.fragment.content async for f in session if f.is_data])

    assert text == "Hello!"
    assert seen["body"]["stream"] is True
    assert seen["accept"] == "text/event-stream"
    assert session.attempts == 1
    assert stream.closed is True


@pytest.mark.asyncio
async def test_connection_is_retried_before_streaming(make_client, recording_sleep):
    """Each failed attempt releases its connection before the next one starts."""
    stream = _hello_stream()
    failed = [
        TrackingStream([b'{"error": {"message": "warming up"}}']),
        TrackingStream([]),
    ]
    responses = [
        httpx.Response(503, headers={"content-type": "application/json"}, stream=failed[0]),
        httpx.Response(429, headers={"Retry-After": "2"}, stream=failed[1]),
        event_stream_response(stream),
    ]
    released = []

    def handler(request):
        released.append([s.closed for s in failed[: len(released)]])
        return responses.pop(0)

    async with make_client(handler) as client:
        session = await client.create_chat_completion_stream(_request())
        try:
            frames = [frame async for frame in session]
        finally:
            await session.aclose()

    assert session.attempts == 3
    assert recording_sleep.delays == [0.1, 2.0]
    assert frames[-1].is_done
    assert released == [[], [True], [True, True]]


@pytest.mark.asyncio
async def test_non_retryable_connection_error(make_client):
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(401, json={"error": {"code": "INVALID_API_KEY", "message": "bad key"}})

    async with make_client(handler) as client:
        with pytest.raises(APIError) as exc_info:
            async with client.stream_chat_completion(_request()):
                pass

    assert len(calls) == 1
    assert exc_info.value.status_code == 401
    assert not isinstance(exc_info.value, RetriesExhaustedError)


@pytest.mark.asyncio
async def test_connection_retries_exhausted(make_client):
    calls = []

    def handler(request):
        calls.append(request)
        raise httpx.ConnectError("connection refused", request=request)

    async with make_client(handler) as client:
        with pytest.raises(RetriesExhaustedError) as exc_info:
            await client.create_chat_completion_stream(_request())

    assert len(calls) == 3
    assert exc_info.value.kind == ErrorKind.NETWORK


@pytest.mark.asyncio
async def test_mid_stream_failure_is_not_retried(make_client):
    """Once fragments have been delivered a transport failure surfaces as-is."""
    stream = TrackingStream(
        [sse_event(chunk_payload("partial"))],
        error=httpx.ReadError("connection reset"),
    )
    calls = []

    def handler(request):
        calls.append(request)
        return event_stream_response(stream)

    received = []
    async with make_client(handler) as client:
        with pytest.raises(StreamInterruptedError) as exc_info:
            async with client.stream_chat_completion(_request()) as session:
                async for frame in session:
                    received.append(frame.fragment.content)

    assert received == ["partial"]
    assert len(calls) == 1
    assert exc_info.value.kind == ErrorKind.NETWORK
    assert stream.closed is True


@pytest.mark.asyncio
async def test_in_band_error_raised_after_preceding_fragments(make_client):
    stream = TrackingStream(
        [
            sse_event(chunk_payload("Hi")),
            sse_event({"error": {"message": "content filtered", "code": "content_filter"}}),
            sse_event(chunk_payload("never")),
        ]
    )

    received = []
    async with make_client(lambda request: event_stream_response(stream)) as client:
        with pytest.raises(StreamedAPIError) as exc_info:
            async with client.stream_chat_completion(_request()) as session:
                async for frame in session:
                    received.append(frame.fragment.content)

    assert received == ["Hi"]
    assert exc_info.value.kind == ErrorKind.PROVIDER_ERROR
    assert exc_info.value.retryable is False
    assert stream.closed is True


@pytest.mark.asyncio
async def test_breaking_out_releases_response(make_client):
    stream = _hello_stream()

    async with make_client(lambda request: event_stream_response(stream)) as client:
        async with client.stream_chat_completion(_request()) as session:
            async for frame in session:
                break
        assert session.closed is True

    assert stream.closed is True


@pytest.mark.asyncio
async def test_cancelling_a_pending_read_releases_response(make_client):
    """Cancelling the consumer while it waits for the next chunk closes the connection."""
    stream = StallingStream(
        [sse_event(chunk_payload(text)) for text in ("a", "b", "c", "d", "e")],
        stall_after=2,
    )
    received = []
    two_received = asyncio.Event()

    async def consume(client):
        async with client.stream_chat_completion(_request()) as session:
            async for frame in session:
                received.append(frame.fragment.content)
                if len(received) == 2:
                    two_received.set()

    async with make_client(lambda request: event_stream_response(stream)) as client:
        task = asyncio.create_task(consume(client))
        await two_received.wait()
        await asyncio.sleep(0)
        assert not task.done()

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert stream.closed is True

    assert received == ["a", "b"]


@pytest.mark.asyncio
async def test_aclose_before_iterating(make_client):
    stream = _hello_stream()

    async with make_client(lambda request: event_stream_response(stream)) as client:
        session = await client.create_chat_completion_stream(_request())
        await session.aclose()
        await session.aclose()

    assert stream.closed is True
    assert session.response is None


@pytest.mark.asyncio
async def test_json_body_instead_of_stream_is_classified(make_client):
    def handler(request):
        return httpx.Response(200, json={"id": "chatcmpl-1", "choices": []})

    async with make_client(handler) as client:
        with pytest.raises(APIError) as exc_info:
            await client.create_chat_completion_stream(_request())

    assert exc_info.value.kind == ErrorKind.MALFORMED


@pytest.mark.asyncio
async def test_stream_without_done_ends_cleanly(make_client):
    stream = TrackingStream([sse_event(chunk_payload("only"))])

    async with make_client(lambda request: event_stream_response(stream)) as client:
        async with client.stream_chat_completion(_request()) as session:
            frames = [frame async for frame in session]

    assert [f.fragment.content for f in frames] == ["only"]
    assert stream.closed is True


@pytest.mark.asyncio
async def test_session_is_single_use():
    async def connect():
        return AttemptOutcome.success(event_stream_response(TrackingStream([])))

    session = StreamingSession(connect, RetryPolicy.no_retry())
    with pytest.raises(RuntimeError):
        session.__aiter__()

    await session.open()
    with pytest.raises(RuntimeError):
        await session.open()

    [frame async for frame in session]
    with pytest.raises(RuntimeError):
        session.__aiter__()
    await session.aclose()
