# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

"""
Shared fixtures for the Rainy SDK test suite.

HTTP traffic is served by httpx.MockTransport; retry waits are recorded
instead of slept.
"""

import json
import os
import random
from typing import Callable, Iterable, List, Optional

import httpx
import pytest

from rainy_sdk import AuthConfig, RainyClient, RetryPolicy

TEST_API_KEY = "ra-test-0123456789abcdef"
TEST_BASE_URL = "https://api.rainy.test"


class RecordingSleep:
    """Awaitable stand-in for asyncio.sleep that records requested delays."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class TrackingStream(httpx.AsyncByteStream):
    """
    Response body that yields fixed chunks and records whether it was closed.

    If ``error`` is set it is raised after the chunks have been yielded.
    """

    def __init__(self, chunks: Iterable[bytes], error: Optional[Exception] = None):
        self.chunks = list(chunks)
        self.error = error
        self.closed = False

    async def __aiter__(self):
        for chunk in self.chunks:
            yield chunk
        if self.error is not None:
            raise self.error

    async def aclose(self) -> None:
        self.closed = True


def sse_event(payload) -> bytes:
    """Encode one data event. Dicts are JSON-encoded."""
    data = payload if isinstance(payload, str) else json.dumps(payload)
    return f"data: {data}\n\n".encode("utf-8")


def chunk_payload(content: str, finish_reason: Optional[str] = None) -> dict:
    return {
        "id": "chatcmpl-1",
        "object": "chat.completion.chunk",
        "created": 1700000000,
        "model": "gpt-4o",
        "choices": [
            {"index": 0, "delta": {"content": content}, "finish_reason": finish_reason}
        ],
    }


def completion_payload(content: str = "Hello!") -> dict:
    return {
        "id": "chatcmpl-1",
        "object": "chat.completion",
        "created": 1700000000,
        "model": "gpt-4o",
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": content},
                "finish_reason": "stop",
            }
        ],
        "usage": {"prompt_tokens": 5, "completion_tokens": 3, "total_tokens": 8},
    }


def event_stream_response(stream: TrackingStream, status_code: int = 200) -> httpx.Response:
    return httpx.Response(
        status_code,
        headers={"content-type": "text/event-stream"},
        stream=stream,
    )


@pytest.fixture
def fast_policy():
    """Three attempts, small fixed delays, no jitter."""
    return RetryPolicy(max_attempts=3, base_delay=0.1, max_delay=1.0, jitter_factor=0.0)


@pytest.fixture
def recording_sleep():
    return RecordingSleep()


@pytest.fixture
def make_client(fast_policy, recording_sleep) -> Callable[..., RainyClient]:
    """Factory building a RainyClient whose requests go to a handler function."""

    def _make(handler, **kwargs) -> RainyClient:
        kwargs.setdefault("retry_policy", fast_policy)
        kwargs.setdefault("sleep", recording_sleep)
        kwargs.setdefault("rng", random.Random(0))
        auth = kwargs.pop("auth", None)
        if auth is None:
            auth = AuthConfig(api_key=TEST_API_KEY, base_url=TEST_BASE_URL)
        return RainyClient(auth, transport=httpx.MockTransport(handler), **kwargs)

    return _make


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every RAINY_* variable so tests see only what they set."""
    for key in list(os.environ):
        if key.startswith("RAINY_"):
            monkeypatch.delenv(key, raising=False)
    return monkeypatch
