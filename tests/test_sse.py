"""
Tests for SSEDecoder - incremental server-sent event decoding.
"""

import pytest

from rainy_sdk.client.sse import SSEDecoder, decode_stream
from rainy_sdk.core.errors import StreamedAPIError
from rainy_sdk.core.models import ChatCompletionChunk
from rainy_sdk.core.types import FrameKind, StreamFrame

from conftest import chunk_payload, sse_event


def _decode_all(chunks, **kwargs):
    decoder = SSEDecoder(**kwargs)
    frames = []
    for chunk in chunks:
        frames.extend(decoder.feed(chunk))
    frames.extend(decoder.close())
    return frames, decoder


STREAM = (
    ": keep-alive\n\n"
    'data: {"text": "héllo ✓"}\r\n\r\n'
    "event: message\n"
    'data: {"n":\n'
    "data: 2}\n\n"
    "data: not json\n\n"
    "data: [DONE]\n\n"
).encode("utf-8")

EXPECTED = [
    StreamFrame.data({"text": "héllo ✓"}),
    StreamFrame.data({"n": 2}),
    StreamFrame.parse_error("Invalid JSON: Expecting value: line 1 column 1 (char 0)", raw="not json"),
    StreamFrame.done(),
]


# =============================================================================
# FRAMING
# =============================================================================


def test_decodes_whole_stream():
    frames, decoder = _decode_all([STREAM])

    assert frames == EXPECTED
    assert decoder.terminated is True


def test_output_independent_of_chunk_boundaries():
    """Any two-way split of the byte stream yields the same frames."""
    for cut in range(len(STREAM) + 1):
        frames, _ = _decode_all([STREAM[:cut], STREAM[cut:]])
        assert frames == EXPECTED, f"split at byte {cut}"


def test_single_byte_chunks():
    """Splits inside multi-byte UTF-8 sequences and CRLF pairs are handled."""
    frames, _ = _decode_all([STREAM[i : i + 1] for i in range(len(STREAM))])

    assert frames == EXPECTED


def test_crlf_split_across_chunks_yields_one_event():
    frames, _ = _decode_all([b'data: {"a": 1}\r', b"\n\r\n"])

    assert frames == [StreamFrame.data({"a": 1})]


def test_bare_cr_line_endings():
    frames, _ = _decode_all([b'data: {"a": 1}\r\rdata: {"a": 2}\r\r'])

    assert frames == [StreamFrame.data({"a": 1}), StreamFrame.data({"a": 2})]


def test_comments_and_unknown_fields_ignored():
    frames, _ = _decode_all([b': ping\n\nid: 7\nretry: 100\ndata: {"a": 1}\n\n'])

    assert frames == [StreamFrame.data({"a": 1})]


def test_event_name_is_kept():
    frames, _ = _decode_all([b'event: delta\ndata: {"a": 1}\n\n'])

    assert frames[0].event == "delta"


def test_str_input_is_accepted():
    decoder = SSEDecoder()
    assert decoder.feed('data: {"a": 1}\n\n') == [StreamFrame.data({"a": 1})]


# =============================================================================
# TERMINATION
# =============================================================================


def test_nothing_decoded_after_done():
    decoder = SSEDecoder()

    frames = decoder.feed(b'data: [DONE]\n\ndata: {"a": 1}\n\n')

    assert frames == [StreamFrame.done()]
    assert decoder.feed(b'data: {"a": 2}\n\n') == []
    assert decoder.close() == []


def test_trailing_incomplete_event_is_parse_error():
    frames, _ = _decode_all([b'data: {"a": 1}\n\ndata: {"a": 2}'])

    assert frames[0] == StreamFrame.data({"a": 1})
    assert frames[1].kind == FrameKind.PARSE_ERROR
    assert frames[1].raw == 'data: {"a": 2}'
    assert len(frames) == 2


def test_trailing_blank_or_comment_is_dropped():
    frames, _ = _decode_all([b'data: {"a": 1}\n\n\n: bye\n'])

    assert frames == [StreamFrame.data({"a": 1})]


def test_parse_error_does_not_stop_decoding():
    frames, decoder = _decode_all([b"data: {oops\n\n", b'data: {"a": 1}\n\n'])

    assert [f.kind for f in frames] == [FrameKind.PARSE_ERROR, FrameKind.DATA]
    assert frames[0].raw == "{oops"
    assert decoder.error is None


# =============================================================================
# FRAGMENT PARSING AND IN-BAND ERRORS
# =============================================================================


def test_fragments_are_parsed():
    frames, _ = _decode_all(
        [sse_event(chunk_payload("Hel")), sse_event(chunk_payload("lo", "stop"))],
        parse_fragment=ChatCompletionChunk.from_dict,
    )

    assert "".join(f.fragment.content for f in frames) == "Hello"
    assert frames[-1].fragment.finish_reason == "stop"


def test_unexpected_fragment_shape_is_parse_error():
    frames, _ = _decode_all(
        [sse_event({"unexpected": True})], parse_fragment=ChatCompletionChunk.from_dict
    )

    assert frames[0].is_parse_error
    assert "choices" in frames[0].message


def test_in_band_error_terminates_stream():
    chunks = [
        sse_event({"a": 1}),
        sse_event({"error": {"message": "Model overloaded", "code": "overloaded"}}),
        sse_event({"a": 2}),
    ]

    frames, decoder = _decode_all([b"".join(chunks)])

    assert frames == [StreamFrame.data({"a": 1})]
    assert decoder.terminated is True
    assert isinstance(decoder.error, StreamedAPIError)
    assert decoder.error.retryable is True
    assert decoder.error.code == "overloaded"


def test_error_event_without_envelope():
    frames, decoder = _decode_all([b'event: error\ndata: {"detail": "boom"}\n\n'])

    assert frames == []
    assert decoder.error is not None
    assert decoder.error.retryable is False


@pytest.mark.asyncio
async def test_decode_stream_raises_after_preceding_frames():
    async def chunks():
        yield sse_event({"a": 1})
        yield sse_event({"error": {"message": "quota", "code": "insufficient_quota"}})

    received = []
    with pytest.raises(StreamedAPIError) as exc_info:
        async for frame in decode_stream(chunks(), SSEDecoder()):
            received.append(frame)

    assert received == [StreamFrame.data({"a": 1})]
    assert exc_info.value.data == {"error": {"message": "quota", "code": "insufficient_quota"}}


@pytest.mark.asyncio
async def test_decode_stream_stops_at_done():
    async def chunks():
        yield b"data: [DONE]\n\n"
        raise AssertionError("read past the end of the stream")

    frames = [frame async for frame in decode_stream(chunks(), SSEDecoder())]

    assert frames == [StreamFrame.done()]
