"""Tests for SSE framing and the queue-backed delivery sink."""

from __future__ import annotations

import asyncio
import json

import pytest

from streamchat.core import ErrorCode, ProviderUnavailableError, SinkError
from streamchat.services import ChatResult, format_sse_event, stream_chat_events


def test_format_sse_event() -> None:
    frame = format_sse_event("content", {"content": "héllo"})

    assert frame == 'event: content\ndata: {"type":"content","content":"héllo"}\n\n'


async def collect(run) -> list[dict]:
    frames = [frame async for frame in stream_chat_events(run)]
    return [json.loads(frame.split("data: ", 1)[1]) for frame in frames]


@pytest.mark.asyncio
async def test_successful_run_ends_with_done() -> None:
    async def run(sink, cancel) -> ChatResult:
        await sink.on_start(7)
        await sink.on_content("a")
        await sink.on_content("b")
        return ChatResult(content="ab", conversation_id=7)

    events = await collect(run)

    assert events == [
        {"type": "start", "conversation_id": 7},
        {"type": "content", "content": "a"},
        {"type": "content", "content": "b"},
        {"type": "done", "conversation_id": 7},
    ]


@pytest.mark.asyncio
async def test_app_error_becomes_error_frame() -> None:
    async def run(sink, cancel) -> ChatResult:
        await sink.on_start(1)
        raise ProviderUnavailableError()

    events = await collect(run)

    assert events[-1] == {
        "type": "error",
        "error": "Provider unavailable",
        "code": ErrorCode.PROVIDER_UNAVAILABLE.value,
    }


@pytest.mark.asyncio
async def test_sink_error_becomes_streaming_error_frame() -> None:
    async def run(sink, cancel) -> ChatResult:
        await sink.on_start(1)
        raise SinkError("client went away")

    events = await collect(run)

    assert events[-1] == {
        "type": "error",
        "error": "client went away",
        "code": ErrorCode.STREAMING_ERROR.value,
    }


@pytest.mark.asyncio
async def test_unexpected_error_is_not_leaked() -> None:
    async def run(sink, cancel) -> ChatResult:
        raise RuntimeError("secret internals")

    events = await collect(run)

    assert events == [
        {"type": "error", "error": "An unexpected error occurred", "code": ErrorCode.INTERNAL_ERROR.value}
    ]


@pytest.mark.asyncio
async def test_consumer_close_cancels_run() -> None:
    cancelled = asyncio.Event()
    produced: list[int] = []

    async def run(sink, cancel) -> ChatResult:
        await sink.on_start(1)
        try:
            for i in range(1000):
                await sink.on_content(str(i))
                produced.append(i)
        except asyncio.CancelledError:
            cancelled.set()
            raise
        return ChatResult(content="", conversation_id=1)

    stream = stream_chat_events(run)
    assert "start" in await anext(stream)
    assert "content" in await anext(stream)
    await stream.aclose()

    assert cancelled.is_set()
    # bounded queue: the producer never ran far ahead of the consumer
    assert len(produced) <= 3


@pytest.mark.asyncio
async def test_consumer_close_sets_cancel_event() -> None:
    seen: list[asyncio.Event] = []

    async def run(sink, cancel) -> ChatResult:
        seen.append(cancel)
        await sink.on_start(1)
        while True:
            await sink.on_content("x")

    stream = stream_chat_events(run)
    assert "start" in await anext(stream)
    assert not seen[0].is_set()
    await stream.aclose()

    assert seen[0].is_set()
