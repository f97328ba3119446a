"""
Delivery sink contract and its Server-Sent-Events adapter.

The chat service drives a sink with ``on_start`` and ``on_content``; the
terminal ``done`` / ``error`` events are added here, once the service call
returns or raises.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import suppress
from typing import TYPE_CHECKING, Any, Protocol

from streamchat.core import AppError, ErrorCode, get_logger

if TYPE_CHECKING:
    from streamchat.services.chat_service import ChatResult

logger = get_logger(__name__)


class DeliverySink(Protocol):
    """Consumer of streamed chat events. Raising (typically ``SinkError``) aborts the stream."""

    async def on_start(self, conversation_id: int) -> None: ...

    async def on_content(self, chunk: str) -> None: ...


def format_sse_event(event_type: str, payload: dict[str, Any]) -> str:
    """Serialize an event to SSE format; the JSON body repeats the type."""
    data = json.dumps({"type": event_type, **payload}, separators=(",", ":"), ensure_ascii=False)
    return f"event: {event_type}\ndata: {data}\n\n"


class QueueSink:
    """
    Sink that turns events into SSE frames on a bounded queue.

    With ``maxsize=1`` each event waits until the previous frame was taken
    by the HTTP response, so the provider is read no faster than the
    client consumes.
    """

    def __init__(self, maxsize: int = 1) -> None:
        self.queue: asyncio.Queue[str | None] = asyncio.Queue(maxsize=maxsize)

    async def on_start(self, conversation_id: int) -> None:
        await self.queue.put(format_sse_event("start", {"conversation_id": conversation_id}))

    async def on_content(self, chunk: str) -> None:
        await self.queue.put(format_sse_event("content", {"content": chunk}))


ChatRunner = Callable[[DeliverySink, asyncio.Event], Awaitable["ChatResult"]]


async def stream_chat_events(run: ChatRunner) -> AsyncIterator[str]:
    """
    Run ``run(sink, cancel)`` in a task and yield its SSE frames as they are
    produced.

    Ends with a ``done`` frame on success or an ``error`` frame on failure.
    If the consumer stops early (client disconnected), ``cancel`` is set and
    the task is cancelled, which closes the provider stream. A run that
    outlives the cancellation still sees ``cancel`` and must stop delivering.
    """
    sink = QueueSink()
    cancel = asyncio.Event()

    async def produce() -> None:
        try:
            result = await run(sink, cancel)
        except AppError as exc:
            frame = format_sse_event("error", {"error": exc.message, "code": exc.code.value})
        except Exception as exc:
            logger.exception("Unexpected error during chat stream", exc_info=exc)
            frame = format_sse_event(
                "error",
                {"error": "An unexpected error occurred", "code": ErrorCode.INTERNAL_ERROR.value},
            )
        else:
            frame = format_sse_event("done", {"conversation_id": result.conversation_id})
        if cancel.is_set():
            # The consumer is gone
            return
        await sink.queue.put(frame)
        await sink.queue.put(None)

    task = asyncio.create_task(produce())
    try:
        while (frame := await sink.queue.get()) is not None:
            yield frame
    finally:
        cancel.set()
        if not task.done():
            task.cancel()
            with suppress(asyncio.CancelledError):
                await task
