"""
Server-Sent Events bridge between Flask and the async pipeline.

A localization job runs on a worker thread with its own event loop; the
events it publishes are handed to the response generator through a queue.
"""
import json
import queue
import asyncio
import logging
import threading
from typing import Any, Awaitable, Callable, Dict, Iterable, Iterator

from flask import Response

from sitelocalizer.core.events import EventBus, EventType

logger = logging.getLogger(__name__)

Job = Callable[[EventBus], Awaitable[Any]]

_DONE = object()

# Seconds between checks for a closed stream while a job runs
STOP_POLL_INTERVAL = 0.1


def run_async(coro: Awaitable[Any]) -> Any:
    """Run a coroutine to completion on a fresh event loop"""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def stream_job(job: Job) -> Iterator[Dict[str, Any]]:
    """
    Run job on a worker thread and yield its event messages in order.

    An exception escaping the job is published as an "error" event; the
    stream ends once the job has finished either way. Closing the stream
    early (client disconnect) cancels the job and drops its later events.
    """
    messages: queue.Queue = queue.Queue()
    stopped = threading.Event()

    def publish(event):
        if not stopped.is_set():
            messages.put(event.to_message())

    async def run(bus):
        task = asyncio.ensure_future(job(bus))
        while not task.done():
            if stopped.is_set():
                task.cancel()
                break
            await asyncio.wait({task}, timeout=STOP_POLL_INTERVAL)
        return await task

    def worker():
        bus = EventBus()
        bus.subscribe_all(publish)
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        try:
            loop.run_until_complete(run(bus))
        except asyncio.CancelledError:
            logger.info("Event stream closed by the client, localization job cancelled")
        except Exception as e:
            logger.exception("Localization job failed")
            bus.emit(EventType.ERROR, source="api", error=str(e))
        finally:
            loop.close()
            messages.put(_DONE)

    threading.Thread(target=worker, daemon=True).start()

    try:
        while True:
            message = messages.get()
            if message is _DONE:
                return
            yield message
    finally:
        stopped.set()


def format_sse(message: Dict[str, Any]) -> str:
    return f"data: {json.dumps(message)}\n\n"


def sse_response(messages: Iterable[Dict[str, Any]]) -> Response:
    """Wrap a message iterator in a text/event-stream response"""
    def generate():
        try:
            for message in messages:
                yield format_sse(message)
        finally:
            # Propagate a client disconnect to the job stream
            close = getattr(messages, 'close', None)
            if close is not None:
                close()

    return Response(
        generate(),
        mimetype='text/event-stream',
        headers={
            'Cache-Control': 'no-cache',
            'X-Accel-Buffering': 'no',
        }
    )
