"""Unit tests for the worker-thread event stream behind the SSE routes."""

import asyncio
import threading

from sitelocalizer.api.streaming import format_sse, stream_job
from sitelocalizer.core.events import EventType


class TestStreamJob:
    """Test stream_job."""

    def test_events_yielded_in_order(self):
        async def job(bus):
            bus.emit(EventType.PROGRESS, message="one")
            bus.emit(EventType.COMPLETE)

        messages = list(stream_job(job))

        assert [m['type'] for m in messages] == ['progress', 'complete']

    def test_job_exception_becomes_error_event(self):
        async def job(bus):
            raise RuntimeError("boom")

        [message] = list(stream_job(job))

        assert message == {'type': 'error', 'error': 'boom'}

    def test_closing_stream_cancels_job(self):
        """A client disconnect stops the job instead of letting it run on."""
        finished = threading.Event()
        cancelled = threading.Event()

        async def job(bus):
            try:
                bus.emit(EventType.PROGRESS, message="started")
                await asyncio.sleep(30)
            except asyncio.CancelledError:
                cancelled.set()
                raise
            finally:
                finished.set()

        stream = stream_job(job)
        assert next(stream)['message'] == "started"
        stream.close()

        assert finished.wait(timeout=5)
        assert cancelled.is_set()

    def test_format_sse(self):
        assert format_sse({'type': 'complete'}) == 'data: {"type": "complete"}\n\n'
