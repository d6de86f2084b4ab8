"""Unit tests for the event system and its logger bridge."""

from sitelocalizer.core.events import Event, EventBus, EventType
from sitelocalizer.utils.unified_logger import LogLevel, LogType, UnifiedLogger


class TestEventBus:
    """Test EventBus functionality."""

    def test_subscribe_and_publish(self):
        """Subscribe to event and receive it when published."""
        bus = EventBus()
        received_events = []

        bus.subscribe(EventType.PROGRESS, received_events.append)
        bus.publish(Event(type=EventType.PROGRESS, data={"message": "hi"}))
        bus.publish(Event(type=EventType.COMPLETE))  # Not subscribed

        assert len(received_events) == 1
        assert received_events[0].data["message"] == "hi"

    def test_subscribe_all_sees_every_type(self):
        bus = EventBus()
        seen = []
        bus.subscribe_all(lambda e: seen.append(e.type))

        bus.emit(EventType.LOCALE_STARTED, localeId="fr")
        bus.emit(EventType.COMPLETE)

        assert seen == [EventType.LOCALE_STARTED, EventType.COMPLETE]

    def test_unsubscribe(self):
        bus = EventBus()
        received_count = [0]

        def handler(event):
            received_count[0] += 1

        bus.subscribe(EventType.PROGRESS, handler)
        bus.emit(EventType.PROGRESS)
        bus.unsubscribe(EventType.PROGRESS, handler)
        bus.emit(EventType.PROGRESS)
        bus.unsubscribe(EventType.PROGRESS, handler)  # Already gone

        assert received_count[0] == 1

    def test_event_history(self):
        bus = EventBus()

        # History disabled by default
        bus.emit(EventType.PROGRESS)
        assert bus.get_history() == []

        bus.enable_history()
        bus.emit(EventType.PROGRESS)
        bus.emit(EventType.LOCALE_ERROR, error="boom")

        assert [e.type for e in bus.get_history()] == [EventType.PROGRESS, EventType.LOCALE_ERROR]
        assert len(bus.get_events_by_type(EventType.LOCALE_ERROR)) == 1

        bus.clear_history()
        assert bus.get_history() == []

    def test_failing_listener_isolated(self):
        """A listener raising never reaches the publisher or other listeners."""
        bus = EventBus()
        received = []

        def broken(event):
            raise RuntimeError("listener bug")

        bus.subscribe(EventType.PROGRESS, broken)
        bus.subscribe(EventType.PROGRESS, received.append)
        bus.emit(EventType.PROGRESS)

        assert len(received) == 1

    def test_wire_message(self):
        event = Event(type=EventType.LOCALE_COMPLETE, data={"localeId": "fr", "nodesUpdated": 3})
        assert event.to_message() == {"type": "locale_complete", "localeId": "fr", "nodesUpdated": 3}


class TestLoggerBridge:
    """Test rendering run events through UnifiedLogger."""

    def make_logger(self, min_level=LogLevel.DEBUG):
        entries = []
        logger = UnifiedLogger(console_output=False, min_level=min_level, web_callback=entries.append)
        return logger, entries

    def test_events_mapped_to_log_types(self):
        logger, entries = self.make_logger()
        bus = EventBus()
        bus.subscribe_all(logger.create_event_listener())

        bus.emit(EventType.PROGRESS, locale="French", message="Found 3 nodes")
        bus.emit(EventType.LOCALE_COMPLETE, locale="French", nodesUpdated=3)
        bus.emit(EventType.LOCALE_ERROR, locale="German", error="backend down")
        bus.emit(EventType.COMPLETE, completedLocales=["French"])

        assert [(e['level'], e['type']) for e in entries] == [
            ("INFO", LogType.PROGRESS.value),
            ("INFO", LogType.LOCALE_COMPLETE.value),
            ("ERROR", LogType.LOCALE_ERROR.value),
            ("INFO", LogType.RUN_END.value),
        ]
        assert entries[2]['message'] == "backend down"

    def test_min_level_filters(self):
        logger, entries = self.make_logger(min_level=LogLevel.WARNING)
        logger.info("quiet")
        logger.warning("loud")
        assert [e['message'] for e in entries] == ["loud"]

    def test_console_output(self, capsys):
        logger = UnifiedLogger(enable_colors=False)
        logger.info("Updated 2 node(s)", LogType.PROGRESS, {"locale": "French"})
        logger.info("done", LogType.RUN_END, {
            "completedLocales": ["French"],
            "failedLocales": [{"locale": "German", "error": "boom"}],
            "nodesTouched": 2,
            "apiCallCount": 7,
        })

        out = capsys.readouterr().out
        assert "[French] Updated 2 node(s)" in out
        assert "Completed locales: French" in out
        assert "Failed: German: boom" in out
        assert "API calls: 7" in out
