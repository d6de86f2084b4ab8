"""
Event system for translation run observability.

Provides decoupled event publishing and subscription so the CLI, the
HTTP stream and the tests can all follow a run's progress.
"""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)


class EventType(Enum):
    """Translation run event types."""

    LOCALE_STARTED = "locale_started"
    PROGRESS = "progress"
    LOCALE_COMPLETE = "locale_complete"
    LOCALE_ERROR = "locale_error"
    COMPLETE = "complete"
    ERROR = "error"


@dataclass
class Event:
    """Translation run event.

    Attributes:
        type: Event type
        data: Event-specific data dictionary
        timestamp: Unix timestamp when event occurred
        source: Optional source identifier (e.g., "locale_orchestrator")
    """
    type: EventType
    data: Dict[str, Any] = field(default_factory=dict)
    timestamp: float = field(default_factory=time.time)
    source: str = "unknown"

    def to_message(self) -> Dict[str, Any]:
        """Wire representation used by the event stream."""
        message = {'type': self.type.value}
        message.update(self.data)
        return message


class EventBus:
    """Central event bus for a translation run."""

    def __init__(self):
        self._listeners: Dict[EventType, List[Callable[[Event], None]]] = {}
        self._all_listeners: List[Callable[[Event], None]] = []
        self._history: List[Event] = []
        self._record_history = False

    def subscribe(self, event_type: EventType, callback: Callable[[Event], None]) -> None:
        """Subscribe to an event type.

        Args:
            event_type: Type of event to listen for
            callback: Function to call when event occurs (receives Event object)
        """
        self._listeners.setdefault(event_type, []).append(callback)

    def subscribe_all(self, callback: Callable[[Event], None]) -> None:
        """Subscribe to every event type, in publication order."""
        self._all_listeners.append(callback)

    def unsubscribe(self, event_type: EventType, callback: Callable) -> None:
        if event_type in self._listeners:
            try:
                self._listeners[event_type].remove(callback)
            except ValueError:
                pass  # Callback not found

    def publish(self, event: Event) -> None:
        """Publish an event to all subscribers.

        Listener failures are logged and never reach the publisher.
        """
        if self._record_history:
            self._history.append(event)

        listeners = self._all_listeners + self._listeners.get(event.type, [])
        for listener in listeners:
            try:
                listener(event)
            except Exception:
                logger.exception(f"Event listener failed for {event.type.value}")

    def emit(self, event_type: EventType, source: str = "unknown", **data: Any) -> Event:
        """Build and publish an event in one call."""
        event = Event(type=event_type, data=data, source=source)
        self.publish(event)
        return event

    def enable_history(self) -> None:
        """Enable event history recording."""
        self._record_history = True

    def get_history(self) -> List[Event]:
        """Get recorded event history in chronological order."""
        return self._history.copy()

    def clear_history(self) -> None:
        self._history.clear()

    def get_events_by_type(self, event_type: EventType) -> List[Event]:
        return [e for e in self._history if e.type == event_type]
