"""
In-process publish/subscribe. Synchronous: publish() returns after every subscriber ran,
in subscription order. A failing subscriber is logged and skipped; it never reaches the
publisher. No persistence or replay.
"""
import enum
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable

logger = logging.getLogger(__name__)


class EventType(str, enum.Enum):
    ACCESS_REQUEST_SUBMITTED = "access-request:submitted"
    ACCESS_REQUEST_AUTO_APPROVED = "access-request:auto-approved"
    ACCESS_REQUEST_DECIDED = "access-request:decided"
    ACCESS_REQUEST_REVOKED = "access-request:revoked"
    USER_ACTIVATED = "user:activated"
    USER_DEACTIVATED = "user:deactivated"


@dataclass
class Event:
    type: EventType
    payload: dict[str, Any]
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict:
        return {
            "type": self.type.value,
            "payload": self.payload,
            "occurred_at": self.occurred_at.isoformat(),
        }


Subscriber = Callable[[Event], Any]


class EventBus:
    def __init__(self):
        self._subscribers: dict[EventType, list[Subscriber]] = {t: [] for t in EventType}
        self._wildcard: list[Subscriber] = []

    def subscribe(self, event_type: EventType, callback: Subscriber) -> None:
        """Register callback for one event type. Registering the same callback twice is a no-op."""
        callbacks = self._subscribers[event_type]
        if callback not in callbacks:
            callbacks.append(callback)

    def unsubscribe(self, event_type: EventType, callback: Subscriber) -> None:
        callbacks = self._subscribers[event_type]
        if callback in callbacks:
            callbacks.remove(callback)

    def subscribe_all(self, callback: Subscriber) -> None:
        """Register callback for every event type (runs after the typed subscribers)."""
        if callback not in self._wildcard:
            self._wildcard.append(callback)

    def unsubscribe_all(self, callback: Subscriber) -> None:
        if callback in self._wildcard:
            self._wildcard.remove(callback)

    def subscribers(self, event_type: EventType) -> list[Subscriber]:
        return list(self._subscribers[event_type])

    def publish(self, event: Event) -> None:
        # Snapshot so subscribers may (un)subscribe while being called
        callbacks = list(self._subscribers[event.type]) + list(self._wildcard)
        for callback in callbacks:
            try:
                callback(event)
            except Exception:
                logger.exception("Subscriber %r failed for %s", callback, event.type.value)

    def emit(self, event_type: EventType, payload: dict[str, Any]) -> Event:
        """Build and publish an event. Returns the published event."""
        event = Event(type=event_type, payload=payload)
        self.publish(event)
        return event
