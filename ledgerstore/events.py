"""
events.py - Event Subscription Registry

Delivers emitted events to subscribers:
- Handlers are plain functions taking an EventRecord
- Handlers register per event type, or for every event with event_type=None
- Delivery order is subscription order; events arrive in emission order
- The store's event log IS the audit trail, the bus keeps no history
"""

from __future__ import annotations
from typing import Callable, List, Optional, Tuple, Type

from .core import EVENT_TYPES, EventRecord, SubscriberError, event_type_by_name


# Handler type: (record) -> None
EventHandler = Callable[[EventRecord], None]


class EventBus:
    """
    Minimal synchronous publish/subscribe registry.

    Every matching handler receives each record. Handler exceptions are
    collected and raised together as one SubscriberError once delivery
    finishes. Handlers subscribed after a publish do not see earlier
    events; read the store's event log for history.
    """

    def __init__(self):
        self._subscriptions: List[Tuple[Optional[Type], EventHandler]] = []

    @staticmethod
    def _resolve(event_type: Type | str | None) -> Optional[Type]:
        if isinstance(event_type, str):
            return event_type_by_name(event_type)
        if event_type is not None and event_type not in EVENT_TYPES:
            raise ValueError(f"Not an event type: {event_type!r}")
        return event_type

    def subscribe(self, event_type: Type | str | None, handler: EventHandler) -> EventHandler:
        """
        Register a handler for an event type (or None for all events).

        Returns the handler so callers can keep it for unsubscribe().
        """
        self._subscriptions.append((self._resolve(event_type), handler))
        return handler

    def unsubscribe(self, event_type: Type | str | None, handler: EventHandler) -> None:
        """
        Remove a previously registered handler.

        Raises:
            ValueError: If the handler is not subscribed to that event type
        """
        key = (self._resolve(event_type), handler)
        if key not in self._subscriptions:
            raise ValueError(f"Handler {handler!r} is not subscribed to {key[0]!r}")
        self._subscriptions.remove(key)

    def publish(self, record: EventRecord) -> None:
        """
        Call every matching handler with the record.

        A failing handler does not stop delivery to the others.

        Raises:
            SubscriberError: After delivery, if any handler raised
        """
        failures: List[Tuple[EventRecord, Exception]] = []
        for event_type, handler in list(self._subscriptions):
            if event_type is None or isinstance(record.event, event_type):
                try:
                    handler(record)
                except Exception as e:
                    failures.append((record, e))
        if failures:
            raise SubscriberError(failures) from failures[0][1]

    def handler_count(self, event_type: Type | str | None = None) -> int:
        """Number of handlers registered under event_type (None = catch-all)."""
        key = self._resolve(event_type)
        return sum(1 for t, _ in self._subscriptions if t is key)
