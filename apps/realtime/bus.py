"""
In-process event bus for order lifecycle notifications.

One ``EventBus`` lives in each server process (built by
``RealtimeConfig.ready``). Publishing is synchronous: each listener is
called in turn, and a failing listener is logged and skipped so the
others still receive the event.

Fan-out stops at the process boundary. Running several server processes
needs an external broker in place of this class.
"""

import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

import structlog

logger = structlog.get_logger(__name__)

ORDER_CREATED = 'order.created'
ORDER_UPDATED = 'order.updated'
EVENT_TYPES = frozenset({ORDER_CREATED, ORDER_UPDATED})


@dataclass(frozen=True)
class Event:
    type: str
    order_id: str
    store_id: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if self.type not in EVENT_TYPES:
            raise ValueError(f"Unknown event type: {self.type}")

    def to_dict(self):
        return {
            'type': self.type,
            'order_id': self.order_id,
            'store_id': self.store_id,
            'data': self.data,
        }


Listener = Callable[[Event], None]


class EventBus:
    """Thread-safe publish/subscribe registry."""

    def __init__(self):
        self._listeners = []
        self._lock = threading.Lock()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register ``listener`` and return a function that removes it.

        Calling the returned function more than once is harmless.
        """
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe():
            with self._lock:
                try:
                    self._listeners.remove(listener)
                except ValueError:
                    pass

        return unsubscribe

    def publish(self, event: Event) -> int:
        """
        Deliver ``event`` to every listener registered right now.

        Returns:
            Number of listeners that received the event without error
        """
        with self._lock:
            listeners = list(self._listeners)

        delivered = 0
        for listener in listeners:
            try:
                listener(event)
                delivered += 1
            except Exception:
                logger.exception(
                    "Realtime listener failed",
                    event_type=event.type,
                    order_id=event.order_id,
                )
        return delivered

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._listeners)


_bus: Optional[EventBus] = None


def install_event_bus(bus: EventBus) -> EventBus:
    """Set the process-wide bus. Called once from the app config."""
    global _bus
    _bus = bus
    return bus


def get_event_bus() -> EventBus:
    """Return the process-wide bus, creating it if the app config has not."""
    global _bus
    if _bus is None:
        _bus = EventBus()
    return _bus


def publish_safely(event: Event, *, bus: Optional[EventBus] = None) -> None:
    """
    Publish ``event`` and log instead of raising on failure.

    Used from ``transaction.on_commit`` callbacks: the write has already
    committed, so a notification problem must never surface as an error.
    """
    try:
        (bus or get_event_bus()).publish(event)
    except Exception:
        logger.exception(
            "Realtime publish failed",
            event_type=event.type,
            order_id=event.order_id,
        )
