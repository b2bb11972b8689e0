"""
Server-Sent Events transport over the event bus.

An ``EventStream`` subscribes on creation and yields SSE frames:

    data: {"type": "connected", "at": "..."}

    data: {"type": "order.created", "order_id": "...", ...}

    : keepalive 1760781600000

The subscription is released when iteration ends or ``close()`` is
called. Django calls ``close()`` on streaming content when the response
is closed, which covers client disconnects.
"""

import json
import queue
import time

import structlog
from django.core.serializers.json import DjangoJSONEncoder
from django.utils import timezone

from .bus import Event, EventBus

logger = structlog.get_logger(__name__)

DEFAULT_QUEUE_SIZE = 500


def format_sse(payload) -> str:
    return f"data: {json.dumps(payload, cls=DjangoJSONEncoder)}\n\n"


class EventStream:
    """
    Iterator of SSE frames for one subscriber.

    Args:
        bus: Bus to subscribe to
        store_id: Only forward events of this store; None forwards all
        keepalive_seconds: Silence after which a keepalive comment is sent
        max_queue: Events buffered for a slow client before dropping
    """

    def __init__(self, bus: EventBus, *, store_id=None, keepalive_seconds=15.0,
                 max_queue=DEFAULT_QUEUE_SIZE):
        self.store_id = str(store_id) if store_id else None
        self.keepalive_seconds = keepalive_seconds
        self._queue = queue.Queue(maxsize=max_queue)
        self._closed = False
        self._unsubscribe = bus.subscribe(self._on_event)
        logger.info(
            "Realtime subscriber connected",
            store_id=self.store_id,
            subscribers=bus.subscriber_count,
        )

    def _on_event(self, event: Event):
        if self.store_id and event.store_id and str(event.store_id) != self.store_id:
            return
        try:
            self._queue.put_nowait(event)
        except queue.Full:
            logger.warning(
                "Realtime subscriber queue full, event dropped",
                event_type=event.type,
                order_id=event.order_id,
            )

    def __iter__(self):
        try:
            yield format_sse({'type': 'connected', 'at': timezone.now().isoformat()})
            while not self._closed:
                try:
                    event = self._queue.get(timeout=self.keepalive_seconds)
                except queue.Empty:
                    yield f": keepalive {int(time.time() * 1000)}\n\n"
                    continue
                yield format_sse(event.to_dict())
        finally:
            self.close()

    def close(self):
        if self._closed:
            return
        self._closed = True
        self._unsubscribe()
        logger.info("Realtime subscriber disconnected", store_id=self.store_id)
