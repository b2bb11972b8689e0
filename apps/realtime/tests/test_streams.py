"""
Tests for the SSE stream and the order events endpoint.
"""

import json
import pytest
from unittest.mock import patch
from django.urls import reverse
from rest_framework import status

from apps.realtime.bus import ORDER_CREATED, ORDER_UPDATED, Event, EventBus
from apps.realtime.streams import EventStream, format_sse


def parse_frame(frame):
    if isinstance(frame, bytes):
        frame = frame.decode('utf-8')
    assert frame.startswith('data: ')
    assert frame.endswith('\n\n')
    return json.loads(frame[len('data: '):])


def make_event(store_id, event_type=ORDER_CREATED):
    return Event(type=event_type, order_id='order-1', store_id=store_id)


class TestFormatSse:
    """Tests for format_sse()."""

    def test_frame_shape(self):
        assert format_sse({'type': 'connected'}) == 'data: {"type": "connected"}\n\n'


class TestEventStream:
    """Tests for EventStream."""

    def test_first_frame_is_connected(self):
        stream = EventStream(EventBus(), keepalive_seconds=0.01)
        frames = iter(stream)

        first = parse_frame(next(frames))

        assert first['type'] == 'connected'
        assert 'at' in first
        stream.close()

    def test_events_are_forwarded_in_order(self):
        bus = EventBus()
        stream = EventStream(bus, keepalive_seconds=0.01)
        frames = iter(stream)
        next(frames)

        bus.publish(make_event('store-1'))
        bus.publish(make_event('store-1', ORDER_UPDATED))

        assert parse_frame(next(frames))['type'] == ORDER_CREATED
        assert parse_frame(next(frames))['type'] == ORDER_UPDATED
        stream.close()

    def test_store_filter(self):
        bus = EventBus()
        stream = EventStream(bus, store_id='store-1', keepalive_seconds=0.01)
        frames = iter(stream)
        next(frames)

        bus.publish(make_event('store-2'))
        bus.publish(make_event('store-1'))

        assert parse_frame(next(frames))['store_id'] == 'store-1'
        stream.close()

    def test_keepalive_when_idle(self):
        stream = EventStream(EventBus(), keepalive_seconds=0.01)
        frames = iter(stream)
        next(frames)

        frame = next(frames)

        assert frame.startswith(': keepalive ')
        assert frame.endswith('\n\n')
        stream.close()

    def test_close_unsubscribes(self):
        bus = EventBus()
        stream = EventStream(bus, keepalive_seconds=0.01)
        assert bus.subscriber_count == 1

        stream.close()
        stream.close()

        assert bus.subscriber_count == 0

    def test_iteration_ends_after_close(self):
        bus = EventBus()
        stream = EventStream(bus, keepalive_seconds=0.01)
        frames = iter(stream)
        next(frames)

        stream.close()

        assert list(frames) == []
        assert bus.subscriber_count == 0

    def test_full_queue_drops_events(self):
        bus = EventBus()
        stream = EventStream(bus, keepalive_seconds=0.01, max_queue=1)

        bus.publish(make_event('store-1'))
        delivered = bus.publish(make_event('store-1', ORDER_UPDATED))

        # Listener returned normally, the event was just not queued
        assert delivered == 1
        frames = iter(stream)
        next(frames)
        assert parse_frame(next(frames))['type'] == ORDER_CREATED
        stream.close()


@pytest.mark.django_db
class TestOrderEventsAPI:
    """Tests for GET /api/realtime/orders/"""

    def test_requires_auth(self, api_client):
        url = reverse('realtime:order-events')
        response = api_client.get(url, HTTP_ACCEPT='application/json')

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_stream_headers_and_first_frame(self, barista_client):
        bus = EventBus()
        url = reverse('realtime:order-events')

        with patch('apps.realtime.views.get_event_bus', return_value=bus):
            response = barista_client.get(url, HTTP_ACCEPT='text/event-stream')

        assert response.status_code == status.HTTP_200_OK
        assert response['Content-Type'].startswith('text/event-stream')
        assert response['Cache-Control'] == 'no-cache, no-transform'
        assert response['X-Accel-Buffering'] == 'no'

        content = iter(response.streaming_content)
        assert parse_frame(next(content))['type'] == 'connected'
        assert bus.subscriber_count == 1

        response.close()
        assert bus.subscriber_count == 0

    def test_staff_only_see_their_store(self, barista_client, store):
        bus = EventBus()
        url = reverse('realtime:order-events')

        with patch('apps.realtime.views.get_event_bus', return_value=bus):
            response = barista_client.get(url)

        content = iter(response.streaming_content)
        next(content)
        bus.publish(make_event('some-other-store'))
        bus.publish(make_event(str(store.id)))

        assert parse_frame(next(content))['store_id'] == str(store.id)
        response.close()

    def test_staff_cannot_watch_other_store(self, barista_client, other_store):
        url = reverse('realtime:order-events')
        response = barista_client.get(
            url, {'store': str(other_store.id)}, HTTP_ACCEPT='application/json'
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.data['kind'] == 'authorization'

    def test_admin_watches_every_store(self, admin_client):
        bus = EventBus()
        url = reverse('realtime:order-events')

        with patch('apps.realtime.views.get_event_bus', return_value=bus):
            response = admin_client.get(url)

        content = iter(response.streaming_content)
        next(content)
        bus.publish(make_event('store-a'))

        assert parse_frame(next(content))['store_id'] == 'store-a'
        response.close()
