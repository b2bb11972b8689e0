from django.conf import settings
from django.http import StreamingHttpResponse
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import extend_schema, OpenApiParameter
from rest_framework.decorators import api_view, permission_classes, renderer_classes
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import IsAuthenticated
from rest_framework.renderers import BaseRenderer, JSONRenderer

from apps.accounts.models import Role

from .bus import get_event_bus
from .streams import EventStream, format_sse


class EventStreamRenderer(BaseRenderer):
    """Lets ``Accept: text/event-stream`` clients through content negotiation."""

    media_type = 'text/event-stream'
    format = 'sse'
    charset = 'utf-8'

    def render(self, data, accepted_media_type=None, renderer_context=None):
        if data is None:
            return b''
        return format_sse(data).encode(self.charset)


def _subscription_store(request):
    """Admins may watch one store or all; everyone else only their own."""
    user = request.user
    requested = request.query_params.get('store')

    if user.role == Role.ADMIN:
        return requested or None

    if user.default_store_id is None:
        raise PermissionDenied('No store assigned to this account.')
    if requested and not user.has_store_access(requested):
        raise PermissionDenied('Store access denied.')
    return user.default_store_id


@extend_schema(
    parameters=[
        OpenApiParameter('store', OpenApiTypes.UUID, description='Store to watch (admins only; others get their own)'),
    ],
    responses={(200, 'text/event-stream'): OpenApiTypes.STR},
    description="Server-Sent Events stream of order.created / order.updated events.",
    tags=['realtime'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
@renderer_classes([EventStreamRenderer, JSONRenderer])
def order_events(request):
    """Stream order lifecycle events for the kitchen display."""
    stream = EventStream(
        get_event_bus(),
        store_id=_subscription_store(request),
        keepalive_seconds=settings.REALTIME_KEEPALIVE_SECONDS,
    )

    response = StreamingHttpResponse(stream, content_type='text/event-stream')
    response['Cache-Control'] = 'no-cache, no-transform'
    response['X-Accel-Buffering'] = 'no'
    return response
