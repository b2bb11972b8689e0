from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import extend_schema, OpenApiParameter

from apps.accounts.permissions import CanCheckout, CanFulfillOrders

from .serializers import (
    CartTotalsSerializer,
    CheckoutInputSerializer,
    OrderFilterSerializer,
    OrderSerializer,
    QuoteInputSerializer,
    StatusTransitionInputSerializer,
)
from .services import (
    get_order,
    list_orders,
    quote_cart,
    settle_checkout,
    transition_order_status,
)


class OrderViewSet(viewsets.GenericViewSet):
    """
    ViewSet for checkout and the order lifecycle.

    All business logic is handled by services.
    Views are thin HTTP handlers only; service errors are rendered by
    the shared exception handler.

    list: Kitchen queue of a store (oldest first)
    create: Settle a checkout
    retrieve: Get a specific order
    update_status: Move an order through its lifecycle
    quote: Price a cart with the store's live rates
    """

    serializer_class = OrderSerializer
    lookup_value_regex = '[0-9a-f-]{36}'

    def get_permissions(self):
        """Set permissions based on action."""
        if self.action in ['create', 'quote']:
            return [IsAuthenticated(), CanCheckout()]
        return [IsAuthenticated(), CanFulfillOrders()]

    @extend_schema(
        parameters=[
            OpenApiParameter('store', OpenApiTypes.UUID, description='Store (defaults to your store)'),
            OpenApiParameter('status', OpenApiTypes.STR, description='Comma-separated statuses'),
        ],
        responses={200: OrderSerializer(many=True)},
        tags=['orders'],
    )
    def list(self, request):
        """List orders of a store for the kitchen display."""
        filters = OrderFilterSerializer(data=request.query_params)
        filters.is_valid(raise_exception=True)

        orders = list_orders(
            actor=request.user,
            store_id=filters.validated_data.get('store'),
            statuses=filters.validated_data.get('status'),
        )
        return Response(OrderSerializer(orders, many=True).data)

    @extend_schema(
        request=CheckoutInputSerializer,
        responses={201: OrderSerializer},
        tags=['orders'],
    )
    def create(self, request):
        """Settle a checkout: reserve stock, persist the order, notify the kitchen."""
        serializer = CheckoutInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        order = settle_checkout(actor=request.user, **serializer.validated_data)

        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)

    @extend_schema(responses={200: OrderSerializer}, tags=['orders'])
    def retrieve(self, request, pk=None):
        """Get a single order with items and payments."""
        order = get_order(actor=request.user, order_id=pk)
        return Response(OrderSerializer(order).data)

    @extend_schema(
        request=StatusTransitionInputSerializer,
        responses={200: OrderSerializer},
        tags=['orders'],
    )
    @action(detail=True, methods=['patch'], url_path='status', url_name='status')
    def update_status(self, request, pk=None):
        """Move an order to a new status (void/refund need MANAGER or ADMIN)."""
        serializer = StatusTransitionInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        order = transition_order_status(
            order_id=pk,
            target_status=data['status'],
            actor=request.user,
            item_status=data.get('item_status'),
            reason=data.get('reason') or None,
            amount=data.get('amount'),
        )
        return Response(OrderSerializer(order).data)

    @extend_schema(
        request=QuoteInputSerializer,
        responses={200: CartTotalsSerializer},
        tags=['orders'],
    )
    @action(detail=False, methods=['post'])
    def quote(self, request):
        """Price a cart exactly as settlement will."""
        serializer = QuoteInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        totals = quote_cart(actor=request.user, **serializer.validated_data)
        return Response(CartTotalsSerializer(totals).data)
