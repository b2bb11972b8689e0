from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import extend_schema, OpenApiParameter, inline_serializer
from rest_framework import serializers

from apps.accounts.permissions import CanCheckout

from .serializers import (
    CashMovementInputSerializer,
    CloseShiftInputSerializer,
    OpenShiftInputSerializer,
    ShiftFilterSerializer,
    ShiftSerializer,
)
from .services import (
    close_active_shifts,
    close_shift,
    get_open_shift,
    list_shifts,
    open_shift,
    record_cash_movement,
)


class ShiftViewSet(viewsets.GenericViewSet):
    """
    ViewSet for register shifts.

    list: Recent shifts of a store (managers and admins)
    open: Open a shift on a register
    active: Open shift of a register, if any
    close: Close a shift with the counted cash
    cash: Record cash in/out of the drawer
    close_active: Close all of your open shifts (logout)
    """

    serializer_class = ShiftSerializer
    lookup_value_regex = '[0-9a-f-]{36}'

    def get_permissions(self):
        """Listing is checked by the service; everything else needs the register."""
        if self.action == 'list':
            return [IsAuthenticated()]
        return [IsAuthenticated(), CanCheckout()]

    @extend_schema(
        parameters=[OpenApiParameter('store', OpenApiTypes.UUID)],
        responses={200: ShiftSerializer(many=True)},
        tags=['shifts'],
    )
    def list(self, request):
        """List recent shifts."""
        filters = ShiftFilterSerializer(data=request.query_params)
        filters.is_valid(raise_exception=True)

        shifts = list_shifts(actor=request.user, store_id=filters.validated_data.get('store'))
        return Response(ShiftSerializer(shifts, many=True).data)

    @extend_schema(request=OpenShiftInputSerializer, responses={201: ShiftSerializer}, tags=['shifts'])
    @action(detail=False, methods=['post'])
    def open(self, request):
        """Open a shift."""
        serializer = OpenShiftInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        shift = open_shift(actor=request.user, **serializer.validated_data)
        return Response(ShiftSerializer(shift).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        parameters=[OpenApiParameter('register', OpenApiTypes.UUID, required=True)],
        responses={200: ShiftSerializer},
        tags=['shifts'],
    )
    @action(detail=False, methods=['get'])
    def active(self, request):
        """Get the open shift of a register (``null`` when none)."""
        filters = ShiftFilterSerializer(data=request.query_params)
        filters.is_valid(raise_exception=True)
        register_id = filters.validated_data.get('register')
        if register_id is None:
            raise serializers.ValidationError({'register': 'This query parameter is required.'})

        shift = get_open_shift(actor=request.user, register_id=register_id)
        return Response(ShiftSerializer(shift).data if shift else None)

    @extend_schema(request=CloseShiftInputSerializer, responses={200: ShiftSerializer}, tags=['shifts'])
    @action(detail=True, methods=['post'])
    def close(self, request, pk=None):
        """Close a shift with the counted cash."""
        serializer = CloseShiftInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        shift = close_shift(
            actor=request.user,
            shift_id=pk,
            actual_cash=serializer.validated_data['actual_cash'],
            notes=serializer.validated_data.get('notes'),
        )
        return Response(ShiftSerializer(shift).data)

    @extend_schema(request=CashMovementInputSerializer, responses={200: ShiftSerializer}, tags=['shifts'])
    @action(detail=True, methods=['post'])
    def cash(self, request, pk=None):
        """Record cash put into or taken out of the drawer."""
        serializer = CashMovementInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        shift = record_cash_movement(actor=request.user, shift_id=pk, **serializer.validated_data)
        return Response(ShiftSerializer(shift).data)

    @extend_schema(
        parameters=[OpenApiParameter('store', OpenApiTypes.UUID)],
        request=None,
        responses={200: inline_serializer('CloseActiveResponse', {'closed_count': serializers.IntegerField()})},
        tags=['shifts'],
    )
    @action(detail=False, methods=['post'])
    def close_active(self, request):
        """Close every open shift you opened."""
        filters = ShiftFilterSerializer(data=request.query_params)
        filters.is_valid(raise_exception=True)

        closed = close_active_shifts(actor=request.user, store_id=filters.validated_data.get('store'))
        return Response({'closed_count': closed})
