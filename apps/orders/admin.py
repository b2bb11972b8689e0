# ==========================================
# apps/orders/admin.py
# ==========================================

from django.contrib import admin
from django.utils.html import format_html
from .models import Order, OrderItem, Payment, RefundVoid, AuditLog, OrderStatus


class ReadOnlyInline(admin.TabularInline):
    """Orders are changed through services only, never in the admin."""
    extra = 0
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False

    def has_change_permission(self, request, obj=None):
        return False


class OrderItemInline(ReadOnlyInline):
    model = OrderItem
    fields = ['product_name', 'quantity', 'unit_price', 'discount_amount', 'line_total', 'item_status']
    readonly_fields = fields


class PaymentInline(ReadOnlyInline):
    model = Payment
    fields = ['method', 'amount', 'reference', 'shift']
    readonly_fields = fields


class RefundVoidInline(ReadOnlyInline):
    model = RefundVoid
    fields = ['type', 'amount', 'reason', 'created_by', 'created_at']
    readonly_fields = fields


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    """
    Read-only admin for Orders.

    The money snapshot is frozen at checkout; status changes go through
    the API so that audit entries and realtime events are written.
    """

    list_display = [
        'order_number',
        'store',
        'status_badge',
        'total_amount',
        'cashier',
        'placed_at',
    ]
    list_filter = ['status', 'store', 'placed_at']
    search_fields = ['order_number', 'customer__name']
    date_hierarchy = 'placed_at'
    inlines = [OrderItemInline, PaymentInline, RefundVoidInline]

    def get_readonly_fields(self, request, obj=None):
        return [field.name for field in self.model._meta.fields]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    def status_badge(self, obj):
        """Display order status as colored badge."""
        colors = {
            OrderStatus.NEW: '#A47449',
            OrderStatus.IN_PROGRESS: '#E5A04B',
            OrderStatus.READY: '#6B8E5E',
            OrderStatus.COMPLETED: '#2C1810',
            OrderStatus.VOIDED: '#B85C5C',
            OrderStatus.REFUNDED: '#7A5C8E',
        }
        return format_html(
            '<span style="background: {}; color: white; padding: 3px 8px; '
            'border-radius: 10px; font-size: 11px;">{}</span>',
            colors.get(obj.status, '#ccc'), obj.get_status_display()
        )
    status_badge.short_description = 'Status'
    status_badge.admin_order_field = 'status'


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    """Append-only audit trail."""

    list_display = ['created_at', 'action', 'store', 'user', 'message']
    list_filter = ['action', 'store']
    search_fields = ['message', 'entity_id']
    date_hierarchy = 'created_at'

    def get_readonly_fields(self, request, obj=None):
        return [field.name for field in self.model._meta.fields]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
