# ==========================================
# apps/stores/admin.py
# ==========================================

from django.contrib import admin
from django.utils.html import format_html
from .models import Store, Register, Customer, Product


class RegisterInline(admin.TabularInline):
    """Inline admin for registers within a store."""
    model = Register
    extra = 0
    fields = ['name', 'code', 'is_active']


@admin.register(Store)
class StoreAdmin(admin.ModelAdmin):
    """
    Admin interface for Stores.

    Pricing rates edited here are picked up by the cart pricing engine on
    the next quote. Orders already placed keep their frozen totals.
    """

    list_display = [
        'name',
        'slug',
        'tax_rate',
        'service_charge_rate',
        'rounding_unit',
        'is_active',
    ]
    list_filter = ['is_active', 'allow_tips']
    search_fields = ['name', 'slug']
    prepopulated_fields = {'slug': ('name',)}
    inlines = [RegisterInline]

    fieldsets = (
        ('Basic Information', {
            'fields': ('name', 'slug', 'address', 'phone', 'currency', 'is_active')
        }),
        ('Pricing', {
            'fields': ('tax_rate', 'service_charge_rate', 'rounding_unit', 'allow_tips'),
        }),
    )


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    """Admin interface for Customers."""

    list_display = ['name', 'phone', 'email', 'store', 'created_at']
    list_filter = ['store']
    search_fields = ['name', 'phone', 'email']


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    """Admin interface for Products with a stock level badge."""

    list_display = ['name', 'store', 'base_price', 'stock_badge', 'is_available']
    list_filter = ['store', 'is_available']
    search_fields = ['name', 'sku']

    def stock_badge(self, obj):
        """Display stock as colored badge."""
        if obj.stock <= 10:
            bg, fg = '#B85C5C', 'white'
        elif obj.stock <= 50:
            bg, fg = '#E5C49A', '#2C1810'
        else:
            bg, fg = '#6B8E5E', 'white'
        return format_html(
            '<span style="background: {}; color: {}; padding: 3px 8px; '
            'border-radius: 10px; font-size: 11px;">{}</span>',
            bg, fg, obj.stock
        )
    stock_badge.short_description = 'Stock'
