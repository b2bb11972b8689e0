# ==========================================
# apps/shifts/admin.py
# ==========================================

from django.contrib import admin
from .models import Shift


@admin.register(Shift)
class ShiftAdmin(admin.ModelAdmin):
    """Read-only view of register shifts; open/close through the API."""

    list_display = [
        'register',
        'store',
        'opened_by',
        'status',
        'opening_cash',
        'expected_cash',
        'actual_cash',
        'opened_at',
        'closed_at',
    ]
    list_filter = ['status', 'store']
    date_hierarchy = 'opened_at'

    def get_readonly_fields(self, request, obj=None):
        return [field.name for field in self.model._meta.fields]

    def has_add_permission(self, request):
        return False
