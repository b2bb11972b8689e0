"""
Role-based permission classes for the POS API.

Views use these as a first gate. Services repeat the role and store checks
themselves because they are also called outside HTTP.
"""
from rest_framework.permissions import BasePermission

from .models import CHECKOUT_ROLES, FULFILLMENT_ROLES


class HasAnyRole(BasePermission):
    """
    Permission: authenticated user whose role is in ``allowed_roles``.

    Usage:
        class CanCheckout(HasAnyRole):
            allowed_roles = CHECKOUT_ROLES
    """

    allowed_roles = frozenset()
    message = 'Your role is not allowed to perform this action.'

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False
        return user.has_role(self.allowed_roles)


class CanCheckout(HasAnyRole):
    """Permission: ADMIN, MANAGER or CASHIER may ring up orders and run shifts."""

    allowed_roles = CHECKOUT_ROLES
    message = 'Only cashiers, managers and admins can use the register.'


class CanFulfillOrders(HasAnyRole):
    """Permission: any POS role may view and advance kitchen orders."""

    allowed_roles = FULFILLMENT_ROLES


class HasStoreAccess(BasePermission):
    """
    Object permission: the object's store must be reachable by the user.

    Works for any object with a ``store_id`` attribute.
    """

    message = 'Store access denied.'

    def has_object_permission(self, request, view, obj):
        return request.user.has_store_access(obj.store_id)
