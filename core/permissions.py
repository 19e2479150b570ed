"""
Reusable DRF permission classes for role-based access control.

Roles (accounts.choices.Role):
- SUPER_ADMIN: platform operator, every store.
- STORE_ADMIN: manages one store (catalog, orders, settings, billing).
- STAFF: works one store's catalog, inventory and orders.
- CUSTOMER: storefront shopper; only their own orders and data.

Permissions answer "may this role call this endpoint". Which rows the
caller sees is decided by core.tenancy.StoreScope, so a foreign store's
object surfaces as 404 rather than 403.
"""
from rest_framework import permissions

from accounts.choices import STORE_STAFF_ROLES, Role


def _is_authenticated(user):
    return bool(user and user.is_authenticated)


def is_super_admin(user):
    """Check if user operates the whole platform."""
    return _is_authenticated(user) and user.role == Role.SUPER_ADMIN


def is_store_admin(user):
    """Check if user administers a store (super admins included)."""
    return _is_authenticated(user) and user.role in (Role.SUPER_ADMIN, Role.STORE_ADMIN)


def is_store_staff(user):
    """Check if user works in a store dashboard (admins included)."""
    return _is_authenticated(user) and user.role in STORE_STAFF_ROLES


def can_access_store(user, store):
    """Check if user may act on the given store (pk or instance)."""
    if not _is_authenticated(user):
        return False
    if user.role == Role.SUPER_ADMIN:
        return True
    store_pk = getattr(store, "pk", store)
    return store_pk is not None and user.store_id == store_pk


class IsSuperAdmin(permissions.BasePermission):
    """Only platform operators."""

    def has_permission(self, request, view):
        return is_super_admin(request.user)


class IsStoreAdmin(permissions.BasePermission):
    """STORE_ADMIN or SUPER_ADMIN."""

    def has_permission(self, request, view):
        return is_store_admin(request.user)


class IsStoreStaff(permissions.BasePermission):
    """STAFF, STORE_ADMIN or SUPER_ADMIN."""

    def has_permission(self, request, view):
        return is_store_staff(request.user)


class IsStoreStaffOrAdminWrite(permissions.BasePermission):
    """
    Staff can read; writes need STORE_ADMIN or SUPER_ADMIN.
    Use for store settings and admin management.
    """

    def has_permission(self, request, view):
        if request.method in permissions.SAFE_METHODS:
            return is_store_staff(request.user)
        return is_store_admin(request.user)
