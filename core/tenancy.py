"""
Capability-scoped access to tenant data.

A StoreScope is built once per request from the authenticated user and is
the single gate through which views read and write tenant rows:

- SUPER_ADMIN: global scope, optionally narrowed with ?store=<id>.
- STORE_ADMIN / STAFF / CUSTOMER: bound to user.store_id.
- No store on the user: empty scope (every query returns nothing).

Objects outside the scope are reported as "not found" so callers cannot
learn that another tenant's row exists.
"""
from rest_framework import exceptions

from accounts.choices import Role


class StoreScope:
    """Authorized store context for one request."""

    not_found_message = "Not found."

    def __init__(self, user=None, store_id=None, is_global=False):
        self.user = user
        self.store_id = store_id
        self.is_global = is_global

    def __repr__(self):
        if self.is_global:
            return "<StoreScope global>"
        return f"<StoreScope store={self.store_id}>"

    @classmethod
    def for_user(cls, user, requested_store_id=None):
        if user is None or not user.is_authenticated:
            return cls(user)
        if user.role == Role.SUPER_ADMIN:
            if requested_store_id:
                return cls(user, store_id=requested_store_id)
            return cls(user, is_global=True)
        return cls(user, store_id=user.store_id)

    @classmethod
    def from_request(cls, request):
        requested = None
        raw = request.query_params.get("store") if hasattr(request, "query_params") else None
        if raw:
            try:
                requested = int(raw)
            except (TypeError, ValueError):
                raise exceptions.ValidationError({"store": "Store must be an integer id."})
        return cls.for_user(request.user, requested)

    @property
    def is_empty(self):
        return not self.is_global and self.store_id is None

    def allows(self, store):
        store_pk = getattr(store, "pk", store)
        if self.is_global:
            return True
        return self.store_id is not None and store_pk == self.store_id

    def filter(self, queryset):
        """Restrict a tenant queryset (anything exposing for_store) to this scope."""
        if self.is_global:
            return queryset
        if self.store_id is None:
            return queryset.none()
        return queryset.for_store(self.store_id)

    def get(self, queryset, message=None, **lookup):
        """Fetch one object inside the scope or raise NotFound."""
        obj = self.filter(queryset).filter(**lookup).first()
        if obj is None:
            raise exceptions.NotFound(message or self.not_found_message)
        return obj

    def require_store(self):
        """
        Return the one store writes go to. A global scope must be narrowed
        with ?store= first.
        """
        from stores.models import Store

        if self.store_id is None:
            if self.is_global:
                raise exceptions.ValidationError(
                    {"store": "Select a store with ?store=<id> for this operation."}
                )
            raise exceptions.NotFound("Store not found.")
        store = Store.objects.alive().filter(pk=self.store_id).first()
        if store is None:
            raise exceptions.NotFound("Store not found.")
        return store
