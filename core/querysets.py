"""
Reusable querysets filtered by store and soft-delete state.

Every tenant-scoped model exposes for_store(); StoreScope (core.tenancy)
is the only caller in views, so tenant filtering lives in one place:
- Store-owned: Category, Brand, Product, Customer, Order, InventoryLog, ...
- Owned through a parent: ProductVariant (product), OrderItem (order)
"""
from django.db import models


class SoftDeleteQuerySet(models.QuerySet):
    """Queryset for models with a deleted_at column."""

    def alive(self):
        return self.filter(deleted_at__isnull=True)

    def deleted(self):
        return self.filter(deleted_at__isnull=False)


class StoreScopedQuerySet(models.QuerySet):
    """
    Queryset for models with a store FK. store_lookup names the path to the
    store for models owned through a parent.
    """

    store_lookup = "store"

    def for_store(self, store):
        """Filter to objects belonging to the given store (pk or instance)."""
        store_pk = getattr(store, "pk", store)
        return self.filter(**{f"{self.store_lookup}_id": store_pk})


class SoftDeleteStoreScopedQuerySet(SoftDeleteQuerySet, StoreScopedQuerySet):
    """Store-owned rows that are soft-deleted."""


class ProductScopedQuerySet(StoreScopedQuerySet):
    """Queryset for ProductVariant - filter via product's store."""

    store_lookup = "product__store"


class OrderScopedQuerySet(StoreScopedQuerySet):
    """Queryset for OrderItem - filter via order's store."""

    store_lookup = "order__store"


class StoreQuerySet(SoftDeleteQuerySet):
    """Queryset for Store itself; a store is its own tenant."""

    def for_store(self, store):
        store_pk = getattr(store, "pk", store)
        return self.filter(pk=store_pk)
