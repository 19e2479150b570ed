"""
Base views for tenant-scoped resources.
"""
from django.utils.functional import cached_property
from rest_framework import viewsets

from .permissions import IsStoreStaff
from .tenancy import StoreScope


class StoreScopedMixin:
    """Expose the request's StoreScope as self.scope."""

    @cached_property
    def scope(self):
        return StoreScope.from_request(self.request)


class StoreScopedModelViewSet(StoreScopedMixin, viewsets.ModelViewSet):
    """
    Base for store-owned models (catalog, customers).
    Reads are filtered through the scope; creates are pinned to the scope's store.
    Soft-deletable models are hidden once deleted and soft-deleted on destroy.
    """

    permission_classes = [IsStoreStaff]

    def get_queryset(self):
        qs = self.scope.filter(self.queryset.all())
        if hasattr(qs, "alive"):
            qs = qs.alive()
        return qs

    def get_serializer_context(self):
        context = super().get_serializer_context()
        if self.request is not None and self.request.user.is_authenticated:
            context["scope"] = self.scope
        return context

    def perform_create(self, serializer):
        serializer.save(store=self.scope.require_store())

    def perform_destroy(self, instance):
        if hasattr(instance, "soft_delete"):
            instance.soft_delete()
        else:
            instance.delete()
