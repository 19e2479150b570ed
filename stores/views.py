"""Views for stores and their members."""
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from accounts.choices import STORE_STAFF_ROLES
from accounts.serializers import StoreMemberSerializer
from audit.services import log_event
from core.permissions import IsStoreAdmin, IsStoreStaff, IsSuperAdmin
from core.views import StoreScopedMixin

from .models import Store
from .serializers import StoreMemberListSerializer, StoreSerializer
from .services import assign_member, create_store


class StoreViewSet(StoreScopedMixin, viewsets.ModelViewSet):
    """
    Super admins manage every store; store admins read and update their own;
    staff can read their own.
    """

    serializer_class = StoreSerializer

    def get_permissions(self):
        if self.action in ("create", "destroy"):
            return [IsSuperAdmin()]
        if self.action in ("update", "partial_update"):
            return [IsStoreAdmin()]
        if self.action == "admins" and self.request.method == "POST":
            return [IsStoreAdmin()]
        return [IsStoreStaff()]

    def get_queryset(self):
        return self.scope.filter(Store.objects.alive())

    def perform_create(self, serializer):
        serializer.instance = create_store(**serializer.validated_data)
        log_event(
            store=serializer.instance, user=self.request.user, action="store.created",
            entity=serializer.instance, entity_id=serializer.instance.pk, request=self.request,
        )

    def perform_update(self, serializer):
        changed = {
            key: value for key, value in serializer.validated_data.items()
            if getattr(serializer.instance, key) != value
        }
        store = serializer.save()
        log_event(
            store=store, user=self.request.user, action="store.updated",
            entity=store, entity_id=store.pk, changes={k: str(v) for k, v in changed.items()},
            request=self.request,
        )

    def perform_destroy(self, instance):
        instance.soft_delete()
        log_event(
            store=instance, user=self.request.user, action="store.deleted",
            entity=instance, entity_id=instance.pk, request=self.request,
        )

    @action(detail=True, methods=["get", "post"])
    def admins(self, request, pk=None):
        """GET/POST /api/stores/{id}/admins/ - list or assign store members."""
        store = self.get_object()
        if request.method == "GET":
            members = store.users.filter(role__in=STORE_STAFF_ROLES).order_by("email")
            return Response(StoreMemberListSerializer(members, many=True).data)

        serializer = StoreMemberSerializer(data=request.data, context={})
        serializer.is_valid(raise_exception=True)
        member = assign_member(store, serializer.context["member"], serializer.validated_data["role"])
        log_event(
            store=store, user=request.user, action="store.member_assigned",
            entity=member, entity_id=member.pk, changes={"role": member.role},
            request=request,
        )
        return Response(StoreMemberListSerializer(member).data, status=status.HTTP_201_CREATED)
