import django_filters
from rest_framework import serializers, viewsets

from core.permissions import IsStoreAdmin
from core.views import StoreScopedMixin

from .models import AuditLog


class AuditLogSerializer(serializers.ModelSerializer):
    user_email = serializers.EmailField(source="user.email", read_only=True, default=None)

    class Meta:
        model = AuditLog
        fields = [
            "id", "store", "user", "user_email", "action", "entity_type", "entity_id",
            "changes", "ip_address", "user_agent", "created_at",
        ]


class AuditLogFilter(django_filters.FilterSet):
    date_from = django_filters.IsoDateTimeFilter(field_name="created_at", lookup_expr="gte")
    date_to = django_filters.IsoDateTimeFilter(field_name="created_at", lookup_expr="lte")

    class Meta:
        model = AuditLog
        fields = ["action", "entity_type", "entity_id", "user"]


class AuditLogViewSet(StoreScopedMixin, viewsets.ReadOnlyModelViewSet):
    """GET /api/audit-logs/ - store admins see their store, super admins all."""

    serializer_class = AuditLogSerializer
    permission_classes = [IsStoreAdmin]
    filterset_class = AuditLogFilter

    def get_queryset(self):
        return self.scope.filter(AuditLog.objects.select_related("user"))
