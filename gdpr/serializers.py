from rest_framework import serializers

from .choices import ConsentType, GdprRequestStatus
from .models import ConsentRecord, GdprRequest


class GdprRequestSerializer(serializers.ModelSerializer):
    class Meta:
        model = GdprRequest
        fields = [
            "id", "user", "store", "type", "status", "export_url", "error_message",
            "expires_at", "processed_at", "created_at", "updated_at",
        ]
        read_only_fields = fields


class GdprRequestStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=GdprRequestStatus.choices)
    export_url = serializers.URLField(required=False, allow_blank=True)
    error_message = serializers.CharField(required=False, allow_blank=True)


class DeletionRequestSerializer(serializers.Serializer):
    confirm = serializers.BooleanField()

    def validate_confirm(self, value):
        if not value:
            raise serializers.ValidationError("Set confirm to true to delete your account.")
        return value


class ConsentRecordSerializer(serializers.ModelSerializer):
    class Meta:
        model = ConsentRecord
        fields = ["id", "consent_type", "granted", "granted_at", "revoked_at", "store", "updated_at"]
        read_only_fields = fields


class ConsentUpdateSerializer(serializers.Serializer):
    consent_type = serializers.ChoiceField(choices=ConsentType.choices)
    granted = serializers.BooleanField()
