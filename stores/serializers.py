"""Serializers for store models."""
from rest_framework import serializers

from accounts.models import User

from .models import Store


class StoreSerializer(serializers.ModelSerializer):
    class Meta:
        model = Store
        fields = [
            "id", "name", "slug", "description", "email", "phone",
            "address", "city", "state", "postal_code", "country", "currency", "logo",
            "is_active", "subscription_plan", "subscription_status",
            "trial_ends_at", "subscription_ends_at", "product_limit", "order_limit",
            "created_at", "updated_at",
        ]
        read_only_fields = [
            "subscription_plan", "subscription_status", "trial_ends_at",
            "subscription_ends_at", "product_limit", "order_limit",
            "created_at", "updated_at",
        ]
        extra_kwargs = {"slug": {"required": False}}

    def validate_slug(self, value):
        qs = Store.objects.filter(slug=value)
        if self.instance is not None:
            qs = qs.exclude(pk=self.instance.pk)
        if qs.exists():
            raise serializers.ValidationError("A store with this slug already exists.")
        return value


class PublicStoreSerializer(serializers.ModelSerializer):
    class Meta:
        model = Store
        fields = ["id", "name", "slug", "description", "logo", "currency", "country"]


class StoreMemberListSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ["id", "email", "name", "role", "is_active", "last_login"]
