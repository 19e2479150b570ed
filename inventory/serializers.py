from rest_framework import serializers

from catalog.models import Product

from .choices import AdjustmentType
from .models import InventoryLog


class InventoryItemSerializer(serializers.ModelSerializer):
    category_name = serializers.CharField(source="category.name", read_only=True, default=None)

    class Meta:
        model = Product
        fields = [
            "id", "name", "sku", "category", "category_name", "track_inventory",
            "inventory_qty", "low_stock_threshold", "inventory_status", "updated_at",
        ]
        read_only_fields = fields


class StockAdjustmentSerializer(serializers.Serializer):
    product = serializers.IntegerField()
    variant = serializers.IntegerField(required=False, allow_null=True)
    quantity = serializers.IntegerField(min_value=0)
    type = serializers.ChoiceField(choices=AdjustmentType.choices)
    reason = serializers.CharField(max_length=255)
    note = serializers.CharField(required=False, allow_blank=True, default="")


class InventoryLogSerializer(serializers.ModelSerializer):
    user_email = serializers.EmailField(source="user.email", read_only=True, default=None)
    variant_name = serializers.CharField(source="variant.name", read_only=True, default=None)

    class Meta:
        model = InventoryLog
        fields = [
            "id", "product", "variant", "variant_name", "order", "previous_qty", "new_qty",
            "change_qty", "reason", "note", "user", "user_email", "created_at",
        ]
        read_only_fields = fields
