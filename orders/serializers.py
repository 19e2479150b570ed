from rest_framework import serializers

from customers.serializers import AddressSerializer

from .choices import OrderStatus
from .models import Order, OrderItem


class OrderItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderItem
        fields = [
            "id", "product", "variant", "product_name", "variant_name", "sku", "unit_price",
            "quantity", "subtotal", "tax_amount", "discount_amount", "total_amount",
        ]
        read_only_fields = fields


class OrderListSerializer(serializers.ModelSerializer):
    customer_name = serializers.CharField(read_only=True)
    customer_email = serializers.CharField(read_only=True)

    class Meta:
        model = Order
        fields = [
            "id", "store", "order_number", "customer", "customer_name", "customer_email",
            "status", "payment_status", "shipping_status", "total_amount", "created_at",
        ]
        read_only_fields = fields


class OrderDetailSerializer(serializers.ModelSerializer):
    customer_name = serializers.CharField(read_only=True)
    customer_email = serializers.CharField(read_only=True)
    items = OrderItemSerializer(many=True, read_only=True)
    shipping_address = AddressSerializer(read_only=True)
    billing_address = AddressSerializer(read_only=True)

    class Meta:
        model = Order
        fields = [
            "id", "store", "order_number", "customer", "customer_name", "customer_email", "user",
            "status", "payment_status", "shipping_status",
            "subtotal", "tax_amount", "shipping_amount", "discount_amount", "total_amount",
            "discount_code", "payment_method", "shipping_method", "tracking_number", "tracking_url",
            "customer_note", "admin_note", "shipping_address", "billing_address", "items",
            "fulfilled_at", "canceled_at", "created_at", "updated_at",
        ]
        read_only_fields = fields


class CustomerOrderSerializer(OrderDetailSerializer):
    """Order as its customer sees it: no internal notes."""

    class Meta(OrderDetailSerializer.Meta):
        fields = [f for f in OrderDetailSerializer.Meta.fields if f not in ("admin_note", "user")]
        read_only_fields = fields


class OrderStatusUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=OrderStatus.choices)
    tracking_number = serializers.CharField(max_length=100, required=False, allow_blank=True)
    tracking_url = serializers.URLField(required=False, allow_blank=True)
    note = serializers.CharField(required=False, allow_blank=True)
    confirm = serializers.BooleanField(required=False, default=False)
