"""
Checkout request bodies. Only identifiers and quantities are accepted for
cart lines; price fields a client may send are not declared and so never
reach the services.
"""
from rest_framework import serializers

from stores.models import Store

from .choices import ShippingMethod


class CartItemSerializer(serializers.Serializer):
    product = serializers.IntegerField()
    variant = serializers.IntegerField(required=False, allow_null=True)
    quantity = serializers.IntegerField()


class AddressInputSerializer(serializers.Serializer):
    first_name = serializers.CharField(max_length=100)
    last_name = serializers.CharField(max_length=100)
    company = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    address1 = serializers.CharField(max_length=255)
    address2 = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    city = serializers.CharField(max_length=100)
    state = serializers.CharField(max_length=100, required=False, allow_blank=True, default="")
    postal_code = serializers.CharField(max_length=20)
    country = serializers.CharField(max_length=2, default="US")
    phone = serializers.CharField(max_length=50, required=False, allow_blank=True, default="")


class ShippingAddressSerializer(serializers.Serializer):
    """Destination only; enough to price shipping and tax."""

    country = serializers.CharField(max_length=2, default="US")
    state = serializers.CharField(max_length=100, required=False, allow_blank=True, default="")
    city = serializers.CharField(max_length=100, required=False, allow_blank=True)
    postal_code = serializers.CharField(max_length=20, required=False, allow_blank=True)


class CartSerializer(serializers.Serializer):
    store = serializers.PrimaryKeyRelatedField(
        queryset=Store.objects.alive().filter(is_active=True),
    )
    items = CartItemSerializer(many=True, allow_empty=False)


class ShippingRequestSerializer(CartSerializer):
    shipping_address = ShippingAddressSerializer()


class CompleteCheckoutSerializer(CartSerializer):
    shipping_address = AddressInputSerializer()
    billing_address = AddressInputSerializer(required=False, allow_null=True)
    shipping_method = serializers.ChoiceField(choices=ShippingMethod.choices, default=ShippingMethod.STANDARD)
    discount_code = serializers.CharField(max_length=50, required=False, allow_blank=True)
    customer_note = serializers.CharField(required=False, allow_blank=True, default="")
    payment_method = serializers.CharField(max_length=50, required=False, allow_blank=True, default="")
    email = serializers.EmailField(required=False)
