from rest_framework import serializers

from .models import Address, Customer


class AddressSerializer(serializers.ModelSerializer):
    class Meta:
        model = Address
        fields = [
            "id", "first_name", "last_name", "company", "address1", "address2",
            "city", "state", "postal_code", "country", "phone",
        ]


class CustomerSerializer(serializers.ModelSerializer):
    full_name = serializers.CharField(read_only=True)
    addresses = AddressSerializer(many=True, read_only=True)

    class Meta:
        model = Customer
        fields = [
            "id", "store", "user", "email", "first_name", "last_name", "full_name", "phone",
            "accepts_marketing", "total_orders", "total_spent", "last_order_at", "notes",
            "addresses", "created_at", "updated_at",
        ]
        read_only_fields = [
            "store", "user", "email", "total_orders", "total_spent", "last_order_at",
            "created_at", "updated_at",
        ]
