"""
Storefront checkout endpoints.

validate and shipping are open to anonymous shoppers; complete needs an
authenticated user and is rejected with 401 before anything is read or
written.
"""
from rest_framework import permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from orders.serializers import CustomerOrderSerializer

from .serializers import CartSerializer, CompleteCheckoutSerializer, ShippingRequestSerializer
from .services import calculate_shipping, create_order, validate_cart
from .throttling import CheckoutThrottle


def _cart_payload(cart):
    return {
        "is_valid": cart["is_valid"],
        "errors": cart["errors"],
        "subtotal": str(cart["subtotal"]),
        "items": [
            {
                "product": line["product"].pk,
                "variant": line["variant"].pk if line["variant"] else None,
                "product_name": line["product_name"],
                "variant_name": line["variant_name"],
                "sku": line["sku"],
                "price": str(line["price"]),
                "quantity": line["quantity"],
                "available_stock": line["available_stock"],
                "subtotal": str(line["subtotal"]),
            }
            for line in cart["items"]
        ],
    }


class ValidateCartView(APIView):
    """POST /api/checkout/validate/ - server prices and stock check."""

    permission_classes = [permissions.AllowAny]

    def post(self, request):
        serializer = CartSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        cart = validate_cart(data["store"], data["items"])
        return Response(_cart_payload(cart))


class ShippingOptionsView(APIView):
    """POST /api/checkout/shipping/ - options for the destination and cart."""

    permission_classes = [permissions.AllowAny]

    def post(self, request):
        serializer = ShippingRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        cart = validate_cart(data["store"], data["items"])
        options = calculate_shipping(data["shipping_address"]["country"], cart["subtotal"])
        for option in options:
            option["cost"] = str(option["cost"])
        return Response({"subtotal": str(cart["subtotal"]), "options": options})


class CompleteCheckoutView(APIView):
    """POST /api/checkout/complete/ - place the order."""

    permission_classes = [permissions.IsAuthenticated]
    throttle_classes = [CheckoutThrottle]

    def post(self, request):
        serializer = CompleteCheckoutSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        order = create_order(
            data["store"],
            request.user,
            items=data["items"],
            shipping_address=data["shipping_address"],
            billing_address=data.get("billing_address"),
            shipping_method=data["shipping_method"],
            discount_code=data.get("discount_code") or None,
            customer_note=data["customer_note"],
            payment_method=data["payment_method"],
            email=data.get("email"),
            request=request,
        )
        return Response(CustomerOrderSerializer(order).data, status=status.HTTP_201_CREATED)
