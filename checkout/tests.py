"""Checkout: cart validation, pricing and order placement."""
from datetime import timedelta
from decimal import Decimal
from unittest import mock

from django.test import TestCase
from django.utils import timezone
from rest_framework.test import APIClient

from catalog.models import ProductVariant
from customers.models import Customer
from inventory.models import InventoryLog
from orders.models import Order
from tests.helpers import make_product, make_store, make_user

from .choices import DiscountType
from .models import Coupon
from .services import calculate_discount, calculate_shipping, calculate_tax, generate_order_number

ADDRESS = {
    "first_name": "Ada",
    "last_name": "Lovelace",
    "address1": "1 Main St",
    "city": "Los Angeles",
    "state": "CA",
    "postal_code": "90001",
    "country": "US",
}


class PricingRulesTest(TestCase):
    def test_domestic_shipping_options(self):
        options = {o["id"]: o["cost"] for o in calculate_shipping("US", Decimal("20.00"))}
        self.assertEqual(options, {"standard": Decimal("5.99"), "express": Decimal("12.99")})

    def test_free_shipping_from_threshold(self):
        options = {o["id"]: o["cost"] for o in calculate_shipping("US", Decimal("50.00"))}
        self.assertEqual(options["free"], Decimal("0.00"))

    def test_international_shipping(self):
        options = {o["id"]: o["cost"] for o in calculate_shipping("DE", Decimal("500.00"))}
        self.assertEqual(options, {"standard": Decimal("15.99"), "express": Decimal("29.99")})

    def test_tax_by_state_rounded_to_cents(self):
        self.assertEqual(calculate_tax(Decimal("19.99"), "US", "CA"), Decimal("1.45"))
        self.assertEqual(calculate_tax(Decimal("100.00"), "US", "NY"), Decimal("8.00"))
        self.assertEqual(calculate_tax(Decimal("100.00"), "US", "OR"), Decimal("0.00"))

    def test_discount_capped_at_subtotal(self):
        store = make_store("acme")
        coupon = Coupon.objects.create(store=store, code="BIG", discount_type=DiscountType.FIXED,
                                       value=Decimal("80.00"))
        self.assertEqual(calculate_discount(coupon, Decimal("30.00")), Decimal("30.00"))
        coupon.discount_type = DiscountType.PERCENTAGE
        coupon.value = Decimal("15")
        self.assertEqual(calculate_discount(coupon, Decimal("30.00")), Decimal("4.50"))

    def test_order_number_sequence(self):
        store = make_store("acme")
        self.assertEqual(generate_order_number(store), "ORD-00001")
        Order.objects.create(store=store, order_number="ORD-00001")
        self.assertEqual(generate_order_number(store), "ORD-00002")


class ValidateCartAPITest(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.store = make_store("acme")
        self.product = make_product(self.store, price="12.50", inventory_qty=5)

    def test_server_prices_returned(self):
        r = self.client.post(
            "/api/checkout/validate/",
            {"store": self.store.pk, "items": [{"product": self.product.pk, "quantity": 2, "price": "0.01"}]},
            format="json",
        )
        self.assertEqual(r.status_code, 200)
        data = r.json()["data"]
        self.assertTrue(data["is_valid"])
        self.assertEqual(data["subtotal"], "25.00")
        self.assertEqual(data["items"][0]["price"], "12.50")

    def test_unpublished_and_insufficient(self):
        hidden = make_product(self.store, sku="HIDDEN", is_published=False)
        r = self.client.post(
            "/api/checkout/validate/",
            {
                "store": self.store.pk,
                "items": [
                    {"product": hidden.pk, "quantity": 1},
                    {"product": self.product.pk, "quantity": 6},
                ],
            },
            format="json",
        )
        data = r.json()["data"]
        self.assertFalse(data["is_valid"])
        self.assertEqual(len(data["errors"]), 2)

    def test_variant_overrides_price(self):
        variant = ProductVariant.objects.create(
            product=self.product, name="Large", sku="SKU-1-L", price=Decimal("15.00"), inventory_qty=1
        )
        r = self.client.post(
            "/api/checkout/validate/",
            {"store": self.store.pk, "items": [{"product": self.product.pk, "variant": variant.pk, "quantity": 1}]},
            format="json",
        )
        self.assertEqual(r.json()["data"]["subtotal"], "15.00")

    def test_shipping_options(self):
        r = self.client.post(
            "/api/checkout/shipping/",
            {
                "store": self.store.pk,
                "items": [{"product": self.product.pk, "quantity": 4}],
                "shipping_address": {"country": "US", "state": "CA"},
            },
            format="json",
        )
        self.assertEqual(r.status_code, 200)
        data = r.json()["data"]
        self.assertEqual(data["subtotal"], "50.00")
        self.assertEqual([o["id"] for o in data["options"]], ["standard", "express", "free"])


class CompleteCheckoutAPITest(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.store = make_store("acme")
        self.shopper = make_user("shopper@example.com", store=self.store)
        self.product = make_product(self.store, price="20.00", inventory_qty=5)

    def _payload(self, **overrides):
        payload = {
            "store": self.store.pk,
            "items": [{"product": self.product.pk, "quantity": 2}],
            "shipping_address": ADDRESS,
            "shipping_method": "standard",
        }
        payload.update(overrides)
        return payload

    def test_unauthenticated_rejected_before_mutation(self):
        r = self.client.post("/api/checkout/complete/", self._payload(), format="json")
        self.assertEqual(r.status_code, 401)
        self.assertFalse(Order.objects.exists())
        self.product.refresh_from_db()
        self.assertEqual(self.product.inventory_qty, 5)

    def test_client_money_fields_ignored(self):
        self.client.force_authenticate(user=self.shopper)
        payload = self._payload(
            items=[{"product": self.product.pk, "quantity": 2, "price": "0.01"}],
            subtotal="0.02",
            shipping_cost="0.00",
            tax_amount="0.00",
            total_amount="0.02",
        )
        r = self.client.post("/api/checkout/complete/", payload, format="json")
        self.assertEqual(r.status_code, 201)
        order = Order.objects.get()
        self.assertEqual(order.subtotal, Decimal("40.00"))
        self.assertEqual(order.shipping_amount, Decimal("5.99"))
        self.assertEqual(order.tax_amount, Decimal("2.90"))
        self.assertEqual(order.total_amount, Decimal("48.89"))
        self.assertEqual(order.order_number, "ORD-00001")
        self.assertEqual(order.items.get().unit_price, Decimal("20.00"))

    def test_stock_deducted_and_customer_created(self):
        self.client.force_authenticate(user=self.shopper)
        r = self.client.post("/api/checkout/complete/", self._payload(), format="json")
        self.assertEqual(r.status_code, 201)
        self.product.refresh_from_db()
        self.assertEqual(self.product.inventory_qty, 3)
        order = Order.objects.get()
        self.assertTrue(order.inventory_deducted)
        self.assertEqual(InventoryLog.objects.get(order=order).reason, "Sale")
        customer = Customer.objects.get(store=self.store, email="shopper@example.com")
        self.assertEqual(customer.total_orders, 1)
        self.assertEqual(customer.total_spent, order.total_amount)
        self.assertEqual(order.shipping_address.city, "Los Angeles")

    def test_oversell_rolls_back_everything(self):
        self.client.force_authenticate(user=self.shopper)
        r = self.client.post(
            "/api/checkout/complete/",
            self._payload(items=[{"product": self.product.pk, "quantity": 6}]),
            format="json",
        )
        self.assertEqual(r.status_code, 400)
        self.assertEqual(r.json()["error"]["code"], "INVALID_CART")
        self.assertFalse(Order.objects.exists())
        self.assertFalse(Customer.objects.exists())

    def test_failed_decrement_rolls_back(self):
        """Stock taken between validation and decrement aborts the order."""
        self.client.force_authenticate(user=self.shopper)

        def drain(order, user=None):
            from inventory.services import InsufficientStock

            raise InsufficientStock(details={"product": self.product.pk})

        with mock.patch("checkout.services.deduct_stock", side_effect=drain):
            r = self.client.post("/api/checkout/complete/", self._payload(), format="json")
        self.assertEqual(r.status_code, 400)
        self.assertEqual(r.json()["error"]["code"], "INSUFFICIENT_STOCK")
        self.assertFalse(Order.objects.exists())
        self.assertFalse(Customer.objects.exists())

    def test_coupon_applied_and_used(self):
        coupon = Coupon.objects.create(
            store=self.store, code="SAVE10", discount_type=DiscountType.PERCENTAGE,
            value=Decimal("10"), max_uses=1,
        )
        self.client.force_authenticate(user=self.shopper)
        r = self.client.post("/api/checkout/complete/", self._payload(discount_code="save10"), format="json")
        self.assertEqual(r.status_code, 201)
        order = Order.objects.get()
        self.assertEqual(order.discount_amount, Decimal("4.00"))
        self.assertEqual(order.total_amount, Decimal("44.89"))
        coupon.refresh_from_db()
        self.assertEqual(coupon.used_count, 1)

        r = self.client.post("/api/checkout/complete/", self._payload(discount_code="SAVE10"), format="json")
        self.assertEqual(r.status_code, 400)
        self.assertEqual(r.json()["error"]["code"], "INVALID_COUPON")

    def test_expired_coupon_rejected(self):
        Coupon.objects.create(
            store=self.store, code="OLD", value=Decimal("10"),
            ends_at=timezone.now() - timedelta(days=1),
        )
        self.client.force_authenticate(user=self.shopper)
        r = self.client.post("/api/checkout/complete/", self._payload(discount_code="OLD"), format="json")
        self.assertEqual(r.status_code, 400)
        self.assertFalse(Order.objects.exists())

    def test_free_shipping_requires_threshold(self):
        self.client.force_authenticate(user=self.shopper)
        r = self.client.post(
            "/api/checkout/complete/",
            self._payload(items=[{"product": self.product.pk, "quantity": 1}], shipping_method="free"),
            format="json",
        )
        self.assertEqual(r.status_code, 400)
        self.assertEqual(r.json()["error"]["code"], "INVALID_SHIPPING_METHOD")

    def test_order_limit_returns_402(self):
        self.store.order_limit = 0
        self.store.save()
        self.client.force_authenticate(user=self.shopper)
        r = self.client.post("/api/checkout/complete/", self._payload(), format="json")
        self.assertEqual(r.status_code, 402)
        self.assertEqual(r.json()["error"]["code"], "PLAN_LIMIT_EXCEEDED")
        self.product.refresh_from_db()
        self.assertEqual(self.product.inventory_qty, 5)

    def test_confirmation_email(self):
        from django.core import mail

        self.client.force_authenticate(user=self.shopper)
        self.client.post("/api/checkout/complete/", self._payload(), format="json")
        self.assertEqual(len(mail.outbox), 1)
        self.assertIn("ORD-00001", mail.outbox[0].subject)
