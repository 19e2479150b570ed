from django.test import TestCase
from rest_framework.test import APIClient

from accounts.choices import Role
from catalog.choices import InventoryStatus
from notifications.models import Notification
from orders.choices import OrderStatus
from tests.helpers import make_order, make_product, make_store, make_user

from .choices import AdjustmentType, StockReason
from .models import InventoryLog
from .services import InsufficientStock, adjust_stock, deduct_stock, determine_inventory_status, restore_stock


class InventoryStatusTest(TestCase):
    def test_thresholds(self):
        self.assertEqual(determine_inventory_status(0, 5), InventoryStatus.OUT_OF_STOCK)
        self.assertEqual(determine_inventory_status(-2, 5), InventoryStatus.OUT_OF_STOCK)
        self.assertEqual(determine_inventory_status(5, 5), InventoryStatus.LOW_STOCK)
        self.assertEqual(determine_inventory_status(6, 5), InventoryStatus.IN_STOCK)


class StockServiceTest(TestCase):
    def setUp(self):
        self.store = make_store("acme")
        self.admin = make_user("admin@acme.test", role=Role.STORE_ADMIN, store=self.store)
        self.product = make_product(self.store, inventory_qty=20, low_stock_threshold=5)

    def test_add_remove_set(self):
        adjust_stock(self.store, self.product.pk, 5, AdjustmentType.ADD, "Restock")
        self.product.refresh_from_db()
        self.assertEqual(self.product.inventory_qty, 25)

        adjust_stock(self.store, self.product.pk, 10, AdjustmentType.REMOVE, "Damaged")
        self.product.refresh_from_db()
        self.assertEqual(self.product.inventory_qty, 15)

        adjust_stock(self.store, self.product.pk, 0, AdjustmentType.SET, "Stocktake")
        self.product.refresh_from_db()
        self.assertEqual(self.product.inventory_qty, 0)
        self.assertEqual(self.product.inventory_status, InventoryStatus.OUT_OF_STOCK)

        changes = list(InventoryLog.objects.filter(product=self.product).values_list("change_qty", flat=True))
        self.assertEqual(sorted(changes), [-15, -10, 5])

    def test_remove_below_zero_rejected(self):
        with self.assertRaises(InsufficientStock):
            adjust_stock(self.store, self.product.pk, 21, AdjustmentType.REMOVE, "Oops")
        self.product.refresh_from_db()
        self.assertEqual(self.product.inventory_qty, 20)
        self.assertFalse(InventoryLog.objects.exists())

    def test_low_stock_alert_once(self):
        adjust_stock(self.store, self.product.pk, 16, AdjustmentType.REMOVE, "Sold offline")
        self.assertEqual(Notification.objects.filter(user=self.admin, type="LOW_STOCK").count(), 1)

        # Already low: no second alert.
        adjust_stock(self.store, self.product.pk, 1, AdjustmentType.REMOVE, "Sold offline")
        self.assertEqual(Notification.objects.filter(user=self.admin).count(), 1)

    def test_deduct_and_restore(self):
        order = make_order(self.store, status=OrderStatus.PAID, items=[(self.product, 3)])
        deduct_stock(order)
        self.product.refresh_from_db()
        self.assertEqual(self.product.inventory_qty, 17)

        restore_stock(order, reason=StockReason.REFUND)
        self.product.refresh_from_db()
        self.assertEqual(self.product.inventory_qty, 20)
        reasons = set(InventoryLog.objects.filter(order=order).values_list("reason", flat=True))
        self.assertEqual(reasons, {StockReason.SALE, StockReason.REFUND})

    def test_deduct_insufficient(self):
        order = make_order(self.store, items=[(self.product, 21)])
        with self.assertRaises(InsufficientStock) as ctx:
            deduct_stock(order)
        self.assertEqual(ctx.exception.details["available"], 20)

    def test_untracked_products_skipped(self):
        self.product.track_inventory = False
        self.product.save()
        order = make_order(self.store, items=[(self.product, 50)])
        deduct_stock(order)
        self.product.refresh_from_db()
        self.assertEqual(self.product.inventory_qty, 20)


class InventoryAPITest(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.store = make_store("acme")
        self.other = make_store("other")
        self.staff = make_user("staff@acme.test", role=Role.STAFF, store=self.store)
        self.product = make_product(self.store, inventory_qty=3, low_stock_threshold=5)
        self.stocked = make_product(self.store, sku="SKU-2", inventory_qty=50)
        self.foreign = make_product(self.other, sku="SKU-X", inventory_qty=1)

    def test_requires_authentication(self):
        r = self.client.post(
            "/api/inventory/adjust/",
            {"product": self.product.pk, "quantity": 1, "type": "ADD", "reason": "x"},
            format="json",
        )
        self.assertEqual(r.status_code, 401)

    def test_customer_forbidden(self):
        self.client.force_authenticate(user=make_user("c@example.com", store=self.store))
        r = self.client.get("/api/inventory/")
        self.assertEqual(r.status_code, 403)

    def test_list_only_own_store(self):
        self.client.force_authenticate(user=self.staff)
        r = self.client.get("/api/inventory/")
        self.assertEqual(r.status_code, 200)
        skus = {p["sku"] for p in r.json()["data"]}
        self.assertEqual(skus, {"SKU-1", "SKU-2"})

    def test_low_stock_list(self):
        self.client.force_authenticate(user=self.staff)
        r = self.client.get("/api/inventory/low-stock/")
        self.assertEqual([p["sku"] for p in r.json()["data"]], ["SKU-1"])

    def test_adjust(self):
        self.client.force_authenticate(user=self.staff)
        r = self.client.post(
            "/api/inventory/adjust/",
            {"product": self.product.pk, "quantity": 7, "type": "ADD", "reason": "Restock"},
            format="json",
        )
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["data"]["inventory_qty"], 10)
        self.assertEqual(r.json()["data"]["inventory_status"], InventoryStatus.IN_STOCK)

    def test_adjust_foreign_product_is_404(self):
        self.client.force_authenticate(user=self.staff)
        r = self.client.post(
            "/api/inventory/adjust/",
            {"product": self.foreign.pk, "quantity": 7, "type": "ADD", "reason": "Restock"},
            format="json",
        )
        self.assertEqual(r.status_code, 404)
        self.foreign.refresh_from_db()
        self.assertEqual(self.foreign.inventory_qty, 1)

    def test_adjust_remove_too_many(self):
        self.client.force_authenticate(user=self.staff)
        r = self.client.post(
            "/api/inventory/adjust/",
            {"product": self.product.pk, "quantity": 4, "type": "REMOVE", "reason": "Lost"},
            format="json",
        )
        self.assertEqual(r.status_code, 400)
        self.assertEqual(r.json()["error"]["code"], "INSUFFICIENT_STOCK")

    def test_history(self):
        self.client.force_authenticate(user=self.staff)
        self.client.post(
            "/api/inventory/adjust/",
            {"product": self.product.pk, "quantity": 9, "type": "SET", "reason": "Count"},
            format="json",
        )
        r = self.client.get(f"/api/inventory/{self.product.pk}/history/")
        self.assertEqual(r.status_code, 200)
        entry = r.json()["data"][0]
        self.assertEqual((entry["previous_qty"], entry["new_qty"], entry["change_qty"]), (3, 9, 6))
        self.assertEqual(entry["user_email"], "staff@acme.test")

        r = self.client.get(f"/api/inventory/{self.foreign.pk}/history/")
        self.assertEqual(r.status_code, 404)
