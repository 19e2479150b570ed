"""Order lifecycle, listing, export and invoice tests."""
from unittest import mock

from django.core import mail
from django.test import TestCase
from django.utils import timezone
from rest_framework.test import APIClient

from accounts.choices import Role
from audit.models import AuditLog
from inventory.models import InventoryLog
from tests.helpers import make_order, make_product, make_store, make_user

from .choices import OrderStatus, PaymentStatus, ShippingStatus
from .models import Order
from .services import (
    ALLOWED_TRANSITIONS,
    InvalidStatusTransition,
    is_valid_transition,
    update_order_status,
)


class TransitionTableTest(TestCase):
    def test_allowed_transitions(self):
        self.assertTrue(is_valid_transition(OrderStatus.PENDING, OrderStatus.PAID))
        self.assertTrue(is_valid_transition(OrderStatus.PAYMENT_FAILED, OrderStatus.PAID))
        self.assertTrue(is_valid_transition(OrderStatus.PROCESSING, OrderStatus.SHIPPED))
        self.assertTrue(is_valid_transition(OrderStatus.SHIPPED, OrderStatus.CANCELED))
        self.assertTrue(is_valid_transition(OrderStatus.DELIVERED, OrderStatus.REFUNDED))

    def test_rejected_transitions(self):
        self.assertFalse(is_valid_transition(OrderStatus.PENDING, OrderStatus.SHIPPED))
        self.assertFalse(is_valid_transition(OrderStatus.DELIVERED, OrderStatus.CANCELED))
        self.assertFalse(is_valid_transition(OrderStatus.PAID, OrderStatus.PAID))

    def test_terminal_states(self):
        for status in (OrderStatus.CANCELED, OrderStatus.REFUNDED):
            self.assertEqual(ALLOWED_TRANSITIONS[status], [])
            for target in OrderStatus.values:
                self.assertFalse(is_valid_transition(status, target))


class OrderStatusAPITest(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.store = make_store("acme")
        self.admin = make_user("admin@acme.test", role=Role.STORE_ADMIN, store=self.store)
        self.product = make_product(self.store, inventory_qty=8)
        self.client.force_authenticate(user=self.admin)

    def _patch(self, order, payload):
        return self.client.patch(f"/api/orders/{order.pk}/status/", payload, format="json")

    def test_invalid_transition_rejected(self):
        order = make_order(self.store, items=[(self.product, 1)])
        r = self._patch(order, {"status": "SHIPPED", "tracking_number": "1Z"})
        self.assertEqual(r.status_code, 400)
        self.assertEqual(r.json()["error"]["code"], "INVALID_STATUS_TRANSITION")
        order.refresh_from_db()
        self.assertEqual(order.status, OrderStatus.PENDING)

    def test_shipped_requires_tracking_number(self):
        order = make_order(self.store, status=OrderStatus.PROCESSING, items=[(self.product, 1)])
        r = self._patch(order, {"status": "SHIPPED"})
        self.assertEqual(r.status_code, 400)
        self.assertEqual(r.json()["error"]["code"], "TRACKING_NUMBER_REQUIRED")

        r = self._patch(order, {"status": "SHIPPED", "tracking_number": "1Z999"})
        self.assertEqual(r.status_code, 200)
        data = r.json()["data"]
        self.assertEqual(data["status"], "SHIPPED")
        self.assertEqual(data["shipping_status"], ShippingStatus.IN_TRANSIT)
        self.assertEqual(data["tracking_number"], "1Z999")

    def test_paid_sets_payment_status_and_notes(self):
        order = make_order(self.store, items=[(self.product, 1)])
        r = self._patch(order, {"status": "PAID", "note": "bank transfer"})
        self.assertEqual(r.status_code, 200)
        order.refresh_from_db()
        self.assertEqual(order.payment_status, PaymentStatus.PAID)
        self.assertIn("Status changed from PENDING to PAID: bank transfer", order.admin_note)
        self.assertTrue(order.admin_note.startswith("["))
        self.assertTrue(
            AuditLog.objects.filter(action="order.status_changed", entity_id=str(order.pk)).exists()
        )

    def test_delivered_sets_fulfilled_at(self):
        order = make_order(self.store, status=OrderStatus.SHIPPED, tracking_number="1Z")
        r = self._patch(order, {"status": "DELIVERED"})
        self.assertEqual(r.status_code, 200)
        order.refresh_from_db()
        self.assertIsNotNone(order.fulfilled_at)
        self.assertEqual(order.shipping_status, ShippingStatus.DELIVERED)

    def test_cancel_requires_confirmation(self):
        order = make_order(self.store, items=[(self.product, 2)])
        r = self._patch(order, {"status": "CANCELED"})
        self.assertEqual(r.status_code, 400)
        self.assertEqual(r.json()["error"]["code"], "CONFIRMATION_REQUIRED")

    def test_cancel_restores_deducted_stock(self):
        order = make_order(self.store, items=[(self.product, 3)], inventory_deducted=True)
        r = self._patch(order, {"status": "CANCELED", "confirm": True})
        self.assertEqual(r.status_code, 200)
        order.refresh_from_db()
        self.product.refresh_from_db()
        self.assertEqual(order.status, OrderStatus.CANCELED)
        self.assertIsNotNone(order.canceled_at)
        self.assertFalse(order.inventory_deducted)
        self.assertEqual(self.product.inventory_qty, 11)
        log = InventoryLog.objects.get(order=order)
        self.assertEqual(log.reason, "Cancellation")
        self.assertEqual(log.change_qty, 3)

    def test_refund_restores_stock_once(self):
        order = make_order(self.store, status=OrderStatus.DELIVERED, items=[(self.product, 2)],
                           inventory_deducted=True)
        r = self._patch(order, {"status": "REFUNDED", "confirm": True})
        self.assertEqual(r.status_code, 200)
        self.product.refresh_from_db()
        self.assertEqual(self.product.inventory_qty, 10)
        order.refresh_from_db()
        self.assertEqual(order.payment_status, PaymentStatus.REFUNDED)
        self.assertEqual(InventoryLog.objects.get(order=order).reason, "Refund")

    def test_status_email_sent(self):
        order = make_order(self.store, items=[(self.product, 1)])
        self._patch(order, {"status": "PAID"})
        self.assertEqual(len(mail.outbox), 1)
        self.assertIn(order.order_number, mail.outbox[0].subject)

    def test_email_failure_keeps_status_change(self):
        order = make_order(self.store, items=[(self.product, 1)])
        with mock.patch("notifications.emails.send_mail", side_effect=ConnectionError("smtp down")):
            r = self._patch(order, {"status": "PAID"})
        self.assertEqual(r.status_code, 200)
        order.refresh_from_db()
        self.assertEqual(order.status, OrderStatus.PAID)

    def test_foreign_order_is_not_found(self):
        other = make_store("other")
        order = make_order(other)
        r = self._patch(order, {"status": "PAID"})
        self.assertEqual(r.status_code, 404)
        order.refresh_from_db()
        self.assertEqual(order.status, OrderStatus.PENDING)


class StaleOrderUpdateTest(TestCase):
    """Two copies of one order loaded before either update is applied."""

    def setUp(self):
        self.store = make_store("acme")
        self.product = make_product(self.store, inventory_qty=8)
        self.order = make_order(self.store, status=OrderStatus.PAID, items=[(self.product, 3)],
                                inventory_deducted=True)

    def test_terminal_state_checked_on_stored_row(self):
        first = Order.objects.get(pk=self.order.pk)
        second = Order.objects.get(pk=self.order.pk)
        update_order_status(first, OrderStatus.CANCELED, confirm=True)
        with self.assertRaises(InvalidStatusTransition):
            update_order_status(second, OrderStatus.REFUNDED, confirm=True)

        self.order.refresh_from_db()
        self.product.refresh_from_db()
        self.assertEqual(self.order.status, OrderStatus.CANCELED)
        self.assertNotEqual(self.order.payment_status, PaymentStatus.REFUNDED)
        self.assertEqual(self.product.inventory_qty, 11)
        self.assertEqual(InventoryLog.objects.filter(order=self.order).count(), 1)

    def test_returns_saved_order(self):
        stale = Order.objects.get(pk=self.order.pk)
        updated = update_order_status(stale, OrderStatus.PROCESSING)
        self.assertEqual(updated.status, OrderStatus.PROCESSING)
        self.assertIn("PAID to PROCESSING", updated.admin_note)


class OrderListAPITest(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.store = make_store("acme")
        self.other = make_store("other")
        self.staff = make_user("staff@acme.test", role=Role.STAFF, store=self.store)
        self.product = make_product(self.store, price="20.00")
        self.o1 = make_order(self.store, items=[(self.product, 1)])
        self.o2 = make_order(self.store, status=OrderStatus.PAID, items=[(self.product, 3)])
        self.foreign = make_order(self.other)

    def test_requires_authentication(self):
        r = self.client.get("/api/orders/")
        self.assertEqual(r.status_code, 401)
        self.assertEqual(r.json()["error"]["code"], "UNAUTHORIZED")

    def test_list_is_store_scoped_and_paginated(self):
        self.client.force_authenticate(user=self.staff)
        r = self.client.get("/api/orders/", {"per_page": 1})
        self.assertEqual(r.status_code, 200)
        body = r.json()
        self.assertEqual(len(body["data"]), 1)
        self.assertEqual(body["meta"]["total"], 2)
        self.assertEqual(body["meta"]["total_pages"], 2)
        self.assertTrue(body["meta"]["has_next_page"])

    def test_per_page_is_clamped(self):
        self.client.force_authenticate(user=self.staff)
        r = self.client.get("/api/orders/", {"per_page": 500})
        self.assertEqual(r.json()["meta"]["per_page"], 100)

    def test_filter_and_sort(self):
        self.client.force_authenticate(user=self.staff)
        r = self.client.get("/api/orders/", {"status": "PAID"})
        self.assertEqual([o["id"] for o in r.json()["data"]], [self.o2.pk])

        r = self.client.get("/api/orders/", {"sort_by": "total_amount", "sort_order": "asc"})
        self.assertEqual([o["id"] for o in r.json()["data"]], [self.o1.pk, self.o2.pk])

    def test_search_by_order_number(self):
        self.client.force_authenticate(user=self.staff)
        r = self.client.get("/api/orders/", {"search": self.o2.order_number})
        self.assertEqual([o["id"] for o in r.json()["data"]], [self.o2.pk])

    def test_detail_includes_items(self):
        self.client.force_authenticate(user=self.staff)
        r = self.client.get(f"/api/orders/{self.o2.pk}/")
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["data"]["items"][0]["quantity"], 3)

    def test_foreign_detail_is_not_found(self):
        self.client.force_authenticate(user=self.staff)
        r = self.client.get(f"/api/orders/{self.foreign.pk}/")
        self.assertEqual(r.status_code, 404)

    def test_export_csv(self):
        self.client.force_authenticate(user=self.staff)
        r = self.client.get("/api/orders/export/")
        self.assertEqual(r.status_code, 200)
        self.assertTrue(r["Content-Type"].startswith("text/csv"))
        lines = r.content.decode().strip().splitlines()
        self.assertEqual(
            lines[0],
            "Order Number,Customer Name,Customer Email,Status,Payment Status,Payment Method,"
            "Subtotal,Tax,Shipping,Discount,Total,Items Count,Created At",
        )
        self.assertEqual(len(lines), 3)


class InvoiceAPITest(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.store = make_store("acme")
        self.admin = make_user("admin@acme.test", role=Role.STORE_ADMIN, store=self.store)
        self.staff = make_user("staff@acme.test", role=Role.STAFF, store=self.store)
        self.product = make_product(self.store)
        self.order = make_order(self.store, items=[(self.product, 2)])

    def test_staff_forbidden(self):
        self.client.force_authenticate(user=self.staff)
        r = self.client.get(f"/api/orders/{self.order.pk}/invoice/")
        self.assertEqual(r.status_code, 403)

    def test_admin_gets_pdf(self):
        self.client.force_authenticate(user=self.admin)
        r = self.client.get(f"/api/orders/{self.order.pk}/invoice/")
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r["Content-Type"], "application/pdf")
        self.assertTrue(r.content.startswith(b"%PDF-1.4"))
        self.assertTrue(r.content.rstrip().endswith(b"%%EOF"))
        today = timezone.now().date().isoformat()
        self.assertEqual(
            r["Content-Disposition"],
            f'attachment; filename="invoice-{self.order.order_number}-{today}.pdf"',
        )
        self.assertEqual(r["Cache-Control"], "private, max-age=0, must-revalidate")

    def test_foreign_order_not_found(self):
        other = make_store("other")
        foreign = make_order(other)
        self.client.force_authenticate(user=self.admin)
        r = self.client.get(f"/api/orders/{foreign.pk}/invoice/")
        self.assertEqual(r.status_code, 404)
        self.assertEqual(r.json()["error"]["message"], "Order not found or access denied")

    def test_super_admin_any_store(self):
        root = make_user("root@platform.test", role=Role.SUPER_ADMIN)
        self.client.force_authenticate(user=root)
        r = self.client.get(f"/api/orders/{self.order.pk}/invoice/")
        self.assertEqual(r.status_code, 200)


class MyOrdersAPITest(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.store = make_store("acme")
        self.shopper = make_user("shopper@example.com")
        self.someone = make_user("someone@example.com")
        self.mine = make_order(self.store, user=self.shopper)
        self.theirs = make_order(self.store, user=self.someone)

    def test_customer_sees_only_own_orders(self):
        self.client.force_authenticate(user=self.shopper)
        r = self.client.get("/api/my-orders/")
        self.assertEqual(r.status_code, 200)
        self.assertEqual([o["id"] for o in r.json()["data"]], [self.mine.pk])
        self.assertNotIn("admin_note", r.json()["data"][0])

    def test_other_customers_order_not_found(self):
        self.client.force_authenticate(user=self.shopper)
        r = self.client.get(f"/api/my-orders/{self.theirs.pk}/")
        self.assertEqual(r.status_code, 404)

    def test_customer_cannot_use_dashboard(self):
        self.client.force_authenticate(user=self.shopper)
        r = self.client.get("/api/orders/")
        self.assertEqual(r.status_code, 403)
