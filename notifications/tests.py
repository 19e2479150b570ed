from django.core import mail
from django.test import TestCase, override_settings
from rest_framework.test import APIClient

from orders.choices import OrderStatus
from tests.helpers import make_order, make_store, make_user

from .choices import NotificationType
from .emails import send_order_status_email
from .services import create_notification


class NotificationAPITest(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.user = make_user("admin@acme.test")
        self.other = make_user("other@acme.test")
        self.first = create_notification(self.user, "Low stock", "Mug is low", NotificationType.LOW_STOCK)
        self.second = create_notification(self.user, "Hello", "Welcome", NotificationType.SYSTEM)
        self.foreign = create_notification(self.other, "Private", "Not yours", NotificationType.SYSTEM)
        self.client.force_authenticate(user=self.user)

    def test_list_own(self):
        r = self.client.get("/api/notifications/")
        self.assertEqual({n["id"] for n in r.json()["data"]}, {self.first.pk, self.second.pk})

    def test_mark_read(self):
        r = self.client.post(f"/api/notifications/{self.first.pk}/read/")
        self.assertEqual(r.status_code, 200)
        self.assertTrue(r.json()["data"]["is_read"])
        r = self.client.get("/api/notifications/unread-count/")
        self.assertEqual(r.json()["data"], {"count": 1})

    def test_read_all(self):
        r = self.client.post("/api/notifications/read-all/")
        self.assertEqual(r.json()["data"], {"updated": 2})
        self.foreign.refresh_from_db()
        self.assertFalse(self.foreign.is_read)

    def test_foreign_is_404(self):
        self.assertEqual(self.client.post(f"/api/notifications/{self.foreign.pk}/read/").status_code, 404)


class OrderEmailTest(TestCase):
    def test_shipped_email_has_tracking(self):
        store = make_store("acme")
        order = make_order(store, OrderStatus.SHIPPED, tracking_number="1Z999")
        self.assertTrue(send_order_status_email(order))
        self.assertIn("1Z999", mail.outbox[0].body)
        self.assertEqual(mail.outbox[0].to, ["buyer@example.com"])

    @override_settings(EMAIL_BACKEND="tests.helpers.FailingEmailBackend")
    def test_send_failure_is_swallowed(self):
        store = make_store("acme")
        order = make_order(store, OrderStatus.PAID)
        with self.assertLogs("notifications.emails", level="ERROR"):
            self.assertFalse(send_order_status_email(order))
