from django.test import TestCase
from rest_framework.test import APIClient

from accounts.choices import Role
from audit.models import AuditLog
from customers.models import Address, Customer
from orders.models import Order
from tests.helpers import make_order, make_product, make_store, make_user

from .choices import ConsentType, GdprRequestStatus, GdprRequestType
from .models import ConsentRecord, GdprRequest
from .services import export_user_data, update_request_status


class GdprServiceTest(TestCase):
    def setUp(self):
        self.store = make_store("acme")
        self.user = make_user("ada@example.com", store=self.store, name="Ada")
        self.customer = Customer.objects.create(
            store=self.store, user=self.user, email="ada@example.com", first_name="Ada", last_name="L"
        )
        Address.objects.create(
            store=self.store, customer=self.customer, first_name="Ada", last_name="L",
            address1="1 Main St", city="LA", postal_code="90001",
        )
        self.order = make_order(self.store, customer=self.customer, items=[(make_product(self.store), 1)])

    def test_export_contents(self):
        data = export_user_data(self.user)
        self.assertEqual(data["user"]["email"], "ada@example.com")
        self.assertEqual([o["order_number"] for o in data["orders"]], [self.order.order_number])
        self.assertEqual(len(data["addresses"]), 1)
        self.assertEqual(data["customers"][0]["store"], self.store.pk)

    def test_processed_at_set_on_final_status(self):
        request = GdprRequest.objects.create(user=self.user, type=GdprRequestType.EXPORT)
        update_request_status(request, GdprRequestStatus.PROCESSING)
        self.assertIsNone(request.processed_at)
        update_request_status(request, GdprRequestStatus.COMPLETED, export_url="https://files.test/x.json")
        self.assertIsNotNone(request.processed_at)
        self.assertEqual(request.export_url, "https://files.test/x.json")


class GdprAPITest(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.store = make_store("acme")
        self.user = make_user("ada@example.com", store=self.store, name="Ada", phone="555")
        self.customer = Customer.objects.create(
            store=self.store, user=self.user, email="ada@example.com", first_name="Ada", last_name="L",
            phone="555", accepts_marketing=True,
        )
        self.address = Address.objects.create(
            store=self.store, customer=self.customer, first_name="Ada", last_name="L",
            address1="1 Main St", city="LA", postal_code="90001", phone="555",
        )
        self.order = make_order(self.store, customer=self.customer, user=self.user)
        self.client.force_authenticate(user=self.user)

    def test_requires_authentication(self):
        self.client.force_authenticate(user=None)
        self.assertEqual(self.client.get("/api/gdpr/export/").status_code, 401)
        self.assertEqual(self.client.post("/api/gdpr/delete/", {"confirm": True}, format="json").status_code, 401)

    def test_export_download(self):
        r = self.client.get("/api/gdpr/export/")
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["data"]["orders"][0]["order_number"], self.order.order_number)

    def test_duplicate_export_request_conflicts(self):
        r = self.client.post("/api/gdpr/export/")
        self.assertEqual(r.status_code, 201)
        self.assertIsNotNone(r.json()["data"]["expires_at"])
        r = self.client.post("/api/gdpr/export/")
        self.assertEqual(r.status_code, 409)
        self.assertEqual(r.json()["error"]["code"], "CONFLICT")

    def test_delete_requires_confirm(self):
        r = self.client.post("/api/gdpr/delete/", {"confirm": False}, format="json")
        self.assertEqual(r.status_code, 400)
        self.user.refresh_from_db()
        self.assertIsNone(self.user.deleted_at)

    def test_delete_anonymizes(self):
        ConsentRecord.objects.create(user=self.user, consent_type=ConsentType.MARKETING, granted=True)
        r = self.client.post("/api/gdpr/delete/", {"confirm": True}, format="json")
        self.assertEqual(r.status_code, 202)
        self.assertEqual(r.json()["data"]["status"], GdprRequestStatus.COMPLETED)

        self.user.refresh_from_db()
        self.assertEqual(self.user.email, f"deleted_user_{self.user.pk}@deleted.local")
        self.assertFalse(self.user.is_active)
        self.assertFalse(self.user.has_usable_password())
        self.assertEqual(self.user.phone, "")

        self.customer.refresh_from_db()
        self.assertEqual(self.customer.email, f"deleted_customer_{self.customer.pk}@deleted.local")
        self.assertIsNone(self.customer.user)
        self.assertFalse(self.customer.accepts_marketing)

        self.address.refresh_from_db()
        self.assertEqual((self.address.address1, self.address.phone), ("Redacted", ""))

        self.assertFalse(ConsentRecord.objects.get(user=self.user).granted)
        # Orders stay for the store's books.
        self.assertTrue(Order.objects.filter(pk=self.order.pk).exists())
        self.assertTrue(AuditLog.objects.filter(action="gdpr.user_deleted", entity_id=self.user.pk).exists())

    def test_pending_deletion_conflicts(self):
        GdprRequest.objects.create(user=self.user, type=GdprRequestType.DELETION)
        r = self.client.post("/api/gdpr/delete/", {"confirm": True}, format="json")
        self.assertEqual(r.status_code, 409)
        self.user.refresh_from_db()
        self.assertTrue(self.user.is_active)

    def test_consent(self):
        r = self.client.post("/api/gdpr/consent/", {"consent_type": "ANALYTICS", "granted": True}, format="json")
        self.assertEqual(r.status_code, 200)
        self.assertIsNotNone(r.json()["data"]["granted_at"])
        r = self.client.post("/api/gdpr/consent/", {"consent_type": "ANALYTICS", "granted": False}, format="json")
        self.assertIsNotNone(r.json()["data"]["revoked_at"])
        r = self.client.get("/api/gdpr/consent/")
        self.assertEqual(len(r.json()["data"]), 1)
        self.assertFalse(r.json()["data"][0]["granted"])

    def test_request_list_own_only(self):
        other = make_user("bob@example.com", store=self.store)
        GdprRequest.objects.create(user=other, type=GdprRequestType.EXPORT)
        GdprRequest.objects.create(user=self.user, type=GdprRequestType.EXPORT)
        r = self.client.get("/api/gdpr/requests/")
        self.assertEqual(r.json()["meta"]["total"], 1)

    def test_status_update_super_admin_only(self):
        request = GdprRequest.objects.create(user=self.user, type=GdprRequestType.EXPORT)
        r = self.client.patch(f"/api/gdpr/requests/{request.pk}/", {"status": "COMPLETED"}, format="json")
        self.assertEqual(r.status_code, 403)

        self.client.force_authenticate(user=make_user("root@platform.test", role=Role.SUPER_ADMIN))
        r = self.client.patch(f"/api/gdpr/requests/{request.pk}/", {"status": "COMPLETED"}, format="json")
        self.assertEqual(r.status_code, 200)
        self.assertIsNotNone(r.json()["data"]["processed_at"])
