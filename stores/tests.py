from django.test import TestCase
from rest_framework.test import APIClient

from accounts.choices import Role
from audit.models import AuditLog
from billing.choices import SubscriptionStatus
from tests.helpers import make_store, make_user

from .models import Store


class StoreAPITests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.store = make_store("acme")
        self.other = make_store("other")
        self.root = make_user("root@platform.test", role=Role.SUPER_ADMIN)
        self.admin = make_user("admin@acme.test", role=Role.STORE_ADMIN, store=self.store)
        self.staff = make_user("staff@acme.test", role=Role.STAFF, store=self.store)

    def test_super_admin_creates_store_on_trial(self):
        self.client.force_authenticate(user=self.root)
        r = self.client.post("/api/stores/", {"name": "New Shop", "email": "hi@new.test"}, format="json")
        self.assertEqual(r.status_code, 201)
        store = Store.objects.get(slug="new-shop")
        self.assertEqual(store.subscription_status, SubscriptionStatus.TRIAL)
        self.assertIsNotNone(store.trial_ends_at)
        self.assertTrue(AuditLog.objects.filter(action="store.created", store=store).exists())

    def test_store_admin_cannot_create(self):
        self.client.force_authenticate(user=self.admin)
        r = self.client.post("/api/stores/", {"name": "Mine", "email": "x@x.test"}, format="json")
        self.assertEqual(r.status_code, 403)

    def test_store_admin_sees_own_store_only(self):
        self.client.force_authenticate(user=self.admin)
        r = self.client.get("/api/stores/")
        self.assertEqual([s["slug"] for s in r.json()["data"]], ["acme"])
        self.assertEqual(self.client.get(f"/api/stores/{self.other.pk}/").status_code, 404)

    def test_super_admin_sees_all(self):
        self.client.force_authenticate(user=self.root)
        r = self.client.get("/api/stores/")
        self.assertEqual(r.json()["meta"]["total"], 2)

    def test_update_cannot_touch_plan(self):
        self.client.force_authenticate(user=self.admin)
        r = self.client.patch(
            f"/api/stores/{self.store.pk}/",
            {"phone": "555-0100", "product_limit": -1, "subscription_plan": "ENTERPRISE"},
            format="json",
        )
        self.assertEqual(r.status_code, 200)
        self.store.refresh_from_db()
        self.assertEqual(self.store.phone, "555-0100")
        self.assertEqual(self.store.product_limit, 10)

    def test_staff_cannot_update(self):
        self.client.force_authenticate(user=self.staff)
        r = self.client.patch(f"/api/stores/{self.store.pk}/", {"phone": "1"}, format="json")
        self.assertEqual(r.status_code, 403)

    def test_delete_is_soft(self):
        self.client.force_authenticate(user=self.root)
        r = self.client.delete(f"/api/stores/{self.other.pk}/")
        self.assertEqual(r.status_code, 204)
        self.other.refresh_from_db()
        self.assertIsNotNone(self.other.deleted_at)

    def test_members(self):
        newcomer = make_user("new@acme.test")
        self.client.force_authenticate(user=self.admin)
        r = self.client.post(
            f"/api/stores/{self.store.pk}/admins/", {"email": "new@acme.test", "role": "STAFF"}, format="json"
        )
        self.assertEqual(r.status_code, 201)
        newcomer.refresh_from_db()
        self.assertEqual((newcomer.store, newcomer.role), (self.store, Role.STAFF))

        r = self.client.get(f"/api/stores/{self.store.pk}/admins/")
        emails = [m["email"] for m in r.json()["data"]]
        self.assertEqual(emails, ["admin@acme.test", "new@acme.test", "staff@acme.test"])

    def test_super_admin_not_assignable(self):
        self.client.force_authenticate(user=self.admin)
        r = self.client.post(
            f"/api/stores/{self.store.pk}/admins/", {"email": "root@platform.test", "role": "STAFF"}, format="json"
        )
        self.assertEqual(r.status_code, 400)
