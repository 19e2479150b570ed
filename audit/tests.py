from django.test import TestCase
from rest_framework.test import APIClient

from accounts.choices import Role
from tests.helpers import make_store, make_user

from .models import AuditLog
from .services import log_event


class AuditLogTest(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.store = make_store("acme")
        self.other = make_store("other")
        self.admin = make_user("admin@acme.test", role=Role.STORE_ADMIN, store=self.store)

    def test_secrets_redacted(self):
        entry = log_event(
            store=self.store, user=self.admin, action="user.updated", entity=self.admin,
            entity_id=self.admin.pk, changes={"password": "hunter2", "profile": {"token": "x", "name": "A"}},
        )
        self.assertEqual(entry.entity_type, "User")
        self.assertEqual(entry.changes, {"password": "***", "profile": {"token": "***", "name": "A"}})

    def test_admin_sees_own_store(self):
        log_event(store=self.store, user=self.admin, action="store.updated", entity="Store", entity_id=1)
        log_event(store=self.other, user=None, action="store.updated", entity="Store", entity_id=2)
        self.client.force_authenticate(user=self.admin)
        r = self.client.get("/api/audit-logs/")
        self.assertEqual(r.status_code, 200)
        self.assertEqual([e["entity_id"] for e in r.json()["data"]], ["1"])
        self.assertEqual(r.json()["data"][0]["user_email"], "admin@acme.test")

    def test_filter_by_action(self):
        log_event(store=self.store, user=self.admin, action="a.one", entity="X", entity_id=1)
        log_event(store=self.store, user=self.admin, action="a.two", entity="X", entity_id=2)
        self.client.force_authenticate(user=self.admin)
        r = self.client.get("/api/audit-logs/?action=a.two")
        self.assertEqual(r.json()["meta"]["total"], 1)

    def test_staff_forbidden(self):
        self.client.force_authenticate(user=make_user("s@acme.test", role=Role.STAFF, store=self.store))
        self.assertEqual(self.client.get("/api/audit-logs/").status_code, 403)
        self.assertEqual(AuditLog.objects.count(), 0)
