from datetime import timedelta

from django.test import TestCase
from django.utils import timezone
from rest_framework.test import APIClient

from accounts.choices import Role
from tests.helpers import make_product, make_store, make_user

from .choices import SubscriptionPlan, SubscriptionStatus
from .services import (
    PlanLimitExceeded,
    SubscriptionInactive,
    can_create_product,
    ensure_can_create_order,
    ensure_can_create_product,
    get_usage_stats,
    is_subscription_active,
)


class PlanLimitTest(TestCase):
    def setUp(self):
        self.store = make_store("acme", product_limit=2)

    def test_product_limit(self):
        make_product(self.store, sku="A")
        ensure_can_create_product(self.store)
        make_product(self.store, sku="B")
        self.assertFalse(can_create_product(self.store))
        with self.assertRaises(PlanLimitExceeded) as ctx:
            ensure_can_create_product(self.store)
        self.assertEqual(ctx.exception.details["limit"], 2)

    def test_soft_deleted_products_do_not_count(self):
        make_product(self.store, sku="A")
        make_product(self.store, sku="B").soft_delete()
        self.assertTrue(can_create_product(self.store))

    def test_unlimited(self):
        self.store.order_limit = -1
        ensure_can_create_order(self.store)

    def test_expired_trial_blocks(self):
        self.store.trial_ends_at = timezone.now() - timedelta(days=1)
        self.assertFalse(is_subscription_active(self.store))
        with self.assertRaises(SubscriptionInactive):
            ensure_can_create_product(self.store)

    def test_usage_percentage(self):
        make_product(self.store, sku="A")
        usage = get_usage_stats(self.store)
        self.assertEqual(usage["products"], {"current": 1, "limit": 2, "percentage": 50.0})


class SubscriptionAPITest(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.store = make_store("acme")
        self.other = make_store("other")
        self.admin = make_user("admin@acme.test", role=Role.STORE_ADMIN, store=self.store)

    def test_plans_are_public(self):
        r = self.client.get("/api/subscriptions/plans/")
        self.assertEqual(r.status_code, 200)
        self.assertEqual([p["plan"] for p in r.json()["data"]], ["FREE", "BASIC", "PRO", "ENTERPRISE"])

    def test_change_plan(self):
        self.client.force_authenticate(user=self.admin)
        r = self.client.post(f"/api/subscriptions/{self.store.pk}/change-plan/", {"plan": "PRO"}, format="json")
        self.assertEqual(r.status_code, 200)
        self.store.refresh_from_db()
        self.assertEqual(self.store.subscription_plan, SubscriptionPlan.PRO)
        self.assertEqual(self.store.subscription_status, SubscriptionStatus.ACTIVE)
        self.assertEqual(self.store.product_limit, 1000)

    def test_cancel_falls_back_to_free(self):
        self.client.force_authenticate(user=self.admin)
        self.client.post(f"/api/subscriptions/{self.store.pk}/change-plan/", {"plan": "BASIC"}, format="json")
        r = self.client.post(f"/api/subscriptions/{self.store.pk}/cancel/")
        self.assertEqual(r.status_code, 200)
        self.assertFalse(r.json()["data"]["is_active"])
        self.store.refresh_from_db()
        self.assertEqual(self.store.subscription_plan, SubscriptionPlan.FREE)
        self.assertEqual(self.store.product_limit, 10)

    def test_other_store_is_404(self):
        self.client.force_authenticate(user=self.admin)
        r = self.client.get(f"/api/subscriptions/{self.other.pk}/")
        self.assertEqual(r.status_code, 404)

    def test_staff_forbidden(self):
        self.client.force_authenticate(user=make_user("staff@acme.test", role=Role.STAFF, store=self.store))
        r = self.client.get(f"/api/subscriptions/{self.store.pk}/")
        self.assertEqual(r.status_code, 403)
