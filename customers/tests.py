from django.test import TestCase
from rest_framework.test import APIClient

from accounts.choices import Role
from orders.choices import OrderStatus
from tests.helpers import make_order, make_store, make_user

from .models import Customer


class CustomerAPITests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.store = make_store("acme")
        self.other = make_store("other")
        self.staff = make_user("staff@acme.test", role=Role.STAFF, store=self.store)
        self.ada = Customer.objects.create(store=self.store, email="ada@example.com", first_name="Ada")
        self.bob = Customer.objects.create(store=self.store, email="bob@example.com", first_name="Bob")
        self.foreign = Customer.objects.create(store=self.other, email="ada@example.com", first_name="Ada")
        self.client.force_authenticate(user=self.staff)

    def test_list_scoped(self):
        r = self.client.get("/api/customers/")
        self.assertEqual(r.status_code, 200)
        self.assertEqual({c["id"] for c in r.json()["data"]}, {self.ada.pk, self.bob.pk})

    def test_search(self):
        r = self.client.get("/api/customers/?search=bob")
        self.assertEqual([c["email"] for c in r.json()["data"]], ["bob@example.com"])

    def test_foreign_customer_is_404(self):
        self.assertEqual(self.client.get(f"/api/customers/{self.foreign.pk}/").status_code, 404)

    def test_update_notes_not_email(self):
        r = self.client.patch(
            f"/api/customers/{self.ada.pk}/", {"notes": "VIP", "email": "x@example.com"}, format="json"
        )
        self.assertEqual(r.status_code, 200)
        self.ada.refresh_from_db()
        self.assertEqual((self.ada.notes, self.ada.email), ("VIP", "ada@example.com"))

    def test_no_create(self):
        r = self.client.post("/api/customers/", {"email": "new@example.com"}, format="json")
        self.assertEqual(r.status_code, 405)

    def test_orders(self):
        make_order(self.store, OrderStatus.PAID, customer=self.ada)
        make_order(self.store, OrderStatus.PENDING, customer=self.bob)
        r = self.client.get(f"/api/customers/{self.ada.pk}/orders/")
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["meta"]["total"], 1)
        self.assertEqual(r.json()["data"][0]["status"], OrderStatus.PAID)

    def test_customer_role_forbidden(self):
        self.client.force_authenticate(user=make_user("ada@example.com", store=self.store))
        self.assertEqual(self.client.get("/api/customers/").status_code, 403)
