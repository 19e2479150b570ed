from datetime import timedelta

from django.test import TestCase
from django.utils import timezone
from rest_framework.test import APIClient

from accounts.choices import Role
from customers.models import Customer
from orders.choices import OrderStatus
from orders.models import Order
from tests.helpers import make_order, make_product, make_store, make_user

from .services import default_date_range, get_customer_metrics, get_sales_metrics, get_top_products


class AnalyticsServiceTest(TestCase):
    def setUp(self):
        self.store = make_store("acme")
        self.mug = make_product(self.store, sku="MUG", price="10.00")
        self.cup = make_product(self.store, sku="CUP", price="5.00")
        make_order(self.store, OrderStatus.DELIVERED, items=[(self.mug, 2)])
        make_order(self.store, OrderStatus.SHIPPED, items=[(self.cup, 1)])
        make_order(self.store, OrderStatus.PENDING, items=[(self.cup, 9)])
        make_order(self.store, OrderStatus.CANCELED, items=[(self.cup, 9)])
        self.start, self.end = default_date_range()

    def test_sales_metrics_count_revenue_statuses_only(self):
        metrics = get_sales_metrics(self.store, self.start, self.end)
        self.assertEqual(str(metrics["total_revenue"]), "25.00")
        self.assertEqual(metrics["order_count"], 2)
        self.assertEqual(str(metrics["average_order_value"]), "12.50")

    def test_soft_deleted_orders_ignored(self):
        Order.objects.filter(status=OrderStatus.DELIVERED).update(deleted_at=timezone.now())
        metrics = get_sales_metrics(self.store, self.start, self.end)
        self.assertEqual(metrics["order_count"], 1)

    def test_top_products(self):
        top = get_top_products(self.store, self.start, self.end)
        self.assertEqual([(p["name"], p["total_quantity"]) for p in top], [("Product MUG", 2), ("Product CUP", 1)])

    def test_empty_store(self):
        metrics = get_sales_metrics(make_store("empty"), self.start, self.end)
        self.assertEqual(metrics["order_count"], 0)
        self.assertEqual(str(metrics["average_order_value"]), "0.00")


class CustomerMetricsTest(TestCase):
    def test_returning_and_retention(self):
        store = make_store("acme")
        now = timezone.now()

        loyal = Customer.objects.create(store=store, email="loyal@example.com")
        earlier = make_order(store, OrderStatus.DELIVERED, customer=loyal)
        Order.objects.filter(pk=earlier.pk).update(created_at=now - timedelta(days=40))
        make_order(store, OrderStatus.DELIVERED, customer=loyal)

        previous = Customer.objects.create(store=store, email="previous@example.com")
        Customer.objects.filter(pk=previous.pk).update(created_at=now - timedelta(days=45))
        Customer.objects.filter(pk=loyal.pk).update(created_at=now - timedelta(days=50))

        start, end = default_date_range()
        metrics = get_customer_metrics(store, start, end)
        self.assertEqual(metrics["total_customers"], 2)
        self.assertEqual(metrics["new_customers"], 0)
        self.assertEqual(metrics["returning_customers"], 1)
        self.assertEqual(metrics["customer_retention_rate"], 50.0)


class AnalyticsAPITest(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.store = make_store("acme")
        self.other = make_store("other")
        self.staff = make_user("staff@acme.test", role=Role.STAFF, store=self.store)
        mug = make_product(self.store, sku="MUG", price="10.00")
        make_order(self.store, OrderStatus.DELIVERED, items=[(mug, 3)])
        foreign = make_product(self.other, sku="MUG", price="99.00")
        make_order(self.other, OrderStatus.DELIVERED, items=[(foreign, 1)])

    def test_dashboard_scoped_to_own_store(self):
        self.client.force_authenticate(user=self.staff)
        r = self.client.get("/api/analytics/dashboard/")
        self.assertEqual(r.status_code, 200)
        data = r.json()["data"]
        self.assertEqual(data["sales_metrics"]["order_count"], 1)
        self.assertEqual(data["sales_metrics"]["total_revenue"], 30.0)
        self.assertEqual(data["top_products"][0]["total_quantity"], 3)

    def test_revenue_grouping(self):
        self.client.force_authenticate(user=self.staff)
        r = self.client.get("/api/analytics/revenue/?group_by=month")
        self.assertEqual(r.status_code, 200)
        rows = r.json()["data"]["revenue_data"]
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0]["date"], timezone.localtime().strftime("%Y-%m"))

    def test_invalid_range(self):
        self.client.force_authenticate(user=self.staff)
        r = self.client.get("/api/analytics/revenue/?start_date=2024-02-01&end_date=2024-01-01")
        self.assertEqual(r.status_code, 400)
        self.assertEqual(r.json()["error"]["code"], "VALIDATION_ERROR")

    def test_super_admin_must_pick_store(self):
        self.client.force_authenticate(user=make_user("root@platform.test", role=Role.SUPER_ADMIN))
        self.assertEqual(self.client.get("/api/analytics/dashboard/").status_code, 400)
        r = self.client.get(f"/api/analytics/dashboard/?store={self.other.pk}")
        self.assertEqual(r.json()["data"]["sales_metrics"]["total_revenue"], 99.0)

    def test_customers_forbidden(self):
        self.client.force_authenticate(user=make_user("c@example.com", store=self.store))
        self.assertEqual(self.client.get("/api/analytics/dashboard/").status_code, 403)

    def test_export(self):
        self.client.force_authenticate(user=self.staff)
        r = self.client.get("/api/analytics/export/")
        self.assertEqual(r.status_code, 200)
        lines = r.content.decode().strip().splitlines()
        self.assertEqual(lines[0], "Order Number,Date,Customer Name,Customer Email,Status,Total,Items,Item Count")
        self.assertEqual(len(lines), 2)
        self.assertIn("Product MUG (3)", lines[1])
