"""
Store analytics computed with ORM aggregation.

Revenue only counts orders in REVENUE_STATUSES (PROCESSING, SHIPPED,
DELIVERED); soft-deleted orders and customers are ignored everywhere.
"""
from datetime import timedelta
from decimal import Decimal

from django.db.models import Count, Exists, OuterRef, Sum
from django.db.models.functions import TruncDay, TruncMonth, TruncWeek
from django.utils import timezone

from common.exports import render_csv
from common.utils import quantize_money
from customers.models import Customer
from orders.choices import REVENUE_STATUSES
from orders.models import Order, OrderItem

DEFAULT_RANGE_DAYS = 30

TRUNCATE = {
    "day": (TruncDay, "%Y-%m-%d"),
    "week": (TruncWeek, "%Y-%m-%d"),
    "month": (TruncMonth, "%Y-%m"),
}

SALES_REPORT_HEADER = [
    "Order Number",
    "Date",
    "Customer Name",
    "Customer Email",
    "Status",
    "Total",
    "Items",
    "Item Count",
]


def default_date_range(now=None):
    end = now or timezone.now()
    return end - timedelta(days=DEFAULT_RANGE_DAYS), end


def _revenue_orders(store, start, end):
    return Order.objects.for_store(store).alive().filter(
        created_at__gte=start, created_at__lte=end, status__in=REVENUE_STATUSES
    )


def get_sales_metrics(store, start, end) -> dict:
    totals = _revenue_orders(store, start, end).aggregate(revenue=Sum("total_amount"), count=Count("pk"))
    revenue = totals["revenue"] or Decimal("0")
    count = totals["count"]
    return {
        "total_revenue": quantize_money(revenue),
        "order_count": count,
        "average_order_value": quantize_money(revenue / count) if count else Decimal("0.00"),
    }


def get_revenue_by_period(store, start, end, group_by="day") -> list[dict]:
    """Revenue and order count per day, week (starting Monday) or month."""
    trunc, fmt = TRUNCATE.get(group_by, TRUNCATE["day"])
    rows = (
        _revenue_orders(store, start, end)
        .annotate(period=trunc("created_at"))
        .values("period")
        .annotate(revenue=Sum("total_amount"), order_count=Count("pk"))
        .order_by("period")
    )
    return [
        {
            "date": row["period"].strftime(fmt),
            "revenue": quantize_money(row["revenue"] or 0),
            "order_count": row["order_count"],
        }
        for row in rows
    ]


def get_top_products(store, start, end, limit=10) -> list[dict]:
    """Best sellers by quantity; lines whose product was removed are skipped."""
    rows = (
        OrderItem.objects.for_store(store)
        .filter(
            product__isnull=False,
            order__deleted_at__isnull=True,
            order__created_at__gte=start,
            order__created_at__lte=end,
            order__status__in=REVENUE_STATUSES,
        )
        .values("product_id", "product__name")
        .annotate(
            total_quantity=Sum("quantity"),
            total_revenue=Sum("total_amount"),
            order_count=Count("order", distinct=True),
        )
        .order_by("-total_quantity", "product_id")[:limit]
    )
    return [
        {
            "id": row["product_id"],
            "name": row["product__name"],
            "total_quantity": row["total_quantity"],
            "total_revenue": quantize_money(row["total_revenue"] or 0),
            "order_count": row["order_count"],
        }
        for row in rows
    ]


def get_customer_metrics(store, start, end) -> dict:
    """
    New and returning customers for the range. A returning customer ordered
    in the range and before it. Retention is returning customers divided by
    customers acquired in the previous period of the same length.
    """
    customers = Customer.objects.for_store(store).alive()
    previous_start = start - (end - start)

    total = customers.count()
    new = customers.filter(created_at__gte=start, created_at__lte=end).count()
    previous = customers.filter(created_at__gte=previous_start, created_at__lt=start).count()

    orders = Order.objects.for_store(store).alive()
    earlier = orders.filter(customer=OuterRef("customer"), created_at__lt=start)
    returning = (
        orders.filter(created_at__gte=start, created_at__lte=end, customer__isnull=False)
        .filter(Exists(earlier))
        .values("customer")
        .distinct()
        .count()
    )
    rate = round(returning / previous * 100, 2) if previous else 0.0
    return {
        "total_customers": total,
        "new_customers": new,
        "returning_customers": returning,
        "customer_retention_rate": rate,
    }


def get_dashboard(store, start, end) -> dict:
    return {
        "sales_metrics": get_sales_metrics(store, start, end),
        "revenue_data": get_revenue_by_period(store, start, end, "day"),
        "top_products": get_top_products(store, start, end, limit=5),
        "customer_metrics": get_customer_metrics(store, start, end),
        "date_range": {"start_date": start.isoformat(), "end_date": end.isoformat()},
    }


def export_sales_report(store, start, end) -> str:
    """Every order in the range (any status), newest first."""
    orders = (
        Order.objects.for_store(store)
        .alive()
        .filter(created_at__gte=start, created_at__lte=end)
        .select_related("customer", "user", "shipping_address")
        .prefetch_related("items")
        .order_by("-created_at")
    )
    rows = []
    for order in orders:
        items = list(order.items.all())
        rows.append(
            [
                order.order_number,
                order.created_at.date().isoformat(),
                order.customer_name or "Guest",
                order.customer_email,
                order.status,
                f"{order.total_amount:.2f}",
                "; ".join(f"{item.product_name} ({item.quantity})" for item in items),
                sum(item.quantity for item in items),
            ]
        )
    return render_csv(SALES_REPORT_HEADER, rows)
