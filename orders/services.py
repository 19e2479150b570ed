"""
Order lifecycle: status transitions and their side effects, list
filtering, CSV export and invoice data.

Status changes follow ALLOWED_TRANSITIONS; anything else is rejected.
Stock taken at checkout is put back when an order is canceled or
refunded, inside the same transaction as the status change.
"""
import logging
from datetime import datetime, time

from django.conf import settings
from django.db import transaction
from django.db.models import Count, Q
from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime

from common.exceptions import DomainError
from common.exports import render_csv
from inventory.choices import StockReason

from .choices import OrderStatus, PaymentStatus, ShippingStatus
from .models import Order

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
    OrderStatus.PENDING: [OrderStatus.PAID, OrderStatus.PAYMENT_FAILED, OrderStatus.CANCELED],
    OrderStatus.PAYMENT_FAILED: [OrderStatus.PAID, OrderStatus.CANCELED],
    OrderStatus.PAID: [OrderStatus.PROCESSING, OrderStatus.CANCELED, OrderStatus.REFUNDED],
    OrderStatus.PROCESSING: [OrderStatus.SHIPPED, OrderStatus.CANCELED, OrderStatus.REFUNDED],
    OrderStatus.SHIPPED: [OrderStatus.DELIVERED, OrderStatus.CANCELED],
    OrderStatus.DELIVERED: [OrderStatus.REFUNDED],
    OrderStatus.CANCELED: [],
    OrderStatus.REFUNDED: [],
}

CONFIRMATION_STATUSES = {OrderStatus.CANCELED, OrderStatus.REFUNDED}

SORT_FIELDS = {"created_at", "total_amount", "order_number"}

EXPORT_HEADER = [
    "Order Number",
    "Customer Name",
    "Customer Email",
    "Status",
    "Payment Status",
    "Payment Method",
    "Subtotal",
    "Tax",
    "Shipping",
    "Discount",
    "Total",
    "Items Count",
    "Created At",
]


class InvalidStatusTransition(DomainError):
    error_code = "INVALID_STATUS_TRANSITION"
    default_detail = "This status change is not allowed."


class TrackingNumberRequired(DomainError):
    error_code = "TRACKING_NUMBER_REQUIRED"
    default_detail = "A tracking number is required to mark an order as shipped."


class ConfirmationRequired(DomainError):
    error_code = "CONFIRMATION_REQUIRED"
    default_detail = "This status change must be confirmed."


def is_valid_transition(current, new) -> bool:
    return new in ALLOWED_TRANSITIONS.get(current, [])


def _append_note(existing, text, now):
    entry = f"[{now.isoformat()}] {text}"
    return f"{existing}\n{entry}" if existing else entry


def update_order_status(order, new_status, *, tracking_number=None, tracking_url=None,
                        note=None, confirm=False, user=None, request=None):
    """
    Move an order to new_status and apply the side effects of the change.

    The checks run against the order row re-read under a lock, never the
    caller's copy. Raises InvalidStatusTransition, TrackingNumberRequired
    or ConfirmationRequired before anything is written. The customer email
    is sent once the change is saved; a failed send is logged and leaves
    the new status in place. Returns the updated order.
    """
    from audit.services import log_event
    from inventory.services import restore_stock
    from notifications.emails import send_order_status_email

    tracking_number = (tracking_number or "").strip()
    now = timezone.now()
    with transaction.atomic():
        order = Order.objects.select_for_update().get(pk=order.pk)
        previous_status = order.status
        if not is_valid_transition(previous_status, new_status):
            allowed = [str(s) for s in ALLOWED_TRANSITIONS.get(previous_status, [])]
            raise InvalidStatusTransition(
                f"Cannot change order status from {previous_status} to {new_status}.",
                details={"from": previous_status, "to": new_status, "allowed": allowed},
            )
        if new_status == OrderStatus.SHIPPED and not (tracking_number or order.tracking_number):
            raise TrackingNumberRequired()
        if new_status in CONFIRMATION_STATUSES and not confirm:
            raise ConfirmationRequired(
                f"Set confirm to true to mark this order as {new_status}.",
                details={"status": new_status},
            )

        order.status = new_status
        if tracking_number:
            order.tracking_number = tracking_number
        if tracking_url:
            order.tracking_url = tracking_url

        if new_status == OrderStatus.PAID:
            order.payment_status = PaymentStatus.PAID
        elif new_status == OrderStatus.PAYMENT_FAILED:
            order.payment_status = PaymentStatus.FAILED
        elif new_status == OrderStatus.SHIPPED:
            order.shipping_status = ShippingStatus.IN_TRANSIT
        elif new_status == OrderStatus.DELIVERED:
            order.shipping_status = ShippingStatus.DELIVERED
            order.fulfilled_at = now
        elif new_status == OrderStatus.CANCELED:
            order.shipping_status = ShippingStatus.PENDING
            order.canceled_at = now
        elif new_status == OrderStatus.REFUNDED:
            order.payment_status = PaymentStatus.REFUNDED

        note_text = f"Status changed from {previous_status} to {new_status}"
        if note:
            note_text = f"{note_text}: {note}"
        order.admin_note = _append_note(order.admin_note, note_text, now)

        if new_status in CONFIRMATION_STATUSES and order.inventory_deducted:
            reason = StockReason.REFUND if new_status == OrderStatus.REFUNDED else StockReason.CANCELLATION
            restore_stock(order, reason=reason, user=user)
            order.inventory_deducted = False

        order.save()
        log_event(
            store=order.store,
            user=user,
            action="order.status_changed",
            entity=order,
            entity_id=order.pk,
            changes={"from": previous_status, "to": new_status, "tracking_number": order.tracking_number},
            request=request,
        )

    logger.info("Order %s status %s -> %s", order.order_number, previous_status, new_status)
    if not send_order_status_email(order):
        logger.warning("Status email for order %s was not sent", order.order_number)
    return order


def _parse_bound(value, end_of_day=False):
    if not value:
        return None
    parsed = parse_datetime(value)
    if parsed is None:
        day = parse_date(value)
        if day is None:
            raise DomainError(f"Invalid date: {value}", code="VALIDATION_ERROR")
        parsed = datetime.combine(day, time.max if end_of_day else time.min)
    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed)
    return parsed


def filter_orders(queryset, params):
    """
    Apply list filters from query params:
    status, search, date_from, date_to, sort_by, sort_order.
    """
    status = params.get("status")
    if status:
        if status not in OrderStatus.values:
            raise DomainError(f"Unknown status {status}.", code="VALIDATION_ERROR")
        queryset = queryset.filter(status=status)

    search = (params.get("search") or "").strip()
    if search:
        queryset = queryset.filter(
            Q(order_number__icontains=search)
            | Q(customer__first_name__icontains=search)
            | Q(customer__last_name__icontains=search)
            | Q(customer__email__icontains=search)
        )

    date_from = _parse_bound(params.get("date_from"))
    date_to = _parse_bound(params.get("date_to"), end_of_day=True)
    if date_from:
        queryset = queryset.filter(created_at__gte=date_from)
    if date_to:
        queryset = queryset.filter(created_at__lte=date_to)

    sort_by = params.get("sort_by") or "created_at"
    if sort_by not in SORT_FIELDS:
        sort_by = "created_at"
    prefix = "" if params.get("sort_order") == "asc" else "-"
    return queryset.order_by(f"{prefix}{sort_by}", f"{prefix}pk")


def export_orders_csv(queryset):
    """CSV of the given orders, capped at ORDER_EXPORT_MAX_ROWS rows."""
    orders = (
        queryset.select_related("customer", "user", "shipping_address")
        .annotate(items_count=Count("items"))[: settings.ORDER_EXPORT_MAX_ROWS]
    )
    rows = (
        [
            order.order_number,
            order.customer_name,
            order.customer_email,
            order.status,
            order.payment_status,
            order.payment_method,
            order.subtotal,
            order.tax_amount,
            order.shipping_amount,
            order.discount_amount,
            order.total_amount,
            order.items_count,
            order.created_at.isoformat(),
        ]
        for order in orders
    )
    return render_csv(EXPORT_HEADER, rows)


def get_invoice_data(order):
    """Everything the invoice shows, detached from the model instances."""
    store = order.store
    store_address = ", ".join(
        p for p in [store.address, store.city, store.state, store.postal_code, store.country] if p
    )
    return {
        "invoice_number": order.order_number,
        "invoice_date": order.created_at,
        "store": {
            "name": store.name,
            "email": store.email,
            "phone": store.phone,
            "address": store_address,
            "currency": store.currency,
        },
        "customer": {"name": order.customer_name, "email": order.customer_email},
        "billing_address": order.billing_address.as_lines() if order.billing_address_id else None,
        "shipping_address": order.shipping_address.as_lines() if order.shipping_address_id else None,
        "items": [
            {
                "product_name": item.product_name,
                "variant_name": item.variant_name,
                "sku": item.sku,
                "quantity": item.quantity,
                "unit_price": item.unit_price,
                "total": item.total_amount,
            }
            for item in order.items.all()
        ],
        "totals": {
            "subtotal": order.subtotal,
            "tax": order.tax_amount,
            "shipping": order.shipping_amount,
            "discount": order.discount_amount,
            "total": order.total_amount,
        },
        "payment_method": order.payment_method,
        "payment_status": order.payment_status,
        "tracking_number": order.tracking_number,
    }
