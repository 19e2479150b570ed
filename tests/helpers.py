"""Shared builders for API tests."""
from decimal import Decimal

from django.core.mail.backends.base import BaseEmailBackend

from accounts.choices import Role
from accounts.models import User
from catalog.models import Product
from customers.models import Customer
from orders.choices import OrderStatus
from orders.models import Order, OrderItem
from stores.models import Store


def make_store(slug="acme", **kwargs):
    kwargs.setdefault("name", slug.title())
    kwargs.setdefault("email", f"owner@{slug}.test")
    return Store.objects.create(slug=slug, **kwargs)


def make_user(email, role=Role.CUSTOMER, store=None, password="pass12345", **kwargs):
    return User.objects.create_user(email=email, password=password, role=role, store=store, **kwargs)


def make_product(store, sku="SKU-1", price="10.00", inventory_qty=10, **kwargs):
    kwargs.setdefault("name", f"Product {sku}")
    kwargs.setdefault("slug", sku.lower())
    kwargs.setdefault("is_published", True)
    return Product.objects.create(
        store=store, sku=sku, price=Decimal(price), inventory_qty=inventory_qty, **kwargs
    )


def make_order(store, status=OrderStatus.PENDING, number=None, customer=None, items=(), **kwargs):
    """Order with the given (product, quantity) items; totals follow the items."""
    if number is None:
        number = f"ORD-{Order.objects.for_store(store).count() + 1:05d}"
    if customer is None:
        customer, _ = Customer.objects.get_or_create(
            store=store, email="buyer@example.com", defaults={"first_name": "Bea", "last_name": "Buyer"}
        )
    subtotal = sum((product.price * qty for product, qty in items), Decimal("0.00"))
    kwargs.setdefault("subtotal", subtotal)
    kwargs.setdefault("total_amount", subtotal)
    order = Order.objects.create(
        store=store, order_number=number, status=status, customer=customer, **kwargs
    )
    for product, qty in items:
        OrderItem.objects.create(
            order=order,
            product=product,
            product_name=product.name,
            sku=product.sku,
            unit_price=product.price,
            quantity=qty,
            subtotal=product.price * qty,
            total_amount=product.price * qty,
        )
    return order


class FailingEmailBackend(BaseEmailBackend):
    """Email backend whose every send fails, for testing delivery errors."""

    def send_messages(self, email_messages):
        raise ConnectionRefusedError("SMTP server unavailable")
