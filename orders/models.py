"""
Orders and their line items. Money fields are always computed on the
server (checkout.services); line items snapshot product data so later
catalog edits do not change past orders.
"""
from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _

from common.models import SoftDeleteModel, TimeStampedModel
from core.querysets import OrderScopedQuerySet, SoftDeleteStoreScopedQuerySet

from .choices import OrderStatus, PaymentStatus, ShippingStatus


class OrderQuerySet(SoftDeleteStoreScopedQuerySet):
    def for_customer(self, user):
        """Orders placed by the user, or by a customer record linked to them."""
        return self.filter(models.Q(user=user) | models.Q(customer__user=user))


def money_field(name, **kwargs):
    return models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=0,
        verbose_name=name,
        **kwargs,
    )


class Order(SoftDeleteModel):
    """A placed order in one store."""

    store = models.ForeignKey(
        "stores.Store",
        on_delete=models.CASCADE,
        related_name="orders",
        verbose_name=_("store"),
    )
    customer = models.ForeignKey(
        "customers.Customer",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="orders",
        verbose_name=_("customer"),
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="orders",
        verbose_name=_("user"),
        help_text=_("Account that placed the order."),
    )
    order_number = models.CharField(
        max_length=32,
        verbose_name=_("order number"),
        help_text=_("Per-store sequence, e.g. ORD-00001."),
    )
    status = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.PENDING,
        db_index=True,
        verbose_name=_("status"),
    )
    payment_status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING,
        verbose_name=_("payment status"),
    )
    shipping_status = models.CharField(
        max_length=20,
        choices=ShippingStatus.choices,
        default=ShippingStatus.PENDING,
        verbose_name=_("shipping status"),
    )
    subtotal = money_field(_("subtotal"))
    tax_amount = money_field(_("tax"))
    shipping_amount = money_field(_("shipping"))
    discount_amount = money_field(_("discount"))
    total_amount = money_field(
        _("total"),
        help_text=_("subtotal + tax + shipping - discount"),
    )
    discount_code = models.CharField(max_length=50, blank=True, default="")
    payment_method = models.CharField(max_length=50, blank=True, default="")
    shipping_method = models.CharField(max_length=50, blank=True, default="")
    tracking_number = models.CharField(max_length=100, blank=True, default="")
    tracking_url = models.URLField(blank=True, default="")
    customer_note = models.TextField(blank=True, default="")
    admin_note = models.TextField(
        blank=True,
        default="",
        help_text=_("Internal notes; status changes are appended with a timestamp."),
    )
    shipping_address = models.ForeignKey(
        "customers.Address",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
        verbose_name=_("shipping address"),
    )
    billing_address = models.ForeignKey(
        "customers.Address",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
        verbose_name=_("billing address"),
    )
    inventory_deducted = models.BooleanField(
        default=False,
        verbose_name=_("inventory deducted"),
        help_text=_("Set once stock was taken for this order; restored on cancel/refund."),
    )
    fulfilled_at = models.DateTimeField(null=True, blank=True)
    canceled_at = models.DateTimeField(null=True, blank=True)

    objects = OrderQuerySet.as_manager()

    class Meta:
        ordering = ["-created_at"]
        verbose_name = _("order")
        verbose_name_plural = _("orders")
        constraints = [
            models.UniqueConstraint(fields=["store", "order_number"], name="unique_store_order_number"),
        ]
        indexes = [
            models.Index(fields=["store", "status", "created_at"]),
        ]

    def __str__(self):
        return self.order_number

    @property
    def customer_name(self):
        if self.customer_id:
            return self.customer.full_name
        if self.shipping_address_id:
            return f"{self.shipping_address.first_name} {self.shipping_address.last_name}".strip()
        return self.user.name if self.user_id else ""

    @property
    def customer_email(self):
        if self.customer_id:
            return self.customer.email
        return self.user.email if self.user_id else ""


class OrderItem(TimeStampedModel):
    """Line item; product fields are copied at checkout."""

    order = models.ForeignKey(
        Order,
        on_delete=models.CASCADE,
        related_name="items",
        verbose_name=_("order"),
    )
    product = models.ForeignKey(
        "catalog.Product",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="order_items",
        verbose_name=_("product"),
    )
    variant = models.ForeignKey(
        "catalog.ProductVariant",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="order_items",
        verbose_name=_("variant"),
    )
    product_name = models.CharField(max_length=255)
    variant_name = models.CharField(max_length=255, blank=True, default="")
    sku = models.CharField(max_length=100, blank=True, default="")
    unit_price = money_field(_("unit price"))
    quantity = models.PositiveIntegerField(verbose_name=_("quantity"))
    subtotal = money_field(_("subtotal"))
    tax_amount = money_field(_("tax"))
    discount_amount = money_field(_("discount"))
    total_amount = money_field(_("total"))

    objects = OrderScopedQuerySet.as_manager()

    class Meta:
        ordering = ["pk"]
        verbose_name = _("order item")
        verbose_name_plural = _("order items")

    def __str__(self):
        return f"{self.quantity} x {self.product_name}"
