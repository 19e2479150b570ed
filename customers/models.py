"""
Customers and addresses. A customer row is per store: the same person
checking out in two stores is two customers.
"""
from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _

from common.models import SoftDeleteModel, TimeStampedModel
from core.querysets import SoftDeleteStoreScopedQuerySet, StoreScopedQuerySet


class Customer(SoftDeleteModel):
    """A buyer in one store, with running order totals."""

    store = models.ForeignKey(
        "stores.Store",
        on_delete=models.CASCADE,
        related_name="customers",
        verbose_name=_("store"),
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="customer_profiles",
        verbose_name=_("user"),
        help_text=_("Account the customer checks out with, if any."),
    )
    email = models.EmailField(verbose_name=_("email"))
    first_name = models.CharField(max_length=100, blank=True, default="")
    last_name = models.CharField(max_length=100, blank=True, default="")
    phone = models.CharField(max_length=50, blank=True, default="")
    accepts_marketing = models.BooleanField(
        default=False,
        verbose_name=_("accepts marketing"),
    )
    total_orders = models.PositiveIntegerField(default=0, verbose_name=_("total orders"))
    total_spent = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=0,
        verbose_name=_("total spent"),
    )
    last_order_at = models.DateTimeField(null=True, blank=True, verbose_name=_("last order at"))
    notes = models.TextField(blank=True, default="")

    objects = SoftDeleteStoreScopedQuerySet.as_manager()

    class Meta:
        ordering = ["-created_at"]
        verbose_name = _("customer")
        verbose_name_plural = _("customers")
        constraints = [
            models.UniqueConstraint(fields=["store", "email"], name="unique_store_customer_email"),
        ]

    def __str__(self):
        return self.email

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}".strip()


class Address(TimeStampedModel):
    """Shipping or billing address captured at checkout."""

    store = models.ForeignKey(
        "stores.Store",
        on_delete=models.CASCADE,
        related_name="addresses",
        verbose_name=_("store"),
    )
    customer = models.ForeignKey(
        Customer,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="addresses",
        verbose_name=_("customer"),
    )
    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100)
    company = models.CharField(max_length=255, blank=True, default="")
    address1 = models.CharField(max_length=255, verbose_name=_("address line 1"))
    address2 = models.CharField(max_length=255, blank=True, default="", verbose_name=_("address line 2"))
    city = models.CharField(max_length=100)
    state = models.CharField(
        max_length=100,
        blank=True,
        default="",
        help_text=_("State or province code, e.g. CA."),
    )
    postal_code = models.CharField(max_length=20)
    country = models.CharField(
        max_length=2,
        default="US",
        help_text=_("ISO 3166-1 alpha-2 country code."),
    )
    phone = models.CharField(max_length=50, blank=True, default="")

    objects = StoreScopedQuerySet.as_manager()

    class Meta:
        verbose_name = _("address")
        verbose_name_plural = _("addresses")

    def __str__(self):
        return f"{self.first_name} {self.last_name}, {self.address1}, {self.city}"

    def as_lines(self):
        """Printable lines for invoices and emails."""
        lines = [f"{self.first_name} {self.last_name}".strip()]
        if self.company:
            lines.append(self.company)
        lines.append(self.address1)
        if self.address2:
            lines.append(self.address2)
        lines.append(" ".join(p for p in [self.city, self.state, self.postal_code] if p))
        lines.append(self.country)
        return lines
