"""
Store model: the tenant root. Subscription state lives on the store;
limits are copied from the plan when it changes (see billing.services).
"""
from django.db import models
from django.utils.translation import gettext_lazy as _

from billing.choices import SubscriptionPlan, SubscriptionStatus
from common.models import SoftDeleteModel
from core.querysets import StoreQuerySet


class Store(SoftDeleteModel):
    """A tenant storefront."""

    name = models.CharField(
        max_length=255,
        verbose_name=_("name"),
        help_text=_("Display name of the store."),
    )
    slug = models.SlugField(
        max_length=100,
        unique=True,
        verbose_name=_("slug"),
        help_text=_("URL-friendly identifier for the storefront."),
    )
    description = models.TextField(blank=True, default="")
    email = models.EmailField(
        verbose_name=_("email"),
        help_text=_("Contact email shown on invoices."),
    )
    phone = models.CharField(max_length=50, blank=True, default="")
    address = models.CharField(max_length=255, blank=True, default="")
    city = models.CharField(max_length=100, blank=True, default="")
    state = models.CharField(max_length=100, blank=True, default="")
    postal_code = models.CharField(max_length=20, blank=True, default="")
    country = models.CharField(
        max_length=2,
        default="US",
        verbose_name=_("country"),
        help_text=_("ISO 3166-1 alpha-2 country code."),
    )
    currency = models.CharField(
        max_length=3,
        default="USD",
        verbose_name=_("currency"),
        help_text=_("ISO 4217 currency code (e.g. USD, EUR)."),
    )
    logo = models.URLField(blank=True, default="")
    is_active = models.BooleanField(
        default=True,
        verbose_name=_("is active"),
        help_text=_("Whether the storefront is open."),
    )
    subscription_plan = models.CharField(
        max_length=20,
        choices=SubscriptionPlan.choices,
        default=SubscriptionPlan.FREE,
        verbose_name=_("subscription plan"),
    )
    subscription_status = models.CharField(
        max_length=20,
        choices=SubscriptionStatus.choices,
        default=SubscriptionStatus.TRIAL,
        verbose_name=_("subscription status"),
    )
    trial_ends_at = models.DateTimeField(null=True, blank=True)
    subscription_ends_at = models.DateTimeField(null=True, blank=True)
    product_limit = models.IntegerField(
        default=10,
        verbose_name=_("product limit"),
        help_text=_("Maximum products; -1 is unlimited."),
    )
    order_limit = models.IntegerField(
        default=100,
        verbose_name=_("order limit"),
        help_text=_("Maximum orders per calendar month; -1 is unlimited."),
    )

    objects = StoreQuerySet.as_manager()

    class Meta:
        verbose_name = _("store")
        verbose_name_plural = _("stores")
        ordering = ["name"]

    def __str__(self):
        return self.name
