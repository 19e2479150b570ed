from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from common.models import TimeStampedModel
from core.querysets import StoreScopedQuerySet

from .choices import DiscountType


class Coupon(TimeStampedModel):
    """Discount code redeemable at checkout in one store."""

    store = models.ForeignKey(
        "stores.Store",
        on_delete=models.CASCADE,
        related_name="coupons",
        verbose_name=_("store"),
    )
    code = models.CharField(
        max_length=50,
        verbose_name=_("code"),
        help_text=_("Entered by the customer; matched case-insensitively."),
    )
    discount_type = models.CharField(
        max_length=20,
        choices=DiscountType.choices,
        default=DiscountType.PERCENTAGE,
        verbose_name=_("discount type"),
    )
    value = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        verbose_name=_("value"),
        help_text=_("Percent off for PERCENTAGE, amount off for FIXED."),
    )
    min_order_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True,
        verbose_name=_("minimum order amount"),
    )
    max_uses = models.PositiveIntegerField(
        null=True,
        blank=True,
        verbose_name=_("maximum uses"),
        help_text=_("Empty for unlimited."),
    )
    used_count = models.PositiveIntegerField(default=0, verbose_name=_("times used"))
    starts_at = models.DateTimeField(null=True, blank=True)
    ends_at = models.DateTimeField(null=True, blank=True)
    is_active = models.BooleanField(default=True, verbose_name=_("is active"))

    objects = StoreScopedQuerySet.as_manager()

    class Meta:
        ordering = ["code"]
        verbose_name = _("coupon")
        verbose_name_plural = _("coupons")
        constraints = [
            models.UniqueConstraint(fields=["store", "code"], name="unique_store_coupon_code"),
        ]

    def __str__(self):
        return self.code

    def is_redeemable(self, now=None):
        now = now or timezone.now()
        if not self.is_active:
            return False
        if self.starts_at and self.starts_at > now:
            return False
        if self.ends_at and self.ends_at < now:
            return False
        if self.max_uses is not None and self.used_count >= self.max_uses:
            return False
        return True
