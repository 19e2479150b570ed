from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _

from core.querysets import StoreScopedQuerySet


class InventoryLog(models.Model):
    """
    One stock movement for a product (or one of its variants).
    Written for manual adjustments, sales, cancellations and refunds.
    """

    store = models.ForeignKey(
        "stores.Store",
        on_delete=models.CASCADE,
        related_name="inventory_logs",
        verbose_name=_("store"),
    )
    product = models.ForeignKey(
        "catalog.Product",
        on_delete=models.CASCADE,
        related_name="inventory_logs",
        verbose_name=_("product"),
    )
    variant = models.ForeignKey(
        "catalog.ProductVariant",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="inventory_logs",
        verbose_name=_("variant"),
    )
    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="inventory_logs",
        verbose_name=_("order"),
        help_text=_("Order that caused the movement, if any."),
    )
    previous_qty = models.IntegerField(verbose_name=_("previous quantity"))
    new_qty = models.IntegerField(verbose_name=_("new quantity"))
    change_qty = models.IntegerField(
        verbose_name=_("change"),
        help_text=_("Signed difference new - previous."),
    )
    reason = models.CharField(max_length=255, verbose_name=_("reason"))
    note = models.TextField(blank=True, default="")
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="inventory_logs",
        verbose_name=_("user"),
    )
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    objects = StoreScopedQuerySet.as_manager()

    class Meta:
        ordering = ["-created_at", "-pk"]
        verbose_name = _("inventory log")
        verbose_name_plural = _("inventory logs")

    def __str__(self):
        return f"{self.product_id}: {self.previous_qty} -> {self.new_qty} ({self.reason})"
