from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _

from core.querysets import StoreScopedQuerySet


class AuditLog(models.Model):
    """Append-only record of a dashboard action."""

    store = models.ForeignKey(
        "stores.Store",
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="audit_logs",
        verbose_name=_("store"),
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="audit_logs",
        verbose_name=_("user"),
    )
    action = models.CharField(
        max_length=80,
        db_index=True,
        verbose_name=_("action"),
        help_text=_("Verb, e.g. order.status_changed or inventory.adjusted."),
    )
    entity_type = models.CharField(max_length=120, verbose_name=_("entity type"))
    entity_id = models.CharField(max_length=120, verbose_name=_("entity id"))
    changes = models.JSONField(
        default=dict,
        blank=True,
        verbose_name=_("changes"),
        help_text=_("Before/after values with secrets redacted."),
    )
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    user_agent = models.CharField(max_length=255, blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    objects = StoreScopedQuerySet.as_manager()

    class Meta:
        verbose_name = _("audit log")
        verbose_name_plural = _("audit logs")
        ordering = ["-created_at"]
        indexes = [models.Index(fields=["entity_type", "entity_id"])]

    def __str__(self):
        return f"{self.action} {self.entity_type}#{self.entity_id}"
