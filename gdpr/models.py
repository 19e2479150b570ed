from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _

from common.models import TimeStampedModel

from .choices import ConsentType, GdprRequestStatus, GdprRequestType


class GdprRequest(TimeStampedModel):
    """A data subject's export or deletion request."""

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="gdpr_requests",
        verbose_name=_("user"),
    )
    store = models.ForeignKey(
        "stores.Store",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="gdpr_requests",
        verbose_name=_("store"),
    )
    type = models.CharField(
        max_length=20,
        choices=GdprRequestType.choices,
        verbose_name=_("type"),
    )
    status = models.CharField(
        max_length=20,
        choices=GdprRequestStatus.choices,
        default=GdprRequestStatus.PENDING,
        db_index=True,
        verbose_name=_("status"),
    )
    export_url = models.URLField(blank=True, default="")
    error_message = models.TextField(blank=True, default="")
    expires_at = models.DateTimeField(
        null=True,
        blank=True,
        verbose_name=_("expires at"),
        help_text=_("Export download links stop working after this time."),
    )
    processed_at = models.DateTimeField(null=True, blank=True, verbose_name=_("processed at"))
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    user_agent = models.CharField(max_length=255, blank=True, default="")

    class Meta:
        ordering = ["-created_at"]
        verbose_name = _("GDPR request")
        verbose_name_plural = _("GDPR requests")

    def __str__(self):
        return f"{self.type} {self.status} ({self.user_id})"


class ConsentRecord(TimeStampedModel):
    """Latest consent decision of a user for one consent type."""

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="consent_records",
        verbose_name=_("user"),
    )
    store = models.ForeignKey(
        "stores.Store",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="consent_records",
        verbose_name=_("store"),
    )
    consent_type = models.CharField(
        max_length=20,
        choices=ConsentType.choices,
        verbose_name=_("consent type"),
    )
    granted = models.BooleanField(default=False, verbose_name=_("granted"))
    granted_at = models.DateTimeField(null=True, blank=True)
    revoked_at = models.DateTimeField(null=True, blank=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    user_agent = models.CharField(max_length=255, blank=True, default="")

    class Meta:
        ordering = ["consent_type"]
        verbose_name = _("consent record")
        verbose_name_plural = _("consent records")
        constraints = [
            models.UniqueConstraint(fields=["user", "consent_type"], name="unique_user_consent_type"),
        ]

    def __str__(self):
        return f"{self.user_id} {self.consent_type}={self.granted}"
