from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _

from .choices import NotificationType


class NotificationQuerySet(models.QuerySet):
    def for_user(self, user):
        if not user or not user.is_authenticated:
            return self.none()
        return self.filter(user_id=user.pk)

    def unread(self):
        return self.filter(is_read=False)


class Notification(models.Model):
    """In-app notification shown in the dashboard bell."""

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="notifications",
        verbose_name=_("user"),
    )
    type = models.CharField(
        max_length=30,
        choices=NotificationType.choices,
        default=NotificationType.SYSTEM,
        verbose_name=_("type"),
    )
    title = models.CharField(max_length=255)
    message = models.TextField()
    link_url = models.CharField(max_length=500, blank=True, default="")
    link_text = models.CharField(max_length=100, blank=True, default="")
    is_read = models.BooleanField(default=False, db_index=True)
    read_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = NotificationQuerySet.as_manager()

    class Meta:
        verbose_name = _("notification")
        verbose_name_plural = _("notifications")
        ordering = ["-created_at"]

    def __str__(self):
        return self.title
