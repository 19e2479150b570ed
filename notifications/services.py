"""
In-app notifications.
"""
from django.utils import timezone

from .models import Notification


def create_notification(user, title, message, type, link_url="", link_text=""):
    return Notification.objects.create(
        user=user,
        title=title,
        message=message,
        type=type,
        link_url=link_url,
        link_text=link_text,
    )


def notify_users(users, title, message, type, link_url="", link_text=""):
    """Create one notification per user; returns the created rows."""
    return Notification.objects.bulk_create(
        [
            Notification(
                user=user,
                title=title,
                message=message,
                type=type,
                link_url=link_url,
                link_text=link_text,
            )
            for user in users
        ]
    )


def mark_as_read(notification):
    if not notification.is_read:
        notification.is_read = True
        notification.read_at = timezone.now()
        notification.save(update_fields=["is_read", "read_at"])
    return notification


def mark_all_as_read(user):
    return Notification.objects.for_user(user).unread().update(is_read=True, read_at=timezone.now())
