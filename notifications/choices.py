"""Choice enums for notifications app."""

from django.db import models


class NotificationType(models.TextChoices):
    ORDER_UPDATE = "ORDER_UPDATE", "Order update"
    LOW_STOCK = "LOW_STOCK", "Low stock"
    SYSTEM = "SYSTEM", "System"
