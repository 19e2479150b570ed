"""Choice enums for catalog app."""

from django.db import models


class InventoryStatus(models.TextChoices):
    IN_STOCK = "IN_STOCK", "In stock"
    LOW_STOCK = "LOW_STOCK", "Low stock"
    OUT_OF_STOCK = "OUT_OF_STOCK", "Out of stock"
    DISCONTINUED = "DISCONTINUED", "Discontinued"
