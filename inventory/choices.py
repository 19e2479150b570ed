"""Choice enums for inventory app."""

from django.db import models


class AdjustmentType(models.TextChoices):
    ADD = "ADD", "Add"
    REMOVE = "REMOVE", "Remove"
    SET = "SET", "Set"


class StockReason:
    SALE = "Sale"
    CANCELLATION = "Cancellation"
    REFUND = "Refund"
    MANUAL = "Manual adjustment"
    IMPORT = "Import"
