"""Choice enums for gdpr app."""

from django.db import models


class GdprRequestType(models.TextChoices):
    EXPORT = "EXPORT", "Data export"
    DELETION = "DELETION", "Account deletion"


class GdprRequestStatus(models.TextChoices):
    PENDING = "PENDING", "Pending"
    PROCESSING = "PROCESSING", "Processing"
    COMPLETED = "COMPLETED", "Completed"
    FAILED = "FAILED", "Failed"
    CANCELED = "CANCELED", "Canceled"


class ConsentType(models.TextChoices):
    ESSENTIAL = "ESSENTIAL", "Essential"
    ANALYTICS = "ANALYTICS", "Analytics"
    MARKETING = "MARKETING", "Marketing"
    PREFERENCES = "PREFERENCES", "Preferences"
