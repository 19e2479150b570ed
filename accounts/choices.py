"""Choice enums for accounts app."""

from django.db import models


class Role(models.TextChoices):
    SUPER_ADMIN = "SUPER_ADMIN", "Super admin"
    STORE_ADMIN = "STORE_ADMIN", "Store admin"
    STAFF = "STAFF", "Staff"
    CUSTOMER = "CUSTOMER", "Customer"


STORE_STAFF_ROLES = (Role.SUPER_ADMIN, Role.STORE_ADMIN, Role.STAFF)
