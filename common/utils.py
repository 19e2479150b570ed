"""
Common utilities for the storefront API.
"""
from decimal import ROUND_HALF_UP, Decimal

from django.utils.text import slugify

CENT = Decimal("0.01")


def decimal_from_value(value):
    """Safely convert to Decimal."""
    if value is None:
        return None
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def quantize_money(value):
    """Round to cents, half up."""
    return decimal_from_value(value).quantize(CENT, rounding=ROUND_HALF_UP)


def unique_slug(queryset, value, exclude_pk=None, max_length=100):
    """
    Slugify value and append -2, -3, ... until no row in queryset uses it.
    Pass an already store-filtered queryset for per-store uniqueness.
    """
    base = slugify(value)[:max_length] or "item"
    if exclude_pk is not None:
        queryset = queryset.exclude(pk=exclude_pk)
    slug = base
    n = 2
    while queryset.filter(slug=slug).exists():
        suffix = f"-{n}"
        slug = f"{base[:max_length - len(suffix)]}{suffix}"
        n += 1
    return slug
