"""
Store consistency validators.
Ensures all referenced resources belong to the same store.
"""
from rest_framework import serializers


def _store_id_of(obj):
    store_id = getattr(obj, "store_id", None)
    if store_id is None and hasattr(obj, "product"):
        # ProductVariant: store via product
        store_id = obj.product.store_id if obj.product else None
    return store_id


def validate_store_consistency(
    store,
    *,
    category=None,
    brand=None,
    product=None,
    variant=None,
    parent=None,
    attribute=None,
    field_name=None,
):
    """Validate that all given resources belong to the given store."""
    if not store:
        return

    store_pk = getattr(store, "pk", store)
    checks = [
        (category, "category"),
        (brand, "brand"),
        (product, "product"),
        (variant, "variant"),
        (parent, "parent"),
        (attribute, "attribute"),
    ]

    for obj, name in checks:
        if obj is None:
            continue
        obj_store = _store_id_of(obj)
        if obj_store is not None and obj_store != store_pk:
            raise serializers.ValidationError(
                {field_name or name: f"{name.replace('_', ' ').title()} must belong to the same store."}
            )
