"""
Stock movements and low-stock alerts.

All quantity changes go through this module so that every movement leaves
an InventoryLog row and a product's inventory_status stays in sync with
its quantity. Sales decrement with a conditional UPDATE
(inventory_qty >= n) so concurrent checkouts cannot oversell.
"""
import logging

from django.conf import settings
from django.db import transaction
from django.db.models import F
from rest_framework.exceptions import NotFound

from catalog.choices import InventoryStatus
from catalog.models import Product, ProductVariant
from common.exceptions import DomainError

from .choices import AdjustmentType, StockReason
from .models import InventoryLog

logger = logging.getLogger(__name__)


class InsufficientStock(DomainError):
    error_code = "INSUFFICIENT_STOCK"
    default_detail = "Insufficient stock."


def determine_inventory_status(quantity: int, threshold: int) -> str:
    """OUT_OF_STOCK at or below zero, LOW_STOCK at or below threshold, else IN_STOCK."""
    if quantity <= 0:
        return InventoryStatus.OUT_OF_STOCK
    if quantity <= threshold:
        return InventoryStatus.LOW_STOCK
    return InventoryStatus.IN_STOCK


def _send_low_stock_alert(product: Product, variant=None, quantity=None):
    """Notify every store admin. A failure is logged and never propagates."""
    from notifications.choices import NotificationType
    from notifications.services import notify_users
    from stores.services import store_admins

    label = f"{product.name} - {variant.name}" if variant else product.name
    try:
        with transaction.atomic():
            admins = list(store_admins(product.store_id))
            notify_users(
                admins,
                title="Low stock alert",
                message=f'"{label}" is running low ({quantity} left).',
                type=NotificationType.LOW_STOCK,
                link_url=f"/inventory?product={product.pk}",
                link_text="View inventory",
            )
    except Exception:
        logger.exception("Failed to send low stock alert for product %s", product.pk)
        return False
    logger.info("Low stock alert for product %s sent to %s admins", product.pk, len(admins))
    return True


def _record_movement(*, product, variant, previous_qty, new_qty, reason, note="", user=None, order=None):
    """Write the log row, refresh status, alert on a new LOW_STOCK state."""
    InventoryLog.objects.create(
        store_id=product.store_id,
        product=product,
        variant=variant,
        order=order,
        previous_qty=previous_qty,
        new_qty=new_qty,
        change_qty=new_qty - previous_qty,
        reason=reason,
        note=note,
        user=user if user is not None and user.is_authenticated else None,
    )

    target = variant or product
    previous_status = determine_inventory_status(previous_qty, target.low_stock_threshold)
    new_status = determine_inventory_status(new_qty, target.low_stock_threshold)

    if variant is None and product.inventory_status != new_status:
        product.inventory_status = new_status
        product.save(update_fields=["inventory_status", "updated_at"])

    if new_status == InventoryStatus.LOW_STOCK and previous_status != InventoryStatus.LOW_STOCK:
        _send_low_stock_alert(product, variant, new_qty)


@transaction.atomic
def adjust_stock(store, product_id, quantity, adjustment_type, reason, note="", user=None, variant_id=None):
    """
    Manually change stock for a product or one of its variants.
    ADD and REMOVE move by quantity; SET replaces the on-hand value.
    """
    if quantity < 0:
        raise DomainError("Quantity must not be negative.", code="INVALID_QUANTITY")

    product = (
        Product.objects.select_for_update()
        .for_store(store)
        .alive()
        .filter(pk=product_id)
        .first()
    )
    if product is None:
        raise NotFound("Product not found.")

    variant = None
    if variant_id is not None:
        variant = ProductVariant.objects.select_for_update().filter(pk=variant_id, product=product).first()
        if variant is None:
            raise NotFound("Variant not found.")

    target = variant or product
    previous_qty = target.inventory_qty
    if adjustment_type == AdjustmentType.ADD:
        new_qty = previous_qty + quantity
    elif adjustment_type == AdjustmentType.REMOVE:
        new_qty = previous_qty - quantity
        if new_qty < 0:
            raise InsufficientStock(
                f"Cannot remove {quantity} units; only {previous_qty} in stock.",
                details={"available": previous_qty, "requested": quantity},
            )
    elif adjustment_type == AdjustmentType.SET:
        new_qty = quantity
    else:
        raise DomainError(f"Unknown adjustment type {adjustment_type}.", code="INVALID_ADJUSTMENT_TYPE")

    target.inventory_qty = new_qty
    target.save(update_fields=["inventory_qty", "updated_at"])
    _record_movement(
        product=product, variant=variant, previous_qty=previous_qty, new_qty=new_qty,
        reason=reason or StockReason.MANUAL, note=note, user=user,
    )
    logger.info(
        "Stock %s for product %s%s: %s -> %s",
        adjustment_type, product.pk, f" variant {variant.pk}" if variant else "", previous_qty, new_qty,
    )
    return target


def _is_tracked(product, variant):
    if variant is not None:
        return variant.track_inventory
    return product.track_inventory


def deduct_stock(order, user=None):
    """
    Decrement stock for every tracked line of the order (reason "Sale").
    Must run inside the order's transaction; a line that cannot be covered
    raises InsufficientStock and rolls the whole order back.
    """
    for item in order.items.select_related("product", "variant"):
        product, variant = item.product, item.variant
        if product is None or not _is_tracked(product, variant):
            continue
        model = ProductVariant if variant is not None else Product
        target_pk = variant.pk if variant is not None else product.pk
        updated = model.objects.filter(pk=target_pk, inventory_qty__gte=item.quantity).update(
            inventory_qty=F("inventory_qty") - item.quantity
        )
        if not updated:
            available = model.objects.filter(pk=target_pk).values_list("inventory_qty", flat=True).first()
            raise InsufficientStock(
                f'Insufficient stock for "{item.product_name}".',
                details={"product": product.pk, "variant": target_pk if variant else None,
                         "available": available or 0, "requested": item.quantity},
            )
        new_qty = model.objects.filter(pk=target_pk).values_list("inventory_qty", flat=True).get()
        if variant is not None:
            variant.inventory_qty = new_qty
        else:
            product.inventory_qty = new_qty
        _record_movement(
            product=product, variant=variant, previous_qty=new_qty + item.quantity, new_qty=new_qty,
            reason=StockReason.SALE, user=user, order=order,
        )


def restore_stock(order, reason=StockReason.CANCELLATION, user=None):
    """Put back stock for every tracked line (cancellation or refund)."""
    for item in order.items.select_related("product", "variant"):
        product, variant = item.product, item.variant
        if product is None or not _is_tracked(product, variant):
            continue
        model = ProductVariant if variant is not None else Product
        target_pk = variant.pk if variant is not None else product.pk
        model.objects.filter(pk=target_pk).update(inventory_qty=F("inventory_qty") + item.quantity)
        new_qty = model.objects.filter(pk=target_pk).values_list("inventory_qty", flat=True).get()
        if variant is None:
            product.inventory_qty = new_qty
        _record_movement(
            product=product, variant=variant, previous_qty=new_qty - item.quantity, new_qty=new_qty,
            reason=reason, user=user, order=order,
        )


def low_stock_products(queryset):
    """Tracked products at or below their threshold."""
    return queryset.filter(track_inventory=True, inventory_qty__lte=F("low_stock_threshold"))


def get_inventory_history(store, product_id, limit=None):
    limit = limit or settings.INVENTORY_HISTORY_LIMIT
    return (
        InventoryLog.objects.for_store(store)
        .filter(product_id=product_id)
        .select_related("user", "variant")[:limit]
    )
