"""
Checkout: cart validation, shipping options, tax, coupons and order creation.

Prices always come from the catalog. Whatever money values a client sends
(unit prices, shipping cost, totals) are ignored; create_order recomputes
subtotal, shipping, tax, discount and total from the database inside one
transaction.

Overselling: products and variants in the cart are locked with
SELECT ... FOR UPDATE while the cart is validated, and stock is then
decremented with a conditional UPDATE (inventory.services.deduct_stock).
If any line cannot be covered the transaction rolls back and no order,
customer, address or coupon usage is kept.
"""
import logging
from decimal import Decimal

from django.conf import settings
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from billing.services import ensure_can_create_order
from catalog.models import Product, ProductVariant
from common.exceptions import DomainError
from common.utils import CENT, quantize_money
from customers.models import Address, Customer
from inventory.services import deduct_stock
from orders.models import Order, OrderItem
from stores.models import Store

from .choices import DiscountType, ShippingMethod
from .models import Coupon

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")


class InvalidCart(DomainError):
    error_code = "INVALID_CART"
    default_detail = "The cart could not be validated."


class InvalidCoupon(DomainError):
    error_code = "INVALID_COUPON"
    default_detail = "This discount code is not valid."


class InvalidShippingMethod(DomainError):
    error_code = "INVALID_SHIPPING_METHOD"
    default_detail = "The selected shipping method is not available."


def validate_cart(store, items: list[dict], lock: bool = False) -> dict:
    """
    Check each {"product", "variant", "quantity"} line against the catalog.

    Returns {"is_valid", "errors", "items", "subtotal"} where items carry the
    server-side price. With lock=True the product and variant rows are
    locked for the rest of the surrounding transaction.
    """
    errors = []
    lines = []
    subtotal = ZERO

    products = Product.objects.for_store(store).alive().filter(is_published=True)
    variants = ProductVariant.objects.all()
    if lock:
        products = products.select_for_update()
        variants = variants.select_for_update()

    for line in items:
        product_id = line.get("product")
        variant_id = line.get("variant")
        quantity = line.get("quantity") or 0

        product = products.filter(pk=product_id).first()
        if product is None:
            errors.append(f"Product {product_id} not found or unavailable")
            continue
        variant = None
        if variant_id:
            variant = variants.filter(pk=variant_id, product=product).first()
            if variant is None:
                errors.append(f"Variant {variant_id} not found for product {product.name}")
                continue
        if quantity <= 0:
            errors.append(f"Invalid quantity for {product.name}")
            continue

        price = variant.effective_price if variant else product.price
        tracked = variant.track_inventory if variant else product.track_inventory
        available = variant.inventory_qty if variant else product.inventory_qty
        if tracked and quantity > available:
            errors.append(
                f"Insufficient stock for {product.name}. Available: {available}, Requested: {quantity}"
            )
            continue

        line_subtotal = quantize_money(price * quantity)
        subtotal += line_subtotal
        lines.append(
            {
                "product": product,
                "variant": variant,
                "product_name": product.name,
                "variant_name": variant.name if variant else "",
                "sku": variant.sku if variant else product.sku,
                "price": quantize_money(price),
                "quantity": quantity,
                "available_stock": available,
                "subtotal": line_subtotal,
            }
        )

    return {
        "is_valid": not errors and bool(lines),
        "errors": errors,
        "items": lines,
        "subtotal": quantize_money(subtotal),
    }


def is_domestic(country: str | None) -> bool:
    return (country or "").upper() == settings.CHECKOUT_DOMESTIC_COUNTRY


def calculate_shipping(country: str | None, subtotal: Decimal) -> list[dict]:
    """Shipping options for a destination; free shipping on large domestic orders."""
    domestic = is_domestic(country)
    rates = settings.CHECKOUT_SHIPPING_RATES["domestic" if domestic else "international"]
    options = [
        {
            "id": ShippingMethod.STANDARD.value,
            "name": "Standard Shipping" if domestic else "International Standard",
            "cost": rates["standard"],
            "estimated_days": "5-7 days" if domestic else "10-15 days",
        },
        {
            "id": ShippingMethod.EXPRESS.value,
            "name": "Express Shipping" if domestic else "International Express",
            "cost": rates["express"],
            "estimated_days": "2-3 days" if domestic else "5-7 days",
        },
    ]
    if domestic and subtotal >= settings.CHECKOUT_FREE_SHIPPING_THRESHOLD:
        options.append(
            {
                "id": ShippingMethod.FREE.value,
                "name": "Free Shipping",
                "cost": ZERO,
                "estimated_days": "7-10 days",
            }
        )
    return options


def get_shipping_cost(method: str, country: str | None, subtotal: Decimal) -> Decimal:
    for option in calculate_shipping(country, subtotal):
        if option["id"] == method:
            return option["cost"]
    raise InvalidShippingMethod(details={"shipping_method": method})


def calculate_tax(subtotal: Decimal, country: str | None, state: str | None) -> Decimal:
    """Subtotal x state rate for domestic addresses, rounded half up to cents."""
    if not is_domestic(country):
        return ZERO
    rate = settings.CHECKOUT_TAX_RATES.get((state or "").upper(), Decimal("0"))
    return quantize_money(subtotal * rate)


def get_coupon(store, code: str, subtotal: Decimal) -> Coupon:
    coupon = Coupon.objects.for_store(store).filter(code__iexact=code.strip()).first()
    if coupon is None or not coupon.is_redeemable():
        raise InvalidCoupon(details={"code": code})
    if coupon.min_order_amount is not None and subtotal < coupon.min_order_amount:
        raise InvalidCoupon(
            f"This code requires a minimum order of {coupon.min_order_amount}.",
            details={"code": code, "min_order_amount": str(coupon.min_order_amount)},
        )
    return coupon


def calculate_discount(coupon: Coupon | None, subtotal: Decimal) -> Decimal:
    """Discount for the subtotal, never more than the subtotal itself."""
    if coupon is None:
        return ZERO
    if coupon.discount_type == DiscountType.PERCENTAGE:
        amount = subtotal * coupon.value / Decimal("100")
    else:
        amount = coupon.value
    return quantize_money(min(max(amount, ZERO), subtotal))


def generate_order_number(store) -> str:
    """ORD-00001 style, sequential per store. Call with the store row locked."""
    count = Order.objects.for_store(store).count()
    number = f"ORD-{count + 1:05d}"
    while Order.objects.for_store(store).filter(order_number=number).exists():
        count += 1
        number = f"ORD-{count + 1:05d}"
    return number


def calculate_totals(store, items, *, country=None, state=None, shipping_method=None,
                     discount_code=None, lock=False) -> dict:
    """Server-side price breakdown for a cart; raises InvalidCart on any bad line."""
    cart = validate_cart(store, items, lock=lock)
    if not cart["is_valid"]:
        raise InvalidCart(details={"errors": cart["errors"] or ["Cart is empty."]})
    subtotal = cart["subtotal"]
    shipping = get_shipping_cost(shipping_method or ShippingMethod.STANDARD, country, subtotal)
    coupon = get_coupon(store, discount_code, subtotal) if discount_code else None
    discount = calculate_discount(coupon, subtotal)
    tax = calculate_tax(subtotal, country, state)
    total = (subtotal + tax + shipping - discount).quantize(CENT)
    return {
        "cart": cart,
        "coupon": coupon,
        "subtotal": subtotal,
        "tax": tax,
        "shipping": shipping,
        "discount": discount,
        "total": total,
    }


def _get_or_create_customer(store, user, email, address):
    customer = Customer.objects.for_store(store).filter(email__iexact=email).first()
    if customer is None:
        return Customer.objects.create(
            store=store,
            user=user,
            email=email,
            first_name=address.get("first_name", ""),
            last_name=address.get("last_name", ""),
            phone=address.get("phone", ""),
        )
    if customer.deleted_at is not None or (customer.user_id is None and user is not None):
        customer.deleted_at = None
        customer.user = customer.user or user
        customer.save(update_fields=["deleted_at", "user", "updated_at"])
    return customer


def _create_address(store, customer, data):
    return Address.objects.create(
        store=store,
        customer=customer,
        first_name=data.get("first_name", ""),
        last_name=data.get("last_name", ""),
        company=data.get("company", ""),
        address1=data["address1"],
        address2=data.get("address2", ""),
        city=data["city"],
        state=data.get("state", ""),
        postal_code=data["postal_code"],
        country=data.get("country", "US").upper(),
        phone=data.get("phone", ""),
    )


def create_order(store, user, *, items, shipping_address, billing_address=None,
                 shipping_method=ShippingMethod.STANDARD, discount_code=None,
                 customer_note="", payment_method="", email=None, request=None) -> Order:
    """
    Place an order. Everything below happens in one transaction: customer,
    addresses, order, items, stock decrement, coupon usage and customer
    totals. The confirmation email is sent afterwards.
    """
    from audit.services import log_event
    from notifications.emails import send_order_confirmation_email

    email = email or user.email
    with transaction.atomic():
        # Serializes order numbering for the store.
        store = Store.objects.select_for_update().get(pk=store.pk)
        ensure_can_create_order(store)

        totals = calculate_totals(
            store,
            items,
            country=shipping_address.get("country"),
            state=shipping_address.get("state"),
            shipping_method=shipping_method,
            discount_code=discount_code,
            lock=True,
        )

        customer = _get_or_create_customer(store, user, email, shipping_address)
        shipping = _create_address(store, customer, shipping_address)
        billing = _create_address(store, customer, billing_address) if billing_address else shipping

        order = Order.objects.create(
            store=store,
            customer=customer,
            user=user,
            order_number=generate_order_number(store),
            subtotal=totals["subtotal"],
            tax_amount=totals["tax"],
            shipping_amount=totals["shipping"],
            discount_amount=totals["discount"],
            total_amount=totals["total"],
            discount_code=totals["coupon"].code if totals["coupon"] else "",
            payment_method=payment_method,
            shipping_method=shipping_method,
            customer_note=customer_note,
            shipping_address=shipping,
            billing_address=billing,
        )
        OrderItem.objects.bulk_create(
            [
                OrderItem(
                    order=order,
                    product=line["product"],
                    variant=line["variant"],
                    product_name=line["product_name"],
                    variant_name=line["variant_name"],
                    sku=line["sku"],
                    unit_price=line["price"],
                    quantity=line["quantity"],
                    subtotal=line["subtotal"],
                    total_amount=line["subtotal"],
                )
                for line in totals["cart"]["items"]
            ]
        )

        deduct_stock(order, user=user)
        order.inventory_deducted = True
        order.save(update_fields=["inventory_deducted", "updated_at"])

        if totals["coupon"] is not None:
            coupon = totals["coupon"]
            # Conditional so two checkouts cannot both take the last use.
            used = Coupon.objects.filter(pk=coupon.pk)
            if coupon.max_uses is not None:
                used = used.filter(used_count__lt=coupon.max_uses)
            if not used.update(used_count=F("used_count") + 1):
                raise InvalidCoupon(details={"code": coupon.code})

        Customer.objects.filter(pk=customer.pk).update(
            total_orders=F("total_orders") + 1,
            total_spent=F("total_spent") + totals["total"],
            last_order_at=timezone.now(),
        )
        log_event(
            store=store,
            user=user,
            action="order.created",
            entity=order,
            entity_id=order.pk,
            changes={"order_number": order.order_number, "total": str(order.total_amount)},
            request=request,
        )

    logger.info(
        "Order %s created in store %s: total %s (%s items)",
        order.order_number, store.pk, order.total_amount, len(totals["cart"]["items"]),
    )
    send_order_confirmation_email(order)
    return order
