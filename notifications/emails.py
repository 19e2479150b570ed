"""
Transactional emails. Sending never raises: a failed send is logged and
the calling state change stands.
"""
import logging

from django.conf import settings
from django.core.mail import send_mail

logger = logging.getLogger(__name__)

STATUS_MESSAGES = {
    "PAID": "We have received your payment.",
    "PROCESSING": "Your order is being prepared.",
    "SHIPPED": "Your order is on its way.",
    "DELIVERED": "Your order has been delivered.",
    "CANCELED": "Your order has been canceled.",
    "REFUNDED": "Your order has been refunded.",
    "PAYMENT_FAILED": "We could not process your payment.",
}


def _recipient(order):
    if order.customer_id and order.customer.email:
        return order.customer.email
    if order.user_id:
        return order.user.email
    return ""


def _send(subject, body, recipient):
    if not recipient:
        return False
    try:
        send_mail(subject, body, settings.DEFAULT_FROM_EMAIL, [recipient])
    except Exception:
        logger.exception("Failed to send email %r to %s", subject, recipient)
        return False
    return True


def send_order_confirmation_email(order):
    lines = [
        f"Thank you for your order {order.order_number}.",
        "",
    ]
    for item in order.items.all():
        lines.append(f"{item.quantity} x {item.product_name}  {item.total_amount}")
    lines += [
        "",
        f"Subtotal: {order.subtotal}",
        f"Tax: {order.tax_amount}",
        f"Shipping: {order.shipping_amount}",
        f"Discount: {order.discount_amount}",
        f"Total: {order.total_amount}",
    ]
    return _send(
        f"[{order.store.name}] Order {order.order_number} confirmed",
        "\n".join(lines),
        _recipient(order),
    )


def send_order_status_email(order):
    body = STATUS_MESSAGES.get(order.status, f"Your order status is now {order.status}.")
    if order.status == "SHIPPED" and order.tracking_number:
        body += f"\nTracking number: {order.tracking_number}"
        if order.tracking_url:
            body += f"\nTrack it at: {order.tracking_url}"
    body += f"\n\nView your order: {settings.ORDER_DETAIL_URL}/{order.pk}"
    return _send(
        f"[{order.store.name}] Order {order.order_number} update",
        body,
        _recipient(order),
    )


def send_password_reset_email(user, link):
    body = (
        "We received a request to reset your password.\n\n"
        f"Reset it here: {link}\n\n"
        f"The link expires in {settings.PASSWORD_RESET_TIMEOUT // 60} minutes. "
        "If you did not ask for a reset you can ignore this email."
    )
    return _send("Reset your password", body, user.email)


def send_password_changed_email(user):
    body = (
        "Your password was changed and you have been signed out of other sessions.\n\n"
        "If this was not you, reset your password right away."
    )
    return _send("Your password was changed", body, user.email)
