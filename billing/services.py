"""
Subscription state and plan-limit enforcement.

Limits are stored on the Store (copied from billing.plans on plan change)
so operators can grant custom limits per store. Product limits count live
products; order limits count orders created in the current calendar month.
"""
import logging

from django.utils import timezone

from common.exceptions import PaymentRequiredError

from .choices import SubscriptionPlan, SubscriptionStatus
from .plans import get_plan_details, is_unlimited

logger = logging.getLogger(__name__)


class PlanLimitExceeded(PaymentRequiredError):
    error_code = "PLAN_LIMIT_EXCEEDED"
    default_detail = "Your subscription plan limit has been reached."


class SubscriptionInactive(PaymentRequiredError):
    error_code = "SUBSCRIPTION_INACTIVE"
    default_detail = "The store subscription is not active."


def is_subscription_active(store) -> bool:
    if store.subscription_status == SubscriptionStatus.ACTIVE:
        return store.subscription_ends_at is None or store.subscription_ends_at > timezone.now()
    if store.subscription_status == SubscriptionStatus.TRIAL:
        return store.trial_ends_at is None or store.trial_ends_at > timezone.now()
    return False


def _month_start():
    now = timezone.now()
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def product_count(store) -> int:
    from catalog.models import Product

    return Product.objects.for_store(store).alive().count()


def monthly_order_count(store) -> int:
    from orders.models import Order

    return Order.objects.for_store(store).filter(created_at__gte=_month_start()).count()


def _check(store, resource, current, limit):
    if not is_subscription_active(store):
        logger.info("Store %s blocked: subscription %s", store.pk, store.subscription_status)
        raise SubscriptionInactive(
            details={"status": store.subscription_status, "plan": store.subscription_plan},
        )
    if not is_unlimited(limit) and current >= limit:
        logger.info("Store %s hit %s limit (%s/%s)", store.pk, resource, current, limit)
        raise PlanLimitExceeded(
            message=f"Your {store.subscription_plan} plan allows {limit} {resource}. Upgrade to add more.",
            details={"resource": resource, "current": current, "limit": limit, "plan": store.subscription_plan},
        )


def ensure_can_create_product(store):
    _check(store, "products", product_count(store), store.product_limit)


def ensure_can_create_order(store):
    _check(store, "orders per month", monthly_order_count(store), store.order_limit)


def can_create_product(store) -> bool:
    try:
        ensure_can_create_product(store)
    except PaymentRequiredError:
        return False
    return True


def can_create_order(store) -> bool:
    try:
        ensure_can_create_order(store)
    except PaymentRequiredError:
        return False
    return True


def _usage(current, limit):
    if is_unlimited(limit):
        return {"current": current, "limit": limit, "percentage": 0}
    percentage = round(current / limit * 100, 2) if limit else 100
    return {"current": current, "limit": limit, "percentage": percentage}


def get_usage_stats(store) -> dict:
    return {
        "plan": get_plan_details(store.subscription_plan),
        "status": store.subscription_status,
        "is_active": is_subscription_active(store),
        "trial_ends_at": store.trial_ends_at,
        "subscription_ends_at": store.subscription_ends_at,
        "products": _usage(product_count(store), store.product_limit),
        "orders": _usage(monthly_order_count(store), store.order_limit),
    }


def change_plan(store, plan):
    """Switch plan, copy its limits and mark the subscription active."""
    plan = SubscriptionPlan(plan)
    details = get_plan_details(plan)
    previous = store.subscription_plan
    store.subscription_plan = plan
    store.subscription_status = SubscriptionStatus.ACTIVE
    store.subscription_ends_at = None
    store.product_limit = details["product_limit"]
    store.order_limit = details["order_limit"]
    store.save(update_fields=[
        "subscription_plan", "subscription_status", "subscription_ends_at",
        "product_limit", "order_limit", "updated_at",
    ])
    logger.info("Store %s changed plan %s -> %s", store.pk, previous, plan)
    return store


def cancel_subscription(store):
    """Cancel and fall back to the FREE plan limits."""
    details = get_plan_details(SubscriptionPlan.FREE)
    store.subscription_status = SubscriptionStatus.CANCELED
    store.subscription_ends_at = timezone.now()
    store.subscription_plan = SubscriptionPlan.FREE
    store.product_limit = details["product_limit"]
    store.order_limit = details["order_limit"]
    store.save(update_fields=[
        "subscription_status", "subscription_ends_at", "subscription_plan",
        "product_limit", "order_limit", "updated_at",
    ])
    logger.info("Store %s canceled subscription", store.pk)
    return store
