"""
Subscription plan catalogue. A limit of -1 means unlimited.
"""
from decimal import Decimal

from .choices import SubscriptionPlan

UNLIMITED = -1

PLANS = {
    SubscriptionPlan.FREE: {
        "name": "Free",
        "price": Decimal("0.00"),
        "product_limit": 10,
        "order_limit": 100,
        "features": ["Up to 10 products", "100 orders per month", "Basic analytics"],
    },
    SubscriptionPlan.BASIC: {
        "name": "Basic",
        "price": Decimal("29.00"),
        "product_limit": 100,
        "order_limit": 1000,
        "features": ["Up to 100 products", "1,000 orders per month", "Email support"],
    },
    SubscriptionPlan.PRO: {
        "name": "Pro",
        "price": Decimal("99.00"),
        "product_limit": 1000,
        "order_limit": 10000,
        "features": ["Up to 1,000 products", "10,000 orders per month", "Advanced analytics"],
    },
    SubscriptionPlan.ENTERPRISE: {
        "name": "Enterprise",
        "price": Decimal("299.00"),
        "product_limit": UNLIMITED,
        "order_limit": UNLIMITED,
        "features": ["Unlimited products", "Unlimited orders", "Priority support"],
    },
}


def get_plan_details(plan):
    """Plan metadata as a plain dict (raises KeyError for unknown plans)."""
    details = PLANS[SubscriptionPlan(plan)]
    return {"plan": SubscriptionPlan(plan).value, **details}


def get_all_plans():
    return [get_plan_details(plan) for plan in SubscriptionPlan]


def is_unlimited(limit):
    return limit == UNLIMITED
