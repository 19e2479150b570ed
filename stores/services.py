"""
Store lifecycle: creation with a trial subscription and member assignment.
"""
import logging
from datetime import timedelta

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from accounts.choices import Role
from billing.choices import SubscriptionPlan, SubscriptionStatus
from billing.plans import get_plan_details
from common.utils import unique_slug

from .models import Store

logger = logging.getLogger(__name__)


def create_store(**data):
    """Create a store on the default plan with a FREE_TRIAL_DAYS trial."""
    plan = SubscriptionPlan(getattr(settings, "DEFAULT_SUBSCRIPTION_PLAN", SubscriptionPlan.FREE))
    details = get_plan_details(plan)
    if not data.get("slug"):
        data["slug"] = unique_slug(Store.objects.all(), data.get("name", ""))
    store = Store.objects.create(
        subscription_plan=plan,
        subscription_status=SubscriptionStatus.TRIAL,
        trial_ends_at=timezone.now() + timedelta(days=settings.FREE_TRIAL_DAYS),
        product_limit=details["product_limit"],
        order_limit=details["order_limit"],
        **data,
    )
    logger.info("Store %s created on plan %s", store.pk, plan)
    return store


@transaction.atomic
def assign_member(store, user, role):
    """Attach an existing user to the store as STORE_ADMIN or STAFF."""
    if role not in (Role.STORE_ADMIN, Role.STAFF):
        raise ValueError(f"Cannot assign role {role} to a store")
    user.store = store
    user.role = role
    user.save(update_fields=["store", "role", "updated_at"])
    return user


def store_admins(store):
    from accounts.models import User

    return User.objects.filter(store=store, role=Role.STORE_ADMIN, is_active=True)
