"""
Data subject rights: export, erasure and consent.

Erasure anonymizes instead of deleting rows so that orders (and store
accounting) stay intact while nothing links them to the person anymore.
"""
import logging
from datetime import timedelta

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from common.exceptions import ConflictError, DomainError

from .choices import GdprRequestStatus, GdprRequestType
from .models import ConsentRecord, GdprRequest

logger = logging.getLogger(__name__)

OPEN_DELETION_STATUSES = [GdprRequestStatus.PENDING, GdprRequestStatus.PROCESSING]
FINAL_STATUSES = [GdprRequestStatus.COMPLETED, GdprRequestStatus.FAILED]


def _client_meta(request):
    from audit.services import client_ip

    if request is None:
        return {"ip_address": None, "user_agent": ""}
    return {
        "ip_address": client_ip(request),
        "user_agent": request.META.get("HTTP_USER_AGENT", "")[:255],
    }


def export_user_data(user, store=None) -> dict:
    """Everything stored about the user, optionally narrowed to one store."""
    from customers.models import Address, Customer
    from orders.models import Order

    orders = Order.objects.alive().for_customer(user).order_by("-created_at")
    customers = Customer.objects.filter(user=user)
    consents = ConsentRecord.objects.filter(user=user)
    if store is not None:
        orders = orders.for_store(store)
        customers = customers.for_store(store)
        consents = consents.filter(store=store)
    addresses = Address.objects.filter(customer__in=customers)

    return {
        "user": {
            "id": user.pk,
            "email": user.email,
            "name": user.name,
            "phone": user.phone,
            "role": user.role,
            "created_at": user.created_at,
            "last_login": user.last_login,
        },
        "customers": [
            {
                "store": c.store_id,
                "email": c.email,
                "first_name": c.first_name,
                "last_name": c.last_name,
                "phone": c.phone,
                "accepts_marketing": c.accepts_marketing,
            }
            for c in customers
        ],
        "orders": [
            {
                "id": o.pk,
                "order_number": o.order_number,
                "total": o.total_amount,
                "status": o.status,
                "created_at": o.created_at,
            }
            for o in orders.distinct()
        ],
        "addresses": [
            {
                "id": a.pk,
                "address1": a.address1,
                "address2": a.address2,
                "city": a.city,
                "state": a.state,
                "postal_code": a.postal_code,
                "country": a.country,
            }
            for a in addresses
        ],
        "consent_records": [
            {
                "consent_type": c.consent_type,
                "granted": c.granted,
                "granted_at": c.granted_at,
                "revoked_at": c.revoked_at,
            }
            for c in consents
        ],
        "requests": [
            {"id": r.pk, "type": r.type, "status": r.status, "created_at": r.created_at}
            for r in GdprRequest.objects.filter(user=user)
        ],
        "exported_at": timezone.now(),
    }


def create_export_request(user, store=None, request=None) -> GdprRequest:
    if GdprRequest.objects.filter(
        user=user, type=GdprRequestType.EXPORT, status=GdprRequestStatus.PENDING
    ).exists():
        raise ConflictError("A data export request is already pending.")
    gdpr_request = GdprRequest.objects.create(
        user=user,
        store=store,
        type=GdprRequestType.EXPORT,
        expires_at=timezone.now() + timedelta(days=settings.GDPR_EXPORT_EXPIRY_DAYS),
        **_client_meta(request),
    )
    logger.info("GDPR export request %s created for user %s", gdpr_request.pk, user.pk)
    return gdpr_request


def create_deletion_request(user, store=None, request=None) -> GdprRequest:
    if GdprRequest.objects.filter(
        user=user, type=GdprRequestType.DELETION, status__in=OPEN_DELETION_STATUSES
    ).exists():
        raise ConflictError("An account deletion request is already pending.")
    gdpr_request = GdprRequest.objects.create(
        user=user,
        store=store,
        type=GdprRequestType.DELETION,
        **_client_meta(request),
    )
    logger.info("GDPR deletion request %s created for user %s", gdpr_request.pk, user.pk)
    return gdpr_request


def delete_user_data(user, request=None):
    """
    Anonymize the user and their customer records, revoke consents and
    complete open deletion requests, all in one transaction.
    """
    from audit.services import log_event
    from customers.models import Address, Customer

    if user.deleted_at is not None:
        raise DomainError("This account has already been deleted.", code="ALREADY_DELETED")

    now = timezone.now()
    original_id = user.pk
    store = user.store
    with transaction.atomic():
        customers = Customer.objects.filter(user=user)
        Address.objects.filter(customer__in=customers).update(
            first_name="Deleted",
            last_name="User",
            company="",
            address1="Redacted",
            address2="",
            phone="",
        )
        for customer in customers:
            customer.email = f"deleted_customer_{customer.pk}@deleted.local"
            customer.first_name = "Deleted"
            customer.last_name = "User"
            customer.phone = ""
            customer.notes = ""
            customer.accepts_marketing = False
            customer.user = None
            customer.deleted_at = now
            customer.save()

        ConsentRecord.objects.filter(user=user, granted=True).update(granted=False, revoked_at=now)

        user.email = f"deleted_user_{original_id}@deleted.local"
        user.username = None
        user.name = "Deleted User"
        user.first_name = ""
        user.last_name = ""
        user.phone = ""
        user.is_active = False
        user.deleted_at = now
        user.set_unusable_password()
        user.save()

        GdprRequest.objects.filter(
            user=user, type=GdprRequestType.DELETION, status__in=OPEN_DELETION_STATUSES
        ).update(status=GdprRequestStatus.COMPLETED, processed_at=now)

        log_event(
            store=store,
            user=None,
            action="gdpr.user_deleted",
            entity="User",
            entity_id=original_id,
            request=request,
        )

    logger.info("User %s anonymized on request", original_id)
    return user


def record_consent(user, consent_type, granted, store=None, request=None) -> ConsentRecord:
    """Create or update the user's decision for consent_type."""
    now = timezone.now()
    defaults = {"granted": granted, **_client_meta(request)}
    if granted:
        defaults["granted_at"] = now
    else:
        defaults["revoked_at"] = now
    if store is not None:
        defaults["store"] = store
    record, _ = ConsentRecord.objects.update_or_create(
        user=user, consent_type=consent_type, defaults=defaults
    )
    return record


def get_consent_records(user, store=None):
    records = ConsentRecord.objects.filter(user=user)
    if store is not None:
        records = records.filter(store=store)
    return records


def get_user_requests(user, type=None):
    requests = GdprRequest.objects.filter(user=user)
    if type:
        requests = requests.filter(type=type)
    return requests


def update_request_status(gdpr_request, status, export_url=None, error_message=None) -> GdprRequest:
    gdpr_request.status = status
    if status in FINAL_STATUSES:
        gdpr_request.processed_at = timezone.now()
    if export_url is not None:
        gdpr_request.export_url = export_url
    if error_message is not None:
        gdpr_request.error_message = error_message
    gdpr_request.save()
    return gdpr_request
