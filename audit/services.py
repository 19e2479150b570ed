from .models import AuditLog

REDACT_KEYS = {"password", "token", "access", "refresh", "card", "cvv", "pin", "secret"}


def _sanitize(meta):
    out = {}
    for k, v in (meta or {}).items():
        if k.lower() in REDACT_KEYS:
            out[k] = "***"
        elif isinstance(v, dict):
            out[k] = _sanitize(v)
        else:
            out[k] = v
    return out


def client_ip(request):
    if request is None:
        return None
    forwarded = request.META.get("HTTP_X_FORWARDED_FOR")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.META.get("REMOTE_ADDR")


def log_event(*, store, user, action, entity, entity_id, changes=None, request=None):
    """Write an audit entry. `entity` is a model instance or a type name."""
    entity_type = entity if isinstance(entity, str) else entity.__class__.__name__
    return AuditLog.objects.create(
        store=store,
        user=user if user is not None and user.is_authenticated else None,
        action=action[:80],
        entity_type=entity_type[:120],
        entity_id=str(entity_id)[:120],
        changes=_sanitize(changes or {}),
        ip_address=client_ip(request),
        user_agent=(request.META.get("HTTP_USER_AGENT", "") if request else "")[:255],
    )
