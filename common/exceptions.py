"""
Error envelope and domain exceptions.

Every failed request renders as {"error": {"code", "message", "details"}}.
Domain rules raise DomainError subclasses from service functions; the DRF
EXCEPTION_HANDLER below turns them (and DRF's own exceptions) into the
envelope. Anything unexpected is logged and returned as a generic 500.
"""
import logging

from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler, set_rollback

logger = logging.getLogger(__name__)

STATUS_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    402: "PAYMENT_REQUIRED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    406: "NOT_ACCEPTABLE",
    409: "CONFLICT",
    415: "UNSUPPORTED_MEDIA_TYPE",
    429: "RATE_LIMITED",
}


class DomainError(exceptions.APIException):
    """Business rule violation with a stable machine-readable code."""

    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "BAD_REQUEST"
    default_detail = "The request could not be processed."

    def __init__(self, message=None, details=None, code=None):
        super().__init__(detail=message or self.default_detail)
        if code:
            self.error_code = code
        self.details = details


class ConflictError(DomainError):
    status_code = status.HTTP_409_CONFLICT
    error_code = "CONFLICT"
    default_detail = "The resource is in a conflicting state."


class PaymentRequiredError(DomainError):
    status_code = status.HTTP_402_PAYMENT_REQUIRED
    error_code = "PAYMENT_REQUIRED"
    default_detail = "This action requires an upgraded subscription."


def error_payload(code, message, details=None):
    return {"error": {"code": code, "message": message, "details": details}}


def envelope_exception_handler(exc, context):
    response = exception_handler(exc, context)

    if response is None:
        view = context.get("view")
        logger.error(
            "Unhandled exception in %s",
            view.__class__.__name__ if view else "view",
            exc_info=(type(exc), exc, exc.__traceback__),
        )
        set_rollback()
        return Response(
            error_payload("INTERNAL_ERROR", "An unexpected error occurred."),
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    if isinstance(exc, (exceptions.NotAuthenticated, exceptions.AuthenticationFailed)):
        response.status_code = status.HTTP_401_UNAUTHORIZED

    if isinstance(exc, DomainError):
        payload = error_payload(exc.error_code, str(exc.detail), exc.details)
    elif isinstance(exc, exceptions.ValidationError):
        payload = error_payload("VALIDATION_ERROR", "Invalid request data.", response.data)
    else:
        detail = response.data.get("detail") if isinstance(response.data, dict) else None
        payload = error_payload(
            STATUS_CODES.get(response.status_code, "ERROR"),
            str(detail) if detail else "Request failed.",
        )

    response.data = payload
    return response
