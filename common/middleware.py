"""
Custom middleware for the storefront API.
"""
import time
import uuid

from .log import reset_request_id, set_request_id


class RequestIDMiddleware:
    """
    Adds/propagates a request id for tracing.
    Accessible as request.request_id, in log records and in the X-Request-ID header.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        rid = request.META.get("HTTP_X_REQUEST_ID") or str(uuid.uuid4())
        request.request_id = rid
        token = set_request_id(rid)
        try:
            response = self.get_response(request)
        finally:
            reset_request_id(token)
        response["X-Request-ID"] = rid
        return response


class TimingMiddleware:
    """
    Adds X-Response-Time-ms for quick perf inspection.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        t0 = time.perf_counter()
        response = self.get_response(request)
        dt = int((time.perf_counter() - t0) * 1000)
        response["X-Response-Time-ms"] = str(dt)
        return response
