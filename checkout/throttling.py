from rest_framework.throttling import UserRateThrottle


class CheckoutThrottle(UserRateThrottle):
    """Order placement rate per user (DEFAULT_THROTTLE_RATES["checkout"])."""

    scope = "checkout"
