"""
URL configuration for the storefront API.
"""
from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView

from common.views import health_view

urlpatterns = [
    path("admin/", admin.site.urls),
    path("accounts/", include("allauth.urls")),
    path("api/health/", health_view, name="health"),
    path("api/schema/", SpectacularAPIView.as_view(), name="schema"),
    path("api/docs/", SpectacularSwaggerView.as_view(url_name="schema"), name="swagger-ui"),
    path("api/", include("accounts.urls")),
    path("api/", include("stores.urls")),
    path("api/", include("catalog.urls")),
    path("api/", include("customers.urls")),
    path("api/", include("inventory.urls")),
    path("api/", include("orders.urls")),
    path("api/", include("checkout.urls")),
    path("api/", include("analytics.urls")),
    path("api/", include("billing.urls")),
    path("api/", include("gdpr.urls")),
    path("api/", include("notifications.urls")),
    path("api/", include("audit.urls")),
]
