"""URL configuration for orders app."""
from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import MyOrderViewSet, OrderViewSet

router = DefaultRouter()
router.register(r"orders", OrderViewSet, basename="order")
router.register(r"my-orders", MyOrderViewSet, basename="my-order")

urlpatterns = [
    path("", include(router.urls)),
]
