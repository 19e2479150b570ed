from django.urls import path

from .views import CompleteCheckoutView, ShippingOptionsView, ValidateCartView

urlpatterns = [
    path("checkout/validate/", ValidateCartView.as_view(), name="checkout-validate"),
    path("checkout/shipping/", ShippingOptionsView.as_view(), name="checkout-shipping"),
    path("checkout/complete/", CompleteCheckoutView.as_view(), name="checkout-complete"),
]
