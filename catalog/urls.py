"""URL configuration for catalog app: dashboard resources and the public storefront."""
from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import (
    BrandViewSet,
    CategoryViewSet,
    ProductAttributeViewSet,
    ProductVariantViewSet,
    ProductViewSet,
    StorefrontCategoryTreeView,
    StorefrontProductViewSet,
)

router = DefaultRouter()
router.register(r"categories", CategoryViewSet, basename="category")
router.register(r"brands", BrandViewSet, basename="brand")
router.register(r"products", ProductViewSet, basename="product")
router.register(r"attributes", ProductAttributeViewSet, basename="attribute")

variant_list = ProductVariantViewSet.as_view({"get": "list", "post": "create"})
variant_detail = ProductVariantViewSet.as_view(
    {"get": "retrieve", "put": "update", "patch": "partial_update", "delete": "destroy"}
)
storefront_product_list = StorefrontProductViewSet.as_view({"get": "list"})
storefront_product_detail = StorefrontProductViewSet.as_view({"get": "retrieve"})

urlpatterns = [
    path("products/<int:product_pk>/variants/", variant_list, name="product-variant-list"),
    path("products/<int:product_pk>/variants/<int:pk>/", variant_detail, name="product-variant-detail"),
    path("storefront/<slug:store_slug>/products/", storefront_product_list, name="storefront-product-list"),
    path(
        "storefront/<slug:store_slug>/products/<slug:slug>/",
        storefront_product_detail,
        name="storefront-product-detail",
    ),
    path(
        "storefront/<slug:store_slug>/categories/",
        StorefrontCategoryTreeView.as_view(),
        name="storefront-category-tree",
    ),
    path("", include(router.urls)),
]
