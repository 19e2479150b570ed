"""Views for catalog management (dashboard) and the public storefront."""
import django_filters
from django.db.models import Count, Q
from django.shortcuts import get_object_or_404
from django.utils.functional import cached_property
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from common.exports import csv_response
from common.utils import unique_slug
from core.permissions import IsStoreStaff
from core.views import StoreScopedMixin, StoreScopedModelViewSet
from stores.models import Store

from .models import Brand, Category, Product, ProductAttribute, ProductVariant
from .serializers import (
    AttributeAssignmentSerializer,
    AttributeProductSerializer,
    BrandSerializer,
    CategoryMoveSerializer,
    CategorySerializer,
    ProductAttributeSerializer,
    ProductImportSerializer,
    ProductSerializer,
    ProductVariantSerializer,
    StorefrontProductSerializer,
)
from .services import (
    assign_attribute,
    build_category_tree,
    category_breadcrumb,
    create_product,
    delete_attribute,
    delete_category,
    ensure_values_removable,
    export_products_csv,
    import_products_csv,
    move_category,
    prepare_product_fields,
    products_with_attribute,
    remove_attribute,
)


class ProductFilter(django_filters.FilterSet):
    search = django_filters.CharFilter(method="filter_search")
    min_price = django_filters.NumberFilter(field_name="price", lookup_expr="gte")
    max_price = django_filters.NumberFilter(field_name="price", lookup_expr="lte")

    class Meta:
        model = Product
        fields = ["category", "brand", "is_published", "is_featured", "inventory_status"]

    def filter_search(self, queryset, name, value):
        return queryset.filter(
            Q(name__icontains=value) | Q(sku__icontains=value) | Q(description__icontains=value)
        )


class ProductAttributeFilter(django_filters.FilterSet):
    """?search= on the name; ?sort_by=name|created_at|updated_at, prefix "-" for descending."""

    search = django_filters.CharFilter(field_name="name", lookup_expr="icontains")
    sort_by = django_filters.OrderingFilter(fields=("name", "created_at", "updated_at"))

    class Meta:
        model = ProductAttribute
        fields = []


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------


class CategoryViewSet(StoreScopedModelViewSet):
    queryset = Category.objects.select_related("parent")
    serializer_class = CategorySerializer
    filterset_fields = ["parent", "is_published"]

    def perform_create(self, serializer):
        store = self.scope.require_store()
        slug = serializer.validated_data.get("slug") or unique_slug(
            Category.objects.for_store(store), serializer.validated_data["name"]
        )
        serializer.save(store=store, slug=slug)

    def perform_update(self, serializer):
        if "parent" in serializer.validated_data:
            move_category(serializer.instance, serializer.validated_data["parent"])
        serializer.save()

    def perform_destroy(self, instance):
        delete_category(instance)

    @action(detail=False, methods=["get"])
    def tree(self, request):
        """GET /api/categories/tree/ - nested categories."""
        return Response(build_category_tree(self.get_queryset()))

    @action(detail=True, methods=["get"])
    def breadcrumb(self, request, pk=None):
        trail = category_breadcrumb(self.get_object())
        return Response([{"id": c.pk, "name": c.name, "slug": c.slug} for c in trail])

    @action(detail=True, methods=["post"])
    def move(self, request, pk=None):
        """POST /api/categories/{id}/move/ {"parent": id|null}"""
        category = self.get_object()
        serializer = CategoryMoveSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        parent = serializer.validated_data["parent"]
        if parent is not None and parent.store_id != category.store_id:
            raise NotFound("New parent category not found.")
        move_category(category, parent)
        return Response(self.get_serializer(category).data)


class BrandViewSet(StoreScopedModelViewSet):
    queryset = Brand.objects.all()
    serializer_class = BrandSerializer
    filterset_fields = ["is_published"]

    def perform_create(self, serializer):
        store = self.scope.require_store()
        slug = serializer.validated_data.get("slug") or unique_slug(
            Brand.objects.for_store(store), serializer.validated_data["name"]
        )
        serializer.save(store=store, slug=slug)


class ProductViewSet(StoreScopedModelViewSet):
    """Products; creation counts against the plan's product limit."""

    queryset = Product.objects.select_related("category", "brand").prefetch_related(
        "variants", "attribute_values__attribute"
    )
    serializer_class = ProductSerializer
    filterset_class = ProductFilter
    parser_classes = [JSONParser, MultiPartParser, FormParser]

    def perform_create(self, serializer):
        store = self.scope.require_store()
        serializer.instance = create_product(store, **serializer.validated_data)

    def perform_update(self, serializer):
        instance = serializer.instance
        data = prepare_product_fields(instance.store, dict(serializer.validated_data), instance=instance)
        serializer.save(**data)

    @action(detail=False, methods=["get"])
    def export(self, request):
        """GET /api/products/export/ - CSV of the filtered products."""
        queryset = self.filter_queryset(self.get_queryset())
        return csv_response(export_products_csv(queryset), "products")

    @action(detail=False, methods=["post"], url_path="import")
    def import_csv(self, request):
        """POST /api/products/import/ - create products from CSV (file or text)."""
        serializer = ProductImportSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = import_products_csv(self.scope.require_store(), serializer.get_content())
        return Response(result, status=status.HTTP_201_CREATED if result["created"] else status.HTTP_200_OK)


class ProductAttributeViewSet(StoreScopedModelViewSet):
    """
    GET/POST /api/attributes/?search=&sort_by=&page=&per_page=
    GET/PUT/PATCH/DELETE /api/attributes/{id}/
    GET/POST/DELETE /api/attributes/{id}/products/
    """

    queryset = ProductAttribute.objects.annotate(
        product_count=Count("product_values", filter=Q(product_values__product__deleted_at__isnull=True))
    )
    serializer_class = ProductAttributeSerializer
    filterset_class = ProductAttributeFilter

    def perform_update(self, serializer):
        if "values" in serializer.validated_data:
            ensure_values_removable(serializer.instance, serializer.validated_data["values"])
        serializer.save()

    def perform_destroy(self, instance):
        delete_attribute(instance)

    def _product(self, product_id):
        return self.scope.get(Product.objects.alive(), pk=product_id, message="Product not found.")

    @action(detail=True, methods=["get", "post", "delete"])
    def products(self, request, pk=None):
        """
        GET lists products carrying the attribute (?value= narrows to one value).
        POST {"product", "value"} sets the product's value; DELETE ?product= removes it.
        """
        attribute = self.get_object()
        if request.method == "GET":
            value = request.query_params.get("value")
            queryset = self.scope.filter(products_with_attribute(attribute, value))
            page = self.paginate_queryset(queryset)
            return self.get_paginated_response(AttributeProductSerializer(page, many=True).data)

        if request.method == "DELETE":
            product_id = request.query_params.get("product") or request.data.get("product")
            if not str(product_id or "").isdigit():
                raise NotFound("Product not found.")
            remove_attribute(self._product(product_id), attribute)
            return Response(status=status.HTTP_204_NO_CONTENT)

        serializer = AttributeAssignmentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        product = self._product(serializer.validated_data["product"])
        assignment, created = assign_attribute(product, attribute, serializer.validated_data["value"])
        data = {"product": product.pk, "attribute": attribute.pk, "value": assignment.value}
        return Response(data, status=status.HTTP_201_CREATED if created else status.HTTP_200_OK)


class ProductVariantViewSet(StoreScopedMixin, viewsets.ModelViewSet):
    """Variants nested under /api/products/{product_pk}/variants/."""

    serializer_class = ProductVariantSerializer
    permission_classes = [IsStoreStaff]

    @cached_property
    def product(self):
        return self.scope.get(
            Product.objects.alive(), pk=self.kwargs["product_pk"], message="Product not found."
        )

    def get_queryset(self):
        return self.scope.filter(ProductVariant.objects.filter(product=self.product))

    def perform_create(self, serializer):
        serializer.save(product=self.product)


# ---------------------------------------------------------------------------
# Public storefront
# ---------------------------------------------------------------------------


class StorefrontMixin:
    permission_classes = [AllowAny]
    authentication_classes = []

    @cached_property
    def store(self):
        return get_object_or_404(
            Store.objects.alive(), slug=self.kwargs["store_slug"], is_active=True
        )


class StorefrontProductViewSet(StorefrontMixin, viewsets.ReadOnlyModelViewSet):
    """GET /api/storefront/{store_slug}/products/[{slug}/] - published products."""

    serializer_class = StorefrontProductSerializer
    filterset_class = ProductFilter
    lookup_field = "slug"

    def get_queryset(self):
        return (
            Product.objects.for_store(self.store)
            .alive()
            .filter(is_published=True)
            .select_related("category", "brand")
            .prefetch_related("variants", "attribute_values__attribute")
            .order_by("-is_featured", "-created_at")
        )


class StorefrontCategoryTreeView(StorefrontMixin, APIView):
    """GET /api/storefront/{store_slug}/categories/ - published category tree."""

    def get(self, request, store_slug):
        categories = Category.objects.for_store(self.store).filter(is_published=True)
        return Response(build_category_tree(categories))
