from django.db.models import Q
from rest_framework import generics
from rest_framework.response import Response
from rest_framework.views import APIView

from audit.services import log_event
from catalog.models import Product
from core.permissions import IsStoreStaff
from core.views import StoreScopedMixin

from .serializers import InventoryItemSerializer, InventoryLogSerializer, StockAdjustmentSerializer
from .services import adjust_stock, get_inventory_history, low_stock_products


class InventoryListView(StoreScopedMixin, generics.ListAPIView):
    """
    GET /api/inventory/ - stock levels.
    ?search= (name/SKU), ?low_stock=true, ?status=, ?category=
    """

    serializer_class = InventoryItemSerializer
    permission_classes = [IsStoreStaff]

    def get_queryset(self):
        qs = self.scope.filter(Product.objects.alive()).select_related("category")
        params = self.request.query_params
        search = params.get("search")
        if search:
            qs = qs.filter(Q(name__icontains=search) | Q(sku__icontains=search))
        if params.get("low_stock") in ("1", "true"):
            qs = low_stock_products(qs)
        if params.get("status"):
            qs = qs.filter(inventory_status=params["status"])
        if params.get("category"):
            qs = qs.filter(category_id=params["category"])
        return qs.order_by("inventory_qty", "name")


class LowStockListView(InventoryListView):
    """GET /api/inventory/low-stock/"""

    def get_queryset(self):
        return low_stock_products(self.scope.filter(Product.objects.alive())).order_by("inventory_qty")


class StockAdjustView(StoreScopedMixin, APIView):
    """POST /api/inventory/adjust/ - ADD / REMOVE / SET stock with a reason."""

    permission_classes = [IsStoreStaff]

    def post(self, request):
        serializer = StockAdjustmentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        product = self.scope.get(Product.objects.alive(), pk=data["product"], message="Product not found.")
        target = adjust_stock(
            product.store_id,
            product.pk,
            data["quantity"],
            data["type"],
            data["reason"],
            note=data["note"],
            user=request.user,
            variant_id=data.get("variant"),
        )
        log_event(
            store=product.store, user=request.user, action="inventory.adjusted",
            entity=target, entity_id=target.pk,
            changes={"type": data["type"], "quantity": data["quantity"], "reason": data["reason"],
                     "new_qty": target.inventory_qty},
            request=request,
        )
        product.refresh_from_db()
        return Response(InventoryItemSerializer(product).data)


class InventoryHistoryView(StoreScopedMixin, APIView):
    """GET /api/inventory/{product_id}/history/ - latest movements."""

    permission_classes = [IsStoreStaff]

    def get(self, request, product_id):
        product = self.scope.get(Product.objects.all(), pk=product_id, message="Product not found.")
        logs = get_inventory_history(product.store_id, product.pk)
        return Response(InventoryLogSerializer(logs, many=True).data)
