"""
Order endpoints for the store dashboard and for customers.

Dashboard (staff):   /api/orders/ list, detail, status, export, invoice
Customer (own only): /api/my-orders/
"""
from django.http import HttpResponse
from django.utils import timezone
from rest_framework import permissions, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound
from rest_framework.response import Response

from common.exports import csv_response
from core.permissions import IsStoreAdmin, IsStoreStaff
from core.views import StoreScopedMixin

from .invoice import render_invoice_pdf
from .models import Order
from .serializers import (
    CustomerOrderSerializer,
    OrderDetailSerializer,
    OrderListSerializer,
    OrderStatusUpdateSerializer,
)
from .services import export_orders_csv, filter_orders, get_invoice_data, update_order_status


class OrderViewSet(StoreScopedMixin, viewsets.ReadOnlyModelViewSet):
    """
    GET /api/orders/?status=&search=&date_from=&date_to=&sort_by=&sort_order=&page=&per_page=
    GET /api/orders/{id}/
    """

    permission_classes = [IsStoreStaff]
    lookup_value_regex = r"\d+"

    def get_queryset(self):
        qs = self.scope.filter(Order.objects.alive()).select_related(
            "store", "customer", "user", "shipping_address", "billing_address"
        )
        if self.action == "retrieve" or self.action == "invoice":
            qs = qs.prefetch_related("items")
        return qs

    def get_serializer_class(self):
        if self.action == "list":
            return OrderListSerializer
        return OrderDetailSerializer

    def filter_queryset(self, queryset):
        queryset = super().filter_queryset(queryset)
        if self.action in ("list", "export"):
            queryset = filter_orders(queryset, self.request.query_params)
        return queryset

    @action(detail=True, methods=["patch", "post"], url_path="status")
    def update_status(self, request, pk=None):
        """PATCH /api/orders/{id}/status/ {"status", "tracking_number", "confirm", ...}"""
        order = self.get_object()
        serializer = OrderStatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        order = update_order_status(
            order,
            data["status"],
            tracking_number=data.get("tracking_number"),
            tracking_url=data.get("tracking_url"),
            note=data.get("note"),
            confirm=data["confirm"],
            user=request.user,
            request=request,
        )
        return Response(OrderDetailSerializer(order).data)

    @action(detail=False, methods=["get"])
    def export(self, request):
        """GET /api/orders/export/ - CSV with the list filters applied."""
        queryset = self.filter_queryset(self.get_queryset())
        return csv_response(export_orders_csv(queryset), "orders")

    @action(detail=True, methods=["get"], permission_classes=[IsStoreAdmin])
    def invoice(self, request, pk=None):
        """GET /api/orders/{id}/invoice/ - PDF invoice (store and super admins)."""
        order = self.get_queryset().filter(pk=pk).first()
        if order is None:
            raise NotFound("Order not found or access denied")
        pdf = render_invoice_pdf(get_invoice_data(order))
        filename = f"invoice-{order.order_number}-{timezone.now().date().isoformat()}.pdf"
        response = HttpResponse(pdf, content_type="application/pdf")
        response["Content-Disposition"] = f'attachment; filename="{filename}"'
        response["Content-Length"] = str(len(pdf))
        response["Cache-Control"] = "private, max-age=0, must-revalidate"
        return response


class MyOrderViewSet(viewsets.ReadOnlyModelViewSet):
    """GET /api/my-orders/[{id}/] - orders placed by the signed-in user."""

    serializer_class = CustomerOrderSerializer
    permission_classes = [permissions.IsAuthenticated]
    lookup_value_regex = r"\d+"

    def get_queryset(self):
        return (
            Order.objects.alive()
            .for_customer(self.request.user)
            .select_related("customer", "user", "shipping_address", "billing_address")
            .prefetch_related("items")
            .order_by("-created_at")
        )
