from django.db.models import Q
from rest_framework import mixins, viewsets
from rest_framework.decorators import action

from core.permissions import IsStoreStaff
from core.views import StoreScopedMixin

from .models import Customer
from .serializers import CustomerSerializer


class CustomerViewSet(
    StoreScopedMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.UpdateModelMixin,
    viewsets.GenericViewSet,
):
    """
    Staff view of a store's customers. Customers are created at checkout,
    so there is no create endpoint. ?search= matches name and email.
    """

    serializer_class = CustomerSerializer
    permission_classes = [IsStoreStaff]
    filterset_fields = ["accepts_marketing"]

    def get_queryset(self):
        qs = self.scope.filter(Customer.objects.alive()).prefetch_related("addresses")
        search = self.request.query_params.get("search")
        if search:
            qs = qs.filter(
                Q(email__icontains=search)
                | Q(first_name__icontains=search)
                | Q(last_name__icontains=search)
            )
        return qs

    @action(detail=True, methods=["get"])
    def orders(self, request, pk=None):
        """GET /api/customers/{id}/orders/"""
        from orders.models import Order
        from orders.serializers import OrderListSerializer

        customer = self.get_object()
        queryset = Order.objects.alive().filter(customer=customer).order_by("-created_at")
        page = self.paginate_queryset(queryset)
        serializer = OrderListSerializer(page, many=True)
        return self.get_paginated_response(serializer.data)
