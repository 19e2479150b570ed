"""Analytics endpoints. ?start_date=&end_date= (ISO); default is the last 30 days."""
from datetime import datetime, time

from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime
from rest_framework import serializers
from rest_framework.response import Response
from rest_framework.views import APIView

from common.exports import csv_response
from core.permissions import IsStoreStaff
from core.views import StoreScopedMixin

from .services import (
    TRUNCATE,
    default_date_range,
    export_sales_report,
    get_customer_metrics,
    get_dashboard,
    get_revenue_by_period,
    get_sales_metrics,
    get_top_products,
)


class AnalyticsQuerySerializer(serializers.Serializer):
    start_date = serializers.CharField(required=False)
    end_date = serializers.CharField(required=False)
    group_by = serializers.ChoiceField(choices=list(TRUNCATE), required=False, default="day")
    limit = serializers.IntegerField(required=False, min_value=1, max_value=100, default=10)

    def _parse(self, value, field):
        parsed = parse_datetime(value)
        if parsed is None:
            day = parse_date(value)
            if day is None:
                raise serializers.ValidationError({field: "Use an ISO date or datetime."})
            parsed = datetime.combine(day, time.max if field == "end_date" else time.min)
        if timezone.is_naive(parsed):
            parsed = timezone.make_aware(parsed)
        return parsed

    def validate(self, attrs):
        default_start, default_end = default_date_range()
        start = self._parse(attrs["start_date"], "start_date") if attrs.get("start_date") else default_start
        end = self._parse(attrs["end_date"], "end_date") if attrs.get("end_date") else default_end
        if start > end:
            raise serializers.ValidationError({"start_date": "Must be before end_date."})
        attrs["start"], attrs["end"] = start, end
        return attrs


class AnalyticsView(StoreScopedMixin, APIView):
    permission_classes = [IsStoreStaff]

    def get_params(self):
        serializer = AnalyticsQuerySerializer(data=self.request.query_params)
        serializer.is_valid(raise_exception=True)
        return self.scope.require_store(), serializer.validated_data


class DashboardView(AnalyticsView):
    """GET /api/analytics/dashboard/"""

    def get(self, request):
        store, params = self.get_params()
        return Response(get_dashboard(store, params["start"], params["end"]))


class RevenueView(AnalyticsView):
    """GET /api/analytics/revenue/?group_by=day|week|month"""

    def get(self, request):
        store, params = self.get_params()
        return Response(
            {
                "metrics": get_sales_metrics(store, params["start"], params["end"]),
                "revenue_data": get_revenue_by_period(store, params["start"], params["end"], params["group_by"]),
            }
        )


class TopProductsView(AnalyticsView):
    """GET /api/analytics/top-products/?limit="""

    def get(self, request):
        store, params = self.get_params()
        return Response(get_top_products(store, params["start"], params["end"], limit=params["limit"]))


class CustomerMetricsView(AnalyticsView):
    """GET /api/analytics/customers/"""

    def get(self, request):
        store, params = self.get_params()
        return Response(get_customer_metrics(store, params["start"], params["end"]))


class SalesReportExportView(AnalyticsView):
    """GET /api/analytics/export/ - CSV sales report."""

    def get(self, request):
        store, params = self.get_params()
        return csv_response(export_sales_report(store, params["start"], params["end"]), "sales-report")
