from django.urls import path

from .views import CustomerMetricsView, DashboardView, RevenueView, SalesReportExportView, TopProductsView

urlpatterns = [
    path("analytics/dashboard/", DashboardView.as_view(), name="analytics-dashboard"),
    path("analytics/revenue/", RevenueView.as_view(), name="analytics-revenue"),
    path("analytics/top-products/", TopProductsView.as_view(), name="analytics-top-products"),
    path("analytics/customers/", CustomerMetricsView.as_view(), name="analytics-customers"),
    path("analytics/export/", SalesReportExportView.as_view(), name="analytics-export"),
]
