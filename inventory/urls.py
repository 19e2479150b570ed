from django.urls import path

from .views import InventoryHistoryView, InventoryListView, LowStockListView, StockAdjustView

urlpatterns = [
    path("inventory/", InventoryListView.as_view(), name="inventory-list"),
    path("inventory/low-stock/", LowStockListView.as_view(), name="inventory-low-stock"),
    path("inventory/adjust/", StockAdjustView.as_view(), name="inventory-adjust"),
    path("inventory/<int:product_id>/history/", InventoryHistoryView.as_view(), name="inventory-history"),
]
