from django.contrib import admin

from .models import InventoryLog


@admin.register(InventoryLog)
class InventoryLogAdmin(admin.ModelAdmin):
    list_display = ["product", "variant", "previous_qty", "new_qty", "change_qty", "reason", "user", "created_at"]
    list_filter = ["reason", "store"]
    search_fields = ["product__name", "product__sku", "note"]
    raw_id_fields = ["product", "variant", "order", "user"]
