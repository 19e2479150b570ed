from django.contrib import admin

from .models import Address, Customer


class AddressInline(admin.TabularInline):
    model = Address
    extra = 0
    fields = ["first_name", "last_name", "address1", "city", "state", "postal_code", "country"]


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ["email", "store", "first_name", "last_name", "total_orders", "total_spent", "last_order_at"]
    list_filter = ["store", "accepts_marketing"]
    search_fields = ["email", "first_name", "last_name"]
    readonly_fields = ["total_orders", "total_spent", "last_order_at", "created_at", "updated_at"]
    inlines = [AddressInline]
