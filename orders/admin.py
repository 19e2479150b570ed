from django.contrib import admin

from .models import Order, OrderItem


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    fields = ["product_name", "variant_name", "sku", "unit_price", "quantity", "total_amount"]
    readonly_fields = fields


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = [
        "order_number", "store", "customer", "status", "payment_status",
        "shipping_status", "total_amount", "created_at",
    ]
    list_filter = ["store", "status", "payment_status", "shipping_status"]
    search_fields = ["order_number", "customer__email", "customer__last_name"]
    readonly_fields = [
        "subtotal", "tax_amount", "shipping_amount", "discount_amount", "total_amount",
        "inventory_deducted", "fulfilled_at", "canceled_at", "created_at", "updated_at",
    ]
    inlines = [OrderItemInline]
