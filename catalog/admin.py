from django.contrib import admin

from .models import Brand, Category, Product, ProductAttribute, ProductAttributeValue, ProductVariant


class ProductVariantInline(admin.TabularInline):
    model = ProductVariant
    extra = 0
    fields = ["name", "sku", "price", "track_inventory", "inventory_qty", "low_stock_threshold", "is_default"]


class ProductAttributeValueInline(admin.TabularInline):
    model = ProductAttributeValue
    extra = 0
    fields = ["attribute", "value"]


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ["name", "store", "parent", "sort_order", "is_published"]
    list_filter = ["store", "is_published"]
    search_fields = ["name", "slug"]


@admin.register(Brand)
class BrandAdmin(admin.ModelAdmin):
    list_display = ["name", "store", "is_published"]
    list_filter = ["store", "is_published"]
    search_fields = ["name", "slug"]


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = [
        "name", "store", "sku", "price", "inventory_qty", "inventory_status",
        "is_published", "deleted_at",
    ]
    list_filter = ["store", "inventory_status", "is_published", "is_featured"]
    search_fields = ["name", "sku", "slug"]
    readonly_fields = ["inventory_status", "created_at", "updated_at"]
    inlines = [ProductVariantInline, ProductAttributeValueInline]

    fieldsets = (
        (None, {"fields": ("store", "name", "slug", "sku", "description", "category", "brand")}),
        ("Pricing", {"fields": ("price", "compare_at_price", "cost_price")}),
        (
            "Inventory",
            {"fields": ("track_inventory", "inventory_qty", "low_stock_threshold", "inventory_status")},
        ),
        ("Display", {"fields": ("images", "weight", "is_published", "is_featured")}),
        ("Timestamps", {"fields": ("created_at", "updated_at"), "classes": ("collapse",)}),
    )


@admin.register(ProductAttribute)
class ProductAttributeAdmin(admin.ModelAdmin):
    list_display = ["name", "store", "created_at"]
    list_filter = ["store"]
    search_fields = ["name"]
