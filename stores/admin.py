from django.contrib import admin

from .models import Store


@admin.register(Store)
class StoreAdmin(admin.ModelAdmin):
    list_display = [
        "name", "slug", "subscription_plan", "subscription_status",
        "is_active", "deleted_at", "created_at",
    ]
    list_filter = ["is_active", "subscription_plan", "subscription_status"]
    search_fields = ["name", "slug", "email"]
    prepopulated_fields = {"slug": ("name",)}
