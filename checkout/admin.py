from django.contrib import admin

from .models import Coupon


@admin.register(Coupon)
class CouponAdmin(admin.ModelAdmin):
    list_display = ["code", "store", "discount_type", "value", "used_count", "max_uses", "is_active", "ends_at"]
    list_filter = ["store", "discount_type", "is_active"]
    search_fields = ["code"]
    readonly_fields = ["used_count"]
