from django.contrib import admin

from .models import ConsentRecord, GdprRequest


@admin.register(GdprRequest)
class GdprRequestAdmin(admin.ModelAdmin):
    list_display = ["user", "type", "status", "created_at", "processed_at", "expires_at"]
    list_filter = ["type", "status"]
    search_fields = ["user__email"]
    readonly_fields = ["ip_address", "user_agent", "created_at", "updated_at"]


@admin.register(ConsentRecord)
class ConsentRecordAdmin(admin.ModelAdmin):
    list_display = ["user", "consent_type", "granted", "granted_at", "revoked_at"]
    list_filter = ["consent_type", "granted"]
    search_fields = ["user__email"]
