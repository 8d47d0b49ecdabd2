from django.contrib import admin

from .models import Store


@admin.register(Store)
class StoreAdmin(admin.ModelAdmin):
    list_display = ("name", "phone", "email", "is_active", "sync_status", "updated_at")
    search_fields = ("name", "tax_number", "sync_id")
    list_filter = ("is_active", "sync_status")
