from django.contrib import admin

from .models import SyncBatch, SyncLog


class SyncLogInline(admin.TabularInline):
    model = SyncLog
    extra = 0
    fields = ("entity_name", "entity_id", "operation", "sync_status", "sync_date", "retry_count")
    readonly_fields = fields
    can_delete = False


@admin.register(SyncBatch)
class SyncBatchAdmin(admin.ModelAdmin):
    list_display = ("id", "store", "user", "device_id", "status", "start_date", "end_date", "processed_records", "failed_records")
    list_filter = ("status", "store")
    search_fields = ("device_id", "user__username")
    inlines = [SyncLogInline]


@admin.register(SyncLog)
class SyncLogAdmin(admin.ModelAdmin):
    list_display = ("id", "entity_name", "entity_id", "operation", "sync_status", "store", "operation_date", "retry_count")
    list_filter = ("sync_status", "operation", "entity_name")
    search_fields = ("entity_id", "device_id")

    def has_delete_permission(self, request, obj=None):
        return False
