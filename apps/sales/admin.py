from django.contrib import admin

from .models import Payment, Sale, SaleItem


class SaleItemInline(admin.TabularInline):
    model = SaleItem
    extra = 0
    fields = ("product", "quantity", "unit_price", "discount_amount", "tax_amount", "line_total")
    readonly_fields = fields


class PaymentInline(admin.TabularInline):
    model = Payment
    extra = 0
    fields = ("amount", "payment_method", "reference_number", "status", "payment_date")


@admin.register(Sale)
class SaleAdmin(admin.ModelAdmin):
    list_display = ("sale_number", "store", "user", "sale_date", "grand_total", "status", "sync_status")
    list_filter = ("status", "store", "sync_status")
    search_fields = ("sale_number", "device_id", "sync_id")
    date_hierarchy = "sale_date"
    inlines = [SaleItemInline, PaymentInline]


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ("sale", "store", "amount", "payment_method", "status", "payment_date")
    list_filter = ("payment_method", "status", "store")
    search_fields = ("sale__sale_number", "reference_number")
