from django.contrib import admin

from .models import Category, Product, ProductTransaction, Promotion


class ProductInline(admin.TabularInline):
    model = Product
    extra = 0
    fields = ("name", "store", "sales_price", "stock_quantity", "is_active")
    readonly_fields = ("name", "store", "sales_price", "stock_quantity", "is_active")


class ProductTransactionInline(admin.TabularInline):
    model = ProductTransaction
    extra = 0
    fields = ("transaction_type", "quantity_before", "quantity_after", "price_before", "price_after", "user", "transaction_date")
    readonly_fields = fields
    can_delete = False


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ("name", "is_active", "sync_status", "updated_at")
    list_editable = ("is_active",)
    search_fields = ("name",)
    list_filter = ("is_active", "sync_status")
    inlines = [ProductInline]


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = (
        "name",
        "store",
        "category",
        "barcode",
        "purchase_price",
        "sales_price",
        "stock_quantity",
        "minimum_stock_level",
        "is_active",
        "sync_status",
    )
    list_editable = ("purchase_price", "sales_price")
    list_filter = ("store", "category", "is_active", "sync_status")
    search_fields = ("name", "barcode", "sync_id")
    autocomplete_fields = ("category",)
    inlines = [ProductTransactionInline]


@admin.register(Promotion)
class PromotionAdmin(admin.ModelAdmin):
    list_display = ("name", "store", "product", "discount_type", "discount_value", "start_date", "end_date", "is_active")
    list_editable = ("is_active",)
    list_filter = ("store", "discount_type", "is_active")
    search_fields = ("name", "product__name")


@admin.register(ProductTransaction)
class ProductTransactionAdmin(admin.ModelAdmin):
    list_display = ("product", "store", "transaction_type", "quantity_change", "price_after", "user", "transaction_date")
    list_filter = ("transaction_type", "store")
    search_fields = ("product__name", "notes")
