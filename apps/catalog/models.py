from decimal import Decimal

from django.conf import settings
from django.db import models
from django.utils import timezone

from apps.sync.models import SyncableModel


class Category(SyncableModel):
    name = models.CharField(max_length=150)
    description = models.TextField(blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]
        verbose_name_plural = "Categories"

    def __str__(self) -> str:
        return self.name


class Product(SyncableModel):
    store = models.ForeignKey("stores.Store", on_delete=models.PROTECT, related_name="products")
    category = models.ForeignKey(Category, on_delete=models.PROTECT, related_name="products")
    barcode = models.CharField(max_length=64, blank=True, null=True, db_index=True)
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    purchase_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0"))
    sales_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0"))
    # Fraction, e.g. 0.18 for 18%.
    tax_rate = models.DecimalField(max_digits=5, decimal_places=4, default=Decimal("0"))
    stock_quantity = models.IntegerField(default=0)
    minimum_stock_level = models.IntegerField(default=0)
    image_url = models.CharField(max_length=500, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name", "id"]

    def __str__(self) -> str:
        return self.name

    @property
    def is_low_stock(self) -> bool:
        return self.stock_quantity <= self.minimum_stock_level


class Promotion(SyncableModel):
    class DiscountType(models.TextChoices):
        PERCENTAGE = "Percentage", "Percentage"
        FIXED_AMOUNT = "FixedAmount", "Fixed amount"

    store = models.ForeignKey("stores.Store", on_delete=models.PROTECT, related_name="promotions")
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name="promotions")
    name = models.CharField(max_length=150)
    description = models.TextField(blank=True)
    start_date = models.DateTimeField()
    end_date = models.DateTimeField()
    discount_type = models.CharField(max_length=20, choices=DiscountType.choices, default=DiscountType.PERCENTAGE)
    discount_value = models.DecimalField(max_digits=12, decimal_places=2)
    minimum_purchase_amount = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-start_date", "id"]

    def __str__(self) -> str:
        return self.name

    def is_running(self, at=None) -> bool:
        at = at or timezone.now()
        return self.is_active and self.start_date <= at <= self.end_date


class ProductTransaction(models.Model):
    """Append-only audit row for every stock or price movement of a product."""

    class Type(models.TextChoices):
        STOCK_IN = "StockIn", "Stock in"
        STOCK_OUT = "StockOut", "Stock out"
        STOCK_RETURN = "StockReturn", "Stock return"
        SALE_DEDUCTION = "SaleDeduction", "Sale deduction"
        PRODUCT_UPDATED = "ProductUpdated", "Product updated"
        PRODUCT_CREATED = "ProductCreated", "Product created"
        PRICE_CHANGE = "PriceChange", "Price change"

    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name="transactions")
    store = models.ForeignKey("stores.Store", on_delete=models.PROTECT, related_name="product_transactions")
    transaction_type = models.CharField(max_length=20, choices=Type.choices, db_index=True)
    quantity_before = models.IntegerField(null=True, blank=True)
    quantity_after = models.IntegerField(null=True, blank=True)
    quantity_change = models.IntegerField(null=True, blank=True)
    price_before = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    price_after = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    cost_before = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    cost_after = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    tax_rate_before = models.DecimalField(max_digits=5, decimal_places=4, null=True, blank=True)
    tax_rate_after = models.DecimalField(max_digits=5, decimal_places=4, null=True, blank=True)
    reference_id = models.IntegerField(null=True, blank=True)
    reference_type = models.CharField(max_length=30, blank=True)
    notes = models.TextField(blank=True)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="product_transactions",
    )
    transaction_date = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        ordering = ["-transaction_date", "-id"]

    def __str__(self) -> str:
        return f"{self.transaction_type} #{self.product_id}"
