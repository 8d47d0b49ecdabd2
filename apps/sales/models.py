from decimal import Decimal

from django.conf import settings
from django.db import models
from django.utils import timezone

from apps.sync.models import SyncableModel


class Sale(SyncableModel):
    class Status(models.TextChoices):
        DRAFT = "Draft", "Draft"
        COMPLETED = "Completed", "Completed"
        CANCELED = "Canceled", "Canceled"
        PARTIALLY_PAID = "Partially Paid", "Partially paid"
        FULLY_PAID = "Fully Paid", "Fully paid"

    store = models.ForeignKey("stores.Store", on_delete=models.PROTECT, related_name="sales")
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="sales")
    sale_number = models.CharField(max_length=40, blank=True, db_index=True)
    sale_date = models.DateTimeField(default=timezone.now, db_index=True)
    sub_total = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0"))
    discount_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0"))
    tax_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0"))
    grand_total = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0"))
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.COMPLETED, db_index=True)
    notes = models.TextField(blank=True)
    device_id = models.CharField(max_length=120, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-sale_date", "-id"]

    def __str__(self) -> str:
        return self.sale_number or f"Sale #{self.pk}"

    @property
    def paid_amount(self) -> Decimal:
        return sum((p.amount for p in self.payments.all()), Decimal("0"))


class SaleItem(SyncableModel):
    sale = models.ForeignKey(Sale, on_delete=models.CASCADE, related_name="items")
    product = models.ForeignKey("catalog.Product", on_delete=models.PROTECT, related_name="sale_items")
    store = models.ForeignKey("stores.Store", on_delete=models.PROTECT, related_name="sale_items")
    quantity = models.IntegerField(default=1)
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    discount_rate = models.DecimalField(max_digits=5, decimal_places=4, default=Decimal("0"))
    discount_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0"))
    tax_rate = models.DecimalField(max_digits=5, decimal_places=4, default=Decimal("0"))
    tax_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0"))
    line_total = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0"))
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["id"]

    def __str__(self) -> str:
        return f"{self.product_id} x {self.quantity}"


class Payment(SyncableModel):
    sale = models.ForeignKey(Sale, on_delete=models.CASCADE, related_name="payments")
    store = models.ForeignKey("stores.Store", on_delete=models.PROTECT, related_name="payments")
    amount = models.DecimalField(max_digits=14, decimal_places=2)
    payment_method = models.CharField(max_length=30, default="Cash")
    reference_number = models.CharField(max_length=100, blank=True)
    payment_date = models.DateTimeField(default=timezone.now)
    status = models.CharField(max_length=20, default="Approved")
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-payment_date", "-id"]

    def __str__(self) -> str:
        return f"{self.payment_method} {self.amount}"
