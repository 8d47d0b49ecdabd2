import uuid
from decimal import Decimal

import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models

SYNC_STATUS_CHOICES = [("NotSynced", "Not synced"), ("Syncing", "Syncing"), ("Synced", "Synced"), ("Failed", "Failed")]


def _sync_fields():
    return [
        ("sync_id", models.UUIDField(db_index=True, default=uuid.uuid4, editable=False, unique=True)),
        ("sync_status", models.CharField(choices=SYNC_STATUS_CHOICES, db_index=True, default="NotSynced", max_length=20)),
    ]


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("stores", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Category",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                *_sync_fields(),
                ("name", models.CharField(max_length=150)),
                ("description", models.TextField(blank=True)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={"ordering": ["name"], "verbose_name_plural": "Categories"},
        ),
        migrations.CreateModel(
            name="Product",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                *_sync_fields(),
                ("barcode", models.CharField(blank=True, db_index=True, max_length=64, null=True)),
                ("name", models.CharField(max_length=255)),
                ("description", models.TextField(blank=True)),
                ("purchase_price", models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=12)),
                ("sales_price", models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=12)),
                ("tax_rate", models.DecimalField(decimal_places=4, default=Decimal("0"), max_digits=5)),
                ("stock_quantity", models.IntegerField(default=0)),
                ("minimum_stock_level", models.IntegerField(default=0)),
                ("image_url", models.CharField(blank=True, max_length=500)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "category",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT, related_name="products", to="catalog.category"
                    ),
                ),
                (
                    "store",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT, related_name="products", to="stores.store"
                    ),
                ),
            ],
            options={"ordering": ["name", "id"]},
        ),
        migrations.CreateModel(
            name="Promotion",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                *_sync_fields(),
                ("name", models.CharField(max_length=150)),
                ("description", models.TextField(blank=True)),
                ("start_date", models.DateTimeField()),
                ("end_date", models.DateTimeField()),
                (
                    "discount_type",
                    models.CharField(
                        choices=[("Percentage", "Percentage"), ("FixedAmount", "Fixed amount")],
                        default="Percentage",
                        max_length=20,
                    ),
                ),
                ("discount_value", models.DecimalField(decimal_places=2, max_digits=12)),
                ("minimum_purchase_amount", models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "product",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE, related_name="promotions", to="catalog.product"
                    ),
                ),
                (
                    "store",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT, related_name="promotions", to="stores.store"
                    ),
                ),
            ],
            options={"ordering": ["-start_date", "id"]},
        ),
        migrations.CreateModel(
            name="ProductTransaction",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "transaction_type",
                    models.CharField(
                        choices=[
                            ("StockIn", "Stock in"),
                            ("StockOut", "Stock out"),
                            ("StockReturn", "Stock return"),
                            ("SaleDeduction", "Sale deduction"),
                            ("ProductUpdated", "Product updated"),
                            ("ProductCreated", "Product created"),
                            ("PriceChange", "Price change"),
                        ],
                        db_index=True,
                        max_length=20,
                    ),
                ),
                ("quantity_before", models.IntegerField(blank=True, null=True)),
                ("quantity_after", models.IntegerField(blank=True, null=True)),
                ("quantity_change", models.IntegerField(blank=True, null=True)),
                ("price_before", models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ("price_after", models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ("cost_before", models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ("cost_after", models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ("tax_rate_before", models.DecimalField(blank=True, decimal_places=4, max_digits=5, null=True)),
                ("tax_rate_after", models.DecimalField(blank=True, decimal_places=4, max_digits=5, null=True)),
                ("reference_id", models.IntegerField(blank=True, null=True)),
                ("reference_type", models.CharField(blank=True, max_length=30)),
                ("notes", models.TextField(blank=True)),
                ("transaction_date", models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                (
                    "product",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE, related_name="transactions", to="catalog.product"
                    ),
                ),
                (
                    "store",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="product_transactions",
                        to="stores.store",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="product_transactions",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={"ordering": ["-transaction_date", "-id"]},
        ),
    ]
