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
        ("catalog", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Sale",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                *_sync_fields(),
                ("sale_number", models.CharField(blank=True, db_index=True, max_length=40)),
                ("sale_date", models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ("sub_total", models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=14)),
                ("discount_amount", models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=14)),
                ("tax_amount", models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=14)),
                ("grand_total", models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=14)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("Draft", "Draft"),
                            ("Completed", "Completed"),
                            ("Canceled", "Canceled"),
                            ("Partially Paid", "Partially paid"),
                            ("Fully Paid", "Fully paid"),
                        ],
                        db_index=True,
                        default="Completed",
                        max_length=20,
                    ),
                ),
                ("notes", models.TextField(blank=True)),
                ("device_id", models.CharField(blank=True, max_length=120)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "store",
                    models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="sales", to="stores.store"),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT, related_name="sales", to=settings.AUTH_USER_MODEL
                    ),
                ),
            ],
            options={"ordering": ["-sale_date", "-id"]},
        ),
        migrations.CreateModel(
            name="SaleItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                *_sync_fields(),
                ("quantity", models.IntegerField(default=1)),
                ("unit_price", models.DecimalField(decimal_places=2, max_digits=12)),
                ("discount_rate", models.DecimalField(decimal_places=4, default=Decimal("0"), max_digits=5)),
                ("discount_amount", models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=12)),
                ("tax_rate", models.DecimalField(decimal_places=4, default=Decimal("0"), max_digits=5)),
                ("tax_amount", models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=12)),
                ("line_total", models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=14)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "product",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT, related_name="sale_items", to="catalog.product"
                    ),
                ),
                (
                    "sale",
                    models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="items", to="sales.sale"),
                ),
                (
                    "store",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT, related_name="sale_items", to="stores.store"
                    ),
                ),
            ],
            options={"ordering": ["id"]},
        ),
        migrations.CreateModel(
            name="Payment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                *_sync_fields(),
                ("amount", models.DecimalField(decimal_places=2, max_digits=14)),
                ("payment_method", models.CharField(default="Cash", max_length=30)),
                ("reference_number", models.CharField(blank=True, max_length=100)),
                ("payment_date", models.DateTimeField(default=django.utils.timezone.now)),
                ("status", models.CharField(default="Approved", max_length=20)),
                ("notes", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "sale",
                    models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="payments", to="sales.sale"),
                ),
                (
                    "store",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT, related_name="payments", to="stores.store"
                    ),
                ),
            ],
            options={"ordering": ["-payment_date", "-id"]},
        ),
    ]
