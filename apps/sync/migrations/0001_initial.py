import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models

SYNC_STATUS_CHOICES = [("NotSynced", "Not synced"), ("Syncing", "Syncing"), ("Synced", "Synced"), ("Failed", "Failed")]


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("stores", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="SyncBatch",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("start_date", models.DateTimeField(default=django.utils.timezone.now)),
                ("end_date", models.DateTimeField(blank=True, null=True)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("Pending", "Pending"),
                            ("InProgress", "In progress"),
                            ("Completed", "Completed"),
                            ("Failed", "Failed"),
                        ],
                        db_index=True,
                        default="Pending",
                        max_length=20,
                    ),
                ),
                ("device_id", models.CharField(max_length=120)),
                ("total_records", models.IntegerField(default=0)),
                ("processed_records", models.IntegerField(default=0)),
                ("failed_records", models.IntegerField(default=0)),
                (
                    "store",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT, related_name="sync_batches", to="stores.store"
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="sync_batches",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={"ordering": ["-start_date", "-id"]},
        ),
        migrations.CreateModel(
            name="SyncLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("entity_name", models.CharField(db_index=True, max_length=50)),
                ("entity_id", models.CharField(db_index=True, max_length=64)),
                (
                    "operation",
                    models.CharField(
                        choices=[("Create", "Create"), ("Update", "Update"), ("Delete", "Delete")], max_length=10
                    ),
                ),
                ("operation_date", models.DateTimeField(default=django.utils.timezone.now)),
                ("device_id", models.CharField(max_length=120)),
                ("sync_status", models.CharField(choices=SYNC_STATUS_CHOICES, db_index=True, default="NotSynced", max_length=20)),
                ("sync_date", models.DateTimeField(blank=True, null=True)),
                ("error_message", models.TextField(blank=True)),
                ("retry_count", models.PositiveIntegerField(default=0)),
                ("priority", models.IntegerField(default=0)),
                (
                    "store",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT, related_name="sync_logs", to="stores.store"
                    ),
                ),
                (
                    "sync_batch",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="logs",
                        to="sync.syncbatch",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="sync_logs",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={"ordering": ["-operation_date", "-id"]},
        ),
    ]
