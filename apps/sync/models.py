import uuid

from django.conf import settings
from django.db import models
from django.utils import timezone


class SyncStatus(models.TextChoices):
    NOT_SYNCED = "NotSynced", "Not synced"
    SYNCING = "Syncing", "Syncing"
    SYNCED = "Synced", "Synced"
    FAILED = "Failed", "Failed"


class SyncOperation(models.TextChoices):
    CREATE = "Create", "Create"
    UPDATE = "Update", "Update"
    DELETE = "Delete", "Delete"


class SyncableModel(models.Model):
    """Offline-first fields shared by every entity a device can create.

    ``sync_id`` is generated on the client and never rewritten by the server;
    the integer primary key is only meaningful on the server side.
    """

    sync_id = models.UUIDField(default=uuid.uuid4, unique=True, editable=False, db_index=True)
    sync_status = models.CharField(
        max_length=20,
        choices=SyncStatus.choices,
        default=SyncStatus.NOT_SYNCED,
        db_index=True,
    )

    class Meta:
        abstract = True

    def mark_not_synced(self):
        self.sync_status = SyncStatus.NOT_SYNCED


class SyncBatch(models.Model):
    class Status(models.TextChoices):
        PENDING = "Pending", "Pending"
        IN_PROGRESS = "InProgress", "In progress"
        COMPLETED = "Completed", "Completed"
        FAILED = "Failed", "Failed"

    TERMINAL_STATUSES = (Status.COMPLETED, Status.FAILED)

    start_date = models.DateTimeField(default=timezone.now)
    end_date = models.DateTimeField(null=True, blank=True)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING, db_index=True)
    device_id = models.CharField(max_length=120)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="sync_batches")
    store = models.ForeignKey("stores.Store", on_delete=models.PROTECT, related_name="sync_batches")
    total_records = models.IntegerField(default=0)
    processed_records = models.IntegerField(default=0)
    failed_records = models.IntegerField(default=0)

    class Meta:
        ordering = ["-start_date", "-id"]

    def __str__(self) -> str:
        return f"Batch #{self.pk} {self.status} ({self.device_id})"

    @property
    def is_terminal(self) -> bool:
        return self.status in self.TERMINAL_STATUSES


class SyncLog(models.Model):
    entity_name = models.CharField(max_length=50, db_index=True)
    entity_id = models.CharField(max_length=64, db_index=True)
    operation = models.CharField(max_length=10, choices=SyncOperation.choices)
    operation_date = models.DateTimeField(default=timezone.now)
    device_id = models.CharField(max_length=120)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="sync_logs")
    store = models.ForeignKey("stores.Store", on_delete=models.PROTECT, related_name="sync_logs")
    sync_status = models.CharField(
        max_length=20,
        choices=SyncStatus.choices,
        default=SyncStatus.NOT_SYNCED,
        db_index=True,
    )
    sync_date = models.DateTimeField(null=True, blank=True)
    error_message = models.TextField(blank=True)
    retry_count = models.PositiveIntegerField(default=0)
    sync_batch = models.ForeignKey(
        SyncBatch,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="logs",
    )
    priority = models.IntegerField(default=0)

    class Meta:
        ordering = ["-operation_date", "-id"]

    def __str__(self) -> str:
        return f"{self.entity_name} {self.operation} {self.entity_id}"
