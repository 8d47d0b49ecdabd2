"""Sync batch and sync log bookkeeping.

Batches are written by the device session that opened them; nothing here
checks status transitions beyond rejecting unknown values. Counters are
bumped with single UPDATE statements so concurrent pushes never lose counts.
"""

from __future__ import annotations

import logging
from typing import Optional

from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import F
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from apps.accounts.policies import Permissions
from apps.catalog.models import Category, Product, Promotion
from apps.sales.models import Sale

from .models import SyncBatch, SyncLog, SyncOperation, SyncStatus
from .notify import notify_store
from .reconcile import adapter_for, parse_numeric_id, parse_sync_id

logger = logging.getLogger(__name__)

User = get_user_model()

BATCH_CREATED = "SyncBatchCreated"
BATCH_UPDATED = "SyncBatchUpdated"
LOG_UPDATED = "SyncLogUpdated"
SYNC_REQUESTED = "SyncRequested"


def _iso(value) -> Optional[str]:
    return value.isoformat() if value is not None else None


def batch_summary(batch: SyncBatch) -> dict:
    return {
        "batch_id": batch.pk,
        "status": batch.status,
        "start_date": _iso(batch.start_date),
        "end_date": _iso(batch.end_date),
        "total_records": batch.total_records,
        "processed_records": batch.processed_records,
        "failed_records": batch.failed_records,
    }


def _check_batch_owner(user_id, store_id) -> None:
    user = User.objects.filter(pk=user_id, is_active=True).first()
    if user is None:
        raise ValidationError("User not found or not active for the specified store")
    if user.store_id == store_id:
        return
    if Permissions.MANAGE_ALL_STORES in user.permission_names():
        return
    raise ValidationError("User not found or not active for the specified store")


def create_batch(device_id: str, user_id, store_id, total_records: int = 0, status=SyncBatch.Status.PENDING) -> SyncBatch:
    _check_batch_owner(user_id, store_id)
    batch = SyncBatch.objects.create(
        device_id=device_id,
        user_id=user_id,
        store_id=store_id,
        status=status,
        total_records=total_records or 0,
    )
    logger.info("Sync batch %s created for store %s (device %s)", batch.pk, store_id, device_id)
    notify_store(
        store_id,
        BATCH_CREATED,
        {
            "id": batch.pk,
            "status": batch.status,
            "start_date": _iso(batch.start_date),
            "user_id": batch.user_id,
            "username": batch.user.username,
            "device_id": batch.device_id,
        },
    )
    return batch


def update_batch_status(
    batch: SyncBatch,
    status: str,
    processed_records: Optional[int] = None,
    failed_records: Optional[int] = None,
) -> SyncBatch:
    if status not in SyncBatch.Status.values:
        raise ValidationError({"status": f"Unknown sync batch status '{status}'"})
    batch.status = status
    if processed_records is not None:
        batch.processed_records = processed_records
    if failed_records is not None:
        batch.failed_records = failed_records
    if batch.is_terminal:
        batch.end_date = timezone.now()
    batch.save()
    logger.info("Sync batch %s moved to %s", batch.pk, status)
    notify_store(
        batch.store_id,
        BATCH_UPDATED,
        {
            "id": batch.pk,
            "status": batch.status,
            "processed_records": batch.processed_records,
            "failed_records": batch.failed_records,
            "end_date": _iso(batch.end_date),
        },
    )
    return batch


def complete_batch(batch: SyncBatch) -> dict:
    batch = update_batch_status(batch, SyncBatch.Status.COMPLETED)
    logger.info(
        "Sync batch %s completed. Processed: %s, Failed: %s",
        batch.pk,
        batch.processed_records,
        batch.failed_records,
    )
    return batch_summary(batch)


def _bump(batch: SyncBatch, **deltas) -> None:
    SyncBatch.objects.filter(pk=batch.pk).update(**{name: F(name) + value for name, value in deltas.items()})
    batch.refresh_from_db(fields=list(deltas))


def _log_payload(log: SyncLog) -> dict:
    return {
        "id": log.pk,
        "sync_status": log.sync_status,
        "sync_date": _iso(log.sync_date),
        "error_message": log.error_message or None,
        "retry_count": log.retry_count,
        "sync_batch_id": log.sync_batch_id,
    }


def _apply_change(caller, entity_name: str, entity_id: str, operation: str, payload) -> None:
    adapter = adapter_for(entity_name, caller)
    if adapter is None:
        if payload:
            raise ValidationError(f"Entity '{entity_name}' cannot be synchronized")
        return
    adapter.check_caller()
    sync_id = parse_sync_id(entity_id)
    numeric_id = parse_numeric_id(entity_id)

    if operation == SyncOperation.DELETE:
        instance = adapter.find(sync_id, numeric_id) if sync_id else adapter.queryset().filter(pk=numeric_id).first()
        if instance is not None:
            instance.delete()
        return

    if not payload:
        return
    if not isinstance(payload, dict):
        raise ValidationError("Change payload must be an object")
    sync_id = parse_sync_id(payload.get("sync_id")) or sync_id
    if sync_id is None:
        raise ValidationError("Change payload has no valid syncId")
    numeric_id = parse_numeric_id(payload.get("id")) or numeric_id
    instance = adapter.find(sync_id, numeric_id)
    adapter.write(instance, payload, sync_id)


def record_change(
    batch: SyncBatch,
    caller,
    device_id: str,
    entity_name: str,
    entity_id: str,
    operation: str,
    priority: Optional[int] = None,
    payload=None,
) -> SyncLog:
    """Log one pushed change, apply it, and count it against the batch.

    The returned log is Synced or Failed; a failure never raises.
    """
    log = SyncLog.objects.create(
        entity_name=entity_name,
        entity_id=str(entity_id),
        operation=operation,
        device_id=device_id,
        user=caller.user,
        store_id=batch.store_id,
        sync_status=SyncStatus.SYNCING,
        sync_batch=batch,
        priority=1 if priority is None else priority,
    )
    try:
        with transaction.atomic():
            _apply_change(caller, entity_name, str(entity_id), operation, payload)
    except Exception as exc:
        logger.exception("Failed to sync %s with ID %s", entity_name, entity_id)
        log.sync_status = SyncStatus.FAILED
        log.error_message = str(getattr(exc, "detail", exc))
        log.save(update_fields=["sync_status", "error_message"])
        _bump(batch, failed_records=1)
        notify_store(batch.store_id, LOG_UPDATED, _log_payload(log))
        return log

    log.sync_status = SyncStatus.SYNCED
    log.sync_date = timezone.now()
    log.save(update_fields=["sync_status", "sync_date"])
    _bump(batch, total_records=1, processed_records=1)
    notify_store(batch.store_id, LOG_UPDATED, _log_payload(log))
    logger.info("Successfully synced %s with ID %s", entity_name, entity_id)
    return log


def create_log(caller, data: dict) -> SyncLog:
    batch_id = data.get("sync_batch_id")
    batch = None
    if batch_id is not None:
        batch = SyncBatch.objects.filter(pk=batch_id, store_id=caller.store_id).first()
        if batch is None:
            raise ValidationError(f"Sync batch with ID {batch_id} does not exist")
    log = SyncLog.objects.create(
        entity_name=data["entity_name"],
        entity_id=str(data["entity_id"]),
        operation=data["operation"],
        operation_date=data.get("operation_date") or timezone.now(),
        device_id=data["device_id"],
        user=caller.user,
        store_id=caller.store_id,
        sync_status=data.get("sync_status") or SyncStatus.NOT_SYNCED,
        sync_batch=batch,
        priority=data.get("priority") or 0,
    )
    logger.info("Sync log %s recorded for %s %s", log.pk, log.entity_name, log.entity_id)
    return log


def update_log_status(log: SyncLog, status: str, error_message: Optional[str] = None) -> SyncLog:
    if status not in SyncStatus.values:
        raise ValidationError({"status": f"Unknown sync status '{status}'"})
    log.sync_status = status
    if status == SyncStatus.SYNCED:
        log.sync_date = timezone.now()
    if error_message:
        log.error_message = error_message
    if status == SyncStatus.FAILED:
        log.retry_count += 1
    log.save()
    logger.info("Sync log %s moved to %s", log.pk, status)
    if log.sync_batch_id is not None:
        notify_store(log.store_id, LOG_UPDATED, _log_payload(log))
    return log


def request_client_sync(store_id) -> bool:
    logger.info("Requesting sync for clients of store %s", store_id)
    return notify_store(store_id, SYNC_REQUESTED, {"store_id": store_id, "requested_at": _iso(timezone.now())})


def pending_counts(store_id) -> dict:
    products = Product.objects.filter(store_id=store_id, sync_status=SyncStatus.NOT_SYNCED).count()
    categories = Category.objects.filter(sync_status=SyncStatus.NOT_SYNCED).count()
    sales = Sale.objects.filter(store_id=store_id, sync_status=SyncStatus.NOT_SYNCED).count()
    promotions = Promotion.objects.filter(store_id=store_id, sync_status=SyncStatus.NOT_SYNCED).count()
    return {
        "products": products,
        "categories": categories,
        "sales": sales,
        "promotions": promotions,
        "total": products + categories + sales + promotions,
    }
