"""Operations a connected device can invoke over the sync socket."""

import logging

from djangorestframework_camel_case.util import camelize, underscoreize

from . import services
from .models import SyncBatch, SyncOperation, SyncStatus

logger = logging.getLogger(__name__)


class HubError(Exception):
    """Error reported back to the invoking client; the socket stays open."""


def _int_argument(value, name: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise HubError(f"Invalid {name}")


class SyncHub:
    def __init__(self, caller, connection_id: str):
        self.caller = caller
        self.connection_id = connection_id
        self.targets = {
            "StartSync": self.start_sync,
            "SendChanges": self.send_changes,
            "CompleteSyncBatch": self.complete_sync_batch,
            "RequestClientSync": self.request_client_sync,
        }

    def invoke(self, target: str, arguments):
        handler = self.targets.get(target)
        if handler is None:
            raise HubError(f"Unknown hub method '{target}'")
        result = handler(*(arguments or []))
        return camelize(result) if result is not None else None

    def _require_store(self) -> int:
        if self.caller.store_id is None:
            raise HubError("Store ID not found in token")
        return self.caller.store_id

    def start_sync(self, store_id=None):
        store_id = _int_argument(store_id, "store ID")
        logger.info("Starting sync for store ID: %s", store_id)
        if not self.caller.can_access_store(store_id):
            logger.warning("User %s attempted unauthorized access to store %s", self.caller.user_id, store_id)
            raise HubError("Unauthorized access to store")
        try:
            batch = services.create_batch(
                self.connection_id,
                self.caller.user_id,
                store_id,
                status=SyncBatch.Status.IN_PROGRESS,
            )
        except Exception as exc:
            logger.exception("Error starting sync for store %s", store_id)
            raise HubError(f"Error starting sync: {getattr(exc, 'detail', exc)}")
        return {"batch_id": batch.pk, "status": batch.status, "start_date": batch.start_date.isoformat()}

    def send_changes(self, request=None):
        if not isinstance(request, dict):
            raise HubError("Invalid sync request")
        request = underscoreize(request)
        entity_name = request.get("entity_name")
        entity_id = request.get("entity_id")
        operation = request.get("operation")
        if not entity_name or entity_id in (None, "") or not operation:
            raise HubError("Missing required sync information")
        if operation not in SyncOperation.values:
            raise HubError(f"Unknown operation '{operation}'")

        store_id = self._require_store()
        batch_id = request.get("sync_batch_id")
        batch = SyncBatch.objects.filter(pk=batch_id, store_id=store_id).first() if batch_id else None
        if batch is None:
            logger.warning("User %s attempted to access invalid sync batch %s", self.caller.user_id, batch_id)
            raise HubError("Invalid sync batch ID")

        logger.info("Processing sync for entity %s, ID %s, operation %s", entity_name, entity_id, operation)
        log = services.record_change(
            batch,
            self.caller,
            self.connection_id,
            entity_name,
            str(entity_id),
            operation,
            priority=request.get("priority"),
            payload=request.get("payload"),
        )
        return {
            "success": log.sync_status == SyncStatus.SYNCED,
            "entity_name": log.entity_name,
            "entity_id": log.entity_id,
            "sync_date": log.sync_date.isoformat() if log.sync_date else None,
            "error_message": log.error_message or None,
        }

    def complete_sync_batch(self, batch_id=None):
        batch_id = _int_argument(batch_id, "sync batch ID")
        store_id = self._require_store()
        batch = SyncBatch.objects.filter(pk=batch_id).first()
        if batch is None:
            raise HubError("Sync batch not found")
        if batch.store_id != store_id:
            logger.warning("User attempted to complete sync batch %s belonging to a different store", batch_id)
            raise HubError("Unauthorized access to sync batch")
        return services.complete_batch(batch)

    def request_client_sync(self, store_id=None):
        store_id = _int_argument(store_id, "store ID")
        if not self.caller.can_access_store(store_id):
            logger.warning("Unauthorized sync request for store %s", store_id)
            raise HubError("Unauthorized store access")
        services.request_client_sync(store_id)
        return None
