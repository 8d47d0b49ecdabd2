"""Server-side merge of change sets pushed by offline devices.

Each pushed item carries the device-generated ``sync_id`` and, when the
device already knows it, the server's numeric ``id``. Items are matched on
``sync_id`` first, then on ``id``, and created otherwise. Every item runs in
its own savepoint: one bad item is logged and skipped, the rest still land.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Type

from django.db import models, transaction
from rest_framework import serializers
from rest_framework.exceptions import PermissionDenied

from apps.accounts.models import Role
from apps.accounts.policies import Permissions
from apps.accounts.serializers import RoleSerializer
from apps.api.scoping import NO_STORE_MESSAGE
from apps.api.serializers import (
    CategorySerializer,
    ProductSerializer,
    PromotionSerializer,
    SaleSyncSerializer,
    StoreSerializer,
)
from apps.catalog.models import Category, Product, Promotion
from apps.sales.models import Sale
from apps.stores.models import Store

from .models import SyncStatus

logger = logging.getLogger(__name__)


def parse_sync_id(value) -> Optional[uuid.UUID]:
    """Stable identifier of a pushed item, or None when unusable."""
    if value is None or value == "":
        return None
    try:
        parsed = value if isinstance(value, uuid.UUID) else uuid.UUID(str(value))
    except (TypeError, ValueError, AttributeError):
        return None
    if parsed.int == 0:
        return None
    return parsed


def parse_numeric_id(value) -> Optional[int]:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None


@dataclass
class ReconcileResult:
    entity: str
    records: List[models.Model] = field(default_factory=list)
    created: int = 0
    updated: int = 0
    skipped: int = 0
    failed: int = 0

    @property
    def count(self) -> int:
        return len(self.records)


class SyncAdapter:
    """How one entity type is looked up and written during a sync push."""

    entity_name: str = ""
    model: Type[models.Model]
    serializer_class: Type[serializers.ModelSerializer]
    store_scoped = True

    def __init__(self, caller, request=None):
        self.caller = caller
        self.request = request

    @property
    def store_id(self) -> Optional[int]:
        return self.caller.store_id if self.store_scoped else None

    def check_caller(self) -> None:
        if self.store_scoped and self.caller.store_id is None:
            raise PermissionDenied(NO_STORE_MESSAGE)

    def queryset(self):
        queryset = self.model.objects.all()
        if self.store_scoped:
            queryset = queryset.filter(store_id=self.caller.store_id)
        return queryset

    def pending_queryset(self):
        return self.queryset().filter(sync_status=SyncStatus.NOT_SYNCED)

    def serializer_context(self) -> Dict[str, Any]:
        return {"request": self.request, "store_id": self.store_id, "caller": self.caller}

    def find(self, sync_id: uuid.UUID, numeric_id: Optional[int]):
        queryset = self.queryset()
        instance = queryset.filter(sync_id=sync_id).first()
        if instance is None and numeric_id is not None:
            instance = queryset.filter(pk=numeric_id).first()
        return instance

    def create_extra(self, sync_id: uuid.UUID) -> Dict[str, Any]:
        extra = {"sync_id": sync_id}
        if self.store_scoped:
            extra["store_id"] = self.caller.store_id
        return extra

    def write(self, instance, item: dict, sync_id: uuid.UUID):
        serializer = self.serializer_class(instance, data=item, context=self.serializer_context())
        serializer.is_valid(raise_exception=True)
        extra = {"sync_status": SyncStatus.SYNCED}
        if instance is None:
            extra.update(self.create_extra(sync_id))
        return serializer.save(**extra)

    def represent(self, records) -> list:
        return self.serializer_class(records, many=True, context=self.serializer_context()).data


class ProductAdapter(SyncAdapter):
    entity_name = "Product"
    model = Product
    serializer_class = ProductSerializer


class CategoryAdapter(SyncAdapter):
    entity_name = "Category"
    model = Category
    serializer_class = CategorySerializer
    store_scoped = False


class PromotionAdapter(SyncAdapter):
    entity_name = "Promotion"
    model = Promotion
    serializer_class = PromotionSerializer


class SaleAdapter(SyncAdapter):
    entity_name = "Sale"
    model = Sale
    serializer_class = SaleSyncSerializer

    def queryset(self):
        return super().queryset().prefetch_related("items__product", "payments")

    def create_extra(self, sync_id):
        extra = super().create_extra(sync_id)
        extra["user"] = self.caller.user
        return extra

    def write(self, instance, item, sync_id):
        sale = super().write(instance, item, sync_id)
        # Lines and payments were rewritten after the prefetch.
        sale._prefetched_objects_cache = {}
        return sale


class StoreAdapter(SyncAdapter):
    entity_name = "Store"
    model = Store
    serializer_class = StoreSerializer
    store_scoped = False

    def check_caller(self):
        if not self.caller.is_store_admin:
            raise PermissionDenied("Only system administrators can sync stores")


class RoleAdapter(SyncAdapter):
    entity_name = "Role"
    model = Role
    serializer_class = RoleSerializer
    store_scoped = False

    def check_caller(self):
        if not self.caller.can(Permissions.MANAGE_ROLES):
            raise PermissionDenied("You do not have permission to sync roles")


ADAPTERS: Dict[str, Type[SyncAdapter]] = {
    "products": ProductAdapter,
    "categories": CategoryAdapter,
    "promotions": PromotionAdapter,
    "sales": SaleAdapter,
    "stores": StoreAdapter,
    "roles": RoleAdapter,
}

# Names a device may use for the same entity in SyncLog rows.
ENTITY_ALIASES = {
    "product": "products",
    "category": "categories",
    "promotion": "promotions",
    "sale": "sales",
    "store": "stores",
    "role": "roles",
}


def adapter_for(entity: str, caller, request=None) -> Optional[SyncAdapter]:
    key = (entity or "").strip().lower()
    key = ENTITY_ALIASES.get(key, key)
    adapter_class = ADAPTERS.get(key)
    return adapter_class(caller, request) if adapter_class else None


def reconcile(adapter: SyncAdapter, items) -> ReconcileResult:
    """Apply a pushed change set; never raises for a single bad item."""
    adapter.check_caller()
    result = ReconcileResult(entity=adapter.entity_name)

    for position, item in enumerate(items or []):
        if not isinstance(item, dict):
            logger.warning("Skipping %s item #%s: not an object", adapter.entity_name, position)
            result.skipped += 1
            continue

        sync_id = parse_sync_id(item.get("sync_id"))
        if sync_id is None:
            logger.warning(
                "Skipping %s item #%s: missing or invalid syncId %r",
                adapter.entity_name,
                position,
                item.get("sync_id"),
            )
            result.skipped += 1
            continue
        numeric_id = parse_numeric_id(item.get("id"))

        try:
            with transaction.atomic():
                instance = adapter.find(sync_id, numeric_id)
                record = adapter.write(instance, item, sync_id)
        except Exception:
            logger.exception(
                "Error syncing %s with id %s and syncId %s",
                adapter.entity_name,
                numeric_id,
                sync_id,
            )
            result.failed += 1
            continue

        if instance is None:
            result.created += 1
        else:
            result.updated += 1
        result.records.append(record)

    logger.info(
        "Synced %s %s records for store %s (created=%s updated=%s skipped=%s failed=%s)",
        result.count,
        adapter.entity_name,
        adapter.caller.store_id,
        result.created,
        result.updated,
        result.skipped,
        result.failed,
    )
    return result
