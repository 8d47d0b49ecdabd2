"""Stock and price bookkeeping for products.

Every stock or price movement writes a ``ProductTransaction`` row so the
history endpoints can answer "who changed what, and when".
"""

from __future__ import annotations

import logging
from typing import Optional

from django.db import transaction
from django.db.models import F

from apps.sync.models import SyncStatus

from .models import Category, Product, ProductTransaction

logger = logging.getLogger(__name__)

_TRACKED_FIELDS = (
    ("sales_price", "price_before", "price_after"),
    ("purchase_price", "cost_before", "cost_after"),
    ("tax_rate", "tax_rate_before", "tax_rate_after"),
)


def record_transaction(product: Product, transaction_type: str, user=None, **values) -> ProductTransaction:
    return ProductTransaction.objects.create(
        product=product,
        store_id=product.store_id,
        transaction_type=transaction_type,
        user=user if getattr(user, "pk", None) else None,
        **values,
    )


def record_creation(product: Product, user=None) -> ProductTransaction:
    return record_transaction(
        product,
        ProductTransaction.Type.PRODUCT_CREATED,
        user=user,
        quantity_after=product.stock_quantity,
        price_after=product.sales_price,
        cost_after=product.purchase_price,
        tax_rate_after=product.tax_rate,
        reference_type="ProductCreate",
        notes="Product created via API",
    )


def record_changes(before: dict, product: Product, user=None) -> Optional[ProductTransaction]:
    """Audit the difference between a snapshot and the saved product.

    Only changed values are written; nothing is recorded when no tracked
    field moved.
    """
    values = {}
    for field, before_key, after_key in _TRACKED_FIELDS:
        old, new = before.get(field), getattr(product, field)
        if old != new:
            values[before_key] = old
            values[after_key] = new
    old_qty = before.get("stock_quantity")
    if old_qty != product.stock_quantity:
        values["quantity_before"] = old_qty
        values["quantity_after"] = product.stock_quantity
        values["quantity_change"] = product.stock_quantity - (old_qty or 0)
    if not values:
        return None
    return record_transaction(
        product,
        ProductTransaction.Type.PRODUCT_UPDATED,
        user=user,
        reference_type="ProductUpdate",
        notes="Product updated via API",
        **values,
    )


def snapshot(product: Product) -> dict:
    return {
        "sales_price": product.sales_price,
        "purchase_price": product.purchase_price,
        "tax_rate": product.tax_rate,
        "stock_quantity": product.stock_quantity,
    }


@transaction.atomic
def update_stock(product: Product, new_quantity: int, user=None, notes: str = "") -> ProductTransaction:
    old_quantity = product.stock_quantity
    product.stock_quantity = new_quantity
    product.sync_status = SyncStatus.NOT_SYNCED
    product.save(update_fields=["stock_quantity", "sync_status", "updated_at"])
    kind = ProductTransaction.Type.STOCK_IN if new_quantity > old_quantity else ProductTransaction.Type.STOCK_OUT
    logger.info(
        "Stock for product %s in store %s changed from %s to %s",
        product.pk,
        product.store_id,
        old_quantity,
        new_quantity,
    )
    return record_transaction(
        product,
        kind,
        user=user,
        quantity_before=old_quantity,
        quantity_after=new_quantity,
        quantity_change=new_quantity - old_quantity,
        reference_type="Manual",
        notes=notes or "",
    )


def move_stock(product: Product, delta: int, transaction_type: str, user=None, reference_id=None, notes: str = ""):
    """Shift stock by ``delta`` with a single UPDATE and audit the movement."""
    Product.objects.filter(pk=product.pk).update(
        stock_quantity=F("stock_quantity") + delta,
        sync_status=SyncStatus.NOT_SYNCED,
    )
    product.refresh_from_db(fields=["stock_quantity", "sync_status"])
    return record_transaction(
        product,
        transaction_type,
        user=user,
        quantity_before=product.stock_quantity - delta,
        quantity_after=product.stock_quantity,
        quantity_change=delta,
        reference_type="Sale",
        reference_id=reference_id,
        notes=notes,
    )


def delete_product(product: Product) -> bool:
    """Remove a product, or deactivate it when sales still reference it.

    Returns True when the row was only deactivated.
    """
    if product.sale_items.exists():
        product.is_active = False
        product.sync_status = SyncStatus.NOT_SYNCED
        product.save(update_fields=["is_active", "sync_status", "updated_at"])
        logger.info("Soft deleted product %s in store %s (in use in sales)", product.pk, product.store_id)
        return True
    product.delete()
    logger.info("Deleted product %s", product.pk)
    return False


def delete_category(category: Category) -> bool:
    if category.products.exists():
        category.is_active = False
        category.sync_status = SyncStatus.NOT_SYNCED
        category.save(update_fields=["is_active", "sync_status", "updated_at"])
        logger.info("Soft deleted category %s (has products)", category.pk)
        return True
    category.delete()
    logger.info("Deleted category %s", category.pk)
    return False
