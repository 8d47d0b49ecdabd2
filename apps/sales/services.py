"""Sale lifecycle: totals, stock deduction, payments and cancellation."""

from __future__ import annotations

import logging
import uuid
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional

from django.db import transaction
from django.db.models import Sum
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from apps.catalog.models import Product, ProductTransaction
from apps.catalog.services import move_stock
from apps.sync.models import SyncStatus

from .models import Payment, Sale, SaleItem

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
ZERO = Decimal("0")


def _money(value) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def generate_sale_number() -> str:
    return f"S-{timezone.now():%Y%m%d}-{uuid.uuid4().hex[:4].upper()}"


def line_amounts(quantity: int, unit_price: Decimal, tax_rate: Decimal, discount_rate: Decimal) -> dict:
    gross = Decimal(quantity) * unit_price
    return {
        "discount_amount": _money(gross * discount_rate),
        "tax_amount": _money(gross * tax_rate),
        "line_total": _money(gross * (1 + tax_rate) * (1 - discount_rate)),
    }


def payment_status(sale: Sale, paid: Decimal, default: str) -> str:
    if paid <= ZERO:
        return default
    if paid >= sale.grand_total:
        return Sale.Status.FULLY_PAID
    return Sale.Status.PARTIALLY_PAID


def _load_products(store_id: int, items: Iterable[dict]) -> dict:
    wanted = {item["product_id"] for item in items}
    products = {p.pk: p for p in Product.objects.select_for_update().filter(store_id=store_id, pk__in=wanted)}
    for product_id in wanted:
        if product_id not in products:
            raise ValidationError(f"Product with ID {product_id} not found")
    return products


def _check_stock(products: dict, items: Iterable[dict]) -> None:
    requested: dict = {}
    for item in items:
        requested[item["product_id"]] = requested.get(item["product_id"], 0) + item["quantity"]
    for product_id, quantity in requested.items():
        product = products[product_id]
        if product.stock_quantity < quantity:
            raise ValidationError(
                f"Insufficient stock for product '{product.name}'. "
                f"Available: {product.stock_quantity}, Requested: {quantity}"
            )


def _add_items(sale: Sale, products: dict, items: Iterable[dict], user, note: str) -> None:
    sub_total = ZERO
    tax_total = ZERO
    for item in items:
        product = products[item["product_id"]]
        quantity = item["quantity"]
        unit_price = item.get("unit_price")
        unit_price = product.sales_price if unit_price is None else unit_price
        tax_rate = item.get("tax_rate")
        tax_rate = product.tax_rate if tax_rate is None else tax_rate
        discount_rate = item.get("discount_rate") or ZERO
        amounts = line_amounts(quantity, unit_price, tax_rate, discount_rate)
        SaleItem.objects.create(
            sale=sale,
            product=product,
            store_id=sale.store_id,
            quantity=quantity,
            unit_price=unit_price,
            discount_rate=discount_rate,
            tax_rate=tax_rate,
            **amounts,
        )
        move_stock(
            product,
            -quantity,
            ProductTransaction.Type.SALE_DEDUCTION,
            user=user,
            reference_id=sale.pk,
            notes=f"Sale {sale.sale_number} {note}",
        )
        sub_total += Decimal(quantity) * unit_price
        tax_total += amounts["tax_amount"]
    sale.sub_total = _money(sub_total)
    sale.tax_amount = _money(tax_total)
    sale.grand_total = _money(sub_total + tax_total - (sale.discount_amount or ZERO))


def _add_payments(sale: Sale, payments: Iterable[dict]) -> None:
    for payment in payments:
        Payment.objects.create(
            sale=sale,
            store_id=sale.store_id,
            amount=payment["amount"],
            payment_method=payment.get("payment_method") or "Cash",
            reference_number=payment.get("reference_number") or "",
            status=payment.get("status") or "Approved",
            notes=payment.get("notes") or "",
        )


def _return_stock(sale: Sale, user, transaction_type: str, note: str) -> None:
    for item in sale.items.select_related("product"):
        move_stock(
            item.product,
            item.quantity,
            transaction_type,
            user=user,
            reference_id=sale.pk,
            notes=f"Sale {sale.sale_number} {note}",
        )


def _refresh_status(sale: Sale) -> None:
    paid = Payment.objects.filter(sale=sale).aggregate(total=Sum("amount"))["total"] or ZERO
    sale.status = payment_status(sale, paid, sale.status)


@transaction.atomic
def create_sale(store, user, data: dict) -> Sale:
    items = data.get("items") or []
    if not items:
        raise ValidationError("A sale needs at least one item")
    products = _load_products(store.pk, items)
    _check_stock(products, items)

    sale = Sale.objects.create(
        store=store,
        user=user,
        sale_number=data.get("sale_number") or generate_sale_number(),
        sale_date=data.get("sale_date") or timezone.now(),
        discount_amount=data.get("discount_amount") or ZERO,
        status=data.get("status") or Sale.Status.COMPLETED,
        notes=data.get("notes") or "",
        device_id=data.get("device_id") or "",
        sync_status=SyncStatus.NOT_SYNCED,
    )
    _add_items(sale, products, items, user, "item")
    _add_payments(sale, data.get("payments") or [])
    _refresh_status(sale)
    sale.save()
    logger.info("Created sale %s (%s) in store %s", sale.pk, sale.sale_number, store.pk)
    return sale


@transaction.atomic
def update_sale(sale: Sale, user, data: dict) -> Sale:
    """Edit a sale.

    Completed and fully paid sales only take notes and a
    cancellation. Open sales take every header field, and drafts may also replace
    their items.
    """
    requested_status: Optional[str] = data.get("status")
    if sale.status in (Sale.Status.COMPLETED, Sale.Status.FULLY_PAID):
        if "notes" in data:
            sale.notes = data["notes"] or ""
        if requested_status == Sale.Status.CANCELED:
            _return_stock(sale, user, ProductTransaction.Type.STOCK_RETURN, "canceled")
            sale.status = requested_status
    else:
        for field in ("discount_amount", "notes", "sale_number"):
            if field in data and data[field] is not None:
                setattr(sale, field, data[field])
        if requested_status:
            sale.status = requested_status

        items = data.get("items")
        if items and sale.status == Sale.Status.DRAFT:
            _return_stock(sale, user, ProductTransaction.Type.STOCK_RETURN, "item removed during edit")
            sale.items.all().delete()
            products = _load_products(sale.store_id, items)
            _check_stock(products, items)
            _add_items(sale, products, items, user, "item added during edit")

    payments = data.get("payments")
    if payments:
        _add_payments(sale, payments)
        _refresh_status(sale)

    sale.sync_status = SyncStatus.NOT_SYNCED
    sale.save()
    # Items and payments may have changed under a prefetched queryset.
    sale._prefetched_objects_cache = {}
    logger.info("Updated sale %s in store %s", sale.pk, sale.store_id)
    return sale


@transaction.atomic
def delete_sale(sale: Sale, user) -> bool:
    """Drafts are removed outright; anything else is canceled.

    Both paths put the sold quantities back on the shelf. Returns True when
    the sale was only canceled.
    """
    if sale.status == Sale.Status.DRAFT:
        sale_id = sale.pk
        _return_stock(sale, user, ProductTransaction.Type.STOCK_RETURN, "draft deleted")
        sale.delete()
        logger.info("Deleted draft sale %s", sale_id)
        return False

    if sale.status != Sale.Status.CANCELED:
        _return_stock(sale, user, ProductTransaction.Type.STOCK_RETURN, "canceled")
    sale.status = Sale.Status.CANCELED
    sale.sync_status = SyncStatus.NOT_SYNCED
    sale.save(update_fields=["status", "sync_status", "updated_at"])
    logger.info("Canceled sale %s in store %s", sale.pk, sale.store_id)
    return True
