# Overview: Service-layer operations for collections; encapsulates business logic and database work.

"""
Collection Ledger Service

WHY: Customers pay for purchase orders in instalments. Each instalment is a
Collection row; the order's balance is always derived from the rows, never
stored.

DESIGN PRINCIPLES:
- Append-only: records are created or deleted, never edited
- Over-collection is allowed (balance <= 0 counts as fully collected)
- Deleting an order removes its collections (ON DELETE CASCADE)
- The simple paid/unpaid toggle is a view over the same ledger
"""

from __future__ import annotations

from datetime import date

from sqlalchemy import func
from sqlalchemy.orm import selectinload

from ..extensions import db
from ..models import Collection, PurchaseOrder
from ..validation import MAX_PRICE_CENTS, ValidationError
from .aggregation_service import (
    COLLECTION_COMPLETE,
    COLLECTION_PARTIAL,
    COLLECTION_UNPAID,
    collection_status,
    order_total_cents,
)
from .order_kinds import PURCHASE
from .order_service import get_order, order_to_dict
from .ownership_service import get_owned, owned_query
from ordertrack.time_utils import today


class CollectionNotFoundError(Exception):
    """Raised when a collection record is missing or not owned."""
    pass


class CollectionValidationError(ValidationError):
    """Raised when collection data fails validation."""
    pass


# Payment method recorded by mark_paid
PAYMENT_METHOD_FULL = "FULL"

BALANCE_FILTERS = {
    "unpaid": COLLECTION_UNPAID,
    "partial": COLLECTION_PARTIAL,
    "collected": COLLECTION_COMPLETE,
    "all": None,
}


def collected_cents(user_id: int, order_id: int) -> int:
    total = (
        owned_query(Collection, user_id)
        .filter(Collection.purchase_order_id == order_id)
        .with_entities(func.coalesce(func.sum(Collection.amount_cents), 0))
        .scalar()
    )
    return int(total or 0)


def collected_cents_by_order(user_id: int) -> dict[int, int]:
    """Map of purchase order id -> collected cents, for orders with any record."""
    rows = (
        owned_query(Collection, user_id)
        .with_entities(Collection.purchase_order_id, func.sum(Collection.amount_cents))
        .group_by(Collection.purchase_order_id)
        .all()
    )
    return {order_id: int(amount or 0) for order_id, amount in rows}


def record_collection(
    user_id: int,
    order_id: int,
    amount_cents: int,
    date_collected: date | None = None,
    payment_method: str | None = None,
    reference_number: str | None = None,
) -> Collection:
    """
    Record a payment received against a purchase order.

    Args:
        user_id: Owner (the authenticated caller)
        order_id: Purchase order being paid
        amount_cents: Amount collected (must be positive)
        date_collected: Defaults to today
        payment_method: Free text (CASH, BANK, GCASH, ...)
        reference_number: Receipt / transfer reference

    Returns:
        Created Collection

    Raises:
        CollectionValidationError: Non-positive or oversized amount
        OrderNotFoundError: Order missing or not owned
    """
    if isinstance(amount_cents, bool) or not isinstance(amount_cents, int) or amount_cents <= 0:
        raise CollectionValidationError("Collection amount must be positive", field="amount_cents")
    if amount_cents > MAX_PRICE_CENTS:
        raise CollectionValidationError(
            f"Collection amount cannot exceed {MAX_PRICE_CENTS} cents",
            field="amount_cents",
        )

    order = get_order(PURCHASE, user_id, order_id)

    collection = Collection(
        user_id=user_id,
        purchase_order_id=order.id,
        amount_cents=amount_cents,
        date_collected=date_collected or today(),
        payment_method=payment_method,
        reference_number=reference_number,
    )
    db.session.add(collection)
    db.session.commit()
    return collection


def delete_collection(user_id: int, collection_id: int) -> None:
    collection = get_owned(Collection, user_id, collection_id)
    if not collection:
        raise CollectionNotFoundError(f"Collection {collection_id} not found")
    db.session.delete(collection)
    db.session.commit()


def reverse_collections(user_id: int, order_id: int) -> int:
    """
    Delete every collection on an owned order.

    Returns the number of records removed (0 is not an error).
    """
    order = get_order(PURCHASE, user_id, order_id)
    deleted = (
        owned_query(Collection, user_id)
        .filter(Collection.purchase_order_id == order.id)
        .delete(synchronize_session=False)
    )
    db.session.commit()
    return deleted


def list_collections(user_id: int, order_id: int | None = None) -> list[Collection]:
    """Collections newest first, optionally for one order."""
    query = owned_query(Collection, user_id)
    if order_id is not None:
        get_order(PURCHASE, user_id, order_id)
        query = query.filter(Collection.purchase_order_id == order_id)
    return query.order_by(Collection.date_collected.desc(), Collection.id.desc()).all()


def collection_summary(user_id: int, order_id: int) -> dict:
    order = get_order(PURCHASE, user_id, order_id)
    total = order_total_cents(order.lines)
    collected = collected_cents(user_id, order.id)
    return {
        "order_id": order.id,
        "order_number": order.order_number,
        "total_amount_cents": total,
        "total_collected_cents": collected,
        "balance_cents": total - collected,
        "collection_status": collection_status(total, collected),
    }


def list_order_balances(user_id: int, status_filter: str | None = None) -> list[dict]:
    """
    Purchase orders with their collection totals.

    status_filter: unpaid | partial | collected | all (default all)
    """
    key = (status_filter or "all").strip().lower()
    if key not in BALANCE_FILTERS:
        raise CollectionValidationError(
            f"Invalid filter. Must be one of: {', '.join(BALANCE_FILTERS)}",
            field="filter",
        )
    wanted = BALANCE_FILTERS[key]

    collected = collected_cents_by_order(user_id)
    orders = (
        owned_query(PurchaseOrder, user_id)
        .options(selectinload(PurchaseOrder.lines))
        .order_by(PurchaseOrder.order_date.desc(), PurchaseOrder.id.desc())
        .all()
    )

    results = []
    for order in orders:
        summary = order_to_dict(PURCHASE, order, collected.get(order.id, 0))
        if wanted and summary["collection_status"] != wanted:
            continue
        results.append(summary)
    return results


# =============================================================================
# SIMPLE PAID / UNPAID FLOW
# =============================================================================

def mark_paid(user_id: int, order_id: int) -> Collection:
    """
    Settle an order in one step by recording its outstanding balance.

    Raises:
        CollectionValidationError: Nothing left to collect
        OrderNotFoundError: Order missing or not owned
    """
    order = get_order(PURCHASE, user_id, order_id)
    balance = order_total_cents(order.lines) - collected_cents(user_id, order.id)
    if balance <= 0:
        raise CollectionValidationError(f"Order {order.order_number} is already fully collected")

    return record_collection(
        user_id,
        order.id,
        balance,
        payment_method=PAYMENT_METHOD_FULL,
    )


def mark_unpaid(user_id: int, order_id: int) -> int:
    return reverse_collections(user_id, order_id)


def paid_order_ids(user_id: int) -> list[int]:
    """Ids of purchase orders whose balance is <= 0 and which have collections."""
    collected = collected_cents_by_order(user_id)
    if not collected:
        return []

    orders = (
        owned_query(PurchaseOrder, user_id)
        .filter(PurchaseOrder.id.in_(list(collected)))
        .options(selectinload(PurchaseOrder.lines))
        .all()
    )
    return sorted(
        order.id
        for order in orders
        if collection_status(order_total_cents(order.lines), collected[order.id]) == COLLECTION_COMPLETE
    )
