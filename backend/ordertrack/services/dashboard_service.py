# Overview: Service-layer operations for dashboard counters; read-only aggregation over the caller's data.

from __future__ import annotations

from sqlalchemy import func
from sqlalchemy.orm import selectinload

from ..models import Collection, InventoryItem, PurchaseOrder, SupplyOrder
from .aggregation_service import order_total_cents
from .collection_service import collected_cents_by_order
from .order_kinds import PURCHASE, SUPPLY
from .ownership_service import owned_query


def _count(model, user_id: int) -> int:
    return owned_query(model, user_id).with_entities(func.count(model.id)).scalar() or 0


def get_stats(user_id: int) -> dict:
    """
    Headline numbers for the caller's dashboard.

    open_orders_count covers both order kinds. outstanding_balance_cents sums
    positive balances over purchase orders that are not cancelled.
    """
    low_stock = (
        owned_query(InventoryItem, user_id)
        .filter(
            InventoryItem.reorder_level.isnot(None),
            InventoryItem.quantity <= InventoryItem.reorder_level,
        )
        .with_entities(func.count(InventoryItem.id))
        .scalar()
        or 0
    )

    open_orders = (
        owned_query(PurchaseOrder, user_id)
        .filter(PurchaseOrder.status.in_(PURCHASE.open_statuses))
        .count()
        + owned_query(SupplyOrder, user_id)
        .filter(SupplyOrder.status.in_(SUPPLY.open_statuses))
        .count()
    )

    collected = collected_cents_by_order(user_id)
    outstanding = 0
    orders = (
        owned_query(PurchaseOrder, user_id)
        .filter(PurchaseOrder.status != PURCHASE.status_cancelled)
        .options(selectinload(PurchaseOrder.lines))
        .all()
    )
    for order in orders:
        balance = order_total_cents(order.lines) - collected.get(order.id, 0)
        if balance > 0:
            outstanding += balance

    return {
        "inventory_count": _count(InventoryItem, user_id),
        "low_stock_count": low_stock,
        "orders_count": _count(PurchaseOrder, user_id),
        "procurement_count": _count(SupplyOrder, user_id),
        "collections_count": _count(Collection, user_id),
        "open_orders_count": open_orders,
        "outstanding_balance_cents": outstanding,
    }
