# Overview: Service-layer operations for customer and supply orders; encapsulates business logic and database work.

"""
Order Service

WHY: Customer purchase orders and supplier supply orders are the same
document shape with a different counterparty. All CRUD for both goes through
here, parameterized by an OrderKind (see order_kinds.py).

OWNERSHIP: Every function takes the caller's user_id and filters on it.
Orders belonging to another user are reported as not found.

DESIGN:
- An order is created together with all of its lines in one commit
- Blank form rows are dropped; an order with no valid line is rejected
- Header updates are partial and never touch line counters or status
- Deletes rely on declared cascades (lines, fulfillment events, collections)
"""

from __future__ import annotations

from sqlalchemy import func
from sqlalchemy.orm import selectinload

from ..extensions import db
from ..models import InventoryItem
from ..schemas import OrderCreateRequest
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    ValidationError,
    enforce_rules_order_header,
    validate_payload,
)
from .aggregation_service import summarize_order
from .order_kinds import OrderKind
from .ownership_service import get_owned, owned_query
from ordertrack.time_utils import today


class OrderNotFoundError(Exception):
    """Raised when an order is missing or not owned by the caller."""
    pass


class OrderValidationError(ValidationError):
    """Raised when order data fails validation. May name the offending line."""

    def __init__(self, message: str, *, field: str | None = None, line_id: int | None = None):
        super().__init__(message, field=field)
        self.line_id = line_id

    def to_dict(self) -> dict:
        body = super().to_dict()
        if self.line_id is not None:
            body["line_id"] = self.line_id
        return body


class OrderStateError(Exception):
    """Raised when an operation is invalid for the order's current status."""
    pass


HEADER_FIELDS = {
    "order_number",
    "order_date",
    "expected_delivery_date",
    "tracking_reference",
    "notes",
    "document_ref",
}


def header_policy(kind: OrderKind) -> ModelValidationPolicy:
    return ModelValidationPolicy(
        writable_fields=HEADER_FIELDS | {kind.counterparty_field},
    )


def _next_order_number(kind: OrderKind, user_id: int) -> str:
    """Next free "<PREFIX>-00001" style number for this user."""
    model = kind.order_model
    seq = (owned_query(model, user_id).with_entities(func.count(model.id)).scalar() or 0) + 1
    while True:
        candidate = f"{kind.number_prefix}-{seq:05d}"
        taken = owned_query(model, user_id).filter(model.order_number == candidate).first()
        if not taken:
            return candidate
        seq += 1


def _ensure_number_free(kind: OrderKind, user_id: int, order_number: str, exclude_id: int | None = None) -> None:
    model = kind.order_model
    query = owned_query(model, user_id).filter(model.order_number == order_number)
    if exclude_id is not None:
        query = query.filter(model.id != exclude_id)
    if query.first():
        raise ConflictError(f"{kind.label} number {order_number} already exists")


def create_order(kind: OrderKind, user_id: int, request: OrderCreateRequest):
    """
    Create an order and all of its lines atomically.

    Args:
        kind: PURCHASE or SUPPLY
        user_id: Owner (the authenticated caller)
        request: Normalized create request (see schemas.OrderCreateRequest)

    Returns:
        Created order object

    Raises:
        OrderValidationError: No valid line, bad status, or unknown inventory item
        ConflictError: order_number already used by this user
    """
    if not request.lines:
        raise OrderValidationError(
            f"{kind.label} must have at least one line item with a name and a positive quantity",
            field="items",
        )

    status = request.status or kind.status_initial
    if status not in (kind.status_initial, kind.status_in_flight, kind.status_cancelled):
        raise OrderValidationError(
            f"Invalid initial status {status}. Must be one of: "
            f"{kind.status_initial}, {kind.status_in_flight}, {kind.status_cancelled}",
            field="status",
        )

    order_date = request.order_date or today()
    if request.expected_delivery_date and request.expected_delivery_date < order_date:
        raise OrderValidationError(
            "expected_delivery_date cannot be before order_date",
            field="expected_delivery_date",
        )

    if request.order_number:
        _ensure_number_free(kind, user_id, request.order_number)
        order_number = request.order_number
    else:
        order_number = _next_order_number(kind, user_id)

    order = kind.order_model(
        user_id=user_id,
        order_number=order_number,
        status=status,
        order_date=order_date,
        expected_delivery_date=request.expected_delivery_date,
        tracking_reference=request.tracking_reference,
        notes=request.notes,
        document_ref=request.document_ref,
    )
    setattr(order, kind.counterparty_field, request.counterparty)

    for position, line_in in enumerate(request.lines, start=1):
        line = kind.line_model(
            position=position,
            item_name=line_in.item_name,
            part_number=line_in.part_number,
            quantity=line_in.quantity,
            unit_price_cents=line_in.unit_price_cents,
        )
        setattr(line, kind.counter_attr, 0)

        if line_in.inventory_item_id is not None:
            if not hasattr(line, "inventory_item_id"):
                raise OrderValidationError(
                    f"items[{position}]: inventory_item_id is not supported on {kind.label.lower()}s",
                    field="items",
                )
            item = get_owned(InventoryItem, user_id, line_in.inventory_item_id)
            if not item:
                raise OrderValidationError(
                    f"items[{position}]: inventory item {line_in.inventory_item_id} not found",
                    field="items",
                )
            line.inventory_item_id = item.id
            if not line.part_number:
                line.part_number = item.part_number

        order.lines.append(line)

    db.session.add(order)
    db.session.commit()
    return order


def get_order(kind: OrderKind, user_id: int, order_id: int):
    """
    Get an owned order.

    Raises:
        OrderNotFoundError: If missing or owned by another user
    """
    order = get_owned(kind.order_model, user_id, order_id)
    if not order:
        raise OrderNotFoundError(f"{kind.label} {order_id} not found")
    return order


def list_orders(kind: OrderKind, user_id: int, *, status: str | None = None) -> list:
    """List the caller's orders, newest first, lines eager-loaded."""
    model = kind.order_model
    query = owned_query(model, user_id).options(selectinload(model.lines))
    if status:
        query = query.filter(model.status == status)
    return query.order_by(model.created_at.desc(), model.id.desc()).all()


def update_order(kind: OrderKind, user_id: int, order_id: int, payload: dict):
    """
    Partially update order header fields.

    Only supplied keys change. Status has its own operation
    (fulfillment_service.set_status) and line counters are never writable.

    Raises:
        OrderNotFoundError: If missing or not owned
        ValidationError: Unknown, non-writable or malformed fields
        ConflictError: New order_number already used
    """
    payload = dict(payload or {})
    if "status" in payload:
        raise OrderValidationError(
            "status cannot be changed here; use the status endpoint",
            field="status",
        )

    order = get_order(kind, user_id, order_id)
    patch = validate_payload(
        model=kind.order_model,
        payload=payload,
        policy=header_policy(kind),
        partial=True,
    )

    merged = {
        "order_date": patch.get("order_date", order.order_date),
        "expected_delivery_date": patch.get("expected_delivery_date", order.expected_delivery_date),
    }
    enforce_rules_order_header(merged)

    if patch.get("order_number") and patch["order_number"] != order.order_number:
        _ensure_number_free(kind, user_id, patch["order_number"], exclude_id=order.id)

    for key, value in patch.items():
        setattr(order, key, value)

    db.session.commit()
    return order


def delete_order(kind: OrderKind, user_id: int, order_id: int) -> None:
    """
    Delete an owned order.

    Lines, fulfillment events and (customer orders) collections go with it
    through ON DELETE CASCADE.
    """
    order = get_order(kind, user_id, order_id)
    db.session.delete(order)
    db.session.commit()


def order_to_dict(kind: OrderKind, order, collected_cents: int | None = None) -> dict:
    if kind.tracks_collections and collected_cents is None:
        collected_cents = 0
    return summarize_order(order, kind.counter_attr, collected_cents if kind.tracks_collections else None)
