# Overview: Service-layer operations for order fulfillment; encapsulates business logic and database work.

"""
Fulfillment Workflow Service

WHY: Orders are delivered (customer side) or received (supplier side) in
batches that may cover only part of each line. This service applies a batch
against the remaining quantities and keeps the stored order status in step.

LIFECYCLE (customer / supplier):
1. PENDING / DRAFT: Created, nothing delivered
2. PROCESSING / ORDERED: Being worked on
3. PARTIALLY_FULFILLED / PARTIALLY_RECEIVED: Some quantity delivered
4. FULFILLED / RECEIVED: Every line delivered in full
5. CANCELLED: No further deliveries accepted

ATOMICITY: A batch is applied in one transaction. Each line is advanced
with a conditional increment (counter + qty <= quantity) so concurrent
batches cannot both consume the same remaining quantity. Any invalid entry
rolls back every line in the batch.

STATUS OVERRIDE: set_status() writes any valid status without checking line
state. It is the owner's escape hatch and may leave the stored status out of
step with fulfillment_status(); responses expose both.
"""

from __future__ import annotations

from datetime import datetime

from flask import current_app

from ..extensions import db
from ..validation import MAX_QUANTITY
from .aggregation_service import fulfillment_status
from .concurrency import conditional_increment
from .order_kinds import OrderKind, PURCHASE, SUPPLY
from .order_service import (
    OrderNotFoundError,
    OrderStateError,
    OrderValidationError,
    get_order,
)
from .ownership_service import get_owned
from ordertrack.time_utils import utcnow


def _status_rank(kind: OrderKind, status: str) -> int:
    ranks = {
        kind.status_initial: 0,
        kind.status_in_flight: 1,
        kind.status_partial: 2,
        kind.status_complete: 3,
    }
    return ranks.get(status, -1)


def _load_lines(kind: OrderKind, order_id: int) -> list:
    # populate_existing: the counters were changed behind the identity map
    return (
        db.session.query(kind.line_model)
        .filter(kind.line_order_column() == order_id)
        .order_by(kind.line_model.position)
        .populate_existing()
        .all()
    )


def _validate_entries(entries: dict[int, int]) -> None:
    if not entries:
        raise OrderValidationError("At least one line quantity is required")
    for line_id, qty in entries.items():
        if not isinstance(qty, int) or isinstance(qty, bool) or qty <= 0:
            raise OrderValidationError(
                f"Quantity for line {line_id} must be a positive integer",
                line_id=line_id,
            )
        if qty > MAX_QUANTITY:
            raise OrderValidationError(
                f"Quantity for line {line_id} cannot exceed {MAX_QUANTITY}",
                line_id=line_id,
            )


def apply_fulfillment(
    kind: OrderKind,
    user_id: int,
    order_id: int,
    entries: dict[int, int],
    *,
    occurred_at: datetime | None = None,
    note: str | None = None,
):
    """
    Apply a delivery (or receiving) batch to an order.

    Args:
        kind: PURCHASE or SUPPLY
        user_id: Owner (the authenticated caller)
        order_id: Order to fulfil
        entries: Map of line id -> quantity to apply (each 0 < qty <= remaining)
        occurred_at: Business time of the delivery (defaults to now)
        note: Optional note copied onto each event row

    Returns:
        The order, with status recomputed

    Raises:
        OrderNotFoundError: Order missing or not owned
        OrderStateError: Order is CANCELLED
        OrderValidationError: Any entry invalid; nothing is applied
    """
    _validate_entries(entries)
    occurred = occurred_at or utcnow()

    try:
        order = get_owned(kind.order_model, user_id, order_id, for_update=True)
        if not order:
            raise OrderNotFoundError(f"{kind.label} {order_id} not found")

        if order.status == kind.status_cancelled:
            raise OrderStateError(f"Cannot apply quantities to a {kind.status_cancelled} {kind.label.lower()}")

        line_ids = {
            row.id
            for row in db.session.query(kind.line_model.id)
            .filter(kind.line_order_column() == order.id)
            .all()
        }
        for line_id in sorted(entries):
            if line_id not in line_ids:
                raise OrderValidationError(
                    f"Line {line_id} does not belong to {kind.label.lower()} {order.order_number}",
                    line_id=line_id,
                )

        for line_id in sorted(entries):
            qty = entries[line_id]
            applied = conditional_increment(
                kind.line_model,
                row_id=line_id,
                counter_attr=kind.counter_attr,
                delta=qty,
                ceiling_attr="quantity",
                scope=(kind.line_order_column() == order.id,),
            )
            if not applied:
                current = (
                    db.session.query(kind.line_model.quantity, kind.counter_column())
                    .filter(kind.line_model.id == line_id)
                    .one()
                )
                remaining = current[0] - current[1]
                raise OrderValidationError(
                    f"Line {line_id}: quantity {qty} exceeds remaining {remaining}",
                    line_id=line_id,
                )

            event = kind.event_model(
                user_id=user_id,
                line_id=line_id,
                quantity=qty,
                occurred_at=occurred,
                note=note,
            )
            setattr(event, kind.line_fk, order.id)
            db.session.add(event)

        db.session.flush()

        lines = _load_lines(kind, order.id)
        derived = kind.status_for(fulfillment_status(lines, kind.counter_attr))
        # forward only: a manual FULFILLED stays put
        if derived and _status_rank(kind, derived) > _status_rank(kind, order.status):
            order.status = derived

        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    current_app.logger.info(
        "Applied %s batch: user=%s order=%s lines=%d status=%s",
        kind.code, user_id, order.id, len(entries), order.status,
    )
    return order


def deliver_purchase_order(user_id: int, order_id: int, deliveries: dict[int, int], **kwargs):
    """Apply a customer delivery batch (see apply_fulfillment)."""
    return apply_fulfillment(PURCHASE, user_id, order_id, deliveries, **kwargs)


def receive_supply_order(user_id: int, order_id: int, received_items: dict[int, int], **kwargs):
    """Apply a supplier receiving batch (see apply_fulfillment)."""
    return apply_fulfillment(SUPPLY, user_id, order_id, received_items, **kwargs)


def set_status(kind: OrderKind, user_id: int, order_id: int, new_status: str):
    """
    Administrative status override.

    No quantity checks: the owner may move an order backwards, into or out
    of CANCELLED. Only the value itself is validated.
    """
    if new_status not in kind.statuses:
        raise OrderValidationError(
            f"Invalid status. Must be one of: {', '.join(kind.statuses)}",
            field="status",
        )

    order = get_order(kind, user_id, order_id)
    previous = order.status
    order.status = new_status
    db.session.commit()

    current_app.logger.info(
        "Status override: user=%s %s=%s %s -> %s",
        user_id, kind.code, order.id, previous, new_status,
    )
    return order


def cancel_order(kind: OrderKind, user_id: int, order_id: int, *, allow_after_fulfillment: bool | None = None):
    """
    Cancel an order through the normal workflow.

    Whether an order with delivered quantity may still be cancelled is a
    configuration decision (ALLOW_CANCEL_AFTER_FULFILLMENT).

    Raises:
        OrderNotFoundError: Order missing or not owned
        OrderStateError: Already cancelled, or fulfilment started and not allowed
    """
    if allow_after_fulfillment is None:
        allow_after_fulfillment = bool(current_app.config.get("ALLOW_CANCEL_AFTER_FULFILLMENT", False))

    order = get_order(kind, user_id, order_id)
    if order.status == kind.status_cancelled:
        raise OrderStateError(f"{kind.label} is already cancelled")

    started = any(getattr(line, kind.counter_attr) > 0 for line in order.lines)
    if started and not allow_after_fulfillment:
        raise OrderStateError(
            f"Cannot cancel a {kind.label.lower()} after fulfilment has started. "
            "Use the status override if this is intended."
        )

    order.status = kind.status_cancelled
    db.session.commit()
    return order


def list_fulfillment_events(kind: OrderKind, user_id: int, order_id: int) -> list:
    """Delivery / receipt history for an owned order, oldest first."""
    order = get_order(kind, user_id, order_id)
    model = kind.event_model
    return (
        db.session.query(model)
        .filter(kind.event_order_column() == order.id)
        .order_by(model.occurred_at.asc(), model.id.asc())
        .all()
    )
