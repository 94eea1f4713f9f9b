"""
Line-Item Aggregator

Pure computations over order lines and collection amounts. Nothing here
touches the session, so every function is safe to call on each read and
returns the same answer for the same input.

Status is always recomputed from line state for responses; the stored
order.status is only trusted for filtering.
"""

from __future__ import annotations

from typing import Iterable


FULFILLMENT_UNFULFILLED = "UNFULFILLED"
FULFILLMENT_PARTIAL = "PARTIALLY_FULFILLED"
FULFILLMENT_COMPLETE = "FULFILLED"

COLLECTION_UNPAID = "UNPAID"
COLLECTION_PARTIAL = "PARTIALLY_COLLECTED"
COLLECTION_COMPLETE = "FULLY_COLLECTED"


def line_fulfilled(line, counter_attr: str) -> int:
    return getattr(line, counter_attr) or 0


def line_remaining(line, counter_attr: str) -> int:
    return line.quantity - line_fulfilled(line, counter_attr)


def line_subtotal_cents(line) -> int:
    return line.quantity * line.unit_price_cents


def order_total_cents(lines: Iterable) -> int:
    """Sum of quantity * unit price over all lines."""
    return sum(line_subtotal_cents(line) for line in lines)


def fulfillment_status(lines: Iterable, counter_attr: str) -> str:
    """
    Aggregate per-line progress into one label.

    UNFULFILLED: nothing delivered on any line (also for an empty order)
    FULFILLED: every line delivered in full
    PARTIALLY_FULFILLED: anything in between
    """
    lines = list(lines)
    if not lines:
        return FULFILLMENT_UNFULFILLED

    done = [line_fulfilled(line, counter_attr) for line in lines]
    if all(d == 0 for d in done):
        return FULFILLMENT_UNFULFILLED
    if all(d >= line.quantity for d, line in zip(done, lines)):
        return FULFILLMENT_COMPLETE
    return FULFILLMENT_PARTIAL


def collection_status(total_cents: int, collected_cents: int) -> str:
    """
    UNPAID / PARTIALLY_COLLECTED / FULLY_COLLECTED from the running balance.

    A balance <= 0 is FULLY_COLLECTED. That includes overpayment and an order
    totalling 0 with nothing collected (there is nothing left to collect).
    """
    balance = total_cents - collected_cents
    if balance <= 0:
        return COLLECTION_COMPLETE
    if collected_cents > 0:
        return COLLECTION_PARTIAL
    return COLLECTION_UNPAID


def summarize_lines(lines: Iterable, counter_attr: str) -> list[dict]:
    result = []
    for line in lines:
        row = line.to_dict()
        row["remaining"] = line_remaining(line, counter_attr)
        row["subtotal_cents"] = line_subtotal_cents(line)
        result.append(row)
    return result


def summarize_order(order, counter_attr: str, collected_cents: int | None = None) -> dict:
    """
    Order dict with nested lines and derived totals.

    When collected_cents is given (customer orders), balance and collection
    status are included as well.
    """
    lines = list(order.lines)
    total = order_total_cents(lines)

    result = order.to_dict()
    result["lines"] = summarize_lines(lines, counter_attr)
    result["total_amount_cents"] = total
    result["total_quantity"] = sum(line.quantity for line in lines)
    result["total_fulfilled"] = sum(line_fulfilled(line, counter_attr) for line in lines)
    result["fulfillment_status"] = fulfillment_status(lines, counter_attr)

    if collected_cents is not None:
        result["total_collected_cents"] = collected_cents
        result["balance_cents"] = total - collected_cents
        result["collection_status"] = collection_status(total, collected_cents)

    return result
