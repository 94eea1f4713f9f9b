"""
Request schemas

Each mutating endpoint has an explicit schema that turns the loose JSON body
into a typed request before any workflow code runs. Normalizers are lenient
about representation (numbers as strings, "12.50" prices) and strict about
meaning; they raise ValidationError naming the offending field or row.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from .time_utils import parse_iso_date, parse_iso_datetime
from .validation import (
    MAX_PRICE_CENTS,
    MAX_QUANTITY,
    ValidationError,
    check_sql_integer,
    parse_row_id,
)


def _to_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text if text else None


def _to_int(value: Any, field_name: str) -> int | None:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be an integer", field=field_name)
    if isinstance(value, int):
        return check_sql_integer(value, field_name)
    if isinstance(value, float):
        if not value.is_integer():
            raise ValidationError(f"{field_name} must be a whole number", field=field_name)
        return check_sql_integer(int(value), field_name)
    text = str(value).strip()
    try:
        parsed = int(text)
    except ValueError:
        raise ValidationError(f"{field_name} must be an integer", field=field_name)
    return check_sql_integer(parsed, field_name)


def _to_cents(value: Any, field_name: str) -> int | None:
    """Decimal currency amount ("12.50", 12.5) to integer cents."""
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a number", field=field_name)
    text = str(value).strip().replace("$", "").replace(",", "")
    try:
        amount = Decimal(text)
    except InvalidOperation:
        raise ValidationError(f"{field_name} must be a number", field=field_name)
    if not amount.is_finite():
        raise ValidationError(f"{field_name} must be a number", field=field_name)
    return int((amount * 100).to_integral_value())


def _money_cents(data: dict, cents_key: str, decimal_key: str) -> int | None:
    """Accept either an explicit *_cents integer or a decimal amount."""
    if data.get(cents_key) is not None:
        return _to_int(data.get(cents_key), cents_key)
    return _to_cents(data.get(decimal_key), decimal_key)


def _to_date(value: Any, field_name: str) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return parse_iso_date(str(value))
    except ValueError:
        raise ValidationError(f"{field_name} must be an ISO-8601 date", field=field_name)


def _to_datetime(value: Any, field_name: str) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    try:
        return parse_iso_datetime(str(value))
    except ValueError:
        raise ValidationError(f"{field_name} must be an ISO-8601 datetime", field=field_name)


def _require_dict(data: Any) -> dict:
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Invalid JSON payload")
    return data


# =============================================================================
# ORDERS
# =============================================================================

@dataclass
class LineInput:
    item_name: str
    quantity: int
    unit_price_cents: int
    part_number: str | None = None
    inventory_item_id: int | None = None


def parse_line_rows(rows: Any) -> list[LineInput]:
    """
    Normalize submitted line rows.

    Rows without a name, or with a missing or zero quantity, are treated as
    blank form rows and dropped. Named rows that are otherwise malformed
    (negative or non-numeric quantity, negative price) are errors that name
    the row.
    """
    if rows is None:
        return []
    if not isinstance(rows, list):
        raise ValidationError("items must be a list", field="items")

    lines: list[LineInput] = []
    for index, raw in enumerate(rows, start=1):
        if not isinstance(raw, dict):
            raise ValidationError(f"items[{index}] must be an object", field="items")

        name = _to_text(raw.get("item_name")) or _to_text(raw.get("name"))
        qty = _to_int(raw.get("quantity"), f"items[{index}].quantity")
        if not name or qty is None or qty == 0:
            continue
        if qty < 0:
            raise ValidationError(f"items[{index}].quantity must be positive", field="items")

        if qty > MAX_QUANTITY:
            raise ValidationError(f"items[{index}].quantity cannot exceed {MAX_QUANTITY}", field="items")

        price = _money_cents(raw, "unit_price_cents", "unit_price")
        if price is None:
            price = _to_cents(raw.get("price_per_unit"), f"items[{index}].price_per_unit")
        if price is None:
            price = 0
        if price < 0:
            raise ValidationError(f"items[{index}]: unit price must be >= 0", field="items")
        if price > MAX_PRICE_CENTS:
            raise ValidationError(f"items[{index}]: unit price cannot exceed {MAX_PRICE_CENTS} cents", field="items")

        if len(name) > 255:
            raise ValidationError(f"items[{index}].item_name exceeds max length 255", field="items")

        lines.append(
            LineInput(
                item_name=name,
                quantity=qty,
                unit_price_cents=price,
                part_number=_to_text(raw.get("part_number")),
                inventory_item_id=parse_row_id(raw.get("inventory_item_id"), f"items[{index}].inventory_item_id"),
            )
        )
    return lines


@dataclass
class OrderCreateRequest:
    counterparty: str
    lines: list[LineInput]
    order_number: str | None = None
    order_date: date | None = None
    expected_delivery_date: date | None = None
    tracking_reference: str | None = None
    notes: str | None = None
    document_ref: str | None = None
    status: str | None = None

    @classmethod
    def from_payload(cls, data: Any, counterparty_field: str) -> "OrderCreateRequest":
        data = _require_dict(data)

        counterparty = _to_text(data.get(counterparty_field))
        if not counterparty:
            raise ValidationError(f"{counterparty_field} is required", field=counterparty_field)

        rows = data.get("items")
        if rows is None:
            rows = data.get("lines")

        return cls(
            counterparty=counterparty,
            lines=parse_line_rows(rows),
            order_number=_to_text(data.get("order_number")) or _to_text(data.get("po_number")),
            order_date=_to_date(data.get("order_date"), "order_date"),
            expected_delivery_date=_to_date(data.get("expected_delivery_date"), "expected_delivery_date"),
            tracking_reference=_to_text(data.get("tracking_reference")),
            notes=_to_text(data.get("notes")),
            document_ref=_to_text(data.get("document_ref")),
            status=_to_text(data.get("status")),
        )


@dataclass
class FulfillmentRequest:
    order_id: int
    entries: dict[int, int] = field(default_factory=dict)
    occurred_at: datetime | None = None
    note: str | None = None

    @classmethod
    def from_payload(cls, data: Any, entries_key: str) -> "FulfillmentRequest":
        """
        entries_key names the map in the body ("deliveries" or
        "received_items"). Both a {line_id: qty} object and a list of
        {line_id, quantity} rows are accepted.
        """
        data = _require_dict(data)

        order_id = parse_row_id(data.get("order_id"), "order_id")
        if order_id is None:
            raise ValidationError("order_id is required", field="order_id")

        raw = data.get(entries_key)
        if raw is None:
            raise ValidationError(f"{entries_key} is required", field=entries_key)

        pairs: list[tuple[Any, Any]]
        if isinstance(raw, dict):
            pairs = list(raw.items())
        elif isinstance(raw, list):
            pairs = []
            for row in raw:
                if not isinstance(row, dict):
                    raise ValidationError(f"{entries_key} rows must be objects", field=entries_key)
                line_key = row.get("line_id", row.get("item_id"))
                pairs.append((line_key, row.get("quantity")))
        else:
            raise ValidationError(f"{entries_key} must be an object or list", field=entries_key)

        entries: dict[int, int] = {}
        for line_key, qty_raw in pairs:
            line_id = parse_row_id(line_key, "line_id")
            if line_id is None:
                raise ValidationError(f"{entries_key} contains an entry without a line id", field=entries_key)
            qty = _to_int(qty_raw, f"{entries_key}[{line_id}]")
            if qty is None:
                raise ValidationError(f"Quantity for line {line_id} is required", field=entries_key)
            if line_id in entries:
                raise ValidationError(f"Line {line_id} appears more than once", field=entries_key)
            entries[line_id] = qty

        return cls(
            order_id=order_id,
            entries=entries,
            occurred_at=_to_datetime(data.get("occurred_at"), "occurred_at"),
            note=_to_text(data.get("note")),
        )


# =============================================================================
# COLLECTIONS
# =============================================================================

@dataclass
class CollectionCreateRequest:
    order_id: int
    amount_cents: int
    date_collected: date | None = None
    payment_method: str | None = None
    reference_number: str | None = None

    @classmethod
    def from_payload(cls, data: Any) -> "CollectionCreateRequest":
        data = _require_dict(data)

        order_id = parse_row_id(data.get("order_id"), "order_id")
        if order_id is None:
            raise ValidationError("order_id is required", field="order_id")

        amount = _money_cents(data, "amount_cents", "amount")
        if amount is None:
            raise ValidationError("amount is required", field="amount_cents")

        method = _to_text(data.get("payment_method"))
        if method and len(method) > 32:
            raise ValidationError("payment_method exceeds max length 32", field="payment_method")

        return cls(
            order_id=order_id,
            amount_cents=amount,
            date_collected=_to_date(data.get("date_collected"), "date_collected"),
            payment_method=method,
            reference_number=_to_text(data.get("reference_number")),
        )
