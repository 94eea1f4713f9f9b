# Overview: Service-layer operations for inventory items; encapsulates business logic and database work.

"""
Inventory item management.

OWNERSHIP: Items are scoped to user_id. Part numbers are unique per user.
Quantities are edited directly; supply-order receiving does not touch them.
"""

from __future__ import annotations

from sqlalchemy import or_

from ..extensions import db
from ..models import InventoryItem
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    enforce_rules_inventory_item,
    validate_payload,
)
from .ownership_service import get_owned, owned_query


ITEM_POLICY = ModelValidationPolicy(
    writable_fields={
        "name",
        "part_number",
        "supplier",
        "description",
        "quantity",
        "category",
        "location",
        "reorder_level",
    },
    required_on_create={"name", "part_number"},
)


class ItemNotFoundError(Exception):
    """Raised when an inventory item is missing or not owned."""
    pass


def _ensure_part_number_free(user_id: int, part_number: str, exclude_id: int | None = None) -> None:
    query = owned_query(InventoryItem, user_id).filter(InventoryItem.part_number == part_number)
    if exclude_id is not None:
        query = query.filter(InventoryItem.id != exclude_id)
    if query.first():
        raise ConflictError(f"Part number {part_number} already exists")


def list_items(user_id: int, *, low_stock: bool = False, search: str | None = None) -> list[InventoryItem]:
    """
    List the caller's items by name.

    low_stock: only items at or below their reorder level
    search: case-insensitive match on name, part number, supplier or category
    """
    query = owned_query(InventoryItem, user_id)

    if low_stock:
        query = query.filter(
            InventoryItem.reorder_level.isnot(None),
            InventoryItem.quantity <= InventoryItem.reorder_level,
        )

    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(
            or_(
                InventoryItem.name.ilike(pattern),
                InventoryItem.part_number.ilike(pattern),
                InventoryItem.supplier.ilike(pattern),
                InventoryItem.category.ilike(pattern),
            )
        )

    return query.order_by(InventoryItem.name.asc(), InventoryItem.id.asc()).all()


def get_item(user_id: int, item_id: int) -> InventoryItem:
    item = get_owned(InventoryItem, user_id, item_id)
    if not item:
        raise ItemNotFoundError(f"Item {item_id} not found")
    return item


def create_item(user_id: int, payload: dict) -> InventoryItem:
    """
    Create an inventory item.

    Raises:
        ValidationError: Missing, unknown or malformed fields
        ConflictError: Part number already used by this user
    """
    patch = validate_payload(model=InventoryItem, payload=payload, policy=ITEM_POLICY, partial=False)
    patch.setdefault("quantity", 0)
    enforce_rules_inventory_item(patch)

    _ensure_part_number_free(user_id, patch["part_number"])

    item = InventoryItem(user_id=user_id, **patch)
    db.session.add(item)
    db.session.commit()
    return item


def update_item(user_id: int, item_id: int, payload: dict) -> InventoryItem:
    item = get_item(user_id, item_id)

    patch = validate_payload(model=InventoryItem, payload=payload, policy=ITEM_POLICY, partial=True)
    enforce_rules_inventory_item(patch)

    if patch.get("part_number") and patch["part_number"] != item.part_number:
        _ensure_part_number_free(user_id, patch["part_number"], exclude_id=item.id)

    for key, value in patch.items():
        setattr(item, key, value)

    db.session.commit()
    return item


def delete_item(user_id: int, item_id: int) -> None:
    """Delete an item. Supply lines that referenced it keep their text and lose the link."""
    item = get_item(user_id, item_id)
    db.session.delete(item)
    db.session.commit()
