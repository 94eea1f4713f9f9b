from __future__ import annotations

from ..extensions import db
from ordertrack.time_utils import to_utc_z, to_iso_date


class SupplyOrder(db.Model):
    """
    Supplier (procurement) order.

    Mirrors PurchaseOrder with a supplier as counterparty.

    LIFECYCLE (see fulfillment_service):
    DRAFT -> ORDERED -> PARTIALLY_RECEIVED -> RECEIVED, or CANCELLED.
    """
    __tablename__ = "supply_orders"
    __table_args__ = (
        db.UniqueConstraint("user_id", "order_number", name="uq_supply_orders_user_number"),
        db.Index("ix_supply_orders_user_status", "user_id", "status"),
        db.Index("ix_supply_orders_user_created", "user_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    order_number = db.Column(db.String(64), nullable=False)
    supplier_name = db.Column(db.String(255), nullable=False)

    status = db.Column(db.String(32), nullable=False, default="DRAFT")

    order_date = db.Column(db.Date, nullable=False)
    expected_delivery_date = db.Column(db.Date, nullable=True)
    tracking_reference = db.Column(db.String(128), nullable=True)
    notes = db.Column(db.Text, nullable=True)
    document_ref = db.Column(db.String(512), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    lines = db.relationship(
        "SupplyOrderLine",
        back_populates="order",
        order_by="SupplyOrderLine.position",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    receipts = db.relationship(
        "SupplyReceipt",
        back_populates="order",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<SupplyOrder id={self.id} number={self.order_number!r} status={self.status}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_number": self.order_number,
            "supplier_name": self.supplier_name,
            "status": self.status,
            "order_date": to_iso_date(self.order_date),
            "expected_delivery_date": to_iso_date(self.expected_delivery_date),
            "tracking_reference": self.tracking_reference,
            "notes": self.notes,
            "document_ref": self.document_ref,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class SupplyOrderLine(db.Model):
    """
    One ordered row on a supply order.

    INVARIANT: 0 <= quantity_received <= quantity.
    inventory_item_id optionally links the row to a stock item; receiving
    does not adjust that item's quantity.
    """
    __tablename__ = "supply_order_lines"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_so_lines_quantity_pos"),
        db.CheckConstraint("unit_price_cents >= 0", name="ck_so_lines_cost_nonneg"),
        db.CheckConstraint(
            "quantity_received >= 0 AND quantity_received <= quantity",
            name="ck_so_lines_received_range",
        ),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    supply_order_id = db.Column(
        db.Integer,
        db.ForeignKey("supply_orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position = db.Column(db.Integer, nullable=False, default=0)

    inventory_item_id = db.Column(
        db.Integer,
        db.ForeignKey("inventory_items.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    item_name = db.Column(db.String(255), nullable=False)
    part_number = db.Column(db.String(64), nullable=True)

    quantity = db.Column(db.Integer, nullable=False)
    # Unit cost paid to the supplier
    unit_price_cents = db.Column(db.Integer, nullable=False, default=0)

    quantity_received = db.Column(db.Integer, nullable=False, default=0)

    order = db.relationship("SupplyOrder", back_populates="lines")
    inventory_item = db.relationship("InventoryItem")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "supply_order_id": self.supply_order_id,
            "position": self.position,
            "inventory_item_id": self.inventory_item_id,
            "item_name": self.item_name,
            "part_number": self.part_number,
            "quantity": self.quantity,
            "unit_price_cents": self.unit_price_cents,
            "quantity_received": self.quantity_received,
        }


class SupplyReceipt(db.Model):
    """Reception ledger row: one per line per applied receiving batch."""
    __tablename__ = "supply_receipts"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_supply_receipts_quantity_pos"),
        db.Index("ix_supply_receipts_order_occurred", "supply_order_id", "occurred_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    supply_order_id = db.Column(
        db.Integer,
        db.ForeignKey("supply_orders.id", ondelete="CASCADE"),
        nullable=False,
    )
    line_id = db.Column(
        db.Integer,
        db.ForeignKey("supply_order_lines.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    quantity = db.Column(db.Integer, nullable=False)
    occurred_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    note = db.Column(db.String(255), nullable=True)

    order = db.relationship("SupplyOrder", back_populates="receipts")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.supply_order_id,
            "line_id": self.line_id,
            "quantity": self.quantity,
            "occurred_at": to_utc_z(self.occurred_at),
            "note": self.note,
        }
