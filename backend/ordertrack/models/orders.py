from __future__ import annotations

from ..extensions import db
from ordertrack.time_utils import to_utc_z, to_iso_date


class PurchaseOrder(db.Model):
    """
    Customer purchase order.

    LIFECYCLE (see fulfillment_service):
    PENDING -> PROCESSING -> PARTIALLY_FULFILLED -> FULFILLED, or CANCELLED.
    The stored status is kept in step with the line counters by the
    fulfillment workflow; the owner may override it directly.

    CASCADE: Deleting an order deletes its lines, delivery events and
    collections (declared both on the FKs and on the relationships).
    """
    __tablename__ = "purchase_orders"
    __table_args__ = (
        db.UniqueConstraint("user_id", "order_number", name="uq_purchase_orders_user_number"),
        db.Index("ix_purchase_orders_user_status", "user_id", "status"),
        db.Index("ix_purchase_orders_user_created", "user_id", "created_at"),
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
    customer_name = db.Column(db.String(255), nullable=False)

    status = db.Column(db.String(32), nullable=False, default="PENDING")

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
        "PurchaseOrderLine",
        back_populates="order",
        order_by="PurchaseOrderLine.position",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    deliveries = db.relationship(
        "OrderDelivery",
        back_populates="order",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    collections = db.relationship(
        "Collection",
        back_populates="order",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<PurchaseOrder id={self.id} number={self.order_number!r} status={self.status}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_number": self.order_number,
            "customer_name": self.customer_name,
            "status": self.status,
            "order_date": to_iso_date(self.order_date),
            "expected_delivery_date": to_iso_date(self.expected_delivery_date),
            "tracking_reference": self.tracking_reference,
            "notes": self.notes,
            "document_ref": self.document_ref,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class PurchaseOrderLine(db.Model):
    """
    One ordered product row on a purchase order.

    INVARIANT: 0 <= quantity_delivered <= quantity, enforced by CHECK
    constraints and by the conditional increment in fulfillment_service.
    quantity_delivered is never written by the order update path.
    """
    __tablename__ = "purchase_order_lines"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_po_lines_quantity_pos"),
        db.CheckConstraint("unit_price_cents >= 0", name="ck_po_lines_price_nonneg"),
        db.CheckConstraint(
            "quantity_delivered >= 0 AND quantity_delivered <= quantity",
            name="ck_po_lines_delivered_range",
        ),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    purchase_order_id = db.Column(
        db.Integer,
        db.ForeignKey("purchase_orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position = db.Column(db.Integer, nullable=False, default=0)

    item_name = db.Column(db.String(255), nullable=False)
    part_number = db.Column(db.String(64), nullable=True)

    quantity = db.Column(db.Integer, nullable=False)
    unit_price_cents = db.Column(db.Integer, nullable=False, default=0)

    quantity_delivered = db.Column(db.Integer, nullable=False, default=0)

    order = db.relationship("PurchaseOrder", back_populates="lines")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "purchase_order_id": self.purchase_order_id,
            "position": self.position,
            "item_name": self.item_name,
            "part_number": self.part_number,
            "quantity": self.quantity,
            "unit_price_cents": self.unit_price_cents,
            "quantity_delivered": self.quantity_delivered,
        }


class OrderDelivery(db.Model):
    """Delivery ledger row: one per line per applied delivery batch."""
    __tablename__ = "order_deliveries"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_order_deliveries_quantity_pos"),
        db.Index("ix_order_deliveries_order_occurred", "purchase_order_id", "occurred_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    purchase_order_id = db.Column(
        db.Integer,
        db.ForeignKey("purchase_orders.id", ondelete="CASCADE"),
        nullable=False,
    )
    line_id = db.Column(
        db.Integer,
        db.ForeignKey("purchase_order_lines.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    quantity = db.Column(db.Integer, nullable=False)
    occurred_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    note = db.Column(db.String(255), nullable=True)

    order = db.relationship("PurchaseOrder", back_populates="deliveries")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.purchase_order_id,
            "line_id": self.line_id,
            "quantity": self.quantity,
            "occurred_at": to_utc_z(self.occurred_at),
            "note": self.note,
        }


class Collection(db.Model):
    """
    Cash collected against a purchase order.

    APPEND-ONLY: records are created or deleted, never edited. Correcting an
    amount means delete-and-recreate.
    """
    __tablename__ = "collections"
    __table_args__ = (
        db.CheckConstraint("amount_cents > 0", name="ck_collections_amount_pos"),
        db.Index("ix_collections_user_order", "user_id", "purchase_order_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    purchase_order_id = db.Column(
        db.Integer,
        db.ForeignKey("purchase_orders.id", ondelete="CASCADE"),
        nullable=False,
    )

    amount_cents = db.Column(db.Integer, nullable=False)
    date_collected = db.Column(db.Date, nullable=False)
    payment_method = db.Column(db.String(32), nullable=True)
    reference_number = db.Column(db.String(128), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    order = db.relationship("PurchaseOrder", back_populates="collections")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.purchase_order_id,
            "amount_cents": self.amount_cents,
            "date_collected": to_iso_date(self.date_collected),
            "payment_method": self.payment_method,
            "reference_number": self.reference_number,
            "created_at": to_utc_z(self.created_at),
        }
