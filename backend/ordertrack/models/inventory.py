from __future__ import annotations

from ..extensions import db
from ordertrack.time_utils import to_utc_z


class InventoryItem(db.Model):
    """
    Stock item master data.

    OWNERSHIP: Scoped to user_id. Part numbers are unique per user.

    Quantity on hand is edited directly by the owner. Receiving supply
    orders does not move stock (there is no ledger between the two).
    """
    __tablename__ = "inventory_items"
    __table_args__ = (
        db.UniqueConstraint("user_id", "part_number", name="uq_inventory_items_user_part"),
        db.Index("ix_inventory_items_user_name", "user_id", "name"),
        db.CheckConstraint("quantity >= 0", name="ck_inventory_items_quantity_nonneg"),
        db.CheckConstraint(
            "reorder_level IS NULL OR reorder_level >= 0",
            name="ck_inventory_items_reorder_nonneg",
        ),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    name = db.Column(db.String(255), nullable=False)
    part_number = db.Column(db.String(64), nullable=False)
    supplier = db.Column(db.String(255), nullable=True)
    description = db.Column(db.Text, nullable=True)

    quantity = db.Column(db.Integer, nullable=False, default=0)

    category = db.Column(db.String(128), nullable=True)
    location = db.Column(db.String(128), nullable=True)
    reorder_level = db.Column(db.Integer, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    @property
    def is_low_stock(self) -> bool:
        return self.reorder_level is not None and self.quantity <= self.reorder_level

    def __repr__(self) -> str:
        return f"<InventoryItem id={self.id} part_number={self.part_number!r} user_id={self.user_id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "part_number": self.part_number,
            "supplier": self.supplier,
            "description": self.description,
            "quantity": self.quantity,
            "category": self.category,
            "location": self.location,
            "reorder_level": self.reorder_level,
            "is_low_stock": self.is_low_stock,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
