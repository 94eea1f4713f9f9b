# Overview: Flask API routes for supplier supply orders.

# backend/ordertrack/routes/procurement.py
"""
Supplier supply orders: CRUD plus receiving.

POST /api/procurement/receive {"order_id", "received_items": {line_id: qty}}
GET  /api/procurement/<id>/receipts

Receiving records what arrived; it does not change inventory item quantities.
"""

from ..services.order_kinds import SUPPLY
from .order_workflow import make_order_blueprint


procurement_bp = make_order_blueprint(
    SUPPLY,
    name="procurement",
    url_prefix="/api/procurement",
    apply_path="/receive",
    entries_key="received_items",
    history_path="receipts",
)
