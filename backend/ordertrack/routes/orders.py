# Overview: Flask API routes for customer purchase orders.

# backend/ordertrack/routes/orders.py
"""
Customer purchase orders: CRUD plus delivery tracking.

POST /api/orders/fulfill {"order_id", "deliveries": {line_id: qty}}
GET  /api/orders/<id>/deliveries
"""

from ..services.order_kinds import PURCHASE
from .order_workflow import make_order_blueprint


orders_bp = make_order_blueprint(
    PURCHASE,
    name="orders",
    url_prefix="/api/orders",
    apply_path="/fulfill",
    entries_key="deliveries",
    history_path="deliveries",
)
