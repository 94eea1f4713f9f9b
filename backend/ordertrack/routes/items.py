# Overview: Flask API routes for inventory items; parses input and returns JSON responses.

# backend/ordertrack/routes/items.py
"""
Inventory item routes.

SECURITY: All routes require authentication; items are scoped to the caller.
"""

from flask import Blueprint, current_app, g, jsonify, request
from sqlalchemy.exc import SQLAlchemyError

from ..decorators import require_auth
from ..extensions import db
from ..services import inventory_service
from ..services.inventory_service import ItemNotFoundError
from ..validation import ConflictError, ValidationError


items_bp = Blueprint("items", __name__, url_prefix="/api/items")


@items_bp.get("")
@require_auth
def list_items_route():
    """
    List inventory items by name.

    Query params:
    - low_stock: 1/true to only return items at or below their reorder level
    - q: search text (name, part number, supplier, category)
    """
    low_stock = (request.args.get("low_stock") or "").strip().lower() in ("1", "true", "yes")
    items = inventory_service.list_items(g.user_id, low_stock=low_stock, search=request.args.get("q"))
    return jsonify({"items": [i.to_dict() for i in items], "count": len(items)})


@items_bp.post("")
@require_auth
def create_item_route():
    payload = request.get_json(silent=True) or {}

    try:
        item = inventory_service.create_item(g.user_id, payload)
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except ValidationError as e:
        return jsonify(e.to_dict()), 400
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Failed to create inventory item")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify(item.to_dict()), 201


@items_bp.get("/<int:item_id>")
@require_auth
def get_item_route(item_id: int):
    try:
        return jsonify(inventory_service.get_item(g.user_id, item_id).to_dict())
    except ItemNotFoundError:
        return jsonify({"error": "Item not found"}), 404


@items_bp.patch("/<int:item_id>")
@require_auth
def update_item_route(item_id: int):
    payload = request.get_json(silent=True) or {}

    try:
        item = inventory_service.update_item(g.user_id, item_id, payload)
    except ItemNotFoundError:
        return jsonify({"error": "Item not found"}), 404
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except ValidationError as e:
        return jsonify(e.to_dict()), 400
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Failed to update inventory item")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify(item.to_dict())


@items_bp.delete("/<int:item_id>")
@require_auth
def delete_item_route(item_id: int):
    try:
        inventory_service.delete_item(g.user_id, item_id)
    except ItemNotFoundError:
        return jsonify({"error": "Item not found"}), 404
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Failed to delete inventory item")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"message": "Item deleted successfully"})
