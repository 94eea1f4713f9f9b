# Overview: Flask API routes for the simple paid/unpaid toggle.

"""
Payment toggle routes

A thin view over the collection ledger for screens that only need
"paid / not paid":
- GET     ids of fully collected orders
- POST    {"order_id"}: record the outstanding balance as one collection
- DELETE  ?order_id=: remove every collection for the order
"""

from flask import Blueprint, current_app, g, jsonify, request
from sqlalchemy.exc import SQLAlchemyError

from ..decorators import require_auth
from ..extensions import db
from ..services import collection_service
from ..services.order_service import OrderNotFoundError
from ..validation import ValidationError, parse_row_id


payments_bp = Blueprint("payments", __name__, url_prefix="/api/payments")


def _order_id(raw):
    order_id = parse_row_id(raw, "order_id")
    if order_id is None:
        raise ValidationError("order_id is required", field="order_id")
    return order_id


@payments_bp.get("")
@require_auth
def list_paid_route():
    return jsonify({"paid_order_ids": collection_service.paid_order_ids(g.user_id)})


@payments_bp.post("")
@require_auth
def mark_paid_route():
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify({"error": "Invalid JSON payload"}), 400

    try:
        record = collection_service.mark_paid(g.user_id, _order_id(data.get("order_id")))
        return jsonify(record.to_dict()), 201
    except ValidationError as e:
        return jsonify(e.to_dict()), 400
    except OrderNotFoundError:
        return jsonify({"error": "Order not found"}), 404
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Failed to mark order paid")
        return jsonify({"error": "Internal server error"}), 500


@payments_bp.delete("")
@require_auth
def mark_unpaid_route():
    try:
        deleted = collection_service.mark_unpaid(g.user_id, _order_id(request.args.get("order_id")))
        return jsonify({"message": "Order marked unpaid", "deleted": deleted})
    except ValidationError as e:
        return jsonify(e.to_dict()), 400
    except OrderNotFoundError:
        return jsonify({"error": "Order not found"}), 404
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Failed to mark order unpaid")
        return jsonify({"error": "Internal server error"}), 500
