# Overview: Flask API routes for collection ledger operations; parses input and returns JSON responses.

"""
Collection (customer payment) routes

SECURITY: All routes require authentication and only see the caller's rows.

Records are append-only: there is no update route. To correct an amount,
delete the record and create a new one.
"""

from flask import Blueprint, current_app, g, jsonify, request
from sqlalchemy.exc import SQLAlchemyError

from ..decorators import require_auth
from ..extensions import db
from ..schemas import CollectionCreateRequest
from ..services import collection_service
from ..services.collection_service import CollectionNotFoundError
from ..services.order_service import OrderNotFoundError
from ..validation import ValidationError, parse_row_id


collections_bp = Blueprint("collections", __name__, url_prefix="/api/collections")


def _int_arg(name: str):
    return parse_row_id(request.args.get(name), name)


@collections_bp.get("")
@require_auth
def list_collections_route():
    """
    List collection records, newest first.

    Query parameters:
    - order_id: only records for this order
    """
    try:
        order_id = _int_arg("order_id")
        records = collection_service.list_collections(g.user_id, order_id=order_id)
    except ValidationError as e:
        return jsonify(e.to_dict()), 400
    except OrderNotFoundError:
        return jsonify({"error": "Order not found"}), 404

    body = {"items": [c.to_dict() for c in records], "count": len(records)}
    if order_id is not None:
        body["summary"] = collection_service.collection_summary(g.user_id, order_id)
    return jsonify(body)


@collections_bp.post("")
@require_auth
def create_collection_route():
    """
    Record a payment against a purchase order.

    Request body:
    {
        "order_id": 1,                  // required
        "amount_cents": 5000,           // required (or "amount": "50.00")
        "date_collected": "2026-03-01", // optional, defaults to today
        "payment_method": "CASH",       // optional
        "reference_number": "..."       // optional
    }
    """
    data = request.get_json(silent=True)

    try:
        req = CollectionCreateRequest.from_payload(data)
        record = collection_service.record_collection(
            g.user_id,
            req.order_id,
            req.amount_cents,
            date_collected=req.date_collected,
            payment_method=req.payment_method,
            reference_number=req.reference_number,
        )
        return jsonify(record.to_dict()), 201
    except ValidationError as e:
        return jsonify(e.to_dict()), 400
    except OrderNotFoundError:
        return jsonify({"error": "Order not found"}), 404
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Failed to record collection")
        return jsonify({"error": "Internal server error"}), 500


def _delete_one(collection_id: int):
    try:
        collection_service.delete_collection(g.user_id, collection_id)
        return jsonify({"message": "Collection deleted successfully"})
    except CollectionNotFoundError:
        return jsonify({"error": "Collection not found"}), 404
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Failed to delete collection")
        return jsonify({"error": "Internal server error"}), 500


@collections_bp.delete("/<int:collection_id>")
@require_auth
def delete_collection_route(collection_id: int):
    return _delete_one(collection_id)


@collections_bp.delete("")
@require_auth
def delete_collections_by_query_route():
    """
    ?id=<collection id>      delete one record
    ?order_id=<order id>     delete every record for the order
    """
    try:
        collection_id = _int_arg("id")
        order_id = _int_arg("order_id")
    except ValidationError as e:
        return jsonify(e.to_dict()), 400

    if collection_id is not None:
        return _delete_one(collection_id)

    if order_id is None:
        return jsonify({"error": "id or order_id is required"}), 400

    try:
        deleted = collection_service.reverse_collections(g.user_id, order_id)
        return jsonify({"message": "Collections reversed", "deleted": deleted})
    except OrderNotFoundError:
        return jsonify({"error": "Order not found"}), 404
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Failed to reverse collections")
        return jsonify({"error": "Internal server error"}), 500


@collections_bp.get("/balances")
@require_auth
def list_balances_route():
    """
    Purchase orders with totals, collected amount and balance.

    Query parameters:
    - filter: unpaid | partial | collected | all (default all)
    """
    try:
        rows = collection_service.list_order_balances(g.user_id, request.args.get("filter"))
    except ValidationError as e:
        return jsonify(e.to_dict()), 400
    return jsonify({"items": rows, "count": len(rows)})
