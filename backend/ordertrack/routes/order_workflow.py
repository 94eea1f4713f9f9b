# Overview: Flask route factory shared by customer orders and supply orders; parses input and returns JSON responses.

"""
Order workflow routes

Customer orders (/api/orders) and supply orders (/api/procurement) expose the
same surface. make_order_blueprint() builds it for one OrderKind.

SECURITY: All routes require authentication. The owner is always g.user_id;
ids in paths or bodies only select among the caller's own rows.

ERRORS:
- 400: ValidationError (body may include "field" and "line_id")
- 404: Order missing or owned by someone else
- 409: Duplicate order number, or the order's status forbids the action
- 500: Storage failure (logged, message not exposed)
"""

from flask import Blueprint, current_app, g, jsonify, request
from sqlalchemy.exc import SQLAlchemyError

from ..decorators import require_auth
from ..extensions import db
from ..schemas import FulfillmentRequest, OrderCreateRequest
from ..services import collection_service, fulfillment_service, order_service
from ..services.order_kinds import OrderKind
from ..services.order_service import OrderNotFoundError, OrderStateError
from ..validation import ConflictError, ValidationError, parse_row_id


def _storage_failure(action: str):
    db.session.rollback()
    current_app.logger.exception("Failed to %s", action)
    return jsonify({"error": "Internal server error"}), 500


def make_order_blueprint(
    kind: OrderKind,
    *,
    name: str,
    url_prefix: str,
    apply_path: str,
    entries_key: str,
    history_path: str,
) -> Blueprint:
    """
    Build the CRUD + fulfillment blueprint for one order kind.

    apply_path / entries_key: "/fulfill" + "deliveries" or "/receive" + "received_items"
    history_path: "deliveries" or "receipts"
    """
    bp = Blueprint(name, __name__, url_prefix=url_prefix)
    label = kind.label.lower()

    def serialize(order) -> dict:
        collected = None
        if kind.tracks_collections:
            collected = collection_service.collected_cents(g.user_id, order.id)
        return order_service.order_to_dict(kind, order, collected)

    def not_found(order_id):
        return jsonify({"error": f"{kind.label} not found", "id": order_id}), 404

    def body_or_query_id(data: dict):
        raw = data.get("id") if data.get("id") is not None else request.args.get("id")
        return parse_row_id(raw, "id")

    @bp.get("")
    @require_auth
    def list_orders_route():
        """
        List the caller's orders, newest first.

        Query parameters:
        - status: exact stored status filter

        Returns:
            {items: Order[], count: int}
        """
        status = request.args.get("status") or None
        if status and status not in kind.statuses:
            return jsonify({"error": f"Invalid status. Must be one of: {', '.join(kind.statuses)}"}), 400

        try:
            orders = order_service.list_orders(kind, g.user_id, status=status)
            collected = {}
            if kind.tracks_collections:
                collected = collection_service.collected_cents_by_order(g.user_id)
            items = [
                order_service.order_to_dict(
                    kind,
                    order,
                    collected.get(order.id, 0) if kind.tracks_collections else None,
                )
                for order in orders
            ]
        except SQLAlchemyError:
            return _storage_failure(f"list {label}s")

        return jsonify({"items": items, "count": len(items)})

    @bp.post("")
    @require_auth
    def create_order_route():
        """
        Create an order with its lines.

        Request body:
        {
            "<counterparty>": "...",       // required (customer_name / supplier_name)
            "order_number": "...",         // optional, generated when omitted
            "order_date": "2026-03-01",    // optional, defaults to today
            "expected_delivery_date": "..",// optional
            "items": [{"item_name", "quantity", "unit_price_cents" | "unit_price", "part_number"}],
            "tracking_reference", "notes", "document_ref", "status"  // optional
        }
        """
        data = request.get_json(silent=True)

        try:
            req = OrderCreateRequest.from_payload(data, kind.counterparty_field)
            order = order_service.create_order(kind, g.user_id, req)
            return jsonify(serialize(order)), 201
        except ConflictError as e:
            return jsonify({"error": str(e)}), 409
        except ValidationError as e:
            return jsonify(e.to_dict()), 400
        except SQLAlchemyError:
            return _storage_failure(f"create {label}")

    @bp.get("/<int:order_id>")
    @require_auth
    def get_order_route(order_id: int):
        try:
            order = order_service.get_order(kind, g.user_id, order_id)
            return jsonify(serialize(order))
        except OrderNotFoundError:
            return not_found(order_id)
        except SQLAlchemyError:
            return _storage_failure(f"load {label}")

    def _update(order_id, data):
        payload = {k: v for k, v in data.items() if k != "id"}
        try:
            order = order_service.update_order(kind, g.user_id, order_id, payload)
            return jsonify(serialize(order))
        except OrderNotFoundError:
            return not_found(order_id)
        except ConflictError as e:
            return jsonify({"error": str(e)}), 409
        except ValidationError as e:
            db.session.rollback()
            return jsonify(e.to_dict()), 400
        except SQLAlchemyError:
            return _storage_failure(f"update {label}")

    @bp.patch("/<int:order_id>")
    @require_auth
    def update_order_route(order_id: int):
        """Partial header update. Status and line counters are not writable here."""
        data = request.get_json(silent=True) or {}
        if not isinstance(data, dict):
            return jsonify({"error": "Invalid JSON payload"}), 400
        return _update(order_id, data)

    @bp.patch("")
    @require_auth
    def update_order_by_body_route():
        """Same as PATCH /<id>, with the id in the body."""
        data = request.get_json(silent=True) or {}
        if not isinstance(data, dict):
            return jsonify({"error": "Invalid JSON payload"}), 400
        try:
            order_id = body_or_query_id(data)
        except ValidationError as e:
            return jsonify(e.to_dict()), 400
        if order_id is None:
            return jsonify({"error": f"{kind.label} id is required", "field": "id"}), 400
        return _update(order_id, data)

    def _delete(order_id):
        try:
            order_service.delete_order(kind, g.user_id, order_id)
            return jsonify({"message": f"{kind.label} deleted successfully"})
        except OrderNotFoundError:
            return not_found(order_id)
        except SQLAlchemyError:
            return _storage_failure(f"delete {label}")

    @bp.delete("/<int:order_id>")
    @require_auth
    def delete_order_route(order_id: int):
        """Delete an order; lines, history and collections go with it."""
        return _delete(order_id)

    @bp.delete("")
    @require_auth
    def delete_order_by_query_route():
        """Same as DELETE /<id>, with ?id= in the query string."""
        try:
            order_id = body_or_query_id({})
        except ValidationError as e:
            return jsonify(e.to_dict()), 400
        if order_id is None:
            return jsonify({"error": f"{kind.label} id is required", "field": "id"}), 400
        return _delete(order_id)

    @bp.post(apply_path)
    @require_auth
    def apply_quantities_route():
        """
        Apply a delivery / receiving batch.

        Request body:
        {
            "order_id": 1,
            "<entries_key>": {"<line_id>": qty, ...},   // or [{"line_id", "quantity"}]
            "occurred_at": "...",                       // optional, ISO-8601
            "note": "..."                               // optional
        }

        All entries are applied or none are.
        """
        data = request.get_json(silent=True)

        try:
            req = FulfillmentRequest.from_payload(data, entries_key)
            order = fulfillment_service.apply_fulfillment(
                kind,
                g.user_id,
                req.order_id,
                req.entries,
                occurred_at=req.occurred_at,
                note=req.note,
            )
            return jsonify(serialize(order))
        except OrderNotFoundError:
            return not_found(data.get("order_id") if isinstance(data, dict) else None)
        except OrderStateError as e:
            return jsonify({"error": str(e)}), 409
        except ValidationError as e:
            return jsonify(e.to_dict()), 400
        except SQLAlchemyError:
            return _storage_failure(f"apply quantities to {label}")

    @bp.post("/<int:order_id>/status")
    @require_auth
    def set_status_route(order_id: int):
        """
        Administrative status override.

        Request body: {"status": "<one of the kind's statuses>"}
        No quantity checks are made.
        """
        data = request.get_json(silent=True) or {}
        status = data.get("status") if isinstance(data, dict) else None
        if not status:
            return jsonify({"error": "status is required", "field": "status"}), 400

        try:
            order = fulfillment_service.set_status(kind, g.user_id, order_id, status)
            return jsonify(serialize(order))
        except OrderNotFoundError:
            return not_found(order_id)
        except ValidationError as e:
            return jsonify(e.to_dict()), 400
        except SQLAlchemyError:
            return _storage_failure(f"set {label} status")

    @bp.post("/<int:order_id>/cancel")
    @require_auth
    def cancel_order_route(order_id: int):
        try:
            order = fulfillment_service.cancel_order(kind, g.user_id, order_id)
            return jsonify(serialize(order))
        except OrderNotFoundError:
            return not_found(order_id)
        except OrderStateError as e:
            return jsonify({"error": str(e)}), 409
        except SQLAlchemyError:
            return _storage_failure(f"cancel {label}")

    @bp.get(f"/<int:order_id>/{history_path}")
    @require_auth
    def history_route(order_id: int):
        """Fulfillment events for the order, oldest first."""
        try:
            events = fulfillment_service.list_fulfillment_events(kind, g.user_id, order_id)
        except OrderNotFoundError:
            return not_found(order_id)
        except SQLAlchemyError:
            return _storage_failure(f"load {label} history")
        return jsonify({"items": [e.to_dict() for e in events], "count": len(events)})

    return bp
