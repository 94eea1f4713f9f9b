# Overview: Pytest coverage for the order and procurement HTTP routes.

"""
Order API Tests

Exercises /api/orders and /api/procurement through the Flask test client.
"""

import pytest
from sqlalchemy.exc import OperationalError

from ordertrack.extensions import db
from ordertrack.models import (
    Collection,
    InventoryItem,
    OrderDelivery,
    PurchaseOrder,
    PurchaseOrderLine,
    SupplyOrder,
)
from ordertrack.services import fulfillment_service, order_service


def _create(client, headers, **overrides):
    body = {
        "customer_name": "Acme Hardware",
        "order_date": "2026-03-01",
        "items": [
            {"item_name": "Bolt", "quantity": 5, "unit_price": "2.00"},
            {"item_name": "Nut", "quantity": 3, "unit_price_cents": 50},
        ],
    }
    body.update(overrides)
    return client.post("/api/orders", json=body, headers=headers)


class TestCreateOrder:

    def test_create_with_lines(self, client, headers_a):
        response = _create(client, headers_a)

        assert response.status_code == 201
        body = response.json
        assert body["order_number"] == "PO-00001"
        assert body["status"] == "PENDING"
        assert body["order_date"] == "2026-03-01"
        assert [line["item_name"] for line in body["lines"]] == ["Bolt", "Nut"]
        assert body["total_amount_cents"] == 5 * 200 + 3 * 50
        assert body["fulfillment_status"] == "UNFULFILLED"
        assert body["collection_status"] == "UNPAID"
        assert body["balance_cents"] == body["total_amount_cents"]

    def test_blank_rows_are_dropped(self, client, headers_a):
        response = _create(client, headers_a, items=[
            {"item_name": "Bolt", "quantity": 2, "unit_price_cents": 100},
            {"item_name": "", "quantity": 4, "unit_price_cents": 100},
            {"item_name": "Washer", "quantity": 0, "unit_price_cents": 100},
        ])

        assert response.status_code == 201
        assert len(response.json["lines"]) == 1

    @pytest.mark.parametrize("items", [
        [],
        [{"item_name": "", "quantity": 3}],
        [{"item_name": "Bolt", "quantity": 0}, {"item_name": "  ", "quantity": 2}],
    ])
    def test_no_valid_lines_rejected(self, client, headers_a, db_session, items):
        response = _create(client, headers_a, items=items)

        assert response.status_code == 400
        assert response.json["field"] == "items"
        assert db_session.query(PurchaseOrder).count() == 0
        assert db_session.query(PurchaseOrderLine).count() == 0

    def test_negative_price_names_the_row(self, client, headers_a, db_session):
        response = _create(client, headers_a, items=[
            {"item_name": "Bolt", "quantity": 1, "unit_price_cents": 100},
            {"item_name": "Nut", "quantity": 1, "unit_price_cents": -5},
        ])

        assert response.status_code == 400
        assert "items[2]" in response.json["error"]
        assert db_session.query(PurchaseOrder).count() == 0

    def test_negative_quantity_names_the_row(self, client, headers_a, db_session):
        response = _create(client, headers_a, items=[
            {"item_name": "Bolt", "quantity": 2, "unit_price_cents": 100},
            {"item_name": "Nut", "quantity": -3, "unit_price_cents": 100},
        ])

        assert response.status_code == 400
        assert response.json["field"] == "items"
        assert "items[2].quantity" in response.json["error"]
        assert db_session.query(PurchaseOrder).count() == 0
        assert db_session.query(PurchaseOrderLine).count() == 0

    def test_zero_total_order_reads_as_collected(self, client, headers_a):
        response = _create(client, headers_a, items=[
            {"item_name": "Sample", "quantity": 2, "unit_price_cents": 0},
        ])

        assert response.status_code == 201
        assert response.json["total_amount_cents"] == 0
        assert response.json["balance_cents"] == 0
        assert response.json["collection_status"] == "FULLY_COLLECTED"

    def test_counterparty_required(self, client, headers_a):
        response = _create(client, headers_a, customer_name="")
        assert response.status_code == 400
        assert response.json["field"] == "customer_name"

    def test_duplicate_order_number_conflicts(self, client, headers_a):
        assert _create(client, headers_a, order_number="INV-1").status_code == 201
        response = _create(client, headers_a, order_number="INV-1")
        assert response.status_code == 409

    def test_expected_date_before_order_date_rejected(self, client, headers_a):
        response = _create(client, headers_a, expected_delivery_date="2026-02-01")
        assert response.status_code == 400

    def test_fulfilled_initial_status_rejected(self, client, headers_a):
        response = _create(client, headers_a, status="FULFILLED")
        assert response.status_code == 400
        assert response.json["field"] == "status"


class TestReadUpdateDelete:

    def test_list_newest_first_with_status_filter(self, client, headers_a):
        first = _create(client, headers_a).json
        second = _create(client, headers_a, status="PROCESSING").json

        listing = client.get("/api/orders", headers=headers_a).json
        assert [o["id"] for o in listing["items"]] == [second["id"], first["id"]]

        filtered = client.get("/api/orders?status=PROCESSING", headers=headers_a).json
        assert [o["id"] for o in filtered["items"]] == [second["id"]]

    def test_list_rejects_unknown_status(self, client, headers_a):
        assert client.get("/api/orders?status=BOGUS", headers=headers_a).status_code == 400

    def test_get_one(self, client, headers_a):
        created = _create(client, headers_a).json
        response = client.get(f"/api/orders/{created['id']}", headers=headers_a)
        assert response.status_code == 200
        assert response.json["customer_name"] == "Acme Hardware"

    def test_patch_header_fields(self, client, headers_a):
        created = _create(client, headers_a).json

        response = client.patch(
            f"/api/orders/{created['id']}",
            json={"tracking_reference": "LBC-123", "notes": "Leave at gate"},
            headers=headers_a,
        )

        assert response.status_code == 200
        assert response.json["tracking_reference"] == "LBC-123"
        assert response.json["notes"] == "Leave at gate"
        assert response.json["total_amount_cents"] == created["total_amount_cents"]

    def test_patch_with_id_in_body(self, client, headers_a):
        created = _create(client, headers_a).json

        response = client.patch(
            "/api/orders",
            json={"id": created["id"], "customer_name": "Beta Traders"},
            headers=headers_a,
        )

        assert response.status_code == 200
        assert response.json["customer_name"] == "Beta Traders"

    @pytest.mark.parametrize("field,value", [
        ("status", "FULFILLED"),
        ("quantity_delivered", 3),
        ("user_id", 2),
    ])
    def test_patch_rejects_protected_fields(self, client, headers_a, field, value):
        created = _create(client, headers_a).json

        response = client.patch(f"/api/orders/{created['id']}", json={field: value}, headers=headers_a)

        assert response.status_code == 400
        assert client.get(f"/api/orders/{created['id']}", headers=headers_a).json["status"] == "PENDING"

    def test_delete_by_path_and_query(self, client, headers_a, db_session):
        one = _create(client, headers_a).json
        two = _create(client, headers_a).json

        assert client.delete(f"/api/orders/{one['id']}", headers=headers_a).status_code == 200
        response = client.delete(f"/api/orders?id={two['id']}", headers=headers_a)

        assert response.status_code == 200
        assert "message" in response.json
        assert db_session.query(PurchaseOrder).count() == 0

    def test_delete_missing_is_404(self, client, headers_a):
        assert client.delete("/api/orders/424242", headers=headers_a).status_code == 404

    def test_delete_cascades_lines_deliveries_and_collections(self, client, headers_a, db_session):
        created = _create(client, headers_a).json
        line_id = created["lines"][0]["id"]
        client.post("/api/orders/fulfill", json={"order_id": created["id"], "deliveries": {str(line_id): 1}}, headers=headers_a)
        client.post("/api/collections", json={"order_id": created["id"], "amount_cents": 300}, headers=headers_a)

        response = client.delete(f"/api/orders/{created['id']}", headers=headers_a)

        assert response.status_code == 200
        db_session.expire_all()
        assert db_session.query(PurchaseOrderLine).count() == 0
        assert db_session.query(OrderDelivery).count() == 0
        assert db_session.query(Collection).count() == 0


class TestFulfillEndpoint:

    def test_fulfill_partial(self, client, headers_a):
        created = _create(client, headers_a).json
        bolt = created["lines"][0]["id"]

        response = client.post(
            "/api/orders/fulfill",
            json={"order_id": created["id"], "deliveries": {str(bolt): 2}},
            headers=headers_a,
        )

        assert response.status_code == 200
        assert response.json["status"] == "PARTIALLY_FULFILLED"
        assert [line["remaining"] for line in response.json["lines"]] == [3, 3]

    def test_fulfill_accepts_list_rows(self, client, headers_a):
        created = _create(client, headers_a).json
        bolt, nut = [line["id"] for line in created["lines"]]

        response = client.post(
            "/api/orders/fulfill",
            json={"order_id": created["id"], "deliveries": [
                {"line_id": bolt, "quantity": 5},
                {"line_id": nut, "quantity": 3},
            ]},
            headers=headers_a,
        )

        assert response.status_code == 200
        assert response.json["status"] == "FULFILLED"

    def test_fulfill_over_remaining_names_the_line(self, client, headers_a):
        created = _create(client, headers_a).json
        bolt, nut = [line["id"] for line in created["lines"]]

        response = client.post(
            "/api/orders/fulfill",
            json={"order_id": created["id"], "deliveries": {str(bolt): 1, str(nut): 9}},
            headers=headers_a,
        )

        assert response.status_code == 400
        assert response.json["line_id"] == nut
        after = client.get(f"/api/orders/{created['id']}", headers=headers_a).json
        assert [line["quantity_delivered"] for line in after["lines"]] == [0, 0]

    def test_fulfill_cancelled_is_409(self, client, headers_a):
        created = _create(client, headers_a).json
        client.post(f"/api/orders/{created['id']}/cancel", headers=headers_a)

        response = client.post(
            "/api/orders/fulfill",
            json={"order_id": created["id"], "deliveries": {str(created["lines"][0]["id"]): 1}},
            headers=headers_a,
        )

        assert response.status_code == 409

    def test_fulfill_requires_order_id(self, client, headers_a):
        response = client.post("/api/orders/fulfill", json={"deliveries": {"1": 1}}, headers=headers_a)
        assert response.status_code == 400

    def test_fulfill_oversized_quantity_is_400(self, client, headers_a):
        created = _create(client, headers_a).json
        bolt = created["lines"][0]["id"]

        response = client.post(
            "/api/orders/fulfill",
            json={"order_id": created["id"], "deliveries": {str(bolt): 10**20}},
            headers=headers_a,
        )

        assert response.status_code == 400
        after = client.get(f"/api/orders/{created['id']}", headers=headers_a).json
        assert after["lines"][0]["quantity_delivered"] == 0

    def test_fulfill_quantity_above_cap_names_the_line(self, client, headers_a):
        created = _create(client, headers_a).json
        bolt = created["lines"][0]["id"]

        response = client.post(
            "/api/orders/fulfill",
            json={"order_id": created["id"], "deliveries": {str(bolt): 2_000_000_000}},
            headers=headers_a,
        )

        assert response.status_code == 400
        assert response.json["line_id"] == bolt

    @pytest.mark.parametrize("body", [
        {"order_id": 10**20, "deliveries": {"1": 1}},
        {"order_id": 1, "deliveries": {str(10**20): 1}},
        {"order_id": 0, "deliveries": {"1": 1}},
    ])
    def test_fulfill_out_of_range_ids_are_400(self, client, headers_a, body):
        response = client.post("/api/orders/fulfill", json=body, headers=headers_a)
        assert response.status_code == 400

    def test_out_of_range_ids_on_patch_delete_and_get(self, client, headers_a):
        huge = 10**20

        assert client.patch("/api/orders", json={"id": huge, "notes": "x"}, headers=headers_a).status_code == 400
        assert client.delete(f"/api/orders?id={huge}", headers=headers_a).status_code == 400
        assert client.get(f"/api/orders/{huge}", headers=headers_a).status_code == 404
        assert client.delete(f"/api/orders/{huge}", headers=headers_a).status_code == 404

    def test_storage_failure_on_read_is_logged_500(self, client, headers_a, monkeypatch):
        created = _create(client, headers_a).json

        def broken(*args, **kwargs):
            raise OperationalError("SELECT", {}, Exception("disk I/O error"))

        monkeypatch.setattr(order_service, "get_order", broken)
        monkeypatch.setattr(fulfillment_service, "list_fulfillment_events", broken)

        for path in (f"/api/orders/{created['id']}", f"/api/orders/{created['id']}/deliveries"):
            response = client.get(path, headers=headers_a)
            assert response.status_code == 500
            assert response.json == {"error": "Internal server error"}

    def test_status_override_and_history(self, client, headers_a):
        created = _create(client, headers_a).json
        bolt = created["lines"][0]["id"]
        client.post("/api/orders/fulfill", json={"order_id": created["id"], "deliveries": {str(bolt): 2}}, headers=headers_a)

        response = client.post(f"/api/orders/{created['id']}/status", json={"status": "PENDING"}, headers=headers_a)
        assert response.status_code == 200
        assert response.json["status"] == "PENDING"
        assert response.json["fulfillment_status"] == "PARTIALLY_FULFILLED"

        history = client.get(f"/api/orders/{created['id']}/deliveries", headers=headers_a).json
        assert history["count"] == 1
        assert history["items"][0]["quantity"] == 2

    def test_cancel_after_delivery_is_409(self, client, headers_a):
        created = _create(client, headers_a).json
        bolt = created["lines"][0]["id"]
        client.post("/api/orders/fulfill", json={"order_id": created["id"], "deliveries": {str(bolt): 1}}, headers=headers_a)

        response = client.post(f"/api/orders/{created['id']}/cancel", headers=headers_a)

        assert response.status_code == 409


class TestProcurementApi:

    def _create_supply(self, client, headers, **overrides):
        body = {
            "supplier_name": "Metro Supplies",
            "items": [{"item_name": "Copper wire", "quantity": 4, "unit_price_cents": 900}],
        }
        body.update(overrides)
        return client.post("/api/procurement", json=body, headers=headers)

    def test_create_and_receive(self, client, headers_a):
        created = self._create_supply(client, headers_a).json
        assert created["status"] == "DRAFT"
        assert "balance_cents" not in created
        line_id = created["lines"][0]["id"]

        response = client.post(
            "/api/procurement/receive",
            json={"order_id": created["id"], "received_items": {str(line_id): 4}},
            headers=headers_a,
        )

        assert response.status_code == 200
        assert response.json["status"] == "RECEIVED"
        assert response.json["lines"][0]["quantity_received"] == 4

        receipts = client.get(f"/api/procurement/{created['id']}/receipts", headers=headers_a).json
        assert receipts["count"] == 1

    def test_supply_line_links_owned_inventory_item(self, client, headers_a, user_a, db_session):
        item = InventoryItem(user_id=user_a.id, name="Copper wire", part_number="CW-1", quantity=2)
        db_session.add(item)
        db_session.commit()

        created = self._create_supply(client, headers_a, items=[
            {"item_name": "Copper wire", "quantity": 4, "inventory_item_id": item.id},
        ]).json

        assert created["lines"][0]["inventory_item_id"] == item.id
        assert created["lines"][0]["part_number"] == "CW-1"

        client.post(
            "/api/procurement/receive",
            json={"order_id": created["id"], "received_items": {str(created["lines"][0]["id"]): 4}},
            headers=headers_a,
        )
        db_session.expire_all()
        assert db_session.get(InventoryItem, item.id).quantity == 2

    def test_supply_line_rejects_foreign_inventory_item(self, client, headers_a, user_b, db_session):
        item = InventoryItem(user_id=user_b.id, name="Copper wire", part_number="CW-1", quantity=2)
        db_session.add(item)
        db_session.commit()

        response = self._create_supply(client, headers_a, items=[
            {"item_name": "Copper wire", "quantity": 4, "inventory_item_id": item.id},
        ])

        assert response.status_code == 400
        assert db_session.query(SupplyOrder).count() == 0

    def test_orders_and_procurement_are_separate(self, client, headers_a):
        self._create_supply(client, headers_a)
        assert client.get("/api/orders", headers=headers_a).json["count"] == 0
        assert client.get("/api/procurement", headers=headers_a).json["count"] == 1

    def test_receive_uses_supply_statuses(self, client, headers_a):
        created = self._create_supply(client, headers_a).json
        response = client.post(f"/api/procurement/{created['id']}/status", json={"status": "FULFILLED"}, headers=headers_a)
        assert response.status_code == 400
