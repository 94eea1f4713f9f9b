# Overview: Pytest coverage for the collection ledger and the paid/unpaid toggle.

import pytest

from ordertrack.models import Collection
from ordertrack.services import collection_service
from ordertrack.services.collection_service import (
    CollectionNotFoundError,
    CollectionValidationError,
)
from ordertrack.services.order_service import OrderNotFoundError


@pytest.fixture
def order_1000(user_a, make_order):
    """Purchase order with a total of 1000 cents."""
    return make_order(user_a.id, [("Cement", 10, 100)])


class TestCollectionLedger:

    def test_partial_then_full_then_delete(self, user_a, order_1000):
        collection_service.record_collection(user_a.id, order_1000.id, 400)
        summary = collection_service.collection_summary(user_a.id, order_1000.id)
        assert summary["balance_cents"] == 600
        assert summary["collection_status"] == "PARTIALLY_COLLECTED"

        second = collection_service.record_collection(user_a.id, order_1000.id, 600)
        summary = collection_service.collection_summary(user_a.id, order_1000.id)
        assert summary["balance_cents"] == 0
        assert summary["collection_status"] == "FULLY_COLLECTED"

        collection_service.delete_collection(user_a.id, second.id)
        summary = collection_service.collection_summary(user_a.id, order_1000.id)
        assert summary["balance_cents"] == 600
        assert summary["collection_status"] == "PARTIALLY_COLLECTED"

    def test_over_collection_counts_as_collected(self, user_a, order_1000):
        collection_service.record_collection(user_a.id, order_1000.id, 1500)
        summary = collection_service.collection_summary(user_a.id, order_1000.id)
        assert summary["balance_cents"] == -500
        assert summary["collection_status"] == "FULLY_COLLECTED"

    @pytest.mark.parametrize("amount", [0, -100])
    def test_amount_must_be_positive(self, user_a, order_1000, amount):
        with pytest.raises(CollectionValidationError):
            collection_service.record_collection(user_a.id, order_1000.id, amount)

    def test_date_defaults_to_today(self, user_a, order_1000):
        from ordertrack.time_utils import today

        record = collection_service.record_collection(user_a.id, order_1000.id, 100)
        assert record.date_collected == today()

    def test_reverse_all(self, user_a, order_1000, db_session):
        collection_service.record_collection(user_a.id, order_1000.id, 100)
        collection_service.record_collection(user_a.id, order_1000.id, 200)

        assert collection_service.reverse_collections(user_a.id, order_1000.id) == 2
        assert db_session.query(Collection).count() == 0
        assert collection_service.reverse_collections(user_a.id, order_1000.id) == 0

    def test_other_users_order_and_records(self, user_a, user_b, order_1000):
        record = collection_service.record_collection(user_a.id, order_1000.id, 100)

        with pytest.raises(OrderNotFoundError):
            collection_service.record_collection(user_b.id, order_1000.id, 100)
        with pytest.raises(CollectionNotFoundError):
            collection_service.delete_collection(user_b.id, record.id)
        assert collection_service.list_collections(user_b.id) == []

    def test_balances_filter(self, user_a, make_order):
        unpaid = make_order(user_a.id, [("A", 1, 100)])
        partial = make_order(user_a.id, [("B", 1, 100)])
        paid = make_order(user_a.id, [("C", 1, 100)])
        collection_service.record_collection(user_a.id, partial.id, 50)
        collection_service.record_collection(user_a.id, paid.id, 100)

        def ids(key):
            return {row["id"] for row in collection_service.list_order_balances(user_a.id, key)}

        assert ids("unpaid") == {unpaid.id}
        assert ids("partial") == {partial.id}
        assert ids("collected") == {paid.id}
        assert ids("all") == {unpaid.id, partial.id, paid.id}
        assert ids(None) == ids("all")

        with pytest.raises(CollectionValidationError):
            collection_service.list_order_balances(user_a.id, "overdue")


class TestPaidToggle:

    def test_mark_paid_records_outstanding_balance(self, user_a, order_1000):
        collection_service.record_collection(user_a.id, order_1000.id, 300)

        record = collection_service.mark_paid(user_a.id, order_1000.id)

        assert record.amount_cents == 700
        assert record.payment_method == "FULL"
        assert collection_service.paid_order_ids(user_a.id) == [order_1000.id]

    def test_mark_paid_twice_rejected(self, user_a, order_1000):
        collection_service.mark_paid(user_a.id, order_1000.id)
        with pytest.raises(CollectionValidationError):
            collection_service.mark_paid(user_a.id, order_1000.id)

    def test_mark_unpaid(self, user_a, order_1000):
        collection_service.mark_paid(user_a.id, order_1000.id)
        collection_service.mark_unpaid(user_a.id, order_1000.id)
        assert collection_service.paid_order_ids(user_a.id) == []


class TestCollectionsApi:

    def test_record_list_and_delete(self, client, headers_a, order_1000):
        created = client.post(
            "/api/collections",
            json={
                "order_id": order_1000.id,
                "amount": "4.00",
                "date_collected": "2026-03-02",
                "payment_method": "GCASH",
                "reference_number": "REF-77",
            },
            headers=headers_a,
        )
        assert created.status_code == 201
        assert created.json["amount_cents"] == 400
        assert created.json["date_collected"] == "2026-03-02"

        listing = client.get(f"/api/collections?order_id={order_1000.id}", headers=headers_a).json
        assert listing["count"] == 1
        assert listing["summary"]["balance_cents"] == 600

        response = client.delete(f"/api/collections/{created.json['id']}", headers=headers_a)
        assert response.status_code == 200
        order = client.get(f"/api/orders/{order_1000.id}", headers=headers_a).json
        assert order["balance_cents"] == 1000
        assert order["collection_status"] == "UNPAID"

    def test_delete_by_query_id_and_order(self, client, headers_a, user_a, order_1000):
        first = collection_service.record_collection(user_a.id, order_1000.id, 100)
        collection_service.record_collection(user_a.id, order_1000.id, 100)
        collection_service.record_collection(user_a.id, order_1000.id, 100)

        assert client.delete(f"/api/collections?id={first.id}", headers=headers_a).status_code == 200
        response = client.delete(f"/api/collections?order_id={order_1000.id}", headers=headers_a)
        assert response.status_code == 200
        assert response.json["deleted"] == 2

    def test_delete_requires_a_selector(self, client, headers_a):
        assert client.delete("/api/collections", headers=headers_a).status_code == 400

    @pytest.mark.parametrize("body", [
        {"amount_cents": 100},
        {"order_id": 1},
        {"order_id": 1, "amount_cents": 0},
        {"order_id": 1, "amount": "abc"},
    ])
    def test_invalid_bodies(self, client, headers_a, body):
        assert client.post("/api/collections", json=body, headers=headers_a).status_code == 400

    def test_out_of_range_order_id_is_400(self, client, headers_a):
        huge = 10**20

        response = client.post("/api/collections", json={"order_id": huge, "amount_cents": 100}, headers=headers_a)
        assert response.status_code == 400
        assert response.json["field"] == "order_id"

        assert client.get(f"/api/collections?order_id={huge}", headers=headers_a).status_code == 400
        assert client.delete(f"/api/collections?order_id={huge}", headers=headers_a).status_code == 400
        assert client.delete(f"/api/collections?id={huge}", headers=headers_a).status_code == 400
        assert client.delete(f"/api/collections/{huge}", headers=headers_a).status_code == 404
        assert client.post("/api/payments", json={"order_id": huge}, headers=headers_a).status_code == 400
        assert client.delete(f"/api/payments?order_id={huge}", headers=headers_a).status_code == 400

    def test_unknown_order_is_404(self, client, headers_a):
        response = client.post("/api/collections", json={"order_id": 9999, "amount_cents": 100}, headers=headers_a)
        assert response.status_code == 404

    def test_balances_endpoint(self, client, headers_a, order_1000):
        response = client.get("/api/collections/balances?filter=unpaid", headers=headers_a)
        assert response.status_code == 200
        assert [row["id"] for row in response.json["items"]] == [order_1000.id]
        assert client.get("/api/collections/balances?filter=bad", headers=headers_a).status_code == 400

    def test_payments_toggle(self, client, headers_a, order_1000):
        assert client.get("/api/payments", headers=headers_a).json["paid_order_ids"] == []

        paid = client.post("/api/payments", json={"order_id": order_1000.id}, headers=headers_a)
        assert paid.status_code == 201
        assert client.get("/api/payments", headers=headers_a).json["paid_order_ids"] == [order_1000.id]
        assert client.post("/api/payments", json={"order_id": order_1000.id}, headers=headers_a).status_code == 400

        unpaid = client.delete(f"/api/payments?order_id={order_1000.id}", headers=headers_a)
        assert unpaid.status_code == 200
        assert client.get("/api/payments", headers=headers_a).json["paid_order_ids"] == []

    def test_payments_requires_order_id(self, client, headers_a):
        assert client.post("/api/payments", json={}, headers=headers_a).status_code == 400
        assert client.delete("/api/payments", headers=headers_a).status_code == 400
