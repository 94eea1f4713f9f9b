# Overview: Pytest coverage for dashboard counters.

from ordertrack.models import InventoryItem
from ordertrack.services import collection_service, dashboard_service
from ordertrack.services.fulfillment_service import deliver_purchase_order, set_status
from ordertrack.services.order_kinds import PURCHASE


class TestDashboardStats:

    def test_empty(self, user_a):
        stats = dashboard_service.get_stats(user_a.id)
        assert stats == {
            "inventory_count": 0,
            "low_stock_count": 0,
            "orders_count": 0,
            "procurement_count": 0,
            "collections_count": 0,
            "open_orders_count": 0,
            "outstanding_balance_cents": 0,
        }

    def test_counts_only_own_rows(self, user_a, user_b, db_session, make_order, make_supply_order):
        db_session.add_all([
            InventoryItem(user_id=user_a.id, name="Wire", part_number="W-1", quantity=2, reorder_level=5),
            InventoryItem(user_id=user_a.id, name="Tape", part_number="T-1", quantity=20, reorder_level=5),
            InventoryItem(user_id=user_b.id, name="Wire", part_number="W-1", quantity=0, reorder_level=5),
        ])
        db_session.commit()

        open_order = make_order(user_a.id, [("Bolt", 10, 100)])
        done = make_order(user_a.id, [("Nut", 2, 100)])
        cancelled = make_order(user_a.id, [("Washer", 5, 100)])
        make_supply_order(user_a.id, [("Wire", 4, 900)])
        make_order(user_b.id, [("Bolt", 1, 100000)])

        deliver_purchase_order(user_a.id, done.id, {done.lines[0].id: 2})
        set_status(PURCHASE, user_a.id, cancelled.id, "CANCELLED")
        collection_service.record_collection(user_a.id, open_order.id, 400)
        collection_service.record_collection(user_a.id, done.id, 500)

        stats = dashboard_service.get_stats(user_a.id)

        assert stats["inventory_count"] == 2
        assert stats["low_stock_count"] == 1
        assert stats["orders_count"] == 3
        assert stats["procurement_count"] == 1
        assert stats["collections_count"] == 2
        # open purchase order + draft supply order
        assert stats["open_orders_count"] == 2
        # 1000 - 400 on the open order; the overpaid order adds nothing
        assert stats["outstanding_balance_cents"] == 600

    def test_route(self, client, headers_a):
        response = client.get("/api/dashboard/stats", headers=headers_a)
        assert response.status_code == 200
        assert response.json["orders_count"] == 0
