# Overview: Pytest coverage for the line-item aggregator.

"""
Aggregator Tests

Pure functions only; no database. Lines are plain stand-ins carrying the
attributes the aggregator reads.
"""

from types import SimpleNamespace

import pytest

from ordertrack.services.aggregation_service import (
    COLLECTION_COMPLETE,
    COLLECTION_PARTIAL,
    COLLECTION_UNPAID,
    FULFILLMENT_COMPLETE,
    FULFILLMENT_PARTIAL,
    FULFILLMENT_UNFULFILLED,
    collection_status,
    fulfillment_status,
    line_remaining,
    order_total_cents,
    summarize_order,
)


COUNTER = "quantity_delivered"


def line(quantity, price=0, delivered=0, line_id=1):
    return SimpleNamespace(
        id=line_id,
        quantity=quantity,
        unit_price_cents=price,
        quantity_delivered=delivered,
        to_dict=lambda: {"id": line_id, "quantity": quantity},
    )


class TestTotals:

    def test_total_is_sum_of_quantity_times_price(self):
        lines = [line(5, 200), line(3, 150), line(1, 0)]
        assert order_total_cents(lines) == 5 * 200 + 3 * 150

    def test_total_ignores_delivery_progress(self):
        before = [line(5, 200), line(3, 150)]
        after = [line(5, 200, delivered=2), line(3, 150)]
        assert order_total_cents(before) == order_total_cents(after)

    def test_empty_order_total_is_zero(self):
        assert order_total_cents([]) == 0

    def test_remaining(self):
        assert line_remaining(line(5, delivered=2), COUNTER) == 3


class TestFulfillmentStatus:

    def test_nothing_delivered(self):
        assert fulfillment_status([line(5), line(3)], COUNTER) == FULFILLMENT_UNFULFILLED

    def test_empty_order_is_unfulfilled(self):
        assert fulfillment_status([], COUNTER) == FULFILLMENT_UNFULFILLED

    def test_some_delivered(self):
        lines = [line(5, delivered=2), line(3)]
        assert fulfillment_status(lines, COUNTER) == FULFILLMENT_PARTIAL

    def test_one_line_complete_other_untouched_is_partial(self):
        lines = [line(5, delivered=5), line(3)]
        assert fulfillment_status(lines, COUNTER) == FULFILLMENT_PARTIAL

    def test_everything_delivered(self):
        lines = [line(5, delivered=5), line(3, delivered=3)]
        assert fulfillment_status(lines, COUNTER) == FULFILLMENT_COMPLETE

    def test_recomputing_gives_same_label(self):
        lines = [line(5, delivered=2), line(3, delivered=3)]
        first = fulfillment_status(lines, COUNTER)
        assert fulfillment_status(lines, COUNTER) == first


class TestCollectionStatus:

    @pytest.mark.parametrize(
        "total,collected,expected",
        [
            (1000, 0, COLLECTION_UNPAID),
            (1000, 400, COLLECTION_PARTIAL),
            (1000, 1000, COLLECTION_COMPLETE),
            (1000, 1200, COLLECTION_COMPLETE),
            (0, 0, COLLECTION_COMPLETE),
        ],
    )
    def test_status(self, total, collected, expected):
        assert collection_status(total, collected) == expected


class TestSummarizeOrder:

    def _order(self, lines):
        return SimpleNamespace(lines=lines, to_dict=lambda: {"id": 7, "status": "PENDING"})

    def test_includes_totals_and_per_line_values(self):
        order = self._order([line(5, 200, delivered=2, line_id=1), line(3, 100, line_id=2)])

        result = summarize_order(order, COUNTER)

        assert result["total_amount_cents"] == 1300
        assert result["fulfillment_status"] == FULFILLMENT_PARTIAL
        assert [row["remaining"] for row in result["lines"]] == [3, 3]
        assert [row["subtotal_cents"] for row in result["lines"]] == [1000, 300]
        assert "balance_cents" not in result

    def test_collection_fields_when_collected_given(self):
        order = self._order([line(10, 100)])

        result = summarize_order(order, COUNTER, collected_cents=400)

        assert result["total_collected_cents"] == 400
        assert result["balance_cents"] == 600
        assert result["collection_status"] == COLLECTION_PARTIAL

    def test_stored_status_is_passed_through(self):
        order = self._order([line(10, 100, delivered=10)])
        result = summarize_order(order, COUNTER)
        assert result["status"] == "PENDING"
        assert result["fulfillment_status"] == FULFILLMENT_COMPLETE
