"""
Order kinds

Customer purchase orders and supplier supply orders share one workflow.
An OrderKind binds that workflow to the concrete models, the counterparty
column, the fulfillment counter and the status vocabulary of each side.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..models import (
    PurchaseOrder,
    PurchaseOrderLine,
    OrderDelivery,
    SupplyOrder,
    SupplyOrderLine,
    SupplyReceipt,
)
from .aggregation_service import FULFILLMENT_PARTIAL, FULFILLMENT_COMPLETE


@dataclass(frozen=True)
class OrderKind:
    code: str
    label: str
    order_model: type
    line_model: type
    event_model: type
    line_fk: str
    counterparty_field: str
    counter_attr: str
    number_prefix: str
    status_initial: str
    status_in_flight: str
    status_partial: str
    status_complete: str
    status_cancelled: str = "CANCELLED"
    tracks_collections: bool = False

    @property
    def statuses(self) -> tuple[str, ...]:
        return (
            self.status_initial,
            self.status_in_flight,
            self.status_partial,
            self.status_complete,
            self.status_cancelled,
        )

    @property
    def open_statuses(self) -> tuple[str, ...]:
        return (self.status_initial, self.status_in_flight, self.status_partial)

    def status_for(self, fulfillment_label: str) -> str | None:
        """Stored status implied by an aggregator label; None leaves it as is."""
        if fulfillment_label == FULFILLMENT_COMPLETE:
            return self.status_complete
        if fulfillment_label == FULFILLMENT_PARTIAL:
            return self.status_partial
        return None

    def counter_column(self):
        return getattr(self.line_model, self.counter_attr)

    def line_order_column(self):
        return getattr(self.line_model, self.line_fk)

    def event_order_column(self):
        return getattr(self.event_model, self.line_fk)


PURCHASE = OrderKind(
    code="PURCHASE",
    label="Order",
    order_model=PurchaseOrder,
    line_model=PurchaseOrderLine,
    event_model=OrderDelivery,
    line_fk="purchase_order_id",
    counterparty_field="customer_name",
    counter_attr="quantity_delivered",
    number_prefix="PO",
    status_initial="PENDING",
    status_in_flight="PROCESSING",
    status_partial="PARTIALLY_FULFILLED",
    status_complete="FULFILLED",
    tracks_collections=True,
)

SUPPLY = OrderKind(
    code="SUPPLY",
    label="Supply order",
    order_model=SupplyOrder,
    line_model=SupplyOrderLine,
    event_model=SupplyReceipt,
    line_fk="supply_order_id",
    counterparty_field="supplier_name",
    counter_attr="quantity_received",
    number_prefix="SO",
    status_initial="DRAFT",
    status_in_flight="ORDERED",
    status_partial="PARTIALLY_RECEIVED",
    status_complete="RECEIVED",
)
