from .auth import User, SessionToken
from .inventory import InventoryItem
from .orders import PurchaseOrder, PurchaseOrderLine, OrderDelivery, Collection
from .procurement import SupplyOrder, SupplyOrderLine, SupplyReceipt

__all__ = [
    'User', 'SessionToken',
    'InventoryItem',
    'PurchaseOrder', 'PurchaseOrderLine', 'OrderDelivery', 'Collection',
    'SupplyOrder', 'SupplyOrderLine', 'SupplyReceipt',
]
