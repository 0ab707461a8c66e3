"""
Models package
"""

from .enums import (
    AlertLevel,
    FulfillmentOperation,
    MovementType,
    ReservationState,
    SalesOrderStatus,
)
from .stock_record import StockRecord
from .reservation import Reservation
from .movement_entry import MovementEntry, register_immutability_listeners
from .sales_order import SalesOrder, SalesOrderLine
from .idempotency_record import IdempotencyRecord
from .item_threshold import ItemThreshold

__all__ = [
    'AlertLevel',
    'FulfillmentOperation',
    'MovementType',
    'ReservationState',
    'SalesOrderStatus',
    'StockRecord',
    'Reservation',
    'MovementEntry',
    'register_immutability_listeners',
    'SalesOrder',
    'SalesOrderLine',
    'IdempotencyRecord',
    'ItemThreshold',
]
