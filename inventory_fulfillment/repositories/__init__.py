"""
Repositories package
"""

from .stock_repository import StockRecordRepository
from .reservation_repository import ReservationRepository
from .movement_repository import MovementRepository
from .sales_order_repository import SalesOrderRepository
from .idempotency_repository import IdempotencyRepository
from .threshold_repository import ThresholdRepository

__all__ = [
    'StockRecordRepository',
    'ReservationRepository',
    'MovementRepository',
    'SalesOrderRepository',
    'IdempotencyRepository',
    'ThresholdRepository',
]
