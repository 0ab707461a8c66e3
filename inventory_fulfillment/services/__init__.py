"""
Services package
"""

from .transaction import transactional
from .movement_log import MovementLog
from .stock_ledger import StockLedger
from .reservation_manager import ReservationManager
from .order_fulfillment import OrderFulfillmentService
from .stock_alerts import StockAlertEvaluator

__all__ = [
    'transactional',
    'MovementLog',
    'StockLedger',
    'ReservationManager',
    'OrderFulfillmentService',
    'StockAlertEvaluator',
]
