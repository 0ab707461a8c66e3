"""
Stock Ledger - authoritative on-hand and reserved quantities

This is the only module that writes StockRecord quantities. Callers reach it
through the Reservation Manager (reserve/consume/release) or through
replenishment (receive).
"""

from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import List, Tuple
import logging

from inventory_fulfillment.errors import InsufficientStock, InvariantViolation, NotFound
from inventory_fulfillment.models import MovementEntry, MovementType, StockRecord
from inventory_fulfillment.repositories import StockRecordRepository
from .movement_log import MovementLog
from .transaction import transactional

logger = logging.getLogger(__name__)

_COST_PRECISION = Decimal('0.0001')


def require_positive_quantity(quantity) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise ValueError(f"Quantity must be a positive integer, got {quantity!r}")
    return quantity


def _to_cost(unit_cost) -> Decimal:
    try:
        cost = Decimal(str(unit_cost))
    except (InvalidOperation, TypeError, ValueError):
        raise ValueError(f"Invalid unit cost {unit_cost!r}")
    if not cost.is_finite() or cost < 0:
        raise ValueError(f"Unit cost must be a non-negative number, got {unit_cost!r}")
    return cost


class StockLedger:
    """Atomic quantity updates on (item, warehouse) stock records"""

    def __init__(self, stock_repository=None, movement_log=None):
        self.stock_repo = stock_repository or StockRecordRepository()
        self.movement_log = movement_log or MovementLog(stock_repository=self.stock_repo)

    def get_record(self, item_id: str, warehouse_id: str) -> StockRecord:
        record = self.stock_repo.get(item_id, warehouse_id)
        if not record:
            raise NotFound('stock record', f"{item_id}@{warehouse_id}")
        return record

    def list_records(self, item_id: str = None, warehouse_id: str = None) -> List[StockRecord]:
        return self.stock_repo.search(item_id=item_id, warehouse_id=warehouse_id)

    def get_available(self, item_id: str, warehouse_id: str) -> int:
        """Available quantity (on hand minus reserved); no side effects"""
        return self.get_record(item_id, warehouse_id).quantity_available

    def lock_records(self, item_ids: List[str], warehouse_id: str) -> List[StockRecord]:
        """Row-lock several records in a stable order so concurrent callers cannot deadlock"""
        records = []
        for item_id in sorted(set(item_ids)):
            records.append(self._locked_record(item_id, warehouse_id))
        return records

    @transactional('stock.reserve')
    def reserve(self, item_id: str, warehouse_id: str, quantity: int) -> StockRecord:
        """Earmark quantity for a reservation"""
        require_positive_quantity(quantity)
        record = self._locked_record(item_id, warehouse_id)

        available = record.quantity_available
        if available < quantity:
            logger.info(
                f"Insufficient stock for {item_id}@{warehouse_id}: requested {quantity}, available {available}"
            )
            raise InsufficientStock(item_id, warehouse_id, quantity, available)

        record.quantity_reserved += quantity
        record.updated_at = datetime.utcnow()
        logger.debug(f"Reserved {quantity} of {item_id}@{warehouse_id} (reserved now {record.quantity_reserved})")
        return record

    @transactional('stock.release')
    def release_reserved_quantity(self, item_id: str, warehouse_id: str, quantity: int) -> StockRecord:
        """Give earmarked quantity back to availability; never drives reserved below zero"""
        require_positive_quantity(quantity)
        record = self._locked_record(item_id, warehouse_id)

        released = min(quantity, record.quantity_reserved)
        if released < quantity:
            logger.warning(
                f"Release of {quantity} for {item_id}@{warehouse_id} clamped to {released} "
                f"(only {record.quantity_reserved} reserved)"
            )

        record.quantity_reserved -= released
        record.updated_at = datetime.utcnow()
        return record

    @transactional('stock.consume')
    def consume(self, item_id: str, warehouse_id: str, quantity: int) -> StockRecord:
        """Remove shipped quantity from both on-hand and reserved"""
        require_positive_quantity(quantity)
        record = self._locked_record(item_id, warehouse_id)

        if quantity > record.quantity_reserved or quantity > record.quantity_on_hand:
            raise InvariantViolation(
                f"Consuming {quantity} of {item_id}@{warehouse_id} would drive stock negative",
                {
                    'item_id': item_id,
                    'warehouse_id': warehouse_id,
                    'quantity': quantity,
                    'quantity_on_hand': record.quantity_on_hand,
                    'quantity_reserved': record.quantity_reserved
                }
            )

        record.quantity_on_hand -= quantity
        record.quantity_reserved -= quantity
        record.updated_at = datetime.utcnow()
        return record

    @transactional('stock.receive')
    def receive(self, item_id: str, warehouse_id: str, quantity: int, unit_cost=0,
                reference_id: str = None, reason: str = None) -> Tuple[StockRecord, MovementEntry]:
        """
        Book inbound stock.

        Creates the record on the first receipt for the pair, keeps a weighted
        average cost, and appends a receipt movement.

        Returns:
            Tuple of (stock record, receipt movement)
        """
        require_positive_quantity(quantity)
        if not item_id or not warehouse_id:
            raise ValueError("item_id and warehouse_id are required")
        cost = _to_cost(unit_cost)

        record = self.stock_repo.get(item_id, warehouse_id, for_update=True)
        if record is None:
            record = self.stock_repo.add(StockRecord(
                item_id=item_id,
                warehouse_id=warehouse_id,
                quantity_on_hand=0,
                quantity_reserved=0,
                average_cost=Decimal('0')
            ))
            logger.info(f"Created stock record for {item_id}@{warehouse_id}")

        previous_on_hand = record.quantity_on_hand
        previous_cost = Decimal(record.average_cost or 0)
        new_on_hand = previous_on_hand + quantity

        record.average_cost = (
            (previous_cost * previous_on_hand + cost * quantity) / new_on_hand
        ).quantize(_COST_PRECISION)
        record.quantity_on_hand = new_on_hand
        record.last_received_at = datetime.utcnow()
        record.updated_at = record.last_received_at

        movement = self.movement_log.append(MovementLog.entry_for(
            record,
            MovementType.RECEIPT,
            quantity,
            reference_id=reference_id,
            unit_cost=cost,
            reason=reason
        ))

        logger.info(f"Received {quantity} of {item_id}@{warehouse_id} (on hand now {new_on_hand})")
        return record, movement

    def _locked_record(self, item_id: str, warehouse_id: str) -> StockRecord:
        record = self.stock_repo.get(item_id, warehouse_id, for_update=True)
        if not record:
            raise NotFound('stock record', f"{item_id}@{warehouse_id}")
        return record
