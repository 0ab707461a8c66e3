"""
Movement Log - append-only audit trail of stock changes
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple
import logging

from inventory_fulfillment.errors import InvariantViolation, NotFound
from inventory_fulfillment.models import MovementEntry, MovementType, StockRecord
from inventory_fulfillment.repositories import MovementRepository, StockRecordRepository
from .transaction import in_transaction

logger = logging.getLogger(__name__)


class MovementLog:
    """Writes movement entries alongside the stock change they document"""

    def __init__(self, movement_repository=None, stock_repository=None):
        self.movement_repo = movement_repository or MovementRepository()
        self.stock_repo = stock_repository or StockRecordRepository()

    @staticmethod
    def entry_for(record: StockRecord, movement_type: MovementType, quantity: int,
                  reference_id: str = None, reservation_id: str = None,
                  idempotency_key: str = None, unit_cost: Decimal = None,
                  reason: str = None) -> MovementEntry:
        """Build an entry snapshotting the record's balances after the change"""
        return MovementEntry(
            movement_type=movement_type,
            item_id=record.item_id,
            warehouse_id=record.warehouse_id,
            quantity=quantity,
            unit_cost=unit_cost,
            reference_id=reference_id,
            reservation_id=reservation_id,
            idempotency_key=idempotency_key,
            balance_on_hand=record.quantity_on_hand,
            balance_reserved=record.quantity_reserved,
            reason=reason
        )

    def append(self, entry: MovementEntry) -> MovementEntry:
        """
        Write one movement entry.

        Must be called inside the unit of work that applied the stock change,
        so both are committed or discarded together.
        """
        if not in_transaction():
            raise InvariantViolation(
                "Movement entries are written only inside a unit of work",
                {'movement_type': entry.movement_type.value, 'item_id': entry.item_id}
            )
        self._check_sign(entry)

        if entry.idempotency_key:
            existing = self.movement_repo.get_by_idempotency_key(entry.idempotency_key)
            if existing:
                raise InvariantViolation(
                    f"Movement with idempotency key {entry.idempotency_key} already recorded",
                    {'idempotency_key': entry.idempotency_key, 'movement_id': existing.id}
                )

        entry = self.movement_repo.add(entry)
        logger.debug(
            f"Movement {entry.movement_type.value} {entry.quantity:+d} "
            f"for {entry.item_id}@{entry.warehouse_id} (ref {entry.reference_id})"
        )
        return entry

    def find_by_reference(self, reference_id: str) -> List[MovementEntry]:
        return self.movement_repo.get_by_reference(reference_id)

    def find_by_idempotency_key(self, idempotency_key: str) -> Optional[MovementEntry]:
        return self.movement_repo.get_by_idempotency_key(idempotency_key)

    def query(self, item_id: str = None, warehouse_id: str = None,
              movement_type: MovementType = None, reference_id: str = None,
              date_from: datetime = None, date_to: datetime = None,
              page: int = 1, per_page: int = 20) -> Tuple[List[MovementEntry], int]:
        """Filter the log, newest first, paginated"""
        if date_from and date_to and date_from > date_to:
            raise ValueError("date_from must not be later than date_to")
        return self.movement_repo.search(
            item_id=item_id,
            warehouse_id=warehouse_id,
            movement_type=movement_type,
            reference_id=reference_id,
            date_from=date_from,
            date_to=date_to,
            page=page,
            per_page=per_page
        )

    def reconcile(self, item_id: str, warehouse_id: str) -> Dict[str, Any]:
        """Compare the net of all movement deltas with the recorded on-hand quantity"""
        record = self.stock_repo.get(item_id, warehouse_id)
        if not record:
            raise NotFound('stock record', f"{item_id}@{warehouse_id}")

        movement_total = self.movement_repo.sum_quantity(item_id, warehouse_id)
        difference = record.quantity_on_hand - movement_total
        if difference:
            logger.warning(
                f"Movement log for {item_id}@{warehouse_id} is off by {difference} "
                f"(on hand {record.quantity_on_hand}, movements {movement_total})"
            )

        return {
            'item_id': item_id,
            'warehouse_id': warehouse_id,
            'quantity_on_hand': record.quantity_on_hand,
            'movement_total': movement_total,
            'difference': difference,
            'balanced': difference == 0
        }

    @staticmethod
    def _check_sign(entry: MovementEntry):
        quantity = entry.quantity
        valid = {
            MovementType.RECEIPT: quantity > 0,
            MovementType.CONSUMPTION: quantity < 0,
            MovementType.RELEASE_NOOP: quantity == 0,
            MovementType.ADJUSTMENT: quantity != 0,
        }.get(entry.movement_type, False)
        if not valid:
            raise InvariantViolation(
                f"Quantity {quantity} is not valid for a {entry.movement_type.value} movement",
                {'movement_type': entry.movement_type.value, 'quantity': quantity}
            )
