"""
Reservation Manager - creates, consumes and releases reservations

The only component allowed to transition Reservation rows and to call the
Stock Ledger's reserve/consume/release operations.
"""

from datetime import datetime
from typing import Iterable, List, Optional, Tuple
import logging

from inventory_fulfillment.errors import FulfillmentError, InsufficientStock, InvalidTransition, NotFound
from inventory_fulfillment.models import MovementEntry, MovementType, Reservation, ReservationState
from inventory_fulfillment.repositories import ReservationRepository
from .movement_log import MovementLog
from .stock_ledger import StockLedger, require_positive_quantity
from .transaction import transactional

logger = logging.getLogger(__name__)


class ReservationManager:
    """Reservation lifecycle on top of the Stock Ledger"""

    def __init__(self, ledger=None, movement_log=None, reservation_repository=None):
        self.ledger = ledger or StockLedger()
        self.movement_log = movement_log or self.ledger.movement_log
        self.reservation_repo = reservation_repository or ReservationRepository()

    def get_reservation(self, reservation_id: str) -> Reservation:
        reservation = self.reservation_repo.get_by_id(reservation_id)
        if not reservation:
            raise NotFound('reservation', reservation_id)
        return reservation

    def list_for_order(self, order_id: str, state: ReservationState = None) -> List[Reservation]:
        return self.reservation_repo.get_by_order_id(order_id, state=state)

    def active_reserved_total(self, item_id: str, warehouse_id: str) -> int:
        """Remaining quantity over active reservations; must equal the record's reserved quantity"""
        return self.reservation_repo.active_remaining_total(item_id, warehouse_id)

    @transactional('reservation.reserve_for_order')
    def reserve_for_order(self, order_id: str, warehouse_id: str,
                          lines: Iterable[Tuple[str, int]]) -> List[Reservation]:
        """
        Reserve every line of an order, all or nothing.

        Args:
            order_id: Owning sales order
            warehouse_id: Warehouse the stock is taken from
            lines: (item_id, quantity) pairs, one reservation per pair

        Returns:
            Created reservations in line order

        Raises:
            InsufficientStock: naming the first short item; reservations made
                earlier in this call are released before it propagates
        """
        lines = list(lines)
        if not lines:
            raise ValueError("At least one line is required to reserve stock")
        for item_id, quantity in lines:
            if not item_id:
                raise ValueError("Every line needs an item_id")
            require_positive_quantity(quantity)

        self.ledger.lock_records([item_id for item_id, _ in lines], warehouse_id)

        created = []
        try:
            for item_id, quantity in lines:
                self.ledger.reserve(item_id, warehouse_id, quantity)
                reservation = self.reservation_repo.add(Reservation(
                    order_id=order_id,
                    item_id=item_id,
                    warehouse_id=warehouse_id,
                    quantity=quantity,
                    quantity_consumed=0,
                    quantity_released=0,
                    state=ReservationState.ACTIVE
                ))
                created.append(reservation)
        except FulfillmentError as e:
            self._compensate(created)
            if isinstance(e, InsufficientStock):
                logger.info(f"Reservation for order {order_id} rolled back: {e.message}")
            raise

        logger.info(f"Reserved {len(created)} line(s) for order {order_id} in {warehouse_id}")
        return created

    @transactional('reservation.consume')
    def consume_reservation(self, reservation_id: str, quantity: int, reference_id: str = None,
                            idempotency_key: str = None) -> Tuple[Reservation, MovementEntry]:
        """
        Ship part or all of a reservation's remaining quantity.

        The reservation becomes ``consumed`` once nothing remains; otherwise
        it stays ``active`` with a smaller balance.
        """
        require_positive_quantity(quantity)
        reservation = self._locked_reservation(reservation_id)

        if not reservation.is_active:
            raise InvalidTransition(
                'reservation', reservation_id, reservation.state.value, 'consume',
                [ReservationState.ACTIVE.value]
            )

        remaining = reservation.quantity_remaining
        if quantity > remaining:
            raise InsufficientStock(reservation.item_id, reservation.warehouse_id, quantity, remaining)

        record = self.ledger.consume(reservation.item_id, reservation.warehouse_id, quantity)

        now = datetime.utcnow()
        reservation.quantity_consumed += quantity
        reservation.updated_at = now
        if reservation.quantity_remaining == 0:
            reservation.state = ReservationState.CONSUMED
            reservation.consumed_at = now

        movement = self.movement_log.append(MovementLog.entry_for(
            record,
            MovementType.CONSUMPTION,
            -quantity,
            reference_id=reference_id or reservation.order_id,
            reservation_id=reservation.id,
            idempotency_key=idempotency_key,
            reason=f"Shipment against reservation {reservation.id}"
        ))

        logger.info(
            f"Consumed {quantity} of reservation {reservation.id} "
            f"({reservation.quantity_remaining} remaining, state {reservation.state.value})"
        )
        return reservation, movement

    @transactional('reservation.release')
    def release_reservation(self, reservation_id: str, reference_id: str = None,
                            idempotency_key: str = None) -> Tuple[Reservation, Optional[MovementEntry]]:
        """
        Return a reservation's remaining quantity to availability.

        Releasing a reservation that is already consumed or released does
        nothing and returns no movement.
        """
        reservation = self._locked_reservation(reservation_id)

        if not reservation.is_active:
            logger.debug(f"Reservation {reservation_id} already {reservation.state.value}; release skipped")
            return reservation, None

        remaining = reservation.quantity_remaining
        record = self.ledger.release_reserved_quantity(reservation.item_id, reservation.warehouse_id, remaining)

        now = datetime.utcnow()
        reservation.quantity_released += remaining
        reservation.state = ReservationState.RELEASED
        reservation.released_at = now
        reservation.updated_at = now

        movement = self.movement_log.append(MovementLog.entry_for(
            record,
            MovementType.RELEASE_NOOP,
            0,
            reference_id=reference_id or reservation.order_id,
            reservation_id=reservation.id,
            idempotency_key=idempotency_key,
            reason=f"Released {remaining} reserved"
        ))

        logger.info(f"Released reservation {reservation.id} ({remaining} returned to availability)")
        return reservation, movement

    def _compensate(self, created: List[Reservation]):
        for reservation in reversed(created):
            self.ledger.release_reserved_quantity(
                reservation.item_id, reservation.warehouse_id, reservation.quantity
            )
            self.reservation_repo.delete(reservation)

    def _locked_reservation(self, reservation_id: str) -> Reservation:
        reservation = self.reservation_repo.get_by_id(reservation_id, for_update=True)
        if not reservation:
            raise NotFound('reservation', reservation_id)
        return reservation
