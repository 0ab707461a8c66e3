"""
Reservation Repository Implementation
"""

from typing import List, Optional

from sqlalchemy import func

from inventory_fulfillment.database import db
from inventory_fulfillment.models import Reservation, ReservationState
from .base import ReservationRepositoryInterface


class ReservationRepository(ReservationRepositoryInterface):
    """Concrete implementation of reservation repository"""

    def get_by_id(self, reservation_id: str, for_update: bool = False) -> Optional[Reservation]:
        """Get reservation by ID"""
        query = Reservation.query.filter_by(id=reservation_id)
        if for_update:
            query = query.with_for_update().populate_existing()
        return query.first()

    def get_by_order_id(self, order_id: str, state: ReservationState = None,
                        for_update: bool = False) -> List[Reservation]:
        """Get reservations by order ID, oldest first"""
        query = Reservation.query.filter_by(order_id=order_id)
        if state is not None:
            query = query.filter(Reservation.state == state)
        if for_update:
            query = query.with_for_update().populate_existing()
        return query.order_by(Reservation.created_at, Reservation.id).all()

    def active_remaining_total(self, item_id: str, warehouse_id: str) -> int:
        """Sum of still-earmarked quantity over active reservations"""
        remaining = Reservation.quantity - Reservation.quantity_consumed - Reservation.quantity_released
        total = db.session.query(func.coalesce(func.sum(remaining), 0)).filter(
            Reservation.item_id == item_id,
            Reservation.warehouse_id == warehouse_id,
            Reservation.state == ReservationState.ACTIVE
        ).scalar()
        return int(total or 0)

    def add(self, reservation: Reservation) -> Reservation:
        """Create new reservation"""
        db.session.add(reservation)
        db.session.flush()
        return reservation

    def delete(self, reservation: Reservation) -> None:
        db.session.delete(reservation)
        db.session.flush()
