"""
Movement Entry Repository Implementation
"""

from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import func

from inventory_fulfillment.database import db
from inventory_fulfillment.models import MovementEntry, MovementType
from .base import MovementRepositoryInterface


class MovementRepository(MovementRepositoryInterface):
    """Concrete implementation of movement entry repository (insert and read only)"""

    def add(self, entry: MovementEntry) -> MovementEntry:
        db.session.add(entry)
        db.session.flush()
        return entry

    def get_by_reference(self, reference_id: str) -> List[MovementEntry]:
        return MovementEntry.query.filter_by(reference_id=reference_id).order_by(
            MovementEntry.created_at, MovementEntry.id
        ).all()

    def get_by_idempotency_key(self, idempotency_key: str) -> Optional[MovementEntry]:
        return MovementEntry.query.filter_by(idempotency_key=idempotency_key).first()

    def search(self, item_id: str = None, warehouse_id: str = None,
               movement_type: MovementType = None, reference_id: str = None,
               date_from: datetime = None, date_to: datetime = None,
               page: int = 1, per_page: int = 20) -> Tuple[List[MovementEntry], int]:
        """Search movements with filters, newest first"""
        query = MovementEntry.query

        if item_id:
            query = query.filter(MovementEntry.item_id == item_id)
        if warehouse_id:
            query = query.filter(MovementEntry.warehouse_id == warehouse_id)
        if movement_type is not None:
            query = query.filter(MovementEntry.movement_type == movement_type)
        if reference_id:
            query = query.filter(MovementEntry.reference_id == reference_id)
        if date_from:
            query = query.filter(MovementEntry.created_at >= date_from)
        if date_to:
            query = query.filter(MovementEntry.created_at <= date_to)

        total = query.count()
        items = query.order_by(MovementEntry.created_at.desc(), MovementEntry.id).paginate(
            page=page, per_page=per_page, error_out=False
        ).items
        return items, total

    def sum_quantity(self, item_id: str, warehouse_id: str) -> int:
        """Net of all signed movement deltas for an (item, warehouse) pair"""
        total = db.session.query(func.coalesce(func.sum(MovementEntry.quantity), 0)).filter(
            MovementEntry.item_id == item_id,
            MovementEntry.warehouse_id == warehouse_id
        ).scalar()
        return int(total or 0)
