"""
Idempotency Record Repository Implementation
"""

from typing import Optional

from inventory_fulfillment.database import db
from inventory_fulfillment.models import IdempotencyRecord
from .base import IdempotencyRepositoryInterface


class IdempotencyRepository(IdempotencyRepositoryInterface):

    def find(self, order_id: str, operation: str, idempotency_key: str) -> Optional[IdempotencyRecord]:
        return IdempotencyRecord.query.filter_by(
            order_id=order_id,
            operation=operation,
            idempotency_key=idempotency_key
        ).first()

    def add(self, record: IdempotencyRecord) -> IdempotencyRecord:
        db.session.add(record)
        db.session.flush()
        return record
