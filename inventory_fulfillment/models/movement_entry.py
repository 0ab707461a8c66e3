"""
Movement Entry Model
"""

from datetime import datetime
from decimal import Decimal
import uuid

from sqlalchemy import DECIMAL, event

from inventory_fulfillment.database import db
from inventory_fulfillment.errors import InvariantViolation
from .enums import MovementType


class MovementEntry(db.Model):
    """Append-only record of one quantity-affecting stock event"""
    __tablename__ = 'movement_entries'
    __table_args__ = (
        db.Index('ix_movement_entries_item_warehouse', 'item_id', 'warehouse_id'),
    )

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    movement_type = db.Column(db.Enum(MovementType), nullable=False)
    item_id = db.Column(db.String(64), nullable=False)
    warehouse_id = db.Column(db.String(64), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)  # signed delta on quantity_on_hand
    unit_cost = db.Column(DECIMAL(12, 4), nullable=True)
    reference_id = db.Column(db.String(64), nullable=True, index=True)
    reservation_id = db.Column(db.String(36), nullable=True)
    idempotency_key = db.Column(db.String(255), nullable=True, unique=True, index=True)
    balance_on_hand = db.Column(db.Integer, nullable=False)
    balance_reserved = db.Column(db.Integer, nullable=False)
    reason = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)

    def __repr__(self):
        return f'<MovementEntry {self.item_id}@{self.warehouse_id} {self.movement_type.value} {self.quantity}>'

    def to_dict(self):
        """Convert to dictionary"""
        return {
            'id': self.id,
            'movement_type': self.movement_type.value,
            'item_id': self.item_id,
            'warehouse_id': self.warehouse_id,
            'quantity': self.quantity,
            'unit_cost': str(Decimal(self.unit_cost).quantize(Decimal('0.0001'))) if self.unit_cost is not None else None,
            'reference_id': self.reference_id,
            'reservation_id': self.reservation_id,
            'idempotency_key': self.idempotency_key,
            'balance_on_hand': self.balance_on_hand,
            'balance_reserved': self.balance_reserved,
            'reason': self.reason,
            'created_at': self.created_at.isoformat() if self.created_at else None
        }


def _refuse_update(mapper, connection, target):
    raise InvariantViolation(
        f"Movement entry {target.id} is immutable and cannot be updated",
        {'movement_id': target.id, 'operation': 'update'}
    )


def _refuse_delete(mapper, connection, target):
    raise InvariantViolation(
        f"Movement entry {target.id} is immutable and cannot be deleted",
        {'movement_id': target.id, 'operation': 'delete'}
    )


def register_immutability_listeners():
    """Refuse ORM updates and deletes of written movement entries"""
    if not event.contains(MovementEntry, 'before_update', _refuse_update):
        event.listen(MovementEntry, 'before_update', _refuse_update)
    if not event.contains(MovementEntry, 'before_delete', _refuse_delete):
        event.listen(MovementEntry, 'before_delete', _refuse_delete)
