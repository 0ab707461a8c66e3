"""
Reservation Model
"""

from datetime import datetime
import uuid

from inventory_fulfillment.database import db
from .enums import ReservationState


class Reservation(db.Model):
    """Stock earmarked for one sales order line"""
    __tablename__ = 'reservations'
    __table_args__ = (
        db.Index('ix_reservations_item_warehouse_state', 'item_id', 'warehouse_id', 'state'),
        db.CheckConstraint('quantity > 0', name='ck_reservations_quantity_positive'),
        db.CheckConstraint(
            'quantity_consumed + quantity_released <= quantity',
            name='ck_reservations_settled_le_quantity'
        ),
    )

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    order_id = db.Column(db.String(36), nullable=False, index=True)
    item_id = db.Column(db.String(64), nullable=False)
    warehouse_id = db.Column(db.String(64), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    quantity_consumed = db.Column(db.Integer, default=0, nullable=False)
    quantity_released = db.Column(db.Integer, default=0, nullable=False)
    state = db.Column(db.Enum(ReservationState), default=ReservationState.ACTIVE, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    consumed_at = db.Column(db.DateTime, nullable=True)
    released_at = db.Column(db.DateTime, nullable=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
    version = db.Column(db.Integer, nullable=False)

    __mapper_args__ = {'version_id_col': version}

    def __repr__(self):
        return f'<Reservation {self.id}>'

    @property
    def quantity_remaining(self):
        """Quantity still earmarked (neither shipped nor given back)"""
        return self.quantity - (self.quantity_consumed or 0) - (self.quantity_released or 0)

    @property
    def is_active(self):
        return self.state == ReservationState.ACTIVE

    def to_dict(self):
        """Convert to dictionary"""
        return {
            'id': self.id,
            'order_id': self.order_id,
            'item_id': self.item_id,
            'warehouse_id': self.warehouse_id,
            'quantity': self.quantity,
            'quantity_consumed': self.quantity_consumed or 0,
            'quantity_released': self.quantity_released or 0,
            'quantity_remaining': self.quantity_remaining,
            'state': self.state.value,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'consumed_at': self.consumed_at.isoformat() if self.consumed_at else None,
            'released_at': self.released_at.isoformat() if self.released_at else None
        }
