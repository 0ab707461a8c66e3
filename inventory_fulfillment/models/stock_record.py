"""
Stock Record Model
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import DECIMAL

from inventory_fulfillment.database import db


class StockRecord(db.Model):
    """On-hand and reserved quantity of one item in one warehouse.

    Quantities are written only by ``services.stock_ledger``; the check
    constraints below back the ledger's own invariant checks at the database.
    """
    __tablename__ = 'stock_records'
    __table_args__ = (
        db.UniqueConstraint('item_id', 'warehouse_id', name='uq_stock_records_item_warehouse'),
        db.CheckConstraint('quantity_on_hand >= 0', name='ck_stock_records_on_hand'),
        db.CheckConstraint('quantity_reserved >= 0', name='ck_stock_records_reserved'),
        db.CheckConstraint('quantity_reserved <= quantity_on_hand', name='ck_stock_records_reserved_le_on_hand'),
    )

    id = db.Column(db.Integer, primary_key=True)
    item_id = db.Column(db.String(64), nullable=False, index=True)
    warehouse_id = db.Column(db.String(64), nullable=False, index=True)
    quantity_on_hand = db.Column(db.Integer, default=0, nullable=False)
    quantity_reserved = db.Column(db.Integer, default=0, nullable=False)
    average_cost = db.Column(DECIMAL(12, 4), default=Decimal('0'), nullable=False)
    last_received_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
    version = db.Column(db.Integer, nullable=False)

    __mapper_args__ = {'version_id_col': version}

    def __repr__(self):
        return f'<StockRecord {self.item_id}@{self.warehouse_id}>'

    @property
    def quantity_available(self):
        """On-hand quantity not earmarked by active reservations"""
        return (self.quantity_on_hand or 0) - (self.quantity_reserved or 0)

    def to_dict(self):
        """Convert to dictionary"""
        return {
            'item_id': self.item_id,
            'warehouse_id': self.warehouse_id,
            'quantity_on_hand': self.quantity_on_hand,
            'quantity_reserved': self.quantity_reserved,
            'quantity_available': self.quantity_available,
            'average_cost': str(Decimal(self.average_cost or 0).quantize(Decimal('0.0001'))),
            'last_received_at': self.last_received_at.isoformat() if self.last_received_at else None,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None
        }
