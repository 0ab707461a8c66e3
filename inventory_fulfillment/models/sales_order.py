"""
Sales Order Models
"""

from datetime import datetime
from decimal import Decimal
import uuid

from sqlalchemy import DECIMAL

from inventory_fulfillment.database import db
from .enums import SalesOrderStatus


class SalesOrder(db.Model):
    """Customer order whose lines are reserved, shipped and cancelled as a unit"""
    __tablename__ = 'sales_orders'

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    order_number = db.Column(db.String(32), unique=True, nullable=False)
    customer_id = db.Column(db.String(64), nullable=False, index=True)
    status = db.Column(db.Enum(SalesOrderStatus), default=SalesOrderStatus.DRAFT, nullable=False, index=True)
    warehouse_id = db.Column(db.String(64), nullable=True)
    reservation_ids = db.Column(db.JSON, default=list, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    confirmed_at = db.Column(db.DateTime, nullable=True)
    shipped_at = db.Column(db.DateTime, nullable=True)
    cancelled_at = db.Column(db.DateTime, nullable=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
    version = db.Column(db.Integer, nullable=False)

    lines = db.relationship(
        'SalesOrderLine',
        backref='sales_order',
        order_by='SalesOrderLine.position',
        cascade='all, delete-orphan',
        lazy=True
    )

    __mapper_args__ = {'version_id_col': version}

    def __repr__(self):
        return f'<SalesOrder {self.order_number}>'

    def line_for_item(self, item_id):
        for line in self.lines:
            if line.item_id == item_id:
                return line
        return None

    @property
    def is_fully_delivered(self):
        return all(line.quantity_remaining == 0 for line in self.lines)

    @property
    def has_deliveries(self):
        return any(line.quantity_delivered > 0 for line in self.lines)

    def to_dict(self, include_lines=True):
        """Convert to dictionary"""
        data = {
            'id': self.id,
            'order_number': self.order_number,
            'customer_id': self.customer_id,
            'status': self.status.value,
            'warehouse_id': self.warehouse_id,
            'reservation_ids': list(self.reservation_ids or []),
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'confirmed_at': self.confirmed_at.isoformat() if self.confirmed_at else None,
            'shipped_at': self.shipped_at.isoformat() if self.shipped_at else None,
            'cancelled_at': self.cancelled_at.isoformat() if self.cancelled_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None
        }
        if include_lines:
            data['lines'] = [line.to_dict() for line in self.lines]
        return data


class SalesOrderLine(db.Model):
    """One item line of a sales order"""
    __tablename__ = 'sales_order_lines'
    __table_args__ = (
        db.UniqueConstraint('order_id', 'item_id', name='uq_sales_order_lines_order_item'),
        db.CheckConstraint('quantity_ordered > 0', name='ck_sales_order_lines_ordered_positive'),
        db.CheckConstraint(
            'quantity_delivered >= 0 AND quantity_delivered <= quantity_ordered',
            name='ck_sales_order_lines_delivered_range'
        ),
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.String(36), db.ForeignKey('sales_orders.id'), nullable=False, index=True)
    position = db.Column(db.Integer, nullable=False, default=0)
    item_id = db.Column(db.String(64), nullable=False)
    quantity_ordered = db.Column(db.Integer, nullable=False)
    quantity_delivered = db.Column(db.Integer, default=0, nullable=False)
    unit_price = db.Column(DECIMAL(12, 2), default=Decimal('0'), nullable=False)

    def __repr__(self):
        return f'<SalesOrderLine {self.order_id} {self.item_id}>'

    @property
    def quantity_remaining(self):
        return self.quantity_ordered - (self.quantity_delivered or 0)

    def to_dict(self):
        """Convert to dictionary"""
        return {
            'position': self.position,
            'item_id': self.item_id,
            'quantity_ordered': self.quantity_ordered,
            'quantity_delivered': self.quantity_delivered or 0,
            'quantity_remaining': self.quantity_remaining,
            'unit_price': str(Decimal(self.unit_price or 0).quantize(Decimal('0.01')))
        }
