"""
Idempotency Record Model
"""

from datetime import datetime

from inventory_fulfillment.database import db


class IdempotencyRecord(db.Model):
    """Stored result of an order operation executed under a client key"""
    __tablename__ = 'idempotency_records'
    __table_args__ = (
        db.UniqueConstraint(
            'order_id', 'operation', 'idempotency_key',
            name='uq_idempotency_records_order_operation_key'
        ),
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.String(36), nullable=False)
    operation = db.Column(db.String(20), nullable=False)
    idempotency_key = db.Column(db.String(255), nullable=False)
    result = db.Column(db.JSON, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f'<IdempotencyRecord {self.operation} {self.order_id} {self.idempotency_key}>'

    def to_dict(self):
        """Convert to dictionary"""
        return {
            'order_id': self.order_id,
            'operation': self.operation,
            'idempotency_key': self.idempotency_key,
            'result': self.result,
            'created_at': self.created_at.isoformat() if self.created_at else None
        }
