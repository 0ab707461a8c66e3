"""
Item Threshold Model
"""

from datetime import datetime

from inventory_fulfillment.database import db


class ItemThreshold(db.Model):
    """Configured minimum stock level for an item"""
    __tablename__ = 'item_thresholds'
    __table_args__ = (
        db.CheckConstraint('minimum_quantity >= 0', name='ck_item_thresholds_minimum'),
    )

    id = db.Column(db.Integer, primary_key=True)
    item_id = db.Column(db.String(64), unique=True, nullable=False)
    minimum_quantity = db.Column(db.Integer, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f'<ItemThreshold {self.item_id} min={self.minimum_quantity}>'

    def to_dict(self):
        """Convert to dictionary"""
        return {
            'item_id': self.item_id,
            'minimum_quantity': self.minimum_quantity,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None
        }
