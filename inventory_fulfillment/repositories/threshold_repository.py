"""
Item Threshold Repository Implementation
"""

from typing import List, Optional

from inventory_fulfillment.database import db
from inventory_fulfillment.models import ItemThreshold
from .base import ThresholdRepositoryInterface


class ThresholdRepository(ThresholdRepositoryInterface):

    def get_by_item(self, item_id: str) -> Optional[ItemThreshold]:
        return ItemThreshold.query.filter_by(item_id=item_id).first()

    def get_all(self) -> List[ItemThreshold]:
        return ItemThreshold.query.order_by(ItemThreshold.item_id).all()

    def add(self, threshold: ItemThreshold) -> ItemThreshold:
        db.session.add(threshold)
        db.session.flush()
        return threshold
