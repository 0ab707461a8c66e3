"""
Stock Record Repository Implementation
"""

from typing import List, Optional

from inventory_fulfillment.database import db
from inventory_fulfillment.models import StockRecord
from .base import StockRecordRepositoryInterface


class StockRecordRepository(StockRecordRepositoryInterface):
    """Concrete implementation of stock record repository"""

    def get(self, item_id: str, warehouse_id: str, for_update: bool = False) -> Optional[StockRecord]:
        """Get the record for an (item, warehouse) pair, optionally row-locked"""
        query = StockRecord.query.filter_by(item_id=item_id, warehouse_id=warehouse_id)
        if for_update:
            query = query.with_for_update().populate_existing()
        return query.first()

    def search(self, item_id: str = None, warehouse_id: str = None) -> List[StockRecord]:
        query = StockRecord.query
        if item_id:
            query = query.filter(StockRecord.item_id == item_id)
        if warehouse_id:
            query = query.filter(StockRecord.warehouse_id == warehouse_id)
        return query.order_by(StockRecord.item_id, StockRecord.warehouse_id).all()

    def get_for_items(self, item_ids: List[str], warehouse_ids: List[str] = None) -> List[StockRecord]:
        """Get records of several items, optionally restricted to some warehouses"""
        if not item_ids:
            return []
        query = StockRecord.query.filter(StockRecord.item_id.in_(item_ids))
        if warehouse_ids:
            query = query.filter(StockRecord.warehouse_id.in_(warehouse_ids))
        return query.all()

    def add(self, record: StockRecord) -> StockRecord:
        db.session.add(record)
        db.session.flush()
        return record
