"""
Sales Order Repository Implementation
"""

from typing import List, Optional, Tuple

from inventory_fulfillment.database import db
from inventory_fulfillment.models import SalesOrder, SalesOrderStatus
from .base import SalesOrderRepositoryInterface


class SalesOrderRepository(SalesOrderRepositoryInterface):
    """Concrete implementation of sales order repository"""

    def get_by_id(self, order_id: str, for_update: bool = False) -> Optional[SalesOrder]:
        """Get sales order by ID, optionally row-locked"""
        query = SalesOrder.query.filter_by(id=order_id)
        if for_update:
            query = query.with_for_update().populate_existing()
        return query.first()

    def get_by_order_number(self, order_number: str) -> Optional[SalesOrder]:
        return SalesOrder.query.filter_by(order_number=order_number).first()

    def search(self, status: SalesOrderStatus = None, customer_id: str = None,
               page: int = 1, per_page: int = 20) -> Tuple[List[SalesOrder], int]:
        """Search orders; oldest first so a status filter reads like a work queue"""
        query = SalesOrder.query
        if status is not None:
            query = query.filter(SalesOrder.status == status)
        if customer_id:
            query = query.filter(SalesOrder.customer_id == customer_id)

        total = query.count()
        items = query.order_by(SalesOrder.created_at, SalesOrder.order_number).paginate(
            page=page, per_page=per_page, error_out=False
        ).items
        return items, total

    def add(self, order: SalesOrder) -> SalesOrder:
        db.session.add(order)
        db.session.flush()
        return order

    def flush(self) -> None:
        db.session.flush()
