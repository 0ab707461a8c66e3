"""
Base Repository Interface - Abstract base classes

Repositories stage changes on the session and flush; committing belongs to
the unit of work in ``services.transaction``.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional, Tuple

from inventory_fulfillment.models import (
    IdempotencyRecord,
    ItemThreshold,
    MovementEntry,
    MovementType,
    Reservation,
    ReservationState,
    SalesOrder,
    SalesOrderStatus,
    StockRecord,
)


class StockRecordRepositoryInterface(ABC):
    """Abstract base class for stock record repository"""

    @abstractmethod
    def get(self, item_id: str, warehouse_id: str, for_update: bool = False) -> Optional[StockRecord]:
        pass

    @abstractmethod
    def search(self, item_id: str = None, warehouse_id: str = None) -> List[StockRecord]:
        pass

    @abstractmethod
    def get_for_items(self, item_ids: List[str], warehouse_ids: List[str] = None) -> List[StockRecord]:
        pass

    @abstractmethod
    def add(self, record: StockRecord) -> StockRecord:
        pass


class ReservationRepositoryInterface(ABC):
    """Abstract base class for reservation repository"""

    @abstractmethod
    def get_by_id(self, reservation_id: str, for_update: bool = False) -> Optional[Reservation]:
        pass

    @abstractmethod
    def get_by_order_id(self, order_id: str, state: ReservationState = None,
                        for_update: bool = False) -> List[Reservation]:
        pass

    @abstractmethod
    def active_remaining_total(self, item_id: str, warehouse_id: str) -> int:
        pass

    @abstractmethod
    def add(self, reservation: Reservation) -> Reservation:
        pass

    @abstractmethod
    def delete(self, reservation: Reservation) -> None:
        pass


class MovementRepositoryInterface(ABC):
    """Abstract base class for movement entry repository"""

    @abstractmethod
    def add(self, entry: MovementEntry) -> MovementEntry:
        pass

    @abstractmethod
    def get_by_reference(self, reference_id: str) -> List[MovementEntry]:
        pass

    @abstractmethod
    def get_by_idempotency_key(self, idempotency_key: str) -> Optional[MovementEntry]:
        pass

    @abstractmethod
    def search(self, item_id: str = None, warehouse_id: str = None,
               movement_type: MovementType = None, reference_id: str = None,
               date_from: datetime = None, date_to: datetime = None,
               page: int = 1, per_page: int = 20) -> Tuple[List[MovementEntry], int]:
        pass

    @abstractmethod
    def sum_quantity(self, item_id: str, warehouse_id: str) -> int:
        pass


class SalesOrderRepositoryInterface(ABC):
    """Abstract base class for sales order repository"""

    @abstractmethod
    def get_by_id(self, order_id: str, for_update: bool = False) -> Optional[SalesOrder]:
        pass

    @abstractmethod
    def get_by_order_number(self, order_number: str) -> Optional[SalesOrder]:
        pass

    @abstractmethod
    def search(self, status: SalesOrderStatus = None, customer_id: str = None,
               page: int = 1, per_page: int = 20) -> Tuple[List[SalesOrder], int]:
        pass

    @abstractmethod
    def add(self, order: SalesOrder) -> SalesOrder:
        pass

    @abstractmethod
    def flush(self) -> None:
        pass


class IdempotencyRepositoryInterface(ABC):
    """Abstract base class for idempotency record repository"""

    @abstractmethod
    def find(self, order_id: str, operation: str, idempotency_key: str) -> Optional[IdempotencyRecord]:
        pass

    @abstractmethod
    def add(self, record: IdempotencyRecord) -> IdempotencyRecord:
        pass


class ThresholdRepositoryInterface(ABC):
    """Abstract base class for item threshold repository"""

    @abstractmethod
    def get_by_item(self, item_id: str) -> Optional[ItemThreshold]:
        pass

    @abstractmethod
    def get_all(self) -> List[ItemThreshold]:
        pass

    @abstractmethod
    def add(self, threshold: ItemThreshold) -> ItemThreshold:
        pass
