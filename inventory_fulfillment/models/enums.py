"""
Model Enums
"""

from enum import Enum


class ReservationState(Enum):
    ACTIVE = "active"
    CONSUMED = "consumed"
    RELEASED = "released"


class MovementType(Enum):
    RECEIPT = "receipt"
    CONSUMPTION = "consumption"
    ADJUSTMENT = "adjustment"
    RELEASE_NOOP = "release-noop"


class SalesOrderStatus(Enum):
    DRAFT = "draft"
    CONFIRMED = "confirmed"
    PARTIALLY_SHIPPED = "partially_shipped"
    SHIPPED = "shipped"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self):
        return self in (SalesOrderStatus.SHIPPED, SalesOrderStatus.CANCELLED)


class FulfillmentOperation(Enum):
    CONFIRM = "confirm"
    SHIP = "ship"
    CANCEL = "cancel"


class AlertLevel(Enum):
    OK = "ok"
    ADVERTENCIA = "advertencia"
    URGENTE = "urgente"
    CRITICO = "critico"
