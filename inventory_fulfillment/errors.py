"""
Fulfillment error taxonomy

Every failure a compound stock/order operation can report is one of these kinds.
NotFound, InsufficientStock, OverShipment and InvalidTransition are expected
business outcomes; InvariantViolation signals corrupted state or a bug;
ConcurrencyConflict means the retry budget ran out and the caller may retry.
"""

from typing import Any, Dict, Optional


class FulfillmentError(Exception):
    """Base class for all typed fulfillment errors"""

    code = 'FULFILLMENT_ERROR'
    http_status = 400
    retryable = False

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert to response payload"""
        return {
            'error': self.code,
            'message': self.message,
            'details': self.details,
            'retryable': self.retryable,
            'status_code': self.http_status
        }


class NotFound(FulfillmentError):
    """Referenced stock record, order or reservation does not exist"""

    code = 'NOT_FOUND'
    http_status = 404

    def __init__(self, entity: str, identifier: Any):
        super().__init__(
            f"{entity} {identifier} not found",
            {'entity': entity, 'id': str(identifier)}
        )
        self.entity = entity
        self.identifier = identifier


class InsufficientStock(FulfillmentError):
    """Requested reservation or consumption exceeds what is available"""

    code = 'INSUFFICIENT_STOCK'
    http_status = 409

    def __init__(self, item_id: str, warehouse_id: str, requested: int, available: int):
        super().__init__(
            f"Insufficient stock for item {item_id} in warehouse {warehouse_id} "
            f"(requested {requested}, available {available})",
            {
                'item_id': item_id,
                'warehouse_id': warehouse_id,
                'requested': requested,
                'available': available
            }
        )
        self.item_id = item_id
        self.warehouse_id = warehouse_id
        self.requested = requested
        self.available = available


class OverShipment(FulfillmentError):
    """Requested ship quantity exceeds the undelivered quantity of a line"""

    code = 'OVER_SHIPMENT'
    http_status = 422

    def __init__(self, order_id: str, item_id: str, requested: int, remaining: int):
        super().__init__(
            f"Cannot ship {requested} of item {item_id} on order {order_id}: "
            f"only {remaining} remaining",
            {
                'order_id': order_id,
                'item_id': item_id,
                'requested': requested,
                'remaining': remaining
            }
        )
        self.item_id = item_id
        self.requested = requested
        self.remaining = remaining


class InvalidTransition(FulfillmentError):
    """Operation is not permitted from the entity's current status"""

    code = 'INVALID_TRANSITION'
    http_status = 409

    def __init__(self, entity: str, identifier: Any, current: str, operation: str,
                 allowed: Optional[list] = None):
        message = f"Cannot {operation} {entity} {identifier} in status '{current}'"
        if allowed:
            message += f". Allowed: {', '.join(allowed)}"
        super().__init__(message, {
            'entity': entity,
            'id': str(identifier),
            'current_status': current,
            'operation': operation,
            'allowed_statuses': allowed or []
        })
        self.current = current
        self.operation = operation


class InvariantViolation(FulfillmentError):
    """Internal consistency check failed"""

    code = 'INVARIANT_VIOLATION'
    http_status = 500


class ConcurrencyConflict(FulfillmentError):
    """Optimistic-concurrency retry budget exhausted"""

    code = 'CONCURRENCY_CONFLICT'
    http_status = 409
    retryable = True

    def __init__(self, operation: str, attempts: int):
        super().__init__(
            f"{operation} conflicted with a concurrent update after {attempts} attempts",
            {'operation': operation, 'attempts': attempts}
        )
        self.operation = operation
        self.attempts = attempts
