"""
Order Fulfillment - sales order lifecycle

    draft -> confirmed -> partially_shipped -> shipped
    draft | confirmed | partially_shipped -> cancelled

Every operation runs as one unit of work: the order row is locked, the
reservation and stock changes are applied through the Reservation Manager,
and the result is stored under the caller's idempotency key so a retried
request returns the first result instead of repeating its side effects.
"""

from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Tuple
import logging
import uuid

from inventory_fulfillment.errors import (
    InsufficientStock,
    InvalidTransition,
    InvariantViolation,
    NotFound,
    OverShipment,
)
from inventory_fulfillment.models import (
    FulfillmentOperation,
    IdempotencyRecord,
    ReservationState,
    SalesOrder,
    SalesOrderLine,
    SalesOrderStatus,
)
from inventory_fulfillment.repositories import IdempotencyRepository, SalesOrderRepository
from .reservation_manager import ReservationManager
from .stock_ledger import require_positive_quantity
from .transaction import transactional

logger = logging.getLogger(__name__)

MAX_IDEMPOTENCY_KEY_LENGTH = 128

CANCELLABLE_STATUSES = tuple(status for status in SalesOrderStatus if not status.is_terminal)
SHIPPABLE_STATUSES = (SalesOrderStatus.CONFIRMED, SalesOrderStatus.PARTIALLY_SHIPPED)


def normalize_idempotency_key(idempotency_key: Optional[str]) -> Optional[str]:
    """Blank keys mean no deduplication"""
    if idempotency_key is None:
        return None
    if not isinstance(idempotency_key, str):
        raise ValueError("Idempotency key must be a string")
    idempotency_key = idempotency_key.strip()
    if not idempotency_key:
        return None
    if len(idempotency_key) > MAX_IDEMPOTENCY_KEY_LENGTH:
        raise ValueError(f"Idempotency key must be at most {MAX_IDEMPOTENCY_KEY_LENGTH} characters")
    return idempotency_key


def _to_price(value) -> Decimal:
    try:
        price = Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise ValueError(f"Invalid unit price {value!r}")
    if not price.is_finite() or price < 0:
        raise ValueError(f"Unit price must be a non-negative number, got {value!r}")
    return price.quantize(Decimal('0.01'))


class OrderFulfillmentService:
    """Business logic for the sales order lifecycle"""

    def __init__(self, reservation_manager=None, order_repository=None, idempotency_repository=None):
        self.reservation_manager = reservation_manager or ReservationManager()
        self.order_repo = order_repository or SalesOrderRepository()
        self.idempotency_repo = idempotency_repository or IdempotencyRepository()

    # =========================================================================
    # Order Intake Methods
    # =========================================================================

    @transactional('sales_order.create')
    def create_order(self, customer_id: str, lines: List[Dict[str, Any]],
                     order_number: str = None) -> SalesOrder:
        """
        Create a draft order.

        Args:
            customer_id: Ordering customer
            lines: [{'item_id': str, 'quantity': int, 'unit_price': number}]
            order_number: Human-readable number; generated when omitted
        """
        if not customer_id:
            raise ValueError("customer_id is required")
        if not lines:
            raise ValueError("An order needs at least one line")

        order_lines = []
        seen = set()
        for position, line in enumerate(lines, start=1):
            item_id = line.get('item_id')
            if not item_id:
                raise ValueError(f"Line {position} has no item_id")
            if item_id in seen:
                raise ValueError(f"Item {item_id} appears on more than one line")
            seen.add(item_id)
            quantity = require_positive_quantity(line.get('quantity'))
            order_lines.append(SalesOrderLine(
                position=position,
                item_id=item_id,
                quantity_ordered=quantity,
                quantity_delivered=0,
                unit_price=_to_price(line.get('unit_price', 0))
            ))

        if order_number:
            if self.order_repo.get_by_order_number(order_number):
                raise ValueError(f"Order number {order_number} already exists")
        else:
            order_number = self._generate_order_number()

        order = self.order_repo.add(SalesOrder(
            order_number=order_number,
            customer_id=customer_id,
            status=SalesOrderStatus.DRAFT,
            reservation_ids=[],
            lines=order_lines
        ))
        logger.info(f"Created sales order {order.order_number} for customer {customer_id}")
        return order

    def get_order(self, order_id: str) -> SalesOrder:
        order = self.order_repo.get_by_id(order_id)
        if not order:
            raise NotFound('sales order', order_id)
        return order

    def list_orders(self, status: str = None, customer_id: str = None,
                    page: int = 1, per_page: int = 20) -> Tuple[List[SalesOrder], int]:
        status_filter = SalesOrderStatus(status) if status else None
        return self.order_repo.search(status=status_filter, customer_id=customer_id,
                                      page=page, per_page=per_page)

    # =========================================================================
    # Lifecycle Methods
    # =========================================================================

    @transactional('sales_order.confirm')
    def confirm(self, order_id: str, warehouse_id: str, idempotency_key: str = None) -> Dict[str, Any]:
        """Reserve stock for every line and move the order to confirmed"""
        idempotency_key = normalize_idempotency_key(idempotency_key)
        order = self._locked_order(order_id)

        replayed = self._replay(order, FulfillmentOperation.CONFIRM, idempotency_key)
        if replayed is not None:
            return replayed

        self._require_status(order, FulfillmentOperation.CONFIRM, (SalesOrderStatus.DRAFT,))
        if not warehouse_id:
            raise ValueError("warehouse_id is required to confirm an order")
        self._claim(order)

        try:
            reservations = self.reservation_manager.reserve_for_order(
                order.id,
                warehouse_id,
                [(line.item_id, line.quantity_ordered) for line in order.lines]
            )
        except InsufficientStock as e:
            logger.info(f"Order {order.order_number} stays in draft: {e.message}")
            raise

        now = datetime.utcnow()
        order.status = SalesOrderStatus.CONFIRMED
        order.warehouse_id = warehouse_id
        order.confirmed_at = now
        order.reservation_ids = list(order.reservation_ids or []) + [r.id for r in reservations]

        logger.info(f"Confirmed sales order {order.order_number} ({len(reservations)} reservation(s))")
        return self._finish(order, FulfillmentOperation.CONFIRM, idempotency_key, now,
                            reservation_ids=[r.id for r in reservations], movement_ids=[])

    @transactional('sales_order.ship')
    def ship(self, order_id: str, idempotency_key: str = None,
             items: List[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Ship the remaining quantity of every line, or only the given items.

        Args:
            order_id: Order to ship
            idempotency_key: Client retry key
            items: Optional [{'item_id': str, 'quantity': int}]; quantities
                for the same item are added together
        """
        idempotency_key = normalize_idempotency_key(idempotency_key)
        order = self._locked_order(order_id)

        replayed = self._replay(order, FulfillmentOperation.SHIP, idempotency_key)
        if replayed is not None:
            return replayed

        self._require_status(order, FulfillmentOperation.SHIP, SHIPPABLE_STATUSES)
        self._claim(order)
        shipments = self._resolve_shipments(order, items)
        operation_key = self._operation_key(order, FulfillmentOperation.SHIP, idempotency_key)

        active = self.reservation_manager.list_for_order(order.id, state=ReservationState.ACTIVE)
        reservation_ids = []
        movement_ids = []

        for line, quantity in shipments:
            outstanding = quantity
            for reservation in active:
                if outstanding == 0:
                    break
                if reservation.item_id != line.item_id or not reservation.is_active:
                    continue
                take = min(outstanding, reservation.quantity_remaining)
                reservation, movement = self.reservation_manager.consume_reservation(
                    reservation.id,
                    take,
                    reference_id=order.id,
                    idempotency_key=f"{operation_key}:{reservation.id}" if operation_key else None
                )
                outstanding -= take
                if reservation.id not in reservation_ids:
                    reservation_ids.append(reservation.id)
                movement_ids.append(movement.id)

            if outstanding:
                raise InvariantViolation(
                    f"Order {order.id} line {line.item_id} has {outstanding} undelivered "
                    f"units with no active reservation behind them",
                    {'order_id': order.id, 'item_id': line.item_id, 'unreserved': outstanding}
                )
            line.quantity_delivered += quantity

        now = datetime.utcnow()
        if order.is_fully_delivered:
            order.status = SalesOrderStatus.SHIPPED
            order.shipped_at = now
        else:
            order.status = SalesOrderStatus.PARTIALLY_SHIPPED

        logger.info(
            f"Shipped {sum(q for _, q in shipments)} unit(s) on order {order.order_number} "
            f"(status {order.status.value})"
        )
        return self._finish(order, FulfillmentOperation.SHIP, idempotency_key, now,
                            reservation_ids=reservation_ids, movement_ids=movement_ids)

    @transactional('sales_order.cancel')
    def cancel(self, order_id: str, idempotency_key: str = None) -> Dict[str, Any]:
        """Release every active reservation and move the order to cancelled; deliveries stand"""
        idempotency_key = normalize_idempotency_key(idempotency_key)
        order = self._locked_order(order_id)

        replayed = self._replay(order, FulfillmentOperation.CANCEL, idempotency_key)
        if replayed is not None:
            return replayed

        self._require_status(order, FulfillmentOperation.CANCEL, CANCELLABLE_STATUSES)
        self._claim(order)
        operation_key = self._operation_key(order, FulfillmentOperation.CANCEL, idempotency_key)

        reservation_ids = []
        movement_ids = []
        for reservation in self.reservation_manager.list_for_order(order.id, state=ReservationState.ACTIVE):
            reservation, movement = self.reservation_manager.release_reservation(
                reservation.id,
                reference_id=order.id,
                idempotency_key=f"{operation_key}:{reservation.id}" if operation_key else None
            )
            reservation_ids.append(reservation.id)
            if movement is not None:
                movement_ids.append(movement.id)

        now = datetime.utcnow()
        order.status = SalesOrderStatus.CANCELLED
        order.cancelled_at = now

        logger.info(
            f"Cancelled sales order {order.order_number} ({len(reservation_ids)} reservation(s) released"
            + (", delivered units stand)" if order.has_deliveries else ")")
        )
        return self._finish(order, FulfillmentOperation.CANCEL, idempotency_key, now,
                            reservation_ids=reservation_ids, movement_ids=movement_ids)

    # =========================================================================
    # Helper Methods
    # =========================================================================

    def _locked_order(self, order_id: str) -> SalesOrder:
        order = self.order_repo.get_by_id(order_id, for_update=True)
        if not order:
            raise NotFound('sales order', order_id)
        return order

    def _replay(self, order: SalesOrder, operation: FulfillmentOperation,
                idempotency_key: Optional[str]) -> Optional[Dict[str, Any]]:
        if not idempotency_key:
            return None
        record = self.idempotency_repo.find(order.id, operation.value, idempotency_key)
        if record is None:
            return None
        logger.info(f"Replaying {operation.value} of order {order.order_number} for key {idempotency_key}")
        result = dict(record.result)
        result['replayed'] = True
        return result

    @staticmethod
    def _require_status(order: SalesOrder, operation: FulfillmentOperation, allowed):
        if order.status not in allowed:
            logger.info(
                f"Rejected {operation.value} of order {order.order_number} in status {order.status.value}"
            )
            raise InvalidTransition(
                'sales order', order.id, order.status.value, operation.value,
                [status.value for status in allowed]
            )

    def _claim(self, order: SalesOrder):
        # Versioned write ahead of any side effect. A duplicate that raced past
        # the replay check fails here with StaleDataError.
        order.updated_at = datetime.utcnow()
        self.order_repo.flush()

    @staticmethod
    def _operation_key(order: SalesOrder, operation: FulfillmentOperation,
                       idempotency_key: Optional[str]) -> Optional[str]:
        if not idempotency_key:
            return None
        return f"{order.id}:{operation.value}:{idempotency_key}"

    @staticmethod
    def _resolve_shipments(order: SalesOrder, items) -> List[Tuple[SalesOrderLine, int]]:
        if not items:
            return [(line, line.quantity_remaining) for line in order.lines if line.quantity_remaining > 0]

        requested = {}
        for entry in items:
            item_id = entry.get('item_id')
            if not item_id:
                raise ValueError("Every shipment item needs an item_id")
            quantity = require_positive_quantity(entry.get('quantity'))
            requested[item_id] = requested.get(item_id, 0) + quantity

        shipments = []
        for item_id, quantity in requested.items():
            line = order.line_for_item(item_id)
            if line is None:
                raise NotFound('sales order line', f"{order.id}/{item_id}")
            if quantity > line.quantity_remaining:
                raise OverShipment(order.id, item_id, quantity, line.quantity_remaining)
            shipments.append((line, quantity))

        shipments.sort(key=lambda pair: pair[0].position)
        return shipments

    def _finish(self, order: SalesOrder, operation: FulfillmentOperation,
                idempotency_key: Optional[str], now: datetime,
                reservation_ids: List[str], movement_ids: List[str]) -> Dict[str, Any]:
        # Order version bump is flushed before the idempotency record insert.
        order.updated_at = now
        self.order_repo.flush()

        result = {
            'sales_order': order.to_dict(),
            'reservation_ids': reservation_ids,
            'movement_ids': movement_ids,
            'replayed': False
        }

        if idempotency_key:
            self.idempotency_repo.add(IdempotencyRecord(
                order_id=order.id,
                operation=operation.value,
                idempotency_key=idempotency_key,
                result=result
            ))
        return result

    def _generate_order_number(self) -> str:
        for _ in range(5):
            candidate = f"SO-{datetime.utcnow():%Y%m%d}-{uuid.uuid4().hex[:6].upper()}"
            if not self.order_repo.get_by_order_number(candidate):
                return candidate
        raise InvariantViolation("Could not generate a unique order number")
