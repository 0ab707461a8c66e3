import pytest
from decimal import Decimal
from sqlalchemy.exc import IntegrityError

from inventory_fulfillment.errors import InvariantViolation
from inventory_fulfillment.models import (
    ItemThreshold, MovementEntry, MovementType, Reservation, ReservationState, StockRecord
)
from tests.conftest import ITEM, WAREHOUSE, create_test_stock, create_test_order


class TestStockRecord:
    """Test StockRecord model."""

    def test_to_dict(self, db_session):
        record = create_test_stock(quantity=20, unit_cost='3.5')
        record.quantity_reserved = 5
        db_session.commit()

        data = record.to_dict()

        assert data['item_id'] == ITEM
        assert data['warehouse_id'] == WAREHOUSE
        assert data['quantity_on_hand'] == 20
        assert data['quantity_reserved'] == 5
        assert data['quantity_available'] == 15
        assert data['average_cost'] == '3.5000'
        assert data['last_received_at'] is not None

    def test_version_increments_on_update(self, db_session):
        record = create_test_stock(quantity=20)
        version = record.version

        record.quantity_reserved = 1
        db_session.commit()

        assert record.version == version + 1

    def test_reserved_cannot_exceed_on_hand(self, db_session):
        record = create_test_stock(quantity=20)
        record.quantity_reserved = 21

        with pytest.raises(IntegrityError):
            db_session.commit()
        db_session.rollback()

    def test_pair_is_unique(self, db_session):
        create_test_stock(quantity=20)
        db_session.add(StockRecord(item_id=ITEM, warehouse_id=WAREHOUSE,
                                   quantity_on_hand=1, quantity_reserved=0, average_cost=Decimal('0')))

        with pytest.raises(IntegrityError):
            db_session.commit()
        db_session.rollback()


class TestMovementEntry:
    """Test the append-only movement entry."""

    def test_to_dict(self, db_session):
        create_test_stock(quantity=20, unit_cost='2')
        entry = MovementEntry.query.one()

        data = entry.to_dict()

        assert data['movement_type'] == 'receipt'
        assert data['quantity'] == 20
        assert data['unit_cost'] == '2.0000'
        assert data['reference_id'] == 'PO-TEST'
        assert data['balance_on_hand'] == 20

    def test_update_refused(self, db_session):
        create_test_stock(quantity=20)
        entry = MovementEntry.query.one()
        entry.quantity = 99

        with pytest.raises(InvariantViolation):
            db_session.flush()
        db_session.rollback()

        assert MovementEntry.query.one().quantity == 20

    def test_delete_refused(self, db_session):
        create_test_stock(quantity=20)
        entry = MovementEntry.query.one()
        db_session.delete(entry)

        with pytest.raises(InvariantViolation):
            db_session.flush()
        db_session.rollback()

        assert MovementEntry.query.count() == 1


class TestReservation:
    """Test Reservation model."""

    def test_remaining_and_to_dict(self, db_session):
        reservation = Reservation(order_id='ORDER-1', item_id=ITEM, warehouse_id=WAREHOUSE,
                                  quantity=10, quantity_consumed=3, quantity_released=0,
                                  state=ReservationState.ACTIVE)
        db_session.add(reservation)
        db_session.commit()

        data = reservation.to_dict()

        assert reservation.is_active
        assert data['quantity_remaining'] == 7
        assert data['state'] == 'active'
        assert data['id']

    def test_settled_cannot_exceed_quantity(self, db_session):
        db_session.add(Reservation(order_id='ORDER-1', item_id=ITEM, warehouse_id=WAREHOUSE,
                                   quantity=5, quantity_consumed=4, quantity_released=2,
                                   state=ReservationState.ACTIVE))

        with pytest.raises(IntegrityError):
            db_session.commit()
        db_session.rollback()


class TestSalesOrder:
    """Test SalesOrder and SalesOrderLine models."""

    def test_lines_are_ordered(self, db_session):
        order = create_test_order(lines=[
            {'item_id': 'ITEM-B', 'quantity': 1},
            {'item_id': 'ITEM-A', 'quantity': 2, 'unit_price': '1.5'},
        ])

        assert [line.item_id for line in order.lines] == ['ITEM-B', 'ITEM-A']
        assert order.line_for_item('ITEM-A').quantity_remaining == 2
        assert order.line_for_item('missing') is None
        assert order.has_deliveries is False
        assert order.is_fully_delivered is False
        assert order.to_dict()['lines'][1]['unit_price'] == '1.50'
        assert 'lines' not in order.to_dict(include_lines=False)

    def test_delivered_cannot_exceed_ordered(self, db_session):
        order = create_test_order()
        order.lines[0].quantity_delivered = 11

        with pytest.raises(IntegrityError):
            db_session.commit()
        db_session.rollback()


class TestItemThreshold:
    """Test ItemThreshold model."""

    def test_negative_minimum_rejected(self, db_session):
        db_session.add(ItemThreshold(item_id=ITEM, minimum_quantity=-1))

        with pytest.raises(IntegrityError):
            db_session.commit()
        db_session.rollback()
