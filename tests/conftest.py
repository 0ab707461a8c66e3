import os
import pytest

# Set test environment variables before importing the app
os.environ['FLASK_ENV'] = 'testing'
os.environ['DATABASE_URL'] = 'sqlite:///:memory:'

from inventory_fulfillment import create_app
from inventory_fulfillment.database import db
from inventory_fulfillment.services import (
    MovementLog, StockLedger, ReservationManager, OrderFulfillmentService, StockAlertEvaluator
)

ITEM = 'ITEM-001'
WAREHOUSE = 'WH-MAIN'


@pytest.fixture(scope='session')
def app():
    """Create application for the tests."""
    app = create_app('testing')

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture
def client(app):
    """A test client for the app."""
    return app.test_client()


@pytest.fixture
def db_session(app):
    """Database session for a test; tables are emptied afterwards."""
    with app.app_context():
        db.create_all()

        yield db.session

        db.session.rollback()
        for table in reversed(db.metadata.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()


@pytest.fixture
def ledger(db_session):
    return StockLedger()


@pytest.fixture
def movement_log(ledger):
    return ledger.movement_log


@pytest.fixture
def reservation_manager(ledger):
    return ReservationManager(ledger=ledger)


@pytest.fixture
def fulfillment(reservation_manager):
    return OrderFulfillmentService(reservation_manager=reservation_manager)


@pytest.fixture
def alerts(db_session):
    return StockAlertEvaluator()


# Helper functions for tests
def create_test_stock(item_id=ITEM, warehouse_id=WAREHOUSE, quantity=20, unit_cost='10.00'):
    """Book a receipt so the record and its movement history agree."""
    record, _ = StockLedger().receive(item_id, warehouse_id, quantity, unit_cost=unit_cost,
                                      reference_id='PO-TEST')
    return record


def create_test_order(lines=None, customer_id='CUST-001', **kwargs):
    """Create a draft sales order; lines default to 10 x ITEM-001."""
    if lines is None:
        lines = [{'item_id': ITEM, 'quantity': 10, 'unit_price': '25.00'}]
    return OrderFulfillmentService().create_order(customer_id, lines, **kwargs)


def stock_snapshot(item_id=ITEM, warehouse_id=WAREHOUSE):
    """(on hand, reserved) as currently stored."""
    db.session.expire_all()
    record = StockLedger().get_record(item_id, warehouse_id)
    return record.quantity_on_hand, record.quantity_reserved


def assert_reservation_invariant(item_id=ITEM, warehouse_id=WAREHOUSE):
    """Active reservations account for exactly the reserved quantity."""
    db.session.expire_all()
    record = StockLedger().get_record(item_id, warehouse_id)
    assert 0 <= record.quantity_reserved <= record.quantity_on_hand
    assert ReservationManager().active_reserved_total(item_id, warehouse_id) == record.quantity_reserved


def assert_error_response(response, status_code, error_code):
    """Assert typed error response format."""
    assert response.status_code == status_code
    data = response.get_json()
    assert data['error'] == error_code
    assert 'message' in data
    return data


def run_as_other_request(app, func, *args, **kwargs):
    """Run func in its own app context, so it gets its own session and commits on its own."""
    with app.app_context():
        return func(*args, **kwargs)
