import pytest
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, OperationalError

from inventory_fulfillment.database import db
from inventory_fulfillment.errors import ConcurrencyConflict
from inventory_fulfillment.models import MovementType, SalesOrder, StockRecord
from inventory_fulfillment.services import OrderFulfillmentService, StockLedger
from inventory_fulfillment.services.transaction import in_transaction, is_retryable, transactional
from tests.conftest import ITEM, WAREHOUSE, create_test_stock, run_as_other_request, stock_snapshot


def bump_stock_version(item_id=ITEM, warehouse_id=WAREHOUSE):
    """Simulate a concurrent writer committing a new version underneath the session."""
    db.session.execute(
        text('UPDATE stock_records SET version = version + 1 '
             'WHERE item_id = :item_id AND warehouse_id = :warehouse_id'),
        {'item_id': item_id, 'warehouse_id': warehouse_id}
    )


def racing_get(ledger, conflicts):
    """Wrap the repository lookup so the first `conflicts` locked reads lose a race."""
    real_get = ledger.stock_repo.get
    calls = []

    def get(item_id, warehouse_id, for_update=False):
        record = real_get(item_id, warehouse_id, for_update=for_update)
        if for_update and record is not None:
            calls.append(item_id)
            if len(calls) <= conflicts:
                bump_stock_version(item_id, warehouse_id)
        return record

    return get, calls


class TestRetry:
    """Test conflict detection and retry of units of work."""

    def test_stale_version_is_retried(self, ledger, monkeypatch):
        create_test_stock(quantity=20)
        get, calls = racing_get(ledger, conflicts=1)
        monkeypatch.setattr(ledger.stock_repo, 'get', get)

        ledger.reserve(ITEM, WAREHOUSE, 5)

        assert len(calls) == 2
        assert stock_snapshot() == (20, 5)

    def test_retry_budget_exhausted(self, ledger, monkeypatch):
        create_test_stock(quantity=20)
        get, calls = racing_get(ledger, conflicts=10)
        monkeypatch.setattr(ledger.stock_repo, 'get', get)

        with pytest.raises(ConcurrencyConflict) as exc_info:
            ledger.reserve(ITEM, WAREHOUSE, 5)

        assert exc_info.value.attempts == 3
        assert exc_info.value.retryable is True
        assert len(calls) == 3
        assert stock_snapshot() == (20, 0)

    def test_lock_contention_is_retried(self, db_session):
        attempts = []

        @transactional('test.locked')
        def locked_operation():
            attempts.append(1)
            if len(attempts) == 1:
                raise OperationalError('UPDATE stock_records', {}, Exception('database is locked'))
            return 'done'

        assert locked_operation() == 'done'
        assert len(attempts) == 2

    def test_other_operational_errors_propagate(self, db_session):
        attempts = []

        @transactional('test.broken')
        def broken_operation():
            attempts.append(1)
            raise OperationalError('SELECT 1', {}, Exception('no such table: missing'))

        with pytest.raises(OperationalError):
            broken_operation()
        assert len(attempts) == 1

    def test_is_retryable(self):
        assert is_retryable(OperationalError('x', {}, Exception('Deadlock found when trying to get lock')))
        assert is_retryable(OperationalError('x', {}, Exception('Lock wait timeout exceeded')))
        assert not is_retryable(OperationalError('x', {}, Exception('syntax error')))
        assert is_retryable(IntegrityError('x', {}, Exception('UNIQUE constraint failed: sales_orders.order_number')))
        assert is_retryable(IntegrityError('x', {}, Exception("Duplicate entry 'SO-1' for key 'order_number'")))
        assert not is_retryable(IntegrityError('x', {}, Exception('CHECK constraint failed: ck_stock_records_on_hand')))
        assert not is_retryable(ValueError('nope'))


class TestUnitOfWork:
    """Test commit and rollback boundaries."""

    def test_nested_calls_join_outer_unit(self, ledger, db_session):
        create_test_stock(quantity=20)

        @transactional('test.outer')
        def outer():
            assert in_transaction()
            ledger.reserve(ITEM, WAREHOUSE, 5)
            ledger.receive(ITEM, WAREHOUSE, 3, reference_id='PO-NESTED')
            raise ValueError('abort after nested work')

        with pytest.raises(ValueError):
            outer()

        assert not in_transaction()
        assert stock_snapshot() == (20, 0)
        assert ledger.movement_log.find_by_reference('PO-NESTED') == []

    def test_outer_commit_includes_nested_work(self, ledger, db_session):
        create_test_stock(quantity=20)

        @transactional('test.outer')
        def outer():
            ledger.reserve(ITEM, WAREHOUSE, 5)
            ledger.reserve(ITEM, WAREHOUSE, 2)

        outer()

        db_session.rollback()
        assert stock_snapshot() == (20, 7)

    def test_failed_operation_rolls_back(self, ledger):
        create_test_stock(quantity=20)
        record = StockRecord.query.filter_by(item_id=ITEM).one()
        version = record.version

        with pytest.raises(ValueError):
            ledger.reserve(ITEM, WAREHOUSE, -1)

        db.session.expire_all()
        assert StockRecord.query.filter_by(item_id=ITEM).one().version == version


class TestFirstInsertRace:
    """Test two requests creating the same row at once."""

    def test_concurrent_first_receipt(self, app, ledger, monkeypatch):
        real_get = ledger.stock_repo.get
        calls = []

        def get(item_id, warehouse_id, for_update=False):
            calls.append(item_id)
            if len(calls) == 1:
                # Our read saw no record; the other request creates it first.
                run_as_other_request(app, lambda: StockLedger().receive(
                    item_id, warehouse_id, 5, unit_cost='10.00', reference_id='PO-OTHER'))
                return None
            return real_get(item_id, warehouse_id, for_update=for_update)

        monkeypatch.setattr(ledger.stock_repo, 'get', get)

        record, movement = ledger.receive(ITEM, WAREHOUSE, 3, unit_cost='10.00', reference_id='PO-OURS')

        assert len(calls) == 2
        assert record.quantity_on_hand == 8
        assert movement.movement_type == MovementType.RECEIPT
        assert StockRecord.query.filter_by(item_id=ITEM, warehouse_id=WAREHOUSE).count() == 1
        assert len(ledger.movement_log.query(item_id=ITEM)[0]) == 2
        assert ledger.movement_log.reconcile(ITEM, WAREHOUSE)['balanced'] is True

    def test_concurrent_duplicate_order_number(self, app, fulfillment, monkeypatch):
        real_lookup = fulfillment.order_repo.get_by_order_number
        calls = []

        def get_by_order_number(order_number):
            calls.append(order_number)
            if len(calls) == 1:
                run_as_other_request(app, lambda: OrderFulfillmentService().create_order(
                    'CUST-OTHER', [{'item_id': ITEM, 'quantity': 1}], order_number=order_number))
                return None
            return real_lookup(order_number)

        monkeypatch.setattr(fulfillment.order_repo, 'get_by_order_number', get_by_order_number)

        with pytest.raises(ValueError, match='SO-RACE already exists'):
            fulfillment.create_order('CUST-001', [{'item_id': ITEM, 'quantity': 2}], order_number='SO-RACE')

        assert len(calls) == 2
        orders = SalesOrder.query.filter_by(order_number='SO-RACE').all()
        assert [order.customer_id for order in orders] == ['CUST-OTHER']
