import pytest

from inventory_fulfillment.errors import InsufficientStock, InvalidTransition, NotFound
from inventory_fulfillment.models import MovementType, ReservationState
from inventory_fulfillment.services import transactional
from tests.conftest import (
    ITEM, WAREHOUSE, create_test_stock, stock_snapshot, assert_reservation_invariant
)


class TestReserveForOrder:
    """Test all-or-nothing reservation of order lines."""

    def test_reserves_every_line(self, reservation_manager):
        create_test_stock('ITEM-A', quantity=10)
        create_test_stock('ITEM-B', quantity=10)

        reservations = reservation_manager.reserve_for_order(
            'ORDER-1', WAREHOUSE, [('ITEM-A', 4), ('ITEM-B', 6)]
        )

        assert [r.item_id for r in reservations] == ['ITEM-A', 'ITEM-B']
        assert all(r.state == ReservationState.ACTIVE for r in reservations)
        assert stock_snapshot('ITEM-A') == (10, 4)
        assert stock_snapshot('ITEM-B') == (10, 6)
        assert_reservation_invariant('ITEM-A')
        assert_reservation_invariant('ITEM-B')

    def test_reserving_writes_no_movement(self, reservation_manager, movement_log):
        create_test_stock(quantity=10)

        reservation_manager.reserve_for_order('ORDER-1', WAREHOUSE, [(ITEM, 5)])

        entries = movement_log.find_by_reference('ORDER-1')
        assert entries == []

    def test_short_line_fails_whole_order(self, reservation_manager):
        create_test_stock('ITEM-A', quantity=10)
        create_test_stock('ITEM-B', quantity=2)

        with pytest.raises(InsufficientStock) as exc_info:
            reservation_manager.reserve_for_order('ORDER-1', WAREHOUSE, [('ITEM-A', 4), ('ITEM-B', 6)])

        assert exc_info.value.item_id == 'ITEM-B'
        assert stock_snapshot('ITEM-A') == (10, 0)
        assert stock_snapshot('ITEM-B') == (2, 0)
        assert reservation_manager.list_for_order('ORDER-1') == []

    def test_compensation_releases_earlier_lines_inside_outer_unit_of_work(self, reservation_manager):
        create_test_stock('ITEM-A', quantity=10)
        create_test_stock('ITEM-B', quantity=2)

        @transactional('test.outer')
        def attempt():
            try:
                reservation_manager.reserve_for_order('ORDER-1', WAREHOUSE, [('ITEM-A', 4), ('ITEM-B', 6)])
            except InsufficientStock as e:
                return e

        # The outer unit of work commits; nothing from the failed call may survive it.
        error = attempt()

        assert error.item_id == 'ITEM-B'
        assert reservation_manager.list_for_order('ORDER-1') == []
        assert stock_snapshot('ITEM-A') == (10, 0)
        assert_reservation_invariant('ITEM-A')

    def test_invalid_lines_rejected_before_reserving(self, reservation_manager):
        create_test_stock(quantity=10)

        with pytest.raises(ValueError):
            reservation_manager.reserve_for_order('ORDER-1', WAREHOUSE, [(ITEM, 3), ('ITEM-B', 0)])
        with pytest.raises(ValueError):
            reservation_manager.reserve_for_order('ORDER-1', WAREHOUSE, [])

        assert stock_snapshot() == (10, 0)

    def test_missing_stock_record(self, reservation_manager):
        with pytest.raises(NotFound):
            reservation_manager.reserve_for_order('ORDER-1', WAREHOUSE, [('UNKNOWN', 1)])


class TestConsumeReservation:
    """Test consuming reservations across shipments."""

    def test_partial_then_full_consumption(self, reservation_manager):
        create_test_stock(quantity=20)
        reservation = reservation_manager.reserve_for_order('ORDER-1', WAREHOUSE, [(ITEM, 10)])[0]

        reservation, movement = reservation_manager.consume_reservation(reservation.id, 4)

        assert reservation.state == ReservationState.ACTIVE
        assert reservation.quantity_remaining == 6
        assert movement.movement_type == MovementType.CONSUMPTION
        assert movement.quantity == -4
        assert movement.reservation_id == reservation.id
        assert movement.reference_id == 'ORDER-1'
        assert (movement.balance_on_hand, movement.balance_reserved) == (16, 6)
        assert stock_snapshot() == (16, 6)
        assert_reservation_invariant()

        reservation, _ = reservation_manager.consume_reservation(reservation.id, 6)

        assert reservation.state == ReservationState.CONSUMED
        assert reservation.consumed_at is not None
        assert stock_snapshot() == (10, 0)
        assert_reservation_invariant()

    def test_consuming_more_than_remaining(self, reservation_manager):
        create_test_stock(quantity=20)
        reservation = reservation_manager.reserve_for_order('ORDER-1', WAREHOUSE, [(ITEM, 5)])[0]

        with pytest.raises(InsufficientStock):
            reservation_manager.consume_reservation(reservation.id, 6)

        assert stock_snapshot() == (20, 5)
        assert reservation_manager.get_reservation(reservation.id).quantity_consumed == 0

    def test_consuming_settled_reservation(self, reservation_manager):
        create_test_stock(quantity=20)
        reservation = reservation_manager.reserve_for_order('ORDER-1', WAREHOUSE, [(ITEM, 5)])[0]
        reservation_manager.consume_reservation(reservation.id, 5)

        with pytest.raises(InvalidTransition):
            reservation_manager.consume_reservation(reservation.id, 1)

        assert stock_snapshot() == (15, 0)

    def test_consume_missing_reservation(self, reservation_manager):
        with pytest.raises(NotFound):
            reservation_manager.consume_reservation('missing', 1)


class TestReleaseReservation:
    """Test releasing reservations."""

    def test_release_returns_quantity(self, reservation_manager):
        create_test_stock(quantity=20)
        reservation = reservation_manager.reserve_for_order('ORDER-1', WAREHOUSE, [(ITEM, 10)])[0]

        reservation, movement = reservation_manager.release_reservation(reservation.id)

        assert reservation.state == ReservationState.RELEASED
        assert reservation.released_at is not None
        assert reservation.quantity_released == 10
        assert movement.movement_type == MovementType.RELEASE_NOOP
        assert movement.quantity == 0
        assert stock_snapshot() == (20, 0)
        assert_reservation_invariant()

    def test_release_after_partial_consumption(self, reservation_manager):
        create_test_stock(quantity=20)
        reservation = reservation_manager.reserve_for_order('ORDER-1', WAREHOUSE, [(ITEM, 10)])[0]
        reservation_manager.consume_reservation(reservation.id, 4)

        reservation, _ = reservation_manager.release_reservation(reservation.id)

        assert reservation.quantity_consumed == 4
        assert reservation.quantity_released == 6
        assert stock_snapshot() == (16, 0)

    def test_release_is_noop_when_already_settled(self, reservation_manager, movement_log):
        create_test_stock(quantity=20)
        reservation = reservation_manager.reserve_for_order('ORDER-1', WAREHOUSE, [(ITEM, 10)])[0]
        reservation_manager.release_reservation(reservation.id)
        entries_before = len(movement_log.find_by_reference('ORDER-1'))

        reservation, movement = reservation_manager.release_reservation(reservation.id)

        assert movement is None
        assert reservation.state == ReservationState.RELEASED
        assert len(movement_log.find_by_reference('ORDER-1')) == entries_before
        assert stock_snapshot() == (20, 0)

    def test_list_for_order_by_state(self, reservation_manager):
        create_test_stock('ITEM-A', quantity=10)
        create_test_stock('ITEM-B', quantity=10)
        first, second = reservation_manager.reserve_for_order(
            'ORDER-1', WAREHOUSE, [('ITEM-A', 1), ('ITEM-B', 1)]
        )
        reservation_manager.release_reservation(first.id)

        active = reservation_manager.list_for_order('ORDER-1', state=ReservationState.ACTIVE)
        released = reservation_manager.list_for_order('ORDER-1', state=ReservationState.RELEASED)

        assert [r.id for r in active] == [second.id]
        assert [r.id for r in released] == [first.id]
