from unittest import mock

import pytest

import booking
from errors import InvalidRequestError, NoSuitableTableError, NotFoundError, SlotUnavailableError
from models import ReservationCreate, ReservationStatus
from storage import ReservationStore, SqlAlchemyReservationStore
from test.helpers import (
    MONDAY,
    SUNDAY,
    create_test_reservation,
    create_test_restaurant,
    create_test_table,
    create_test_user,
)

MONDAY_HOURS = {"Monday": ("11:00", "22:00")}


@pytest.fixture
def store(db):
    return SqlAlchemyReservationStore(db)


@pytest.fixture
def customer(db):
    return create_test_user(db)


def _booking(restaurant_id, customer_id, reservation_date=MONDAY, reservation_time="13:00", party_size=2, **extra):
    return ReservationCreate(
        customer_id=customer_id,
        restaurant_id=restaurant_id,
        reservation_date=reservation_date,
        reservation_time=reservation_time,
        party_size=party_size,
        **extra,
    )


# =========================================================
# Slot generation
# =========================================================
def test_alternative_times_skip_requested_time():
    assert booking.alternative_times("13:00") == [
        "11:00", "11:30", "12:00", "12:30", "13:30", "14:00", "14:30", "15:00"
    ]


def test_alternative_times_roll_minutes_into_hours():
    assert booking.alternative_times("13:45") == [
        "11:45", "12:15", "12:45", "13:15", "14:15", "14:45", "15:15", "15:45"
    ]


def test_alternative_times_stay_within_the_day():
    assert booking.alternative_times("00:30") == ["00:00", "01:00", "01:30", "02:00", "02:30"]
    assert booking.alternative_times("23:30") == ["21:30", "22:00", "22:30", "23:00"]


def test_weekday_name():
    assert booking.weekday_name(MONDAY) == "Monday"
    assert booking.weekday_name(SUNDAY) == "Sunday"


# =========================================================
# Candidate tables
# =========================================================
def test_tables_by_capacity_are_sufficient_and_ascending(db, store):
    restaurant = create_test_restaurant(db)
    for capacity in (6, 2, 4, 8):
        create_test_table(db, restaurant.id, capacity)

    tables = store.get_tables_by_capacity(restaurant.id, 3)

    assert [t.capacity for t in tables] == [4, 6, 8]


def test_party_larger_than_every_table_does_no_conflict_check(db, store, customer):
    restaurant = create_test_restaurant(db, hours=MONDAY_HOURS)
    create_test_table(db, restaurant.id, 10)

    with mock.patch.object(store, "get_active_reservations", wraps=store.get_active_reservations) as spy:
        result = booking.check_availability(store, restaurant.id, MONDAY, "19:00", 12)
        with pytest.raises(NoSuitableTableError):
            booking.create_reservation(store, _booking(restaurant.id, customer.id, party_size=12))

    assert result.available is False
    assert result.message == booking.NO_TABLES_MESSAGE
    assert result.alternative_slots == []
    assert spy.call_count == 0


# =========================================================
# Availability
# =========================================================
def test_partially_booked_slot_is_available(db, store, customer):
    restaurant = create_test_restaurant(db, hours=MONDAY_HOURS)
    small = create_test_table(db, restaurant.id, 2)
    create_test_table(db, restaurant.id, 4)
    create_test_reservation(db, small, customer.id, reservation_time="19:00")

    with mock.patch.object(store, "get_operating_hours", wraps=store.get_operating_hours) as hours_spy:
        result = booking.check_availability(store, restaurant.id, MONDAY, "19:00", 2)

    assert result.available is True
    assert result.available_table_count == 1
    assert result.alternative_slots == []
    hours_spy.assert_not_called()


def test_fully_booked_slot_proposes_free_times_in_generation_order(db, store, customer):
    restaurant = create_test_restaurant(db, hours=MONDAY_HOURS)
    tables = [create_test_table(db, restaurant.id, 2), create_test_table(db, restaurant.id, 4)]
    for booked_time in ("13:00", "12:00", "14:30"):
        for table in tables:
            create_test_reservation(db, table, customer.id, reservation_time=booked_time)

    with mock.patch.object(store, "get_active_reservations", wraps=store.get_active_reservations) as spy:
        result = booking.check_availability(store, restaurant.id, MONDAY, "13:00", 2)

    assert result.available is False
    assert result.available_table_count == 0
    assert result.alternative_slots == ["11:00", "11:30", "12:30", "13:30", "14:00", "15:00"]
    examined = [c.args[2] for c in spy.call_args_list]
    assert examined == ["13:00", "11:00", "11:30", "12:00", "12:30", "13:30", "14:00", "14:30", "15:00"]
    for c in spy.call_args_list:
        assert sorted(c.args[0]) == sorted(t.id for t in tables)


def test_alternatives_respect_operating_hours(db, store, customer):
    restaurant = create_test_restaurant(db, hours={"Monday": ("12:00", "14:00")})
    table = create_test_table(db, restaurant.id, 2)
    create_test_reservation(db, table, customer.id, reservation_time="13:00")

    result = booking.check_availability(store, restaurant.id, MONDAY, "13:00", 2)

    assert result.alternative_slots == ["12:00", "12:30", "13:30", "14:00"]


def test_no_alternatives_when_closed_that_day(db, store, customer):
    restaurant = create_test_restaurant(db, hours=MONDAY_HOURS)
    table = create_test_table(db, restaurant.id, 2)
    create_test_reservation(db, table, customer.id, reservation_date=SUNDAY, reservation_time="13:00")

    result = booking.check_availability(store, restaurant.id, SUNDAY, "13:00", 2)

    assert result.available is False
    assert result.alternative_slots == []


def test_cancelled_and_completed_reservations_never_block(db, store, customer):
    restaurant = create_test_restaurant(db, hours=MONDAY_HOURS)
    small = create_test_table(db, restaurant.id, 2)
    large = create_test_table(db, restaurant.id, 4)
    create_test_reservation(db, small, customer.id, status=ReservationStatus.CANCELLED.value)
    create_test_reservation(db, large, customer.id, status=ReservationStatus.COMPLETED.value)

    result = booking.check_availability(store, restaurant.id, MONDAY, "13:00", 2)
    reservation = booking.create_reservation(store, _booking(restaurant.id, customer.id))

    assert result.available_table_count == 2
    assert reservation.table_id == small.id


def test_pending_reservation_blocks(db, store, customer):
    restaurant = create_test_restaurant(db, hours=MONDAY_HOURS)
    table = create_test_table(db, restaurant.id, 2)
    create_test_reservation(db, table, customer.id, status=ReservationStatus.PENDING.value)

    result = booking.check_availability(store, restaurant.id, MONDAY, "13:00", 2)

    assert result.available is False


def test_unapproved_or_missing_restaurant_is_not_found(db, store, customer):
    restaurant = create_test_restaurant(db, is_approved=False)
    create_test_table(db, restaurant.id, 4)

    with pytest.raises(NotFoundError):
        booking.check_availability(store, restaurant.id, MONDAY, "13:00", 2)
    with pytest.raises(NotFoundError):
        booking.create_reservation(store, _booking(restaurant.id, customer.id))
    with pytest.raises(NotFoundError):
        booking.check_availability(store, 999, MONDAY, "13:00", 2)


@pytest.mark.parametrize("params", [
    (None, MONDAY, "13:00", 2),
    (1, None, "13:00", 2),
    (1, MONDAY, None, 2),
    (1, MONDAY, "", 2),
    (1, MONDAY, "13:00", None),
    (1, MONDAY, "7pm", 2),
    (1, MONDAY, "13:00", 0),
])
def test_invalid_request_touches_no_storage(params):
    store = mock.create_autospec(ReservationStore, instance=True)

    with pytest.raises(InvalidRequestError):
        booking.check_availability(store, *params)

    assert store.method_calls == []


# =========================================================
# Booking
# =========================================================
def test_create_reservation_assigns_smallest_table(db, store, customer):
    restaurant = create_test_restaurant(db, id=5)
    tables = {capacity: create_test_table(db, restaurant.id, capacity) for capacity in (4, 2, 6)}

    reservation = booking.create_reservation(store, _booking(
        5, customer.id, reservation_date=SUNDAY, reservation_time="19:00", party_size=2,
        special_request="Window seat",
    ))

    assert reservation.table_id == tables[2].id
    assert reservation.status == ReservationStatus.CONFIRMED.value
    assert reservation.restaurant_id == 5
    assert reservation.special_request == "Window seat"


def test_smallest_table_taken_is_refused_without_trying_larger(db, store, customer):
    restaurant = create_test_restaurant(db)
    small = create_test_table(db, restaurant.id, 2)
    create_test_table(db, restaurant.id, 4)
    create_test_reservation(db, small, customer.id)

    with pytest.raises(SlotUnavailableError):
        booking.create_reservation(store, _booking(restaurant.id, customer.id))


def test_second_booking_for_same_slot_is_rejected(db, store, customer):
    restaurant = create_test_restaurant(db)
    table = create_test_table(db, restaurant.id, 2)

    booking.create_reservation(store, _booking(restaurant.id, customer.id))
    with pytest.raises(SlotUnavailableError):
        booking.create_reservation(store, _booking(restaurant.id, customer.id))

    assert len(store.get_active_reservations([table.id], MONDAY, "13:00")) == 1


def test_created_reservation_reads_back_as_active(db, store, customer):
    restaurant = create_test_restaurant(db)
    table = create_test_table(db, restaurant.id, 2)

    reservation = booking.create_reservation(store, _booking(restaurant.id, customer.id, reservation_time="20:15"))
    active = store.get_active_reservations([table.id], MONDAY, "20:15")

    assert [r.id for r in active] == [reservation.id]


# =========================================================
# Reservation management
# =========================================================
def test_cancel_frees_the_slot(db, store, customer):
    restaurant = create_test_restaurant(db)
    create_test_table(db, restaurant.id, 2)
    reservation = booking.create_reservation(store, _booking(restaurant.id, customer.id))

    cancelled = booking.cancel_reservation(store, reservation.id)
    rebooked = booking.create_reservation(store, _booking(restaurant.id, customer.id))

    assert cancelled.status == ReservationStatus.CANCELLED.value
    assert rebooked.id != reservation.id


def test_update_reservation_requires_fields(db, store, customer):
    restaurant = create_test_restaurant(db)
    table = create_test_table(db, restaurant.id, 2)
    reservation = create_test_reservation(db, table, customer.id)

    with pytest.raises(InvalidRequestError):
        booking.update_reservation(store, reservation.id, {})
    with pytest.raises(InvalidRequestError):
        booking.update_reservation(store, reservation.id, {"status": None})
    with pytest.raises(NotFoundError):
        booking.update_reservation(store, 999, {"special_request": "Cake"})


def test_update_special_request_keeps_status(db, store, customer):
    restaurant = create_test_restaurant(db)
    table = create_test_table(db, restaurant.id, 2)
    reservation = create_test_reservation(db, table, customer.id)

    updated = booking.update_reservation(store, reservation.id, {"special_request": "Birthday cake"})

    assert updated.special_request == "Birthday cake"
    assert updated.status == ReservationStatus.CONFIRMED.value


def test_restaurant_reservations_require_existing_restaurant(store):
    with pytest.raises(NotFoundError):
        booking.list_restaurant_reservations(store, 999, MONDAY)


def test_reactivating_into_a_taken_slot_is_refused(db, store, customer):
    restaurant = create_test_restaurant(db)
    table = create_test_table(db, restaurant.id, 2)
    first = booking.create_reservation(store, _booking(restaurant.id, customer.id, reservation_time="19:00"))
    booking.cancel_reservation(store, first.id)
    booking.create_reservation(store, _booking(restaurant.id, customer.id, reservation_time="19:00"))

    for status in (ReservationStatus.CONFIRMED, ReservationStatus.PENDING):
        with pytest.raises(SlotUnavailableError):
            booking.update_reservation(store, first.id, {"status": status})

    assert len(store.get_active_reservations([table.id], MONDAY, "19:00")) == 1
    assert store.get_reservation(first.id).status == ReservationStatus.CANCELLED.value


def test_reactivating_into_a_free_slot_is_allowed(db, store, customer):
    restaurant = create_test_restaurant(db)
    table = create_test_table(db, restaurant.id, 2)
    reservation = create_test_reservation(db, table, customer.id, status=ReservationStatus.CANCELLED.value)

    updated = booking.update_reservation(store, reservation.id, {"status": ReservationStatus.CONFIRMED})

    assert updated.status == ReservationStatus.CONFIRMED.value


def test_active_to_active_update_skips_conflict_check(db, store, customer):
    restaurant = create_test_restaurant(db)
    table = create_test_table(db, restaurant.id, 2)
    reservation = create_test_reservation(db, table, customer.id, status=ReservationStatus.PENDING.value)

    with mock.patch.object(store, "get_active_reservations", wraps=store.get_active_reservations) as spy:
        updated = booking.update_reservation(store, reservation.id, {"status": ReservationStatus.CONFIRMED})

    assert updated.status == ReservationStatus.CONFIRMED.value
    spy.assert_not_called()
