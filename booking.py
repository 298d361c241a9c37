"""
Table availability and booking.

Both entry points resolve the restaurant, then the candidate tables (every
table seating the party, smallest first), then look for pending/confirmed
reservations on those tables at the requested slot.

- `check_availability` counts the free candidate tables and, when none is
  free, proposes other times within two hours of the request that fall inside
  the day's operating hours and still have a free table.
- `create_reservation` always takes the smallest candidate table. If that
  table is taken the booking is refused, even when a larger one is free.
"""

import re
from datetime import date
from typing import List, Optional

from errors import (
    InvalidRequestError,
    NoSuitableTableError,
    NotFoundError,
    SlotUnavailableError,
)
from logging_config import logger
from models import (
    ACTIVE_STATUSES,
    Availability,
    ReservationCreate,
    ReservationDB,
    ReservationStatus,
    TIME_PATTERN,
    TableDB,
)
from storage import ReservationStore

WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")

SLOT_STEP_MINUTES = 30
SLOT_SEARCH_STEPS = 4

NO_TABLES_MESSAGE = "No tables available for this party size"

_time_re = re.compile(TIME_PATTERN)


def weekday_name(day: date) -> str:
    return WEEKDAYS[day.weekday()]


def alternative_times(requested_time: str) -> List[str]:
    """
    Candidate times around a requested "HH:MM", in 30 minute steps.

    Offsets run from -4 to +4 steps with the requested time itself left out,
    in that order. Candidates that would fall on the previous or next day are
    dropped.

    Args:
        requested_time (str): Zero-padded 24-hour time.

    Returns:
        list: Zero-padded "HH:MM" strings.
    """
    hour, minute = (int(part) for part in requested_time.split(":"))
    times = []
    for step in range(-SLOT_SEARCH_STEPS, SLOT_SEARCH_STEPS + 1):
        if step == 0:
            continue
        total_minutes = minute + step * SLOT_STEP_MINUTES
        new_hour = hour + total_minutes // 60
        new_minute = total_minutes % 60
        if not 0 <= new_hour <= 23:
            continue
        times.append(f"{new_hour:02d}:{new_minute:02d}")
    return times


def _validate_slot(reservation_time: str, party_size: int):
    if not _time_re.match(reservation_time):
        raise InvalidRequestError("Time must be in HH:MM 24-hour format")
    if party_size < 1:
        raise InvalidRequestError("Party size must be at least 1")


def _resolve_candidates(store: ReservationStore, restaurant_id: int, party_size: int) -> List[TableDB]:
    restaurant = store.get_approved_restaurant(restaurant_id)
    if restaurant is None:
        raise NotFoundError()
    return store.get_tables_by_capacity(restaurant_id, party_size)


def _free_tables(store: ReservationStore, tables: List[TableDB], reservation_date: date, reservation_time: str) -> List[TableDB]:
    reservations = store.get_active_reservations([t.id for t in tables], reservation_date, reservation_time)
    booked = {r.table_id for r in reservations}
    return [t for t in tables if t.id not in booked]


def find_alternative_slots(
    store: ReservationStore,
    restaurant_id: int,
    tables: List[TableDB],
    reservation_date: date,
    reservation_time: str,
) -> List[str]:
    hours = store.get_operating_hours(restaurant_id, weekday_name(reservation_date))
    if hours is None:
        return []

    opening = hours.opening_time[:5]
    closing = hours.closing_time[:5]

    slots = []
    for candidate in alternative_times(reservation_time):
        # zero-padded "HH:MM" strings order the same way as the times they denote
        if not opening <= candidate <= closing:
            continue
        if _free_tables(store, tables, reservation_date, candidate):
            slots.append(candidate)
    return slots


def check_availability(
    store: ReservationStore,
    restaurant_id: Optional[int],
    reservation_date: Optional[date],
    reservation_time: Optional[str],
    party_size: Optional[int],
) -> Availability:
    """
    Read-only availability query for one restaurant and slot.

    Raises:
        InvalidRequestError: a parameter is missing or malformed.
        NotFoundError: the restaurant is missing or not approved.
    """
    if restaurant_id is None or reservation_date is None or not reservation_time or party_size is None:
        raise InvalidRequestError()
    _validate_slot(reservation_time, party_size)

    tables = _resolve_candidates(store, restaurant_id, party_size)
    if not tables:
        return Availability(available=False, message=NO_TABLES_MESSAGE)

    free = _free_tables(store, tables, reservation_date, reservation_time)

    alternative_slots = []
    if not free:
        alternative_slots = find_alternative_slots(
            store, restaurant_id, tables, reservation_date, reservation_time
        )

    return Availability(
        available=len(free) > 0,
        available_table_count=len(free),
        alternative_slots=alternative_slots,
    )


def create_reservation(store: ReservationStore, booking: ReservationCreate) -> ReservationDB:
    """
    Assign the smallest suitable table and book it as confirmed.

    Args:
        store (ReservationStore): Data access for this request.
        booking (ReservationCreate): Customer, restaurant, slot and party size.

    Returns:
        ReservationDB: The persisted reservation.

    Raises:
        NotFoundError, NoSuitableTableError, SlotUnavailableError, StorageError
    """
    _validate_slot(booking.reservation_time, booking.party_size)

    tables = _resolve_candidates(store, booking.restaurant_id, booking.party_size)
    if not tables:
        logger.info(
            f"Restaurant {booking.restaurant_id} has no table for a party of {booking.party_size}"
        )
        raise NoSuitableTableError()

    table = tables[0]
    conflicts = store.get_active_reservations(
        [table.id], booking.reservation_date, booking.reservation_time
    )
    if conflicts:
        logger.info(
            f"Table {table.id} already booked at {booking.reservation_date} {booking.reservation_time}"
        )
        raise SlotUnavailableError()

    reservation = store.insert_reservation(
        customer_id=booking.customer_id,
        restaurant_id=booking.restaurant_id,
        table_id=table.id,
        reservation_date=booking.reservation_date,
        reservation_time=booking.reservation_time,
        party_size=booking.party_size,
        special_request=booking.special_request,
        status=ReservationStatus.CONFIRMED.value,
    )
    logger.info(
        f"Reservation {reservation.id} confirmed on table {table.id} for customer {booking.customer_id}"
    )
    return reservation


def _ensure_slot_free(store: ReservationStore, reservation: ReservationDB):
    conflicts = store.get_active_reservations(
        [reservation.table_id], reservation.reservation_date, reservation.reservation_time
    )
    if any(r.id != reservation.id for r in conflicts):
        logger.info(
            f"Reservation {reservation.id} cannot be reactivated, table {reservation.table_id} "
            f"is booked at {reservation.reservation_date} {reservation.reservation_time}"
        )
        raise SlotUnavailableError()


def update_reservation(store: ReservationStore, reservation_id: int, changes: dict) -> ReservationDB:
    """
    Change status and/or special request. Cancelling is a status change like any other.

    Moving a cancelled or completed reservation back to pending/confirmed is
    refused with SlotUnavailableError while another active booking holds its slot.
    """
    if changes.get("status") is None:
        changes = {k: v for k, v in changes.items() if k != "status"}
    if not changes:
        raise InvalidRequestError("No fields to update")

    reservation = store.get_reservation(reservation_id)
    if reservation is None:
        raise NotFoundError("Reservation not found")

    if isinstance(changes.get("status"), ReservationStatus):
        changes = {**changes, "status": changes["status"].value}

    if changes.get("status") in ACTIVE_STATUSES and reservation.status not in ACTIVE_STATUSES:
        _ensure_slot_free(store, reservation)

    reservation = store.update_reservation(reservation, changes)
    logger.info(f"Reservation {reservation_id} updated: {sorted(changes)}")
    return reservation


def cancel_reservation(store: ReservationStore, reservation_id: int) -> ReservationDB:
    return update_reservation(store, reservation_id, {"status": ReservationStatus.CANCELLED})


def list_customer_reservations(store: ReservationStore, customer_id: int) -> List[dict]:
    return store.list_customer_reservations(customer_id)


def list_restaurant_reservations(store: ReservationStore, restaurant_id: int, reservation_date: Optional[date] = None) -> List[dict]:
    if store.get_restaurant(restaurant_id) is None:
        raise NotFoundError("Restaurant not found")
    return store.list_restaurant_reservations(restaurant_id, reservation_date or date.today())
