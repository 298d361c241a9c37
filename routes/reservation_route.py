from datetime import date
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from fastapi.encoders import jsonable_encoder

import booking
from errors import NotFoundError, StorageError
from models import ReservationCreate, ReservationUpdate, ReservationStatus
from notifications import notify_reservation_cancelled, notify_reservation_confirmed
from storage import ReservationStore, customer_fields, get_store

reservation_router = APIRouter(
    prefix="/reservations",
    tags=["Reservation"]
)


def _customer_or_none(store: ReservationStore, customer_id: int):
    # runs after the reservation is committed, so a failed lookup only skips the email
    try:
        customer = store.get_customer(customer_id)
    except StorageError:
        return None
    return customer_fields(customer) if customer else None


# must stay above /reservations/{id}
@reservation_router.get("/availability", tags=["Reservation"])
def check_availability(
    restaurant_id: Optional[int] = Query(None),
    reservation_date: Optional[date] = Query(None, alias="date"),
    time: Optional[str] = Query(None),
    party_size: Optional[int] = Query(None),
    store: ReservationStore = Depends(get_store),
):
    """
    Checks whether a restaurant can seat a party at a given date and time.

    Args:
        restaurant_id (int): The restaurant to check.
        date (date): Calendar date, YYYY-MM-DD.
        time (str): Wall clock time, HH:MM.
        party_size (int): Number of guests.

    Returns:
        dict: Availability flag, free table count and alternative times.
    """
    result = booking.check_availability(store, restaurant_id, reservation_date, time, party_size)
    return {"success": True, **result.model_dump(exclude_none=True)}


@reservation_router.post("", status_code=status.HTTP_201_CREATED, tags=["Reservation"])
def create_reservation(
    reservation: ReservationCreate,
    background_tasks: BackgroundTasks,
    store: ReservationStore = Depends(get_store),
):
    """
    Books the smallest suitable table and queues the confirmation email.

    Args:
        reservation (ReservationCreate): The booking request.

    Returns:
        dict: A success flag and the reservation with restaurant details.
    """
    created = booking.create_reservation(store, reservation)
    details = store.get_reservation_details(created.id)

    background_tasks.add_task(
        notify_reservation_confirmed, details, _customer_or_none(store, reservation.customer_id)
    )

    return {
        "success": True,
        "message": "Reservation created successfully",
        "reservation": jsonable_encoder(details)
    }


@reservation_router.get("/customer/{customer_id}", tags=["Reservation"])
def get_customer_reservations(customer_id: int, store: ReservationStore = Depends(get_store)):
    reservations = booking.list_customer_reservations(store, customer_id)
    return {"success": True, "reservations": jsonable_encoder(reservations)}


@reservation_router.get("/restaurant/{restaurant_id}", tags=["Reservation"])
def get_restaurant_reservations(
    restaurant_id: int,
    reservation_date: Optional[date] = Query(None, alias="date"),
    store: ReservationStore = Depends(get_store),
):
    """
    Lists a restaurant's reservations for one day, earliest first.

    Args:
        restaurant_id (int): The restaurant.
        date (date, optional): Day to list, defaults to today.

    Returns:
        dict: A success flag and the reservations with customer contact fields.
    """
    reservations = booking.list_restaurant_reservations(store, restaurant_id, reservation_date)
    return {"success": True, "reservations": jsonable_encoder(reservations)}


@reservation_router.get("/{id}", tags=["Reservation"])
def get_reservation(id: int, store: ReservationStore = Depends(get_store)):
    details = store.get_reservation_details(id)
    if details is None:
        raise NotFoundError("Reservation not found")
    return {"success": True, "reservation": jsonable_encoder(details)}


def _updated_response(store: ReservationStore, background_tasks: BackgroundTasks, reservation, status_changed: bool):
    details = store.get_reservation_details(reservation.id)

    if status_changed and reservation.status == ReservationStatus.CANCELLED.value:
        background_tasks.add_task(
            notify_reservation_cancelled, details, _customer_or_none(store, reservation.customer_id)
        )

    return {
        "success": True,
        "message": "Reservation updated successfully",
        "reservation": jsonable_encoder(details)
    }


@reservation_router.put("/{id}", tags=["Reservation"])
def update_reservation(
    id: int,
    updated_reservation: ReservationUpdate,
    background_tasks: BackgroundTasks,
    store: ReservationStore = Depends(get_store),
):
    """
    Updates the status and/or special request of a reservation.

    Args:
        id (int): The ID of the reservation to update.
        updated_reservation (ReservationUpdate): Fields to change.

    Returns:
        dict: A success flag and the updated reservation.
    """
    changes = updated_reservation.model_dump(exclude_unset=True)
    reservation = booking.update_reservation(store, id, changes)
    return _updated_response(store, background_tasks, reservation, updated_reservation.status is not None)


@reservation_router.delete("/{id}", tags=["Reservation"])
def cancel_reservation(
    id: int,
    background_tasks: BackgroundTasks,
    store: ReservationStore = Depends(get_store),
):
    reservation = booking.cancel_reservation(store, id)
    return _updated_response(store, background_tasks, reservation, True)
