"""
Data access for the booking engine.

`ReservationStore` is what the engine talks to; `SqlAlchemyReservationStore`
runs the queries on a SQLAlchemy session. Database failures never leave this
module as SQLAlchemy exceptions: they are logged and re-raised as
`StorageError` (or `SlotUnavailableError` when the unique active-slot index
rejects an insert).
"""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import date, datetime
from typing import Iterable, List, Optional

from fastapi import Depends
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from database import get_db
from errors import SlotUnavailableError, StorageError
from logging_config import logger
from models import (
    ACTIVE_STATUSES,
    OperatingHoursDB,
    ReservationDB,
    ReservationStatus,
    RestaurantDB,
    TableDB,
    UserDB,
)

RESTAURANT_DISPLAY_FIELDS = ("address_line1", "address_line2", "city", "state", "zip_code")
CUSTOMER_FIELDS = ("first_name", "last_name", "email", "phone")


def reservation_fields(reservation: ReservationDB) -> dict:
    return {
        "id": reservation.id,
        "customer_id": reservation.customer_id,
        "restaurant_id": reservation.restaurant_id,
        "table_id": reservation.table_id,
        "reservation_date": reservation.reservation_date,
        "reservation_time": reservation.reservation_time,
        "party_size": reservation.party_size,
        "status": reservation.status,
        "special_request": reservation.special_request,
        "created_at": reservation.created_at,
        "updated_at": reservation.updated_at,
    }


def customer_fields(user: UserDB) -> dict:
    data = {"id": user.id}
    data.update({field: getattr(user, field) for field in CUSTOMER_FIELDS})
    return data


def table_fields(table: TableDB) -> dict:
    return {
        "id": table.id,
        "restaurant_id": table.restaurant_id,
        "table_number": table.table_number,
        "capacity": table.capacity,
    }


class ReservationStore(ABC):
    """Queries and writes the booking engine depends on."""

    @abstractmethod
    def get_approved_restaurant(self, restaurant_id: int) -> Optional[RestaurantDB]:
        """Restaurant with this id, or None if it is missing or not approved."""

    @abstractmethod
    def get_restaurant(self, restaurant_id: int) -> Optional[RestaurantDB]:
        """Restaurant with this id regardless of its approval state."""

    @abstractmethod
    def get_operating_hours(self, restaurant_id: int, weekday: str) -> Optional[OperatingHoursDB]:
        """Opening/closing row for a weekday name, None when closed that day."""

    @abstractmethod
    def get_tables_by_capacity(self, restaurant_id: int, min_capacity: int) -> List[TableDB]:
        """Tables seating at least `min_capacity`, smallest capacity first."""

    @abstractmethod
    def get_active_reservations(
        self, table_ids: Iterable[int], reservation_date: date, reservation_time: str
    ) -> List[ReservationDB]:
        """Pending or confirmed reservations on these tables at this slot."""

    @abstractmethod
    def insert_reservation(
        self,
        customer_id: int,
        restaurant_id: int,
        table_id: int,
        reservation_date: date,
        reservation_time: str,
        party_size: int,
        special_request: Optional[str],
        status: str = ReservationStatus.CONFIRMED.value,
    ) -> ReservationDB:
        """Persist one reservation in a single commit."""

    @abstractmethod
    def get_reservation(self, reservation_id: int) -> Optional[ReservationDB]: ...

    @abstractmethod
    def get_reservation_details(self, reservation_id: int) -> Optional[dict]:
        """Reservation joined with the restaurant's display fields."""

    @abstractmethod
    def get_customer(self, customer_id: int) -> Optional[UserDB]: ...

    @abstractmethod
    def list_customer_reservations(self, customer_id: int) -> List[dict]: ...

    @abstractmethod
    def list_restaurant_reservations(self, restaurant_id: int, reservation_date: date) -> List[dict]: ...

    @abstractmethod
    def update_reservation(self, reservation: ReservationDB, changes: dict) -> ReservationDB: ...

    @abstractmethod
    def list_tables(self, restaurant_id: int) -> List[TableDB]: ...

    @abstractmethod
    def get_table(self, table_id: int) -> Optional[TableDB]: ...

    @abstractmethod
    def insert_table(self, restaurant_id: int, table_number: str, capacity: int) -> TableDB: ...

    @abstractmethod
    def update_table(self, table: TableDB, changes: dict) -> TableDB: ...

    @abstractmethod
    def delete_table(self, table: TableDB) -> None: ...


class SqlAlchemyReservationStore(ReservationStore):

    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def _storage_errors(self, operation: str):
        try:
            yield
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception(f"Storage failure during {operation}: {e}")
            raise StorageError() from e

    def get_approved_restaurant(self, restaurant_id):
        with self._storage_errors("get_approved_restaurant"):
            return self.db.query(RestaurantDB).filter(
                RestaurantDB.id == restaurant_id,
                RestaurantDB.is_approved.is_(True)
            ).first()

    def get_restaurant(self, restaurant_id):
        with self._storage_errors("get_restaurant"):
            return self.db.query(RestaurantDB).filter(RestaurantDB.id == restaurant_id).first()

    def get_operating_hours(self, restaurant_id, weekday):
        with self._storage_errors("get_operating_hours"):
            return self.db.query(OperatingHoursDB).filter(
                OperatingHoursDB.restaurant_id == restaurant_id,
                OperatingHoursDB.day_of_week == weekday
            ).first()

    def get_tables_by_capacity(self, restaurant_id, min_capacity):
        with self._storage_errors("get_tables_by_capacity"):
            return self.db.query(TableDB).filter(
                TableDB.restaurant_id == restaurant_id,
                TableDB.capacity >= min_capacity
            ).order_by(TableDB.capacity.asc(), TableDB.id.asc()).all()

    def get_active_reservations(self, table_ids, reservation_date, reservation_time):
        table_ids = list(table_ids)
        if not table_ids:
            return []
        with self._storage_errors("get_active_reservations"):
            return self.db.query(ReservationDB).filter(
                ReservationDB.table_id.in_(table_ids),
                ReservationDB.reservation_date == reservation_date,
                ReservationDB.reservation_time == reservation_time,
                ReservationDB.status.in_(ACTIVE_STATUSES)
            ).all()

    def insert_reservation(
        self,
        customer_id,
        restaurant_id,
        table_id,
        reservation_date,
        reservation_time,
        party_size,
        special_request,
        status=ReservationStatus.CONFIRMED.value,
    ):
        db_reservation = ReservationDB(
            customer_id=customer_id,
            restaurant_id=restaurant_id,
            table_id=table_id,
            reservation_date=reservation_date,
            reservation_time=reservation_time,
            party_size=party_size,
            special_request=special_request or None,
            status=status,
        )
        try:
            self.db.add(db_reservation)
            self.db.commit()
            self.db.refresh(db_reservation)
        except IntegrityError as e:
            self.db.rollback()
            # the unique active-slot index fires when a concurrent booking won the race
            if self.get_active_reservations([table_id], reservation_date, reservation_time):
                logger.warning(
                    f"Active-slot index rejected table {table_id} "
                    f"at {reservation_date} {reservation_time}"
                )
                raise SlotUnavailableError() from e
            logger.exception(f"Storage failure during insert_reservation: {e}")
            raise StorageError() from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception(f"Storage failure during insert_reservation: {e}")
            raise StorageError() from e
        return db_reservation

    def get_reservation(self, reservation_id):
        with self._storage_errors("get_reservation"):
            return self.db.query(ReservationDB).filter(ReservationDB.id == reservation_id).first()

    def get_reservation_details(self, reservation_id):
        with self._storage_errors("get_reservation_details"):
            row = self.db.query(ReservationDB, RestaurantDB).join(
                RestaurantDB, ReservationDB.restaurant_id == RestaurantDB.id
            ).filter(ReservationDB.id == reservation_id).first()
        if row is None:
            return None
        reservation, restaurant = row
        data = reservation_fields(reservation)
        data["restaurant_name"] = restaurant.name
        data.update({field: getattr(restaurant, field) for field in RESTAURANT_DISPLAY_FIELDS})
        return data

    def get_customer(self, customer_id):
        with self._storage_errors("get_customer"):
            return self.db.query(UserDB).filter(UserDB.id == customer_id).first()

    def list_customer_reservations(self, customer_id):
        with self._storage_errors("list_customer_reservations"):
            rows = self.db.query(ReservationDB, RestaurantDB.name).join(
                RestaurantDB, ReservationDB.restaurant_id == RestaurantDB.id
            ).filter(
                ReservationDB.customer_id == customer_id
            ).order_by(
                ReservationDB.reservation_date.desc(),
                ReservationDB.reservation_time.desc()
            ).all()
        result = []
        for reservation, restaurant_name in rows:
            data = reservation_fields(reservation)
            data["restaurant_name"] = restaurant_name
            result.append(data)
        return result

    def list_restaurant_reservations(self, restaurant_id, reservation_date):
        with self._storage_errors("list_restaurant_reservations"):
            rows = self.db.query(ReservationDB, UserDB).outerjoin(
                UserDB, ReservationDB.customer_id == UserDB.id
            ).filter(
                ReservationDB.restaurant_id == restaurant_id,
                ReservationDB.reservation_date == reservation_date
            ).order_by(ReservationDB.reservation_time.asc()).all()
        result = []
        for reservation, user in rows:
            data = reservation_fields(reservation)
            for field in CUSTOMER_FIELDS:
                data[field] = getattr(user, field) if user else None
            result.append(data)
        return result

    def update_reservation(self, reservation, changes):
        slot = (reservation.table_id, reservation.reservation_date, reservation.reservation_time)
        try:
            for field, value in changes.items():
                setattr(reservation, field, value)
            reservation.updated_at = datetime.utcnow()
            self.db.commit()
            self.db.refresh(reservation)
        except IntegrityError as e:
            self.db.rollback()
            table_id, reservation_date, reservation_time = slot
            # reactivating into a slot another booking now holds
            if self.get_active_reservations([table_id], reservation_date, reservation_time):
                logger.warning(
                    f"Active-slot index rejected update of reservation {reservation.id} "
                    f"on table {table_id} at {reservation_date} {reservation_time}"
                )
                raise SlotUnavailableError() from e
            logger.exception(f"Storage failure during update_reservation: {e}")
            raise StorageError() from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception(f"Storage failure during update_reservation: {e}")
            raise StorageError() from e
        return reservation

    def list_tables(self, restaurant_id):
        with self._storage_errors("list_tables"):
            return self.db.query(TableDB).filter(
                TableDB.restaurant_id == restaurant_id
            ).order_by(TableDB.id.asc()).all()

    def get_table(self, table_id):
        with self._storage_errors("get_table"):
            return self.db.query(TableDB).filter(TableDB.id == table_id).first()

    def insert_table(self, restaurant_id, table_number, capacity):
        db_table = TableDB(restaurant_id=restaurant_id, table_number=table_number, capacity=capacity)
        with self._storage_errors("insert_table"):
            self.db.add(db_table)
            self.db.commit()
            self.db.refresh(db_table)
        return db_table

    def update_table(self, table, changes):
        with self._storage_errors("update_table"):
            for field, value in changes.items():
                setattr(table, field, value)
            self.db.commit()
            self.db.refresh(table)
        return table

    def delete_table(self, table):
        with self._storage_errors("delete_table"):
            self.db.delete(table)
            self.db.commit()


def get_store(db: Session = Depends(get_db)) -> ReservationStore:
    return SqlAlchemyReservationStore(db)
