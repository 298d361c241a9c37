from datetime import date

from sqlalchemy.orm import Session

from models import OperatingHoursDB, ReservationDB, RestaurantDB, TableDB, UserDB

MONDAY = date(2025, 6, 2)
SUNDAY = date(2025, 6, 1)


# ---------------------------------------------------------
# Helper: User anlegen
# ---------------------------------------------------------
def create_test_user(db: Session, first_name="John", last_name="Doe", email="john.doe@mail.com"):
    user = UserDB(first_name=first_name, last_name=last_name, email=email, phone="555-0100", role="customer")
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


# ---------------------------------------------------------
# Helper: Restaurant mit Öffnungszeiten anlegen
# ---------------------------------------------------------
def create_test_restaurant(db: Session, name="Trattoria", is_approved=True, hours=None, id=None):
    restaurant = RestaurantDB(
        id=id,
        name=name,
        address_line1="1 Main Street",
        city="Springfield",
        state="IL",
        zip_code="62701",
        is_approved=is_approved,
    )
    db.add(restaurant)
    db.commit()
    db.refresh(restaurant)

    for day, (opening, closing) in (hours or {}).items():
        db.add(OperatingHoursDB(
            restaurant_id=restaurant.id, day_of_week=day, opening_time=opening, closing_time=closing
        ))
    db.commit()
    return restaurant


# ---------------------------------------------------------
# Helper: Tisch anlegen
# ---------------------------------------------------------
def create_test_table(db: Session, restaurant_id, capacity=4, table_number=None):
    table = TableDB(restaurant_id=restaurant_id, capacity=capacity, table_number=table_number or f"T{capacity}")
    db.add(table)
    db.commit()
    db.refresh(table)
    return table


# ---------------------------------------------------------
# Helper: Reservierung anlegen
# ---------------------------------------------------------
def create_test_reservation(db: Session, table, customer_id, reservation_date=MONDAY, reservation_time="13:00", party_size=2, status="confirmed"):
    reservation = ReservationDB(
        customer_id=customer_id,
        restaurant_id=table.restaurant_id,
        table_id=table.id,
        reservation_date=reservation_date,
        reservation_time=reservation_time,
        party_size=party_size,
        status=status,
    )
    db.add(reservation)
    db.commit()
    db.refresh(reservation)
    return reservation
