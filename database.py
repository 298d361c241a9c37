from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from config import DATABASE_URL, ENFORCE_UNIQUE_ACTIVE_SLOT, TESTING
from logging_config import logger
from models import Base

if TESTING:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
else:
    engine = create_engine(DATABASE_URL, pool_pre_ping=True)

SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)

# Partial unique index: at most one pending/confirmed reservation per table and slot.
# Needs a backend with partial indexes (PostgreSQL, SQLite).
UNIQUE_ACTIVE_SLOT_DDL = text(
    "CREATE UNIQUE INDEX IF NOT EXISTS uq_reservations_active_slot "
    "ON reservations (table_id, reservation_date, reservation_time) "
    "WHERE status IN ('pending', 'confirmed')"
)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_unique_active_slot_index(bind=engine):
    with bind.begin() as conn:
        conn.execute(UNIQUE_ACTIVE_SLOT_DDL)
    logger.info("Unique active-slot index enabled on reservations")


def init_db(bind=engine):
    Base.metadata.create_all(bind=bind)
    if ENFORCE_UNIQUE_ACTIVE_SLOT:
        create_unique_active_slot_index(bind)


# Tabellen sicherstellen (im Test idempotent)
init_db()
