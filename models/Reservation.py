from datetime import date
from typing import Optional
from pydantic import BaseModel, Field

from models.ReservationStatus import ReservationStatus

# zero-padded 24-hour wall clock time, no seconds
TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"

class ReservationCreate(BaseModel):
    customer_id: int
    restaurant_id: int
    reservation_date: date
    reservation_time: str = Field(pattern=TIME_PATTERN)
    party_size: int = Field(ge=1)
    special_request: Optional[str] = None

class ReservationUpdate(BaseModel):
    status: Optional[ReservationStatus] = None
    special_request: Optional[str] = None
