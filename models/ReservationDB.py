from datetime import datetime

from sqlalchemy import Column, Date, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship
from models.Base import Base
from models.ReservationStatus import ReservationStatus

class ReservationDB(Base):
    __tablename__ = "reservations"
    __table_args__ = (
        Index("ix_reservations_slot", "table_id", "reservation_date", "reservation_time"),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    customer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    restaurant_id = Column(Integer, ForeignKey("restaurants.id"), nullable=False, index=True)
    table_id = Column(Integer, ForeignKey("tables.id"), nullable=False)
    reservation_date = Column(Date, nullable=False)
    reservation_time = Column(String(5), nullable=False)
    party_size = Column(Integer, nullable=False)
    status = Column(String(10), nullable=False, default=ReservationStatus.CONFIRMED.value)
    special_request = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow)

    table = relationship("TableDB", back_populates="reservations")
    restaurant = relationship("RestaurantDB")
    customer = relationship("UserDB")
