from sqlalchemy import CheckConstraint, Column, ForeignKey, Integer, String
from sqlalchemy.orm import relationship
from models.Base import Base

class TableDB(Base):
    __tablename__ = "tables"
    __table_args__ = (
        CheckConstraint("capacity >= 1", name="ck_tables_capacity_positive"),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    restaurant_id = Column(Integer, ForeignKey("restaurants.id"), nullable=False, index=True)
    table_number = Column(String, nullable=False)
    capacity = Column(Integer, nullable=False)

    restaurant = relationship("RestaurantDB", back_populates="tables")
    reservations = relationship("ReservationDB", back_populates="table")
