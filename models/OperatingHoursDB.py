from sqlalchemy import Column, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship
from models.Base import Base

class OperatingHoursDB(Base):
    __tablename__ = "operating_hours"
    __table_args__ = (
        UniqueConstraint("restaurant_id", "day_of_week", name="uq_operating_hours_restaurant_day"),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    restaurant_id = Column(Integer, ForeignKey("restaurants.id"), nullable=False)
    day_of_week = Column(String(9), nullable=False)
    opening_time = Column(String(5), nullable=False)
    closing_time = Column(String(5), nullable=False)

    restaurant = relationship("RestaurantDB", back_populates="operating_hours")
