from sqlalchemy import Boolean, Column, ForeignKey, Integer, String
from sqlalchemy.orm import relationship
from models.Base import Base

class RestaurantDB(Base):
    __tablename__ = "restaurants"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    manager_id = Column(Integer, ForeignKey("users.id"))
    name = Column(String, nullable=False)
    address_line1 = Column(String)
    address_line2 = Column(String)
    city = Column(String)
    state = Column(String)
    zip_code = Column(String)
    is_approved = Column(Boolean, default=False, nullable=False)

    operating_hours = relationship("OperatingHoursDB", back_populates="restaurant")
    tables = relationship("TableDB", back_populates="restaurant")
