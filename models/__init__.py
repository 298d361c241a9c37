from .Base import Base
from .ReservationStatus import ReservationStatus, ACTIVE_STATUSES
from .UserDB import UserDB
from .User import Customer
from .RestaurantDB import RestaurantDB
from .OperatingHoursDB import OperatingHoursDB
from .TableDB import TableDB
from .Table import Table, TableUpdate, TableResponse
from .ReservationDB import ReservationDB
from .Reservation import ReservationCreate, ReservationUpdate, TIME_PATTERN
from .Availability import Availability
