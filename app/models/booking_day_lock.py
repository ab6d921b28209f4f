from sqlalchemy import Column, Integer, Date
from app.db.session import Base


class BookingDayLock(Base):
    """One row per hall and day.

    Writers touching a hall/day bump `version` first, which holds the row lock
    until their transaction ends.
    """

    __tablename__ = "booking_day_locks"

    hall_id = Column(Integer, primary_key=True)
    date = Column(Date, primary_key=True)
    version = Column(Integer, nullable=False, default=0)
