from datetime import datetime, timezone

from sqlalchemy import (
    Column, Integer, String, Date, Time, Numeric, Text, DateTime, Enum,
    ForeignKey, Index, UniqueConstraint, CheckConstraint,
)
from app.db.session import Base
from app.models.enums import BookingStatus, PaymentStatus


def _utcnow():
    return datetime.now(timezone.utc)


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    booking_number = Column(String(16), nullable=False)

    customer_name = Column(String, nullable=False)
    customer_email = Column(String, nullable=False)
    customer_phone = Column(String, nullable=False)

    hall_id = Column(Integer, ForeignKey("halls.id"), nullable=False)

    date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)

    number_of_guests = Column(Integer, nullable=False)

    # Price snapshot taken from the hall at creation, never recomputed
    total_amount = Column(Numeric(10, 2), nullable=False)

    payment_status = Column(
        Enum(PaymentStatus, name="paymentstatus", values_callable=_enum_values),
        nullable=False,
        default=PaymentStatus.PENDING,
    )
    payment_reference = Column(String, nullable=True)
    gateway_authorization_id = Column(String, nullable=True)

    status = Column(
        Enum(BookingStatus, name="bookingstatus", values_callable=_enum_values),
        nullable=False,
        default=BookingStatus.CONFIRMED,
    )

    special_requests = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    __table_args__ = (
        UniqueConstraint("booking_number", name="uq_bookings_booking_number"),
        CheckConstraint("start_time < end_time", name="ck_bookings_time_window"),
        CheckConstraint("number_of_guests >= 1", name="ck_bookings_guests_positive"),
        Index("ix_bookings_hall_date", "hall_id", "date"),
    )

    def __repr__(self) -> str:
        return (
            f"<Booking(id={self.id}, number={self.booking_number}, "
            f"hall={self.hall_id}, status={self.status})>"
        )
