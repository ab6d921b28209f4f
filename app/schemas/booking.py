import datetime
from typing import Optional, List
from pydantic import BaseModel, EmailStr

from app.models.enums import BookingStatus, PaymentStatus


class BookingCreate(BaseModel):
    customer_name: str
    customer_email: EmailStr
    customer_phone: str

    hall_id: int
    date: datetime.date
    start_time: datetime.time
    end_time: datetime.time

    # Range checks happen in BookingService so they surface as 400s
    number_of_guests: int
    special_requests: Optional[str] = None


class BookingOut(BaseModel):
    id: int
    booking_number: str

    customer_name: str
    customer_email: str
    customer_phone: str

    hall_id: int
    date: datetime.date
    start_time: datetime.time
    end_time: datetime.time
    number_of_guests: int

    total_amount: float
    payment_status: PaymentStatus
    payment_reference: Optional[str] = None
    gateway_authorization_id: Optional[str] = None

    status: BookingStatus
    special_requests: Optional[str] = None

    created_at: datetime.datetime
    updated_at: datetime.datetime

    model_config = {"from_attributes": True}


class BookingCreated(BaseModel):
    booking: BookingOut
    client_secret: str


class PaymentConfirm(BaseModel):
    payment_reference: str


class PaymentConfirmed(BaseModel):
    message: str
    booking: BookingOut


class BookingStatusUpdate(BaseModel):
    # Plain strings: unknown values are rejected by BookingService as 400s
    status: Optional[str] = None
    payment_status: Optional[str] = None


class Slot(BaseModel):
    start: datetime.time
    end: datetime.time


class AvailableSlots(BaseModel):
    hall_id: int
    date: datetime.date
    available_slots: List[Slot]
