from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends

from app.core.dependencies import get_booking_service, require_staff
from app.core.errors import ValidationError
from app.core.logging_config import get_logger
from app.core.redis import delete_cache, get_cache, set_cache
from app.schemas.booking import (
    AvailableSlots, BookingCreate, BookingCreated, BookingOut, BookingStatusUpdate,
    PaymentConfirm, PaymentConfirmed, Slot,
)
from app.services.booking_service import BookingService

router = APIRouter(prefix="/bookings", tags=["Bookings"])
logger = get_logger()

SLOTS_CACHE_TTL = 60


def slots_cache_key(hall_id: int, day) -> str:
    return f"slots:{hall_id}:{day.isoformat()}"


# ---------------------------------------------------------------------
# CREATE BOOKING
# ---------------------------------------------------------------------
@router.post("/", response_model=BookingCreated, status_code=201)
def create_booking(
    data: BookingCreate,
    service: BookingService = Depends(get_booking_service),
):
    booking, client_secret = service.create(data)
    delete_cache(slots_cache_key(booking.hall_id, booking.date))

    return BookingCreated(
        booking=BookingOut.model_validate(booking),
        client_secret=client_secret,
    )


# ---------------------------------------------------------------------
# CONFIRM PAYMENT
# ---------------------------------------------------------------------
@router.post("/{booking_id}/confirm-payment", response_model=PaymentConfirmed)
def confirm_payment(
    booking_id: int,
    data: PaymentConfirm,
    service: BookingService = Depends(get_booking_service),
):
    booking = service.confirm(booking_id, data.payment_reference)

    return PaymentConfirmed(
        message="Payment confirmed successfully",
        booking=BookingOut.model_validate(booking),
    )


# =====================================================================
# AVAILABLE TIME SLOTS
# =====================================================================
@router.get("/hall/{hall_id}/available-slots", response_model=AvailableSlots)
def available_slots(
    hall_id: int,
    date_str: str,
    service: BookingService = Depends(get_booking_service),
):
    try:
        target_date = date.fromisoformat(date_str)
    except ValueError:
        raise ValidationError("Invalid date format (YYYY-MM-DD)") from None

    key = slots_cache_key(hall_id, target_date)
    cached = get_cache(key)
    if cached is not None:
        return cached

    windows = service.available_slots(hall_id, target_date)
    response = AvailableSlots(
        hall_id=hall_id,
        date=target_date,
        available_slots=[Slot(start=s, end=e) for s, e in windows],
    )

    set_cache(key, response.model_dump(mode="json"), ttl=SLOTS_CACHE_TTL)
    return response


# =====================================================================
# STAFF: LIST / GET / UPDATE STATUS
# =====================================================================
@router.get("/", response_model=list[BookingOut])
def list_bookings(
    status: Optional[str] = None,
    payment_status: Optional[str] = None,
    hall_id: Optional[int] = None,
    staff: dict = Depends(require_staff),
    service: BookingService = Depends(get_booking_service),
):
    return service.list_bookings(
        status=status, payment_status=payment_status, hall_id=hall_id
    )


@router.get("/{booking_id}", response_model=BookingOut)
def get_booking(
    booking_id: int,
    staff: dict = Depends(require_staff),
    service: BookingService = Depends(get_booking_service),
):
    return service.get_booking(booking_id)


@router.put("/{booking_id}", response_model=BookingOut)
def update_booking_status(
    booking_id: int,
    data: BookingStatusUpdate,
    staff: dict = Depends(require_staff),
    service: BookingService = Depends(get_booking_service),
):
    booking = service.update_status(
        booking_id,
        new_status=data.status,
        new_payment_status=data.payment_status,
    )

    logger.bind(log_type="admin").info(
        f"Staff {staff['sub']} updated booking {booking.booking_number}"
    )
    delete_cache(slots_cache_key(booking.hall_id, booking.date))

    return booking
