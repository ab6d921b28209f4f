"""Booking service - all booking business logic lives here.

BookingService:
- Depends only on injected collaborators (catalog, sequence, gateway, ledger)
- Validates requests before anything is written
- Drives create -> authorize -> confirm -> status update
- Raises typed domain errors, never raw storage or SDK exceptions
"""

from app.core.errors import (
    BookingConflictError, PaymentNotCompletedError,
    ResourceUnavailableError, ValidationError,
)
from app.core.logging_config import get_logger
from app.models.booking import Booking
from app.models.enums import BookingStatus, PaymentStatus, is_payment_transition_allowed
from app.schemas.booking import BookingCreate
from app.services.catalog import HallCatalog
from app.services.ledger import BookingLedger
from app.services.payment_gateway import AuthorizationStatus, PaymentGateway, to_minor_units
from app.services.sequence import SequenceGenerator
from app.utils.slots import free_windows

logger = get_logger()

REQUIRED_TEXT_FIELDS = ("customer_name", "customer_email", "customer_phone")


def _parse_enum(enum_cls, value, field: str):
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError(f"Invalid {field} '{value}' (expected one of: {allowed})") from None


class BookingService:
    def __init__(
        self,
        catalog: HallCatalog,
        sequence: SequenceGenerator,
        gateway: PaymentGateway,
        ledger: BookingLedger,
        currency: str = "INR",
    ) -> None:
        self._catalog = catalog
        self._sequence = sequence
        self._gateway = gateway
        self._ledger = ledger
        self._currency = currency

    # =================================================================
    # CREATE
    # =================================================================
    def _validate_request(self, data: BookingCreate) -> None:
        for field in REQUIRED_TEXT_FIELDS:
            value = getattr(data, field)
            if value is None or not str(value).strip():
                raise ValidationError(f"{field} is required")

        if data.start_time >= data.end_time:
            raise ValidationError("End time must be after start time")

        if data.number_of_guests < 1:
            raise ValidationError("number_of_guests must be at least 1")

    def _void_authorization(self, authorization_id: str) -> None:
        try:
            voided = self._gateway.cancel_authorization(authorization_id)
        except Exception as e:
            logger.bind(log_type="payment").warning(
                f"Void failed | Authorization={authorization_id} | {e}"
            )
            return

        if voided:
            logger.bind(log_type="payment").info(f"Authorization voided | {authorization_id}")

    def create(self, data: BookingCreate):
        """Reserve a hall window and open a payment authorization for it.

        Returns:
            (booking, client_secret)

        Raises:
            ValidationError: Malformed request or guests over capacity.
            NotFoundError: Hall does not exist.
            ResourceUnavailableError: Hall is flagged unavailable.
            BookingConflictError: Window overlaps an active booking.
            PaymentGatewayError: Gateway failed; nothing was stored.
        """
        self._validate_request(data)

        hall = self._catalog.get(data.hall_id)
        if not hall.available:
            raise ResourceUnavailableError(data.hall_id)

        if data.number_of_guests > hall.capacity:
            raise ValidationError(
                f"number_of_guests exceeds hall capacity of {hall.capacity}"
            )

        total_amount = hall.price

        # Cheap early rejection; the ledger insert below is the real check
        if self._ledger.has_conflict(data.hall_id, data.date, data.start_time, data.end_time):
            logger.bind(log_type="booking").info(
                f"Booking rejected (overlap) | Hall={data.hall_id} | Date={data.date}"
            )
            raise BookingConflictError(data.hall_id, data.date)

        booking_number = self._sequence.next()

        authorization = self._gateway.create_authorization(
            to_minor_units(total_amount),
            self._currency,
            {
                "booking_number": booking_number,
                "hall_id": data.hall_id,
                "customer_name": data.customer_name,
                "customer_email": data.customer_email,
            },
        )

        booking = Booking(
            booking_number=booking_number,
            customer_name=data.customer_name,
            customer_email=data.customer_email,
            customer_phone=data.customer_phone,
            hall_id=data.hall_id,
            date=data.date,
            start_time=data.start_time,
            end_time=data.end_time,
            number_of_guests=data.number_of_guests,
            total_amount=total_amount,
            special_requests=data.special_requests,
            status=BookingStatus.CONFIRMED,
            payment_status=PaymentStatus.PENDING,
            gateway_authorization_id=authorization.authorization_id,
        )

        try:
            booking = self._ledger.insert_if_no_conflict(booking)
        except BookingConflictError:
            logger.bind(log_type="booking").info(
                f"Booking lost race | Number={booking_number} | Hall={data.hall_id} | Date={data.date}"
            )
            self._void_authorization(authorization.authorization_id)
            raise

        logger.bind(log_type="booking").info(
            f"Booking Created | Number={booking.booking_number} | "
            f"Hall={booking.hall_id} | Customer={booking.customer_email}"
        )
        return booking, authorization.client_secret

    # =================================================================
    # CONFIRM PAYMENT
    # =================================================================
    def confirm(self, booking_id: int, payment_reference: str) -> Booking:
        """Reconcile gateway payment state into the booking.

        Safe to retry: an already completed booking is returned untouched.

        Raises:
            NotFoundError: Booking does not exist.
            PaymentNotCompletedError: Gateway does not report success.
            PaymentGatewayError: Gateway could not be reached.
        """
        booking = self._ledger.get(booking_id)

        if booking.payment_status == PaymentStatus.COMPLETED:
            return booking

        if booking.payment_status == PaymentStatus.FAILED:
            raise PaymentNotCompletedError("Payment for this booking has failed")

        state = self._gateway.retrieve_authorization(payment_reference)

        if state.status != AuthorizationStatus.SUCCEEDED:
            logger.bind(log_type="payment").info(
                f"Payment not completed | Booking={booking.booking_number} | "
                f"Reference={payment_reference} | Status={state.status.value}"
            )
            raise PaymentNotCompletedError()

        if (
            state.authorization_id is not None
            and booking.gateway_authorization_id is not None
            and state.authorization_id != booking.gateway_authorization_id
        ):
            logger.bind(log_type="payment").warning(
                f"Payment reference mismatch | Booking={booking.booking_number} | "
                f"Reference={payment_reference}"
            )
            raise PaymentNotCompletedError("Payment does not belong to this booking")

        def ensure_still_open(current: Booking) -> None:
            if current.payment_status == PaymentStatus.FAILED:
                raise PaymentNotCompletedError("Payment for this booking has failed")

        booking = self._ledger.update(
            booking_id,
            {
                "payment_status": PaymentStatus.COMPLETED,
                "payment_reference": payment_reference,
            },
            guard=ensure_still_open,
        )

        logger.bind(log_type="payment").info(
            f"Payment confirmed | Booking={booking.booking_number} | Reference={payment_reference}"
        )
        return booking

    # =================================================================
    # STAFF
    # =================================================================
    def update_status(self, booking_id: int, new_status=None, new_payment_status=None) -> Booking:
        """Apply a staff status change. Only the supplied fields change."""
        mutation = {}
        if new_status is not None:
            mutation["status"] = _parse_enum(BookingStatus, new_status, "status")
        if new_payment_status is not None:
            mutation["payment_status"] = _parse_enum(
                PaymentStatus, new_payment_status, "payment_status"
            )

        if not mutation:
            return self._ledger.get(booking_id)

        def check_payment_transition(current: Booking) -> None:
            new = mutation.get("payment_status")
            if new is None:
                return
            if not is_payment_transition_allowed(current.payment_status, new):
                raise ValidationError(
                    f"Payment status cannot move from {current.payment_status.value} to {new.value}"
                )

        booking = self._ledger.update(booking_id, mutation, guard=check_payment_transition)

        logger.bind(log_type="admin").info(
            f"Booking {booking.booking_number} updated | "
            + " | ".join(f"{k}={v.value}" for k, v in mutation.items())
        )
        return booking

    def get_booking(self, booking_id: int) -> Booking:
        return self._ledger.get(booking_id)

    def list_bookings(self, status=None, payment_status=None, hall_id=None):
        if status is not None:
            status = _parse_enum(BookingStatus, status, "status")
        if payment_status is not None:
            payment_status = _parse_enum(PaymentStatus, payment_status, "payment_status")
        return self._ledger.list_bookings(
            status=status, payment_status=payment_status, hall_id=hall_id
        )

    # =================================================================
    # AVAILABILITY
    # =================================================================
    def available_slots(self, hall_id: int, day):
        """Free windows of `day` for a hall. Raises NotFoundError for unknown halls."""
        self._catalog.get(hall_id)
        booked = [(b.start_time, b.end_time) for b in self._ledger.active_for_day(hall_id, day)]
        return free_windows(booked)
