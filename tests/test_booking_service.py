"""Unit tests for BookingService.

These cover the create / confirm / status lifecycle against a SQLite ledger
and an in-memory gateway.
Run with: pytest tests/test_booking_service.py -v
"""

import re
from datetime import date, time
from decimal import Decimal

import pytest

from app.core.errors import (
    BookingConflictError, NotFoundError, PaymentGatewayError,
    PaymentNotCompletedError, ResourceUnavailableError, ValidationError,
)
from app.models.enums import BookingStatus, PaymentStatus
from app.models.hall import Hall
from app.services.payment_gateway import AuthorizationStatus
from app.services.sequence import parse_booking_number


class TestCreate:
    def test_scenario_booking_is_pending_with_price_snapshot(self, service, gateway, hall_id, booking_request):
        booking, client_secret = service.create(booking_request(hall_id))

        assert booking.total_amount == 500
        assert booking.payment_status == PaymentStatus.PENDING
        assert booking.status == BookingStatus.CONFIRMED
        assert re.fullmatch(r"BK\d{6}", booking.booking_number)
        assert booking.gateway_authorization_id == gateway.created[0][0]
        assert client_secret == f"{booking.gateway_authorization_id}_secret"

    def test_authorization_is_for_price_in_minor_units(self, service, gateway, hall_id, booking_request):
        service.create(booking_request(hall_id))

        _, amount, currency, metadata = gateway.created[0]
        assert amount == 50000
        assert currency == "USD"
        assert metadata["hall_id"] == hall_id
        assert metadata["customer_email"] == "asha@example.com"
        assert re.fullmatch(r"BK\d{6}", metadata["booking_number"])

    def test_overlapping_request_conflicts_without_new_row(self, service, hall_id, booking_request, count_bookings):
        service.create(booking_request(hall_id))

        with pytest.raises(BookingConflictError):
            service.create(booking_request(hall_id, start_time=time(19, 0), end_time=time(21, 0)))

        assert count_bookings() == 1

    @pytest.mark.parametrize(
        "overrides",
        [
            {"start_time": time(22, 0), "end_time": time(18, 0)},
            {"start_time": time(18, 0), "end_time": time(18, 0)},
            {"number_of_guests": 0},
            {"customer_name": "   "},
            {"customer_phone": ""},
        ],
    )
    def test_invalid_request_writes_nothing(self, service, gateway, hall_id, booking_request, count_bookings, overrides):
        with pytest.raises(ValidationError):
            service.create(booking_request(hall_id, **overrides))

        assert gateway.created == []
        assert count_bookings() == 0

    def test_unknown_hall(self, service, booking_request):
        with pytest.raises(NotFoundError):
            service.create(booking_request(9999))

    def test_deleted_hall_is_not_found(self, service, make_hall, booking_request):
        hall = make_hall(deleted=True)

        with pytest.raises(NotFoundError):
            service.create(booking_request(hall))

    def test_unavailable_hall(self, service, make_hall, booking_request, gateway):
        hall = make_hall(is_available=False)

        with pytest.raises(ResourceUnavailableError):
            service.create(booking_request(hall))

        assert gateway.created == []

    def test_guests_over_capacity(self, service, make_hall, booking_request):
        hall = make_hall(capacity=5)

        with pytest.raises(ValidationError):
            service.create(booking_request(hall, number_of_guests=6))

    def test_guests_at_capacity_is_fine(self, service, make_hall, booking_request):
        hall = make_hall(capacity=10)

        booking, _ = service.create(booking_request(hall, number_of_guests=10))

        assert booking.number_of_guests == 10

    def test_gateway_failure_leaves_no_row(self, service, gateway, hall_id, booking_request, count_bookings):
        gateway.fail_create = True

        with pytest.raises(PaymentGatewayError):
            service.create(booking_request(hall_id))

        assert count_bookings() == 0

    def test_lost_race_voids_authorization(self, service, gateway, ledger, hall_id, booking_request, monkeypatch):
        service.create(booking_request(hall_id))
        # Simulate a competitor that slipped past the early check
        monkeypatch.setattr(ledger, "has_conflict", lambda *args: False)

        with pytest.raises(BookingConflictError):
            service.create(booking_request(hall_id, start_time=time(20, 0), end_time=time(23, 0)))

        assert gateway.cancelled == [gateway.created[1][0]]

    def test_failed_void_is_not_fatal(self, service, gateway, ledger, hall_id, booking_request, monkeypatch, count_bookings):
        service.create(booking_request(hall_id))
        monkeypatch.setattr(ledger, "has_conflict", lambda *args: False)
        gateway.fail_cancel = True

        with pytest.raises(BookingConflictError):
            service.create(booking_request(hall_id))

        assert count_bookings() == 1

    def test_void_timeout_still_reports_conflict(self, service, gateway, ledger, hall_id, booking_request, monkeypatch):
        service.create(booking_request(hall_id))
        monkeypatch.setattr(ledger, "has_conflict", lambda *args: False)

        def timeout(authorization_id):
            raise TimeoutError("Gateway timed out")

        monkeypatch.setattr(gateway, "cancel_authorization", timeout)

        with pytest.raises(BookingConflictError):
            service.create(booking_request(hall_id, start_time=time(19, 0), end_time=time(21, 0)))

    def test_total_amount_survives_price_change(self, service, session_factory, hall_id, booking_request):
        booking, _ = service.create(booking_request(hall_id))

        with session_factory() as session:
            session.get(Hall, hall_id).price = Decimal("900.00")
            session.commit()

        assert service.get_booking(booking.id).total_amount == Decimal("500.00")

    def test_sequential_creates_get_increasing_numbers(self, service, hall_id, booking_request):
        numbers = []
        for day in range(1, 6):
            booking, _ = service.create(booking_request(hall_id, date=date(2025, 1, day)))
            numbers.append(parse_booking_number(booking.booking_number))

        assert numbers == sorted(numbers)
        assert len(set(numbers)) == len(numbers)


class TestConfirm:
    @pytest.fixture
    def pending(self, service, hall_id, booking_request):
        booking, _ = service.create(booking_request(hall_id))
        return booking

    def test_succeeded_payment_completes_booking(self, service, gateway, pending):
        gateway.settle(pending.gateway_authorization_id)

        booking = service.confirm(pending.id, pending.gateway_authorization_id)

        assert booking.payment_status == PaymentStatus.COMPLETED
        assert booking.payment_reference == pending.gateway_authorization_id
        assert booking.status == BookingStatus.CONFIRMED

    def test_confirm_is_idempotent(self, service, gateway, pending):
        reference = pending.gateway_authorization_id
        gateway.settle(reference)

        first = service.confirm(pending.id, reference)
        calls = len(gateway.retrieve_calls)
        second = service.confirm(pending.id, reference)

        assert len(gateway.retrieve_calls) == calls
        assert second.payment_status == PaymentStatus.COMPLETED
        assert second.payment_reference == first.payment_reference
        assert second.updated_at == first.updated_at

    def test_pending_payment_is_not_completed(self, service, pending):
        with pytest.raises(PaymentNotCompletedError):
            service.confirm(pending.id, pending.gateway_authorization_id)

        current = service.get_booking(pending.id)
        assert current.payment_status == PaymentStatus.PENDING
        assert current.payment_reference is None
        assert current.updated_at == pending.updated_at

    def test_failed_payment_makes_no_mutation(self, service, gateway, pending):
        gateway.settle(pending.gateway_authorization_id, AuthorizationStatus.FAILED)

        with pytest.raises(PaymentNotCompletedError):
            service.confirm(pending.id, pending.gateway_authorization_id)

        assert service.get_booking(pending.id).payment_status == PaymentStatus.PENDING

    def test_payment_of_another_booking_is_rejected(self, service, gateway, hall_id, booking_request, pending):
        other, _ = service.create(booking_request(hall_id, date=date(2024, 12, 26)))
        gateway.settle(other.gateway_authorization_id)

        with pytest.raises(PaymentNotCompletedError):
            service.confirm(pending.id, other.gateway_authorization_id)

        assert service.get_booking(pending.id).payment_status == PaymentStatus.PENDING

    def test_failed_booking_cannot_be_confirmed(self, service, gateway, pending):
        service.update_status(pending.id, new_payment_status="failed")
        gateway.settle(pending.gateway_authorization_id)

        with pytest.raises(PaymentNotCompletedError):
            service.confirm(pending.id, pending.gateway_authorization_id)

    def test_missing_booking(self, service):
        with pytest.raises(NotFoundError):
            service.confirm(404, "auth_1")

    def test_gateway_outage_surfaces(self, service, gateway, pending, monkeypatch):
        def outage(reference):
            raise PaymentGatewayError("Gateway timed out")

        monkeypatch.setattr(gateway, "retrieve_authorization", outage)

        with pytest.raises(PaymentGatewayError):
            service.confirm(pending.id, pending.gateway_authorization_id)


class TestUpdateStatus:
    @pytest.fixture
    def pending(self, service, hall_id, booking_request):
        booking, _ = service.create(booking_request(hall_id))
        return booking

    def test_cancel_leaves_payment_status(self, service, pending):
        booking = service.update_status(pending.id, new_status="cancelled")

        assert booking.status == BookingStatus.CANCELLED
        assert booking.payment_status == PaymentStatus.PENDING

    def test_cancel_frees_the_window(self, service, pending, hall_id, booking_request):
        service.update_status(pending.id, new_status="cancelled")

        booking, _ = service.create(booking_request(hall_id, start_time=time(19, 0), end_time=time(21, 0)))

        assert booking.status == BookingStatus.CONFIRMED

    def test_status_moves_freely(self, service, pending):
        assert service.update_status(pending.id, new_status="completed").status == BookingStatus.COMPLETED
        assert service.update_status(pending.id, new_status="cancelled").status == BookingStatus.CANCELLED
        assert service.update_status(pending.id, new_status="confirmed").status == BookingStatus.CONFIRMED

    def test_reactivating_into_taken_window_conflicts(self, service, pending, hall_id, booking_request):
        service.update_status(pending.id, new_status="cancelled")
        service.create(booking_request(hall_id, start_time=time(19, 0), end_time=time(21, 0)))

        with pytest.raises(BookingConflictError):
            service.update_status(pending.id, new_status="confirmed")

    def test_both_fields(self, service, pending):
        booking = service.update_status(pending.id, new_status="completed", new_payment_status="completed")

        assert booking.status == BookingStatus.COMPLETED
        assert booking.payment_status == PaymentStatus.COMPLETED

    def test_unknown_status_value(self, service, pending):
        with pytest.raises(ValidationError):
            service.update_status(pending.id, new_status="archived")

        with pytest.raises(ValidationError):
            service.update_status(pending.id, new_payment_status="refunded")

    @pytest.mark.parametrize(
        "settled, target",
        [
            ("completed", "pending"),
            ("completed", "failed"),
            ("failed", "pending"),
            ("failed", "completed"),
        ],
    )
    def test_payment_status_never_reverses(self, service, pending, settled, target):
        service.update_status(pending.id, new_payment_status=settled)

        with pytest.raises(ValidationError):
            service.update_status(pending.id, new_payment_status=target)

        assert service.get_booking(pending.id).payment_status.value == settled

    def test_same_payment_status_is_allowed(self, service, pending):
        booking = service.update_status(pending.id, new_payment_status="pending")

        assert booking.payment_status == PaymentStatus.PENDING

    def test_no_fields_returns_booking(self, service, pending):
        assert service.update_status(pending.id).id == pending.id

    def test_missing_booking(self, service):
        with pytest.raises(NotFoundError):
            service.update_status(404, new_status="cancelled")


class TestStaffViews:
    def test_list_bookings_filters(self, service, hall_id, booking_request):
        first, _ = service.create(booking_request(hall_id))
        second, _ = service.create(booking_request(hall_id, date=date(2024, 12, 26)))
        service.update_status(first.id, new_status="cancelled")

        assert [b.id for b in service.list_bookings(status="cancelled")] == [first.id]
        assert {b.id for b in service.list_bookings()} == {first.id, second.id}

    def test_list_rejects_unknown_filter_value(self, service):
        with pytest.raises(ValidationError):
            service.list_bookings(payment_status="paid")


class TestAvailableSlots:
    def test_free_windows_around_bookings(self, service, hall_id, booking_request):
        service.create(booking_request(hall_id, start_time=time(9, 0), end_time=time(12, 0)))
        service.create(booking_request(hall_id))

        slots = service.available_slots(hall_id, date(2024, 12, 25))

        assert slots == [
            (time(0, 0), time(9, 0)),
            (time(12, 0), time(18, 0)),
            (time(22, 0), time(23, 59)),
        ]

    def test_unknown_hall(self, service):
        with pytest.raises(NotFoundError):
            service.available_slots(9999, date(2024, 12, 25))
