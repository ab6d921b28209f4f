"""Booking ledger: the only writer of the `bookings` table.

Overlap checks and the writes they guard run in one transaction that first
bumps the hall/day row in `booking_day_locks`. Concurrent writers for the
same hall and day queue on that row lock, so each one sees the rows the
previous one committed.
"""

from datetime import date as date_type, time as time_type

from sqlalchemy import and_, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from app.core.errors import (
    BookingConflictError, InternalError, NotFoundError, ValidationError,
)
from app.core.logging_config import get_logger
from app.models.booking import Booking
from app.models.booking_day_lock import BookingDayLock
from app.models.enums import BookingStatus

logger = get_logger()

MUTABLE_FIELDS = {"status", "payment_status", "payment_reference"}


def _overlap_filter(hall_id: int, day: date_type, start_time: time_type, end_time: time_type):
    # [start, end) windows intersect when each starts before the other ends
    return and_(
        Booking.hall_id == hall_id,
        Booking.date == day,
        Booking.status != BookingStatus.CANCELLED,
        Booking.start_time < end_time,
        Booking.end_time > start_time,
    )


class BookingLedger:
    def __init__(self, session_factory) -> None:
        self._session_factory = session_factory

    # ------------------------------------------------------------------
    # LOCKING
    # ------------------------------------------------------------------
    def _ensure_day_lock(self, session, hall_id: int, day: date_type) -> None:
        if session.get(BookingDayLock, (hall_id, day)) is not None:
            session.rollback()
            return

        session.add(BookingDayLock(hall_id=hall_id, date=day, version=0))
        try:
            session.commit()
        except IntegrityError:
            session.rollback()

    def _lock_day(self, session, hall_id: int, day: date_type) -> None:
        """Take the hall/day row lock. Must be the first write of the transaction."""
        session.execute(
            update(BookingDayLock)
            .where(BookingDayLock.hall_id == hall_id, BookingDayLock.date == day)
            .values(version=BookingDayLock.version + 1)
            .execution_options(synchronize_session=False)
        )

    def _overlaps(self, session, hall_id, day, start_time, end_time, exclude_id=None) -> bool:
        query = session.query(Booking.id).filter(
            _overlap_filter(hall_id, day, start_time, end_time)
        )
        if exclude_id is not None:
            query = query.filter(Booking.id != exclude_id)
        return query.first() is not None

    # ------------------------------------------------------------------
    # WRITES
    # ------------------------------------------------------------------
    def insert_if_no_conflict(self, booking: Booking) -> Booking:
        """Persist `booking` unless an active booking overlaps its window.

        Raises:
            BookingConflictError: If the window is taken. Nothing is written.
        """
        try:
            with self._session_factory() as session:
                self._ensure_day_lock(session, booking.hall_id, booking.date)
                self._lock_day(session, booking.hall_id, booking.date)

                if self._overlaps(
                    session, booking.hall_id, booking.date,
                    booking.start_time, booking.end_time,
                ):
                    session.rollback()
                    raise BookingConflictError(booking.hall_id, booking.date)

                session.add(booking)
                session.commit()
                session.refresh(booking)
        except IntegrityError as e:
            logger.error(f"Booking insert rejected by constraint: {e}")
            raise InternalError("Booking could not be stored") from e
        except SQLAlchemyError as e:
            logger.error(f"Booking insert failed: {e}")
            raise InternalError("Booking could not be stored") from e

        return booking

    def _fetch_for_update(self, session, booking_id: int) -> Booking:
        booking = session.get(
            Booking, booking_id, with_for_update=True, populate_existing=True
        )
        if not booking:
            raise NotFoundError("Booking", booking_id)
        return booking

    @staticmethod
    def _reactivates(booking: Booking, mutation: dict) -> bool:
        return (
            booking.status == BookingStatus.CANCELLED
            and "status" in mutation
            and mutation["status"] != BookingStatus.CANCELLED
        )

    def update(self, booking_id: int, mutation: dict, guard=None) -> Booking:
        """Apply a partial mutation. Keys absent from `mutation` are untouched.

        `guard`, when given, is called with the locked current row before
        anything changes and may raise to veto the mutation. Reactivating a
        cancelled booking re-checks the overlap invariant under the hall/day
        lock.
        """
        illegal = set(mutation) - MUTABLE_FIELDS
        if illegal:
            raise ValidationError(f"Fields cannot be changed: {', '.join(sorted(illegal))}")

        try:
            with self._session_factory() as session:
                current = self._fetch_for_update(session, booking_id)

                if self._reactivates(current, mutation):
                    hall_id, day = current.hall_id, current.date
                    session.rollback()
                    self._ensure_day_lock(session, hall_id, day)
                    self._lock_day(session, hall_id, day)
                    current = self._fetch_for_update(session, booking_id)

                    if self._reactivates(current, mutation) and self._overlaps(
                        session, hall_id, day, current.start_time, current.end_time,
                        exclude_id=booking_id,
                    ):
                        session.rollback()
                        raise BookingConflictError(hall_id, day)

                if guard is not None:
                    guard(current)

                for field, value in mutation.items():
                    setattr(current, field, value)

                session.commit()
                session.refresh(current)
        except SQLAlchemyError as e:
            logger.error(f"Booking {booking_id} update failed: {e}")
            raise InternalError("Booking could not be updated") from e

        return current

    # ------------------------------------------------------------------
    # READS
    # ------------------------------------------------------------------
    def get(self, booking_id: int) -> Booking:
        try:
            with self._session_factory() as session:
                booking = session.get(Booking, booking_id)
        except SQLAlchemyError as e:
            raise InternalError("Booking lookup failed") from e

        if not booking:
            raise NotFoundError("Booking", booking_id)
        return booking

    def has_conflict(self, hall_id: int, day: date_type, start_time: time_type, end_time: time_type) -> bool:
        """Unlocked overlap probe. A False answer is advisory only."""
        try:
            with self._session_factory() as session:
                return self._overlaps(session, hall_id, day, start_time, end_time)
        except SQLAlchemyError as e:
            raise InternalError("Booking lookup failed") from e

    def list_bookings(self, status=None, payment_status=None, hall_id=None) -> list[Booking]:
        try:
            with self._session_factory() as session:
                query = session.query(Booking)
                if status is not None:
                    query = query.filter(Booking.status == status)
                if payment_status is not None:
                    query = query.filter(Booking.payment_status == payment_status)
                if hall_id is not None:
                    query = query.filter(Booking.hall_id == hall_id)
                return query.order_by(Booking.created_at.desc(), Booking.id.desc()).all()
        except SQLAlchemyError as e:
            raise InternalError("Booking listing failed") from e

    def active_for_day(self, hall_id: int, day: date_type) -> list[Booking]:
        try:
            with self._session_factory() as session:
                return (
                    session.query(Booking)
                    .filter(
                        Booking.hall_id == hall_id,
                        Booking.date == day,
                        Booking.status != BookingStatus.CANCELLED,
                    )
                    .order_by(Booking.start_time)
                    .all()
                )
        except SQLAlchemyError as e:
            raise InternalError("Booking lookup failed") from e
