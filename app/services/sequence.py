"""Booking number allocation.

Numbers come from an atomic increment, never from counting existing rows.
"""

from abc import ABC, abstractmethod

from redis.exceptions import RedisError
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from app.core.errors import InternalError
from app.core.logging_config import get_logger
from app.models.booking_sequence import BookingSequence

logger = get_logger()

BOOKING_NUMBER_PREFIX = "BK"
DEFAULT_SEQUENCE_NAME = "booking_number"


def format_booking_number(value: int) -> str:
    return f"{BOOKING_NUMBER_PREFIX}{value:06d}"


def parse_booking_number(booking_number: str) -> int:
    if not booking_number.startswith(BOOKING_NUMBER_PREFIX):
        raise ValueError(f"Not a booking number: {booking_number!r}")
    return int(booking_number[len(BOOKING_NUMBER_PREFIX):])


class SequenceGenerator(ABC):
    @abstractmethod
    def next_value(self) -> int:
        """Atomically advance the counter and return the new value."""
        ...

    def next(self) -> str:
        return format_booking_number(self.next_value())


class DatabaseSequence(SequenceGenerator):
    """Transactional counter stored in `booking_sequences`.

    The UPDATE holds the row lock until commit, so the value read back in the
    same transaction belongs to this caller alone.
    """

    def __init__(self, session_factory, name: str = DEFAULT_SEQUENCE_NAME) -> None:
        self._session_factory = session_factory
        self._name = name

    def _increment(self, session):
        result = session.execute(
            update(BookingSequence)
            .where(BookingSequence.name == self._name)
            .values(value=BookingSequence.value + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            session.rollback()
            return None

        value = session.execute(
            select(BookingSequence.value).where(BookingSequence.name == self._name)
        ).scalar_one()
        session.commit()
        return value

    def _create_row(self, session) -> None:
        session.add(BookingSequence(name=self._name, value=0))
        try:
            session.commit()
        except IntegrityError:
            # Another caller created it first
            session.rollback()

    def next_value(self) -> int:
        try:
            with self._session_factory() as session:
                value = self._increment(session)
                if value is None:
                    self._create_row(session)
                    value = self._increment(session)
        except SQLAlchemyError as e:
            logger.error(f"Sequence {self._name} allocation failed: {e}")
            raise InternalError("Could not allocate booking number") from e

        if value is None:
            raise InternalError("Could not allocate booking number")
        return value


class RedisSequence(SequenceGenerator):
    """Counter kept in Redis and advanced with INCR."""

    def __init__(self, client, key: str = f"sequence:{DEFAULT_SEQUENCE_NAME}") -> None:
        self._client = client
        self._key = key

    def next_value(self) -> int:
        if self._client is None:
            raise InternalError("Redis is not configured for booking numbers")

        try:
            return int(self._client.incr(self._key))
        except RedisError as e:
            logger.error(f"Sequence {self._key} allocation failed: {e}")
            raise InternalError("Could not allocate booking number") from e
