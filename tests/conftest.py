"""Pytest configuration and shared fixtures."""

import itertools
import os
import tempfile
import threading
from datetime import date, time
from decimal import Decimal

os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="hall-booking-logs-"))
os.environ["JWT_SECRET"] = "test-secret"
os.environ["JWT_ALGORITHM"] = "HS256"
os.environ.pop("REDIS_URL", None)

import pytest  # noqa: E402

from app.core.errors import PaymentGatewayError  # noqa: E402
from app.db.session import Base, build_engine, build_session_factory  # noqa: E402
from app.models.booking import Booking  # noqa: E402
from app.models.booking_day_lock import BookingDayLock  # noqa: E402,F401
from app.models.booking_sequence import BookingSequence  # noqa: E402,F401
from app.models.hall import Hall  # noqa: E402
from app.schemas.booking import BookingCreate  # noqa: E402
from app.services.booking_service import BookingService  # noqa: E402
from app.services.catalog import SqlAlchemyHallCatalog  # noqa: E402
from app.services.ledger import BookingLedger  # noqa: E402
from app.services.payment_gateway import (  # noqa: E402
    Authorization, AuthorizationState, AuthorizationStatus, PaymentGateway,
)
from app.services.sequence import DatabaseSequence  # noqa: E402


class FakeGateway(PaymentGateway):
    """In-memory gateway. Authorizations start pending until `settle()`."""

    name = "fake"

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self.statuses = {}
        self.created = []
        self.cancelled = []
        self.retrieve_calls = []
        self.fail_create = False
        self.fail_cancel = False

    def create_authorization(self, amount_minor_units, currency, metadata):
        if self.fail_create:
            raise PaymentGatewayError("Gateway timed out")

        with self._lock:
            authorization_id = f"auth_{next(self._ids)}"
            self.statuses[authorization_id] = AuthorizationStatus.PENDING
            self.created.append((authorization_id, amount_minor_units, currency, dict(metadata)))

        return Authorization(authorization_id, f"{authorization_id}_secret")

    def retrieve_authorization(self, reference):
        with self._lock:
            self.retrieve_calls.append(reference)

        if reference not in self.statuses:
            return AuthorizationState(AuthorizationStatus.FAILED)
        return AuthorizationState(self.statuses[reference], authorization_id=reference)

    def cancel_authorization(self, authorization_id):
        if self.fail_cancel:
            raise PaymentGatewayError("Void rejected")

        with self._lock:
            self.cancelled.append(authorization_id)
        return True

    def settle(self, authorization_id, status=AuthorizationStatus.SUCCEEDED):
        self.statuses[authorization_id] = status


@pytest.fixture
def engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'bookings.db'}")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def make_hall(session_factory):
    def _make_hall(price=500, capacity=50, is_available=True, deleted=False, name="Grand Hall"):
        with session_factory() as session:
            hall = Hall(
                name=name,
                location="Downtown",
                price=Decimal(str(price)),
                capacity=capacity,
                is_available=is_available,
                deleted=deleted,
            )
            session.add(hall)
            session.commit()
            return hall.id

    return _make_hall


@pytest.fixture
def hall_id(make_hall):
    return make_hall()


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def ledger(session_factory):
    return BookingLedger(session_factory)


@pytest.fixture
def sequence(session_factory):
    return DatabaseSequence(session_factory)


@pytest.fixture
def service(session_factory, sequence, gateway, ledger):
    return BookingService(
        catalog=SqlAlchemyHallCatalog(session_factory),
        sequence=sequence,
        gateway=gateway,
        ledger=ledger,
        currency="USD",
    )


@pytest.fixture
def count_bookings(session_factory):
    def _count(**filters):
        with session_factory() as session:
            return session.query(Booking).filter_by(**filters).count()

    return _count


def _booking_request(hall_id, **overrides) -> BookingCreate:
    data = {
        "customer_name": "Asha Rao",
        "customer_email": "asha@example.com",
        "customer_phone": "+91 98450 00000",
        "hall_id": hall_id,
        "date": date(2024, 12, 25),
        "start_time": time(18, 0),
        "end_time": time(22, 0),
        "number_of_guests": 10,
        "special_requests": None,
    }
    data.update(overrides)
    return BookingCreate(**data)


@pytest.fixture
def booking_request():
    return _booking_request
