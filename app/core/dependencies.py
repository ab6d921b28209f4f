import os
from functools import lru_cache

from dotenv import load_dotenv
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from app.core.jwt import STAFF_ROLES, decode_access_token
from app.core.logging_config import get_logger
from app.core.redis import get_redis_client
from app.db.session import SessionLocal
from app.services.booking_service import BookingService
from app.services.catalog import SqlAlchemyHallCatalog
from app.services.ledger import BookingLedger
from app.services.sequence import DatabaseSequence, RedisSequence
from app.utils.razorpay_client import RazorpayGateway
from app.utils.stripe_client import StripeGateway

load_dotenv()

logger = get_logger()

security = HTTPBearer(auto_error=False)


def build_payment_gateway(name: str | None = None):
    name = (name or os.getenv("PAYMENT_GATEWAY", "razorpay")).lower()

    if name == "stripe":
        return StripeGateway()

    if name == "razorpay":
        return RazorpayGateway()

    raise ValueError(f"Unknown PAYMENT_GATEWAY '{name}'")


def build_sequence(session_factory, backend: str | None = None):
    backend = (backend or os.getenv("BOOKING_SEQUENCE_BACKEND", "database")).lower()

    if backend == "redis":
        return RedisSequence(get_redis_client())

    return DatabaseSequence(session_factory)


@lru_cache
def get_booking_service() -> BookingService:
    """One BookingService per process, wired from the environment."""
    service = BookingService(
        catalog=SqlAlchemyHallCatalog(SessionLocal),
        sequence=build_sequence(SessionLocal),
        gateway=build_payment_gateway(),
        ledger=BookingLedger(SessionLocal),
        currency=os.getenv("PAYMENT_CURRENCY", "INR"),
    )
    logger.info("Booking service ready")
    return service


def require_staff(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
):
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated"
        )

    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token"
        )

    if payload["role"] not in STAFF_ROLES:
        raise HTTPException(status_code=403, detail="Staff only")

    return payload
