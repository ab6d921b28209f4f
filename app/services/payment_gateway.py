"""Payment gateway interface.

The orchestrator only sees this interface, so gateways are swappable and
tests can substitute an in-memory double.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum


class AuthorizationStatus(str, Enum):
    SUCCEEDED = "succeeded"
    PENDING = "pending"
    FAILED = "failed"


@dataclass(frozen=True)
class Authorization:
    authorization_id: str
    client_secret: str


@dataclass(frozen=True)
class AuthorizationState:
    status: AuthorizationStatus
    # The authorization a payment reference belongs to, when the gateway says
    authorization_id: str | None = None


def to_minor_units(amount) -> int:
    """500 -> 50000, 499.995 -> 50000."""
    return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class PaymentGateway(ABC):
    """Interface for payment authorizations."""

    name = "gateway"

    @abstractmethod
    def create_authorization(self, amount_minor_units: int, currency: str, metadata: dict) -> Authorization:
        """Create a hold for `amount_minor_units`.

        Raises:
            PaymentGatewayError: On timeout, transport failure or rejection.
        """
        ...

    @abstractmethod
    def retrieve_authorization(self, reference: str) -> AuthorizationState:
        """Report whether the payment behind `reference` has succeeded.

        Raises:
            PaymentGatewayError: On timeout, transport failure or rejection.
        """
        ...

    def cancel_authorization(self, authorization_id: str) -> bool:
        """Void an authorization. Returns False when the gateway cannot."""
        return False
