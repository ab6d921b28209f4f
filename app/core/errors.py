"""Domain error codes for the booking core.

Every failure that crosses the HTTP boundary is one of these. The API layer
renders them through a single exception handler in app.main.
"""

from enum import Enum


class ErrorCode(Enum):
    """Domain error codes."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    RESOURCE_UNAVAILABLE = "RESOURCE_UNAVAILABLE"
    CONFLICT = "CONFLICT"
    PAYMENT_GATEWAY_ERROR = "PAYMENT_GATEWAY_ERROR"
    PAYMENT_NOT_COMPLETED = "PAYMENT_NOT_COMPLETED"
    INTERNAL = "INTERNAL"


class DomainError(Exception):
    """Base domain error with code and user-safe message."""

    code = ErrorCode.INTERNAL
    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class ValidationError(DomainError):
    """Malformed or out-of-range input."""

    code = ErrorCode.VALIDATION_ERROR
    status_code = 400


class NotFoundError(DomainError):
    """Raised when a hall or booking does not exist."""

    code = ErrorCode.NOT_FOUND
    status_code = 404

    def __init__(self, entity: str, entity_id) -> None:
        super().__init__(f"{entity} not found")
        self.entity = entity
        self.entity_id = entity_id


class ResourceUnavailableError(DomainError):
    code = ErrorCode.RESOURCE_UNAVAILABLE
    status_code = 400

    def __init__(self, hall_id) -> None:
        super().__init__("Hall is not available")
        self.hall_id = hall_id


class BookingConflictError(DomainError):
    """Raised when the window overlaps a non-cancelled booking."""

    code = ErrorCode.CONFLICT
    status_code = 409

    def __init__(self, hall_id, date) -> None:
        super().__init__("Hall already booked for this time range")
        self.hall_id = hall_id
        self.date = date


class PaymentGatewayError(DomainError):
    """I/O or API failure while talking to the payment gateway."""

    code = ErrorCode.PAYMENT_GATEWAY_ERROR
    status_code = 502


class PaymentNotCompletedError(DomainError):
    code = ErrorCode.PAYMENT_NOT_COMPLETED
    status_code = 400

    def __init__(self, message: str = "Payment not completed") -> None:
        super().__init__(message)


class InternalError(DomainError):
    """Unexpected storage failure."""

    code = ErrorCode.INTERNAL
    status_code = 500
