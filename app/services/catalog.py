"""Read-only view of the hall catalog used at booking time."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy.exc import SQLAlchemyError

from app.core.errors import InternalError, NotFoundError
from app.models.hall import Hall


@dataclass(frozen=True)
class HallSnapshot:
    hall_id: int
    price: Decimal
    capacity: int
    available: bool


class HallCatalog(ABC):
    """Interface for catalog lookups."""

    @abstractmethod
    def get(self, hall_id: int) -> HallSnapshot:
        """Return the hall's current price, capacity and availability.

        Raises:
            NotFoundError: If the hall does not exist or was deleted.
        """
        ...


class SqlAlchemyHallCatalog(HallCatalog):
    """Catalog backed by the `halls` table."""

    def __init__(self, session_factory) -> None:
        self._session_factory = session_factory

    def get(self, hall_id: int) -> HallSnapshot:
        try:
            with self._session_factory() as session:
                hall = (
                    session.query(Hall)
                    .filter(Hall.id == hall_id, Hall.deleted == False)  # noqa: E712
                    .first()
                )
        except SQLAlchemyError as e:
            raise InternalError("Hall lookup failed") from e

        if not hall:
            raise NotFoundError("Hall", hall_id)

        return HallSnapshot(
            hall_id=hall.id,
            price=Decimal(hall.price),
            capacity=hall.capacity,
            available=bool(hall.is_available),
        )
