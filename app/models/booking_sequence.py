from sqlalchemy import Column, String, BigInteger
from app.db.session import Base


class BookingSequence(Base):
    """Named counter row. Only ever advanced with UPDATE value = value + 1."""

    __tablename__ = "booking_sequences"

    name = Column(String(64), primary_key=True)
    value = Column(BigInteger, nullable=False, default=0)
