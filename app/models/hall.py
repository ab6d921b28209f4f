from sqlalchemy import Column, Integer, String, Boolean, Numeric
from app.db.session import Base


class Hall(Base):
    __tablename__ = "halls"

    id = Column(Integer, primary_key=True, index=True)

    name = Column(String, nullable=False)
    description = Column(String)
    location = Column(String, nullable=False)

    # Flat price per booking
    price = Column(Numeric(10, 2), nullable=False)
    capacity = Column(Integer, nullable=False)

    is_available = Column(Boolean, nullable=False, default=True)
    deleted = Column(Boolean, nullable=False, default=False)
