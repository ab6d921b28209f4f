import os
from dotenv import load_dotenv
from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./bookings.db")

Base = declarative_base()


def configure_sqlite(engine):
    """Make every SQLite transaction take the write lock up front.

    pysqlite defers BEGIN until the first write, so two transactions can both
    read "no overlap" before either writes. BEGIN IMMEDIATE serializes them.
    """

    @event.listens_for(engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    return engine


def build_engine(url: str = DATABASE_URL):
    if url.startswith("sqlite"):
        engine = create_engine(
            url,
            connect_args={"check_same_thread": False, "timeout": 30},
        )
        return configure_sqlite(engine)

    return create_engine(url, pool_pre_ping=True)


def build_session_factory(engine):
    # Records returned by the ledger outlive their session.
    return sessionmaker(
        bind=engine,
        autoflush=False,
        expire_on_commit=False,
    )


engine = build_engine()
SessionLocal = build_session_factory(engine)
