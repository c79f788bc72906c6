# hr_compliance/db/session.py
import os
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker

# Local SQLite file unless DATABASE_URL points at the shared HR database
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./hr_compliance.db")


def _make_engine(url: str):
    if not url.startswith("sqlite"):
        return create_engine(url, pool_pre_ping=True, future=True)

    eng = create_engine(url, connect_args={"check_same_thread": False}, future=True)

    # record -> type/employee/client references are only enforced with this on
    @event.listens_for(eng, "connect")
    def _sqlite_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON;")
        cursor.close()

    return eng


engine = _make_engine(DATABASE_URL)
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, future=True)


def get_db() -> Iterator[Session]:
    """FastAPI dependency: one session per request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def session_scope() -> Iterator[Session]:
    """Session for work outside a request (scheduler job, seed script)."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
