"""
Database engine + session factory.

Always initializes — defaults to SQLite for local dev, Postgres in production.
Every connection is opened with a bounded timeout so a stalled store surfaces
as a retryable failure instead of a hung request.
"""
from datetime import datetime, timezone

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase

from recruitops.config import DATABASE_URL, STORE_TIMEOUT_SECONDS


class Base(DeclarativeBase):
    pass


class StoreUnavailableError(Exception):
    """The policy state store failed or timed out. Safe to retry the request."""
    def __init__(self, operation, cause=None):
        self.operation = operation
        self.cause = cause
        super().__init__(f"Store unavailable during {operation}: {cause}")


# Railway injects postgres:// but SQLAlchemy 2.x requires postgresql://
url = DATABASE_URL.replace('postgres://', 'postgresql://', 1)

# SQLite needs different engine kwargs than Postgres
if url.startswith('sqlite'):
    engine = create_engine(
        url,
        connect_args={'check_same_thread': False, 'timeout': STORE_TIMEOUT_SECONDS},
    )
else:
    engine = create_engine(
        url,
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=10,
        pool_timeout=STORE_TIMEOUT_SECONDS,
        connect_args={
            'connect_timeout': STORE_TIMEOUT_SECONDS,
            'options': f'-c statement_timeout={STORE_TIMEOUT_SECONDS * 1000}',
        },
    )

SessionLocal = sessionmaker(bind=engine)


def get_session():
    """Return a new DB session."""
    return SessionLocal()


def utcnow():
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


def as_utc(value):
    """
    Normalize a datetime read back from the store to aware UTC.

    SQLite drops tzinfo on DateTime(timezone=True) columns; all stored values
    are written in UTC, so a naive value is UTC by construction.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
