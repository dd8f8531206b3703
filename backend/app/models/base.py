"""
Database base configuration for SQLAlchemy models.

This module uses SQLAlchemy 2.0 style with DeclarativeBase so that model
attributes type-check properly. One Session per request is the unit of work
for every engine operation.
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import QueuePool
from typing import Generator
import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

_DATABASE_URL_RAW = os.getenv("DATABASE_URL", "")
_is_production = os.getenv("ENV", "development").lower() == "production"
if not _DATABASE_URL_RAW:
    if _is_production:
        raise RuntimeError(
            "DATABASE_URL is not set or is empty. "
            "A PostgreSQL connection string is required in production."
        )
    DATABASE_URL = "postgresql://localhost:5432/assessments_dev"
else:
    DATABASE_URL = _DATABASE_URL_RAW

# Environment setting - echo SQL in development only
DEBUG = os.getenv("DEBUG", "True").lower() in ("true", "1", "yes")

# Database connection pool settings
POOL_SIZE = int(os.getenv("DB_POOL_SIZE", "10"))  # Number of connections to maintain
POOL_MAX_OVERFLOW = int(
    os.getenv("DB_POOL_MAX_OVERFLOW", "20")
)  # Max extra connections when pool exhausted
POOL_TIMEOUT = int(
    os.getenv("DB_POOL_TIMEOUT", "30")
)  # Seconds to wait for available connection
POOL_RECYCLE = int(
    os.getenv("DB_POOL_RECYCLE", "3600")
)  # Recycle connections after 1 hour
POOL_PRE_PING = os.getenv("DB_POOL_PRE_PING", "True").lower() in (
    "true",
    "1",
    "yes",
)  # Test connections before use

if DATABASE_URL.startswith("sqlite"):
    # SQLite does not support the queue pool sizing arguments
    engine = create_engine(
        DATABASE_URL, echo=DEBUG, connect_args={"check_same_thread": False}
    )
else:
    engine = create_engine(
        DATABASE_URL,
        echo=DEBUG,  # Only log SQL queries in debug mode
        poolclass=QueuePool,
        pool_size=POOL_SIZE,
        max_overflow=POOL_MAX_OVERFLOW,
        pool_timeout=POOL_TIMEOUT,
        pool_recycle=POOL_RECYCLE,
        pool_pre_ping=POOL_PRE_PING,  # Verify connections are alive before using them
    )

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class Base(DeclarativeBase):
    """
    SQLAlchemy 2.0 declarative base class with type annotation support.

    Using DeclarativeBase instead of declarative_base() enables proper
    type checking for model attributes when using Mapped[] annotations.
    """

    pass


def get_db() -> Generator[Session, None, None]:
    """
    Dependency function to get a database session.

    Yields a session and ensures it is rolled back on error and closed
    afterwards.
    """
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
