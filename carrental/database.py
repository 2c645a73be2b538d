"""
Database connection, session management, and table creation.
Uses SQLAlchemy with PostgreSQL (SQLite works for local runs and tests).
All models are auto-imported here so create_tables() creates every table in one call.
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from carrental.config import settings

if settings.DATABASE_URL.startswith("sqlite"):
    engine = create_engine(
        settings.DATABASE_URL,
        connect_args={"check_same_thread": False},
        echo=False,
    )
else:
    engine = create_engine(
        settings.DATABASE_URL,
        pool_pre_ping=True,          # Auto-reconnect if DB connection drops
        pool_size=10,
        max_overflow=20,
        echo=False,                  # Set True to log all SQL queries (debug only)
    )

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """FastAPI dependency: yields a DB session and closes it after request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables():
    """
    Creates all DB tables on startup. Safe to call multiple times.
    Import all models here so SQLAlchemy knows about them.
    """
    from carrental.models.user import User            # noqa
    from carrental.models.vehicle import Vehicle      # noqa
    from carrental.models.driver import Driver        # noqa
    from carrental.models.customer import Customer    # noqa
    from carrental.models.booking import Booking      # noqa
    from carrental.models.expense import Expense      # noqa

    Base.metadata.create_all(bind=engine)
