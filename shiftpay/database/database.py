# shiftpay/database/database.py
"""
SQLAlchemy database setup and models.
"""

from datetime import datetime

from sqlalchemy import JSON, Boolean, Column, DateTime, Integer, String, create_engine
from sqlalchemy.ext.declarative import declarative_base
from sqlalchemy.orm import sessionmaker

from shiftpay.core.config import DATABASE_URL, DEFAULT_PROFILE

_connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(DATABASE_URL, connect_args=_connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


class ConfigOverride(Base):
    """User overrides of the reference rate table, one row per profile."""

    __tablename__ = "config_overrides"

    id = Column(Integer, primary_key=True, index=True)
    profile = Column(String(50), unique=True, nullable=False, index=True, default=DEFAULT_PROFILE)
    overrides = Column(JSON, default=dict)  # {"rates": {"base_hourly_rate": 13.5}}
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class CalendarFeed(Base):
    """Saved calendar feed and the shifts the user has switched off."""

    __tablename__ = "calendar_feeds"

    id = Column(Integer, primary_key=True, index=True)
    profile = Column(String(50), unique=True, nullable=False, index=True, default=DEFAULT_PROFILE)
    url = Column(String(2048), nullable=True)
    shifts = Column(JSON, default=list)  # last imported shifts, ImportedShift dumps
    disabled_shift_ids = Column(JSON, default=list)  # ["shift-1741075200", ...]
    used_proxy = Column(Boolean, default=False, nullable=False)
    last_fetched_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


def create_tables():
    """Create all database tables."""
    Base.metadata.create_all(bind=engine)


def get_db():
    """Dependency for getting database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
