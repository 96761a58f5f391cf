"""SQLAlchemy declarative Base and shared column helpers."""

from datetime import UTC, datetime

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""

    pass


def utcnow() -> datetime:
    return datetime.now(UTC)
