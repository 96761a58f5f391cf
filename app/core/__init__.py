"""Core app configuration and database."""

from app.core.config import Settings, get_settings
from app.core.database import build_engine, build_session_factory, get_db, session_scope

__all__ = [
    "Settings",
    "build_engine",
    "build_session_factory",
    "get_db",
    "get_settings",
    "session_scope",
]
