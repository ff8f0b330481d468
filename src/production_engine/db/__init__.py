"""Database layer."""

from production_engine.db.models import Base
from production_engine.db.session import SessionLocal, engine, get_session, get_session_context

__all__ = ["Base", "SessionLocal", "engine", "get_session", "get_session_context"]
