"""Database package."""
from elections.db.session import engine, SessionLocal, get_db
from elections.db.base import Base

__all__ = ["engine", "SessionLocal", "get_db", "Base"]
