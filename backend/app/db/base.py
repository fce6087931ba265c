# backend/app/db/base.py
"""
SQLAlchemy declarative base, plus re-exports of the engine and session
helpers so models and scripts have a single import point.
"""
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all ORM models (otp codes, backups, sessions, ledger)."""
    pass


from backend.app.db.session import (  # noqa: E402
    engine,
    AsyncSessionLocal,
    get_db,
)

__all__ = [
    "Base",
    "engine",
    "AsyncSessionLocal",
    "get_db",
]
