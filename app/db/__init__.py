"""
Database module.

This module provides:
- ShortLink: the SQLModel table for short links
- ShortLinkRepository: the store operations the services rely on
- Session management: engine, session factory and the FastAPI dependency
"""

from app.db.models import ShortLink
from app.db.repository import LinkStats, ShortLinkRepository
from app.db.session import async_session_maker, engine, get_session, init_db

__all__ = [
    "ShortLink",
    "ShortLinkRepository",
    "LinkStats",
    "get_session",
    "async_session_maker",
    "engine",
    "init_db",
]
