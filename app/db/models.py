"""
Database Models for URL Shortener Service

This module defines the SQLModel database schema for:
- ShortLink: Stores the mapping between short codes and target URLs

Design Decisions:
- Opaque uuid4 primary key, independent from the short code
- Unique index on code: the storage layer is the authority on uniqueness
- Index on expires_at for the expiration sweep
- Index on owner_id for "my links" listings
- click_count denormalized on the row (updated asynchronously)
- Timestamps are naive UTC (see app.core.clock)
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Integer, String, Text
from sqlmodel import Column, Field, SQLModel

from app.core.clock import utc_now


def new_link_id() -> str:
    """Opaque record identifier (not the short code)."""
    return uuid.uuid4().hex


class ShortLink(SQLModel, table=True):
    """
    Main table storing URL shortening mappings.

    Fields:
    - id: Opaque unique identifier, assigned at creation
    - code: Unique short code (generated or caller-supplied)
    - target_url: The long URL that was shortened
    - title: Optional display title
    - owner_id: User that created the link (None for anonymous links)
    - click_count: Eventually consistent redirect counter
    - expires_at: When the link stops resolving (None = never)
    - created_at / updated_at: Creation time and last mutation (click) time
    """
    __tablename__ = "short_links"

    id: str = Field(
        default_factory=new_link_id,
        sa_column=Column(String(32), primary_key=True)
    )
    code: str = Field(
        sa_column=Column(String(32), nullable=False, unique=True, index=True),
        max_length=32
    )
    target_url: str = Field(sa_column=Column(Text, nullable=False))
    title: Optional[str] = Field(
        default=None,
        sa_column=Column(String(200), nullable=True)
    )
    owner_id: Optional[str] = Field(
        default=None,
        sa_column=Column(String(64), nullable=True, index=True)
    )
    click_count: int = Field(default=0, sa_column=Column(Integer, nullable=False, default=0))
    expires_at: Optional[datetime] = Field(
        default=None,
        sa_column=Column(DateTime, nullable=True, index=True)
    )
    created_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(DateTime, nullable=False, index=True)
    )
    updated_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(DateTime, nullable=False)
    )

    def short_url(self, base_url: str) -> str:
        """Public short URL for this link."""
        return f"{base_url.rstrip('/')}/{self.code}"
