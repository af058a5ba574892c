"""
API Request and Response Schemas

This module defines all Pydantic models for API requests and responses.
Separated from endpoints to keep concerns separated and enable reuse.

Design Principles:
- Request models: Define input validation (shape and bounds only; URL
  scheme and code rules are enforced by the service layer)
- Response models: Define output structure
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from app.core.setting import settings
from app.db.models import ShortLink


class CreateLinkRequest(BaseModel):
    """Request model for link creation."""
    url: str = Field(..., min_length=1, description="The long URL to shorten (http/https)")
    custom_code: Optional[str] = Field(
        default=None,
        description="Requested short code (3-20 characters of [A-Za-z0-9_-])"
    )
    title: Optional[str] = Field(default=None, max_length=200)
    expires_in_hours: Optional[int] = Field(
        default=None,
        gt=0,
        le=settings.MAX_TTL_HOURS,
        description="Lifetime in hours; omit for a permanent link"
    )


class LinkResponse(BaseModel):
    """Response model describing one short link."""
    id: str
    code: str
    short_url: str = Field(..., description="The complete short URL")
    target_url: str
    title: Optional[str] = None
    click_count: int
    expires_at: Optional[datetime] = None
    created_at: datetime

    @classmethod
    def from_link(cls, link: ShortLink, base_url: str) -> "LinkResponse":
        return cls(
            id=link.id,
            code=link.code,
            short_url=link.short_url(base_url),
            target_url=link.target_url,
            title=link.title,
            click_count=link.click_count,
            expires_at=link.expires_at,
            created_at=link.created_at,
        )


class StatsResponse(BaseModel):
    """Response model for the aggregate statistics endpoint."""
    total_urls: int
    total_clicks: int
    avg_clicks: float


class ErrorResponse(BaseModel):
    """Body of every error produced by the service."""
    error: str
    detail: str
