"""
API Request and Response Schemas

This module defines all Pydantic models for API requests and responses.
Separated from endpoints to keep concerns separated and enable reuse.

Note: long_url is a plain string here; the URL service does the validation
so bad URLs get a 400 with a readable message rather than a 422.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from shortener.core.setting import settings
from shortener.db.models import UrlMapping
from shortener.services.url_service import as_utc


class CreateUrlRequest(BaseModel):
    """Request model for URL shortening endpoint."""
    long_url: str = Field(..., description="The long URL to shorten")
    custom_short_code: Optional[str] = Field(
        default=None,
        description="Optional custom short code (letters and digits, at most 20)"
    )
    expiration_utc: Optional[datetime] = Field(
        default=None,
        description="Optional expiration time; redirects return 410 afterwards"
    )


class UpdateUrlRequest(BaseModel):
    """Request model for updating a mapping. Omitted fields are left unchanged."""
    long_url: Optional[str] = None
    expiration_utc: Optional[datetime] = None


class UrlResponse(BaseModel):
    """A stored URL mapping."""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    short_code: str
    short_url: str = Field(..., description="The complete short URL")
    long_url: str
    created_at: datetime
    expires_at: Optional[datetime] = None
    hit_count: int

    @classmethod
    def from_mapping(cls, mapping: UrlMapping) -> "UrlResponse":
        return cls(
            id=mapping.id,
            short_code=mapping.short_code,
            short_url=f"{settings.BASE_URL}/r/{mapping.short_code}",
            long_url=mapping.long_url,
            created_at=as_utc(mapping.created_at),
            expires_at=as_utc(mapping.expires_at),
            hit_count=mapping.hit_count,
        )


class StatsResponse(BaseModel):
    """Response model for statistics endpoint."""
    short_code: str
    long_url: str
    created_at: str
    expires_at: Optional[str] = None
    expired: bool
    hit_count: int
