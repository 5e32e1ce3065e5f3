"""
Database Models for URL Shortener Service

This module defines the SQLModel database schema for:
- UrlMapping: Stores the mapping between short codes and original URLs

Design Decisions:
- UUID primary key, so ids exposed through the API are not guessable
- Unique index on short_code: fast lookups and the final guard against two
  requests storing the same code
- hit_count denormalized on the row and incremented with a single UPDATE
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, Integer, String, Text
from sqlmodel import Column, Field, SQLModel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UrlMapping(SQLModel, table=True):
    """
    Main table storing URL shortening mappings.

    Fields:
    - id: UUID primary key
    - short_code: Unique short code (generated or custom)
    - long_url: The URL that was shortened
    - created_at: Timestamp when URL was shortened
    - expires_at: Optional timestamp after which redirects return 410
    - hit_count: Number of successful redirects
    - owner_ip: IP address of the client that created the mapping

    Indexes:
    - short_code: Unique index for fast lookups (most critical path)
    - created_at: For listing newest first
    """
    __tablename__ = "url_mappings"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    short_code: str = Field(
        sa_column=Column(String(32), nullable=False, unique=True, index=True)
    )
    long_url: str = Field(sa_column=Column(Text, nullable=False))
    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False, index=True)
    )
    expires_at: Optional[datetime] = Field(
        default=None,
        sa_column=Column(DateTime(timezone=True), nullable=True)
    )
    hit_count: int = Field(default=0, sa_column=Column(Integer, nullable=False, default=0))
    owner_ip: Optional[str] = Field(
        default=None,
        sa_column=Column(String(45), nullable=True)  # IPv6 max length
    )
