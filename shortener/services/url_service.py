"""
URL Shortening Service

This service handles the core business logic for URL shortening:
- Validating URLs
- Assigning a short code (custom or generated)
- Creating, listing, updating and deleting mappings

Design Decisions:
- Random codes checked against the database (see code_generator) instead of
  counter-based ids, so codes are not enumerable
- The unique index on short_code is the final arbiter: a conflicting insert
  of a generated code is retried with a new code a bounded number of times
- URL validation: only absolute http(s) URLs with a real host are accepted
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Optional, Sequence
from urllib.parse import urlparse

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from shortener.core.exceptions import (
    CodeAlreadyExists,
    DatabaseError,
    GenerationExhausted,
    InvalidURLError,
)
from shortener.core.setting import settings
from shortener.core.validators import validate_url_length
from shortener.db.models import UrlMapping, utcnow
from shortener.db.session import db_adapter
from shortener.services import code_generator

logger = logging.getLogger(__name__)

_NOT_SET = object()


def is_valid_url(url: str) -> bool:
    """
    Validate URL format and security.

    Checks that URL uses http/https, has valid domain, and doesn't contain
    malicious patterns. Prevents javascript:, file:, and other dangerous schemes.

    Args:
        url: The URL string to validate

    Returns:
        True if valid and safe, False otherwise
    """
    if not url or not isinstance(url, str):
        return False

    if not validate_url_length(url):
        return False

    try:
        result = urlparse(url)

        if not result.scheme or not result.netloc:
            return False

        allowed_schemes = {'http', 'https'}
        if result.scheme.lower() not in allowed_schemes:
            return False

        domain = result.hostname or ''
        if domain != 'localhost' and '.' not in domain:
            return False

        malicious_patterns = ['javascript:', 'data:', 'file:', 'vbscript:']
        url_lower = url.lower()
        if any(pattern in url_lower for pattern in malicious_patterns):
            return False

        return True
    except ValueError:
        return False


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes (SQLite drops tzinfo) as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def is_expired(mapping: UrlMapping, now: Optional[datetime] = None) -> bool:
    expires_at = as_utc(mapping.expires_at)
    if expires_at is None:
        return False
    return expires_at < (now or utcnow())


class URLShorteningService:
    """
    Core business logic for URL shortening.

    Handles URL validation, code assignment and database operations.
    Separated from API layer for testability and maintainability.
    """

    def __init__(
        self,
        session: AsyncSession,
        code_length: Optional[int] = None,
        primary_attempts: Optional[int] = None,
        insert_attempts: Optional[int] = None,
    ):
        self.session = session
        self.code_length = code_length or settings.SHORT_CODE_LENGTH
        self.primary_attempts = primary_attempts or settings.SHORT_CODE_PRIMARY_ATTEMPTS
        self.insert_attempts = insert_attempts or settings.SHORT_CODE_INSERT_ATTEMPTS

    async def code_exists(self, short_code: str) -> bool:
        """Uniqueness check used for both generated and custom codes."""
        statement = select(UrlMapping.id).where(UrlMapping.short_code == short_code).limit(1)
        result = await self.session.execute(statement)
        return result.first() is not None

    async def create_short_url(
        self,
        long_url: str,
        custom_code: Optional[str] = None,
        expires_at: Optional[datetime] = None,
        owner_ip: Optional[str] = None,
    ) -> UrlMapping:
        """
        Create a new short URL.

        Args:
            long_url: The URL to shorten
            custom_code: Caller-chosen code; skips generation when given
            expires_at: Optional expiration time
            owner_ip: Address of the creating client

        Returns:
            The stored UrlMapping

        Raises:
            InvalidURLError: If URL format is invalid
            CodeAlreadyExists: If custom_code is taken
            GenerationExhausted: If generated codes kept conflicting on insert
            DatabaseError: If database operation fails
        """
        if not is_valid_url(long_url):
            raise InvalidURLError(
                long_url,
                reason="Invalid URL format. URL must use http:// or https:// and have a valid domain"
            )

        if custom_code:
            await code_generator.ensure_code_available(custom_code, self.code_exists)
            return await self._insert(custom_code, long_url, expires_at, owner_ip)

        for attempt in range(1, self.insert_attempts + 1):
            short_code = await code_generator.generate_unique_code(
                self.code_exists,
                length=self.code_length,
                primary_attempts=self.primary_attempts,
            )
            try:
                return await self._insert(short_code, long_url, expires_at, owner_ip)
            except CodeAlreadyExists:
                logger.warning(
                    f"Generated short code '{short_code}' was taken concurrently "
                    f"(attempt {attempt}/{self.insert_attempts})"
                )

        raise GenerationExhausted(self.insert_attempts)

    async def _insert(
        self,
        short_code: str,
        long_url: str,
        expires_at: Optional[datetime],
        owner_ip: Optional[str],
    ) -> UrlMapping:
        mapping = UrlMapping(
            short_code=short_code,
            long_url=long_url,
            expires_at=as_utc(expires_at),
            owner_ip=owner_ip,
        )
        self.session.add(mapping)
        try:
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            if db_adapter.is_unique_violation(e):
                raise CodeAlreadyExists(short_code) from e
            raise DatabaseError("Failed to create short URL: database constraint violation", original_error=e)
        except Exception as e:
            await self.session.rollback()
            raise DatabaseError(f"Failed to create short URL: {str(e)}", original_error=e)

        await self.session.refresh(mapping)
        return mapping

    async def get_by_short_code(self, short_code: str) -> Optional[UrlMapping]:
        statement = select(UrlMapping).where(UrlMapping.short_code == short_code)
        result = await self.session.execute(statement)
        return result.scalar_one_or_none()

    async def get_by_id(self, mapping_id: uuid.UUID) -> Optional[UrlMapping]:
        return await self.session.get(UrlMapping, mapping_id)

    async def list_urls(self, skip: int = 0, take: int = 100) -> Sequence[UrlMapping]:
        """Mappings ordered newest first."""
        statement = (
            select(UrlMapping)
            .order_by(UrlMapping.created_at.desc())
            .offset(skip)
            .limit(take)
        )
        result = await self.session.execute(statement)
        return result.scalars().all()

    async def update_url(
        self,
        mapping_id: uuid.UUID,
        long_url: Optional[str] = None,
        expires_at=_NOT_SET,
    ) -> Optional[UrlMapping]:
        """
        Change the target URL and/or the expiration of a mapping.

        The short code never changes. Passing expires_at=None clears the
        expiration; omitting it keeps the current value.

        Returns:
            The updated mapping, or None if no mapping has this id
        """
        mapping = await self.get_by_id(mapping_id)
        if mapping is None:
            return None

        if long_url:
            if not is_valid_url(long_url):
                raise InvalidURLError(long_url)
            mapping.long_url = long_url

        if expires_at is not _NOT_SET:
            mapping.expires_at = as_utc(expires_at)

        self.session.add(mapping)
        await self.session.commit()
        await self.session.refresh(mapping)
        return mapping

    async def delete_url(self, mapping_id: uuid.UUID) -> bool:
        mapping = await self.get_by_id(mapping_id)
        if mapping is None:
            return False
        await self.session.delete(mapping)
        await self.session.commit()
        return True
