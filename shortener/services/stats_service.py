"""
Statistics Service

This service handles retrieving statistics for short URLs.
Aggregates the mapping row with its hit counter.
"""

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from shortener.services.hit_count_service import HitCountService
from shortener.services.url_service import URLShorteningService, as_utc, is_expired


class StatsService:
    """Service for retrieving URL statistics."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.url_service = URLShorteningService(session)
        self.hit_count_service = HitCountService(session)

    async def get_stats(self, short_code: str) -> Optional[dict]:
        """
        Get statistics for a short URL.

        Returns:
            Dictionary with:
            - short_code: The short code
            - long_url: The original long URL
            - created_at / expires_at: ISO timestamps (expires_at may be None)
            - expired: Whether redirects currently return 410
            - hit_count: Total number of redirects

        Returns None if short code not found.
        """
        mapping = await self.url_service.get_by_short_code(short_code)

        if not mapping:
            return None

        hit_count = await self.hit_count_service.get_hit_count(short_code)
        expires_at = as_utc(mapping.expires_at)

        return {
            "short_code": mapping.short_code,
            "long_url": mapping.long_url,
            "created_at": as_utc(mapping.created_at).isoformat(),
            "expires_at": expires_at.isoformat() if expires_at else None,
            "expired": is_expired(mapping),
            "hit_count": hit_count,
        }
