"""
Redirect Service

This service handles URL redirection logic: lookup, expiration check and
hit counting.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from shortener.core.exceptions import ShortCodeExpiredError, ShortCodeNotFoundError
from shortener.services.hit_count_service import HitCountService
from shortener.services.url_service import URLShorteningService, is_expired

logger = logging.getLogger(__name__)


class RedirectService:
    """Service for handling URL redirections."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.url_service = URLShorteningService(session)
        self.hit_count_service = HitCountService(session)

    async def resolve(self, short_code: str) -> str:
        """
        Get the original URL for redirection and count the hit.

        Raises:
            ShortCodeNotFoundError: If no mapping has this code
            ShortCodeExpiredError: If the mapping's expiration has passed
        """
        mapping = await self.url_service.get_by_short_code(short_code)
        if mapping is None:
            raise ShortCodeNotFoundError(short_code)

        if is_expired(mapping):
            logger.info(f"Expired short code requested: {short_code}")
            raise ShortCodeExpiredError(short_code)

        await self.hit_count_service.increment_hit_count(short_code)
        await self.session.commit()
        return mapping.long_url
