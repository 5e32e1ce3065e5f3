"""
Hit Count Service

This service handles the per-URL hit counter.

Design Decisions:
- Uses a database-level UPDATE for the increment, so concurrent redirects
  never lose counts (no read-modify-write)
- The counter is the only analytics kept
"""

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from shortener.db.models import UrlMapping


class HitCountService:
    """Service for managing hit counts."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def increment_hit_count(self, short_code: str) -> None:
        """
        Increment the hit count for a short URL atomically.

        Note:
        - Silently does nothing if short_code doesn't exist
        - Commit is handled by the caller
        """
        statement = (
            update(UrlMapping)
            .where(UrlMapping.short_code == short_code)
            .values(hit_count=UrlMapping.hit_count + 1)
        )

        await self.session.execute(statement)

    async def get_hit_count(self, short_code: str) -> int:
        """
        Get the current hit count for a short URL.

        Returns:
            Hit count (0 if not found)
        """
        statement = select(UrlMapping.hit_count).where(UrlMapping.short_code == short_code)
        result = await self.session.execute(statement)
        count = result.scalar_one_or_none()
        return count if count is not None else 0
