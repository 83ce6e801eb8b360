"""
Statistics Service

This service handles retrieving click statistics for short URLs.
Separated from URL service so analytics can move to its own store later.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from shortener.services.click_log import ClickLogService


class StatsService:
    """
    Service for retrieving URL statistics.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.click_log = ClickLogService(session)

    async def get_stats(self, url_id: int) -> dict:
        """
        Get aggregate statistics for a short URL.

        Returns:
            Dictionary with statistics:
            - url_id: The URL the numbers belong to
            - total_clicks: Every recorded click
            - unique_clicks: Distinct visitor IP addresses
            - last_clicked: Time of the most recent click, or None
        """
        total, unique, last_clicked = await self.click_log.aggregate(url_id)
        return {
            "url_id": url_id,
            "total_clicks": total,
            "unique_clicks": unique,
            "last_clicked": _isoformat(last_clicked),
        }


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None
