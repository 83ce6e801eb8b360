"""
Click Log Service

This service persists clicks and reads them back for analytics.

Design Decisions:
- Append-only writes, one row per click
- Called from the click recorder's worker with its own session, never from
  the request's session
- Aggregates (total, unique visitors, last click) are computed in SQL
"""

from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from shortener.db.models import Click
from shortener.services.click_recorder import ClickEvent


class ClickLogService:
    """
    Service for logging and querying URL clicks.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def append(self, event: ClickEvent) -> Click:
        """
        Persist one click event.

        Commit is handled by the caller.
        """
        click = Click(
            url_id=event.url_id,
            ip_address=event.ip_address,
            user_agent=event.user_agent,
            referrer=event.referrer,
            device=event.device,
            os=event.os,
            browser=event.browser,
            clicked_at=event.clicked_at,
        )
        self.session.add(click)
        await self.session.flush()
        return click

    async def recent_clicks(self, url_id: int, limit: int = 1000) -> List[Click]:
        statement = (
            select(Click)
            .where(Click.url_id == url_id)
            .order_by(Click.clicked_at.desc(), Click.id.desc())
            .limit(limit)
        )
        result = await self.session.execute(statement)
        return list(result.scalars().all())

    async def aggregate(self, url_id: int) -> Tuple[int, int, Optional[datetime]]:
        """
        Returns:
            (total_clicks, unique_clicks, last_clicked) where unique_clicks
            counts distinct IP addresses
        """
        statement = select(
            func.count(Click.id),
            func.count(func.distinct(Click.ip_address)),
            func.max(Click.clicked_at),
        ).where(Click.url_id == url_id)
        result = await self.session.execute(statement)
        total, unique, last_clicked = result.one()
        return total or 0, unique or 0, last_clicked
