"""
Background Task Helpers

Sinks used by background workers. Each call creates its own database
session since the request's session is closed once the response is sent.
"""

import logging

from shortener.db.session import async_session_maker
from shortener.services.click_log import ClickLogService
from shortener.services.click_recorder import ClickEvent

logger = logging.getLogger(__name__)


async def record_click_background(event: ClickEvent) -> None:
    """
    Persist a click event for the ClickRecorder worker.

    Errors propagate to the worker, which logs and drops the event.
    """
    async with async_session_maker() as session:
        click_log = ClickLogService(session)
        await click_log.append(event)
        await session.commit()
    logger.debug(f"Recorded click for URL {event.url_id}")
