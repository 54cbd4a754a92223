import asyncio
import logging
from datetime import date, timedelta
from typing import Optional
from app.config import settings
from app.database.supabase_client import get_service_supabase
from app.modules.events.service import EventService

logger = logging.getLogger(__name__)


def archive_cutoff(today: Optional[date] = None) -> date:
    """Events dated before this day are over"""
    return (today or date.today()) - timedelta(days=settings.archive_after_days)


async def archive_finished_events() -> int:
    """Archive events whose date is older than the configured number of days"""
    try:
        service = EventService(get_service_supabase())
        cutoff = archive_cutoff()
        archived = service.archive_past_events(cutoff)
        if archived:
            logger.info(f"Archived {archived} event(s) dated before {cutoff.isoformat()}")
        else:
            logger.debug("No finished events to archive")
        return archived
    except Exception as e:
        logger.error(f"Error in archive scheduler: {str(e)}")
        return 0


async def archive_scheduler_loop():
    """Background task that periodically archives finished events"""
    while True:
        try:
            await archive_finished_events()
        except Exception as e:
            logger.error(f"Error in archive scheduler loop: {str(e)}")

        await asyncio.sleep(settings.archive_scheduler_interval_sec)
