from datetime import datetime, timedelta
import logging
from zoneinfo import ZoneInfo

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from ..config import Settings, get_settings
from ..services import Services

logger = logging.getLogger(__name__)


def run_match_sweep(services: Services) -> int:
    results = services.matcher.sweep()
    formed = sum(len(result.formed_class_ids) for result in results)
    logger.info("Scheduled match sweep done", extra={"formed": formed})
    return formed


def send_class_reminders(services: Services, now: datetime | None = None) -> int:
    """Remind the members of every active class held tomorrow (local time)."""
    tz = ZoneInfo(services.settings.timezone)
    now = now.astimezone(tz) if now else datetime.now(tz)
    tomorrow = (now + timedelta(days=1)).strftime("%A")
    sent = 0
    for scheduled in services.roster.classes_on(tomorrow):
        outcomes = services.roster.send_reminder(scheduled.id)
        sent += len(outcomes)
        logger.info("Reminder for class", extra={"class_id": scheduled.id})
    return sent


def get_scheduler(
    settings: Settings | None = None, services: Services | None = None
) -> AsyncIOScheduler:
    settings = settings or get_settings()
    if services is None:
        from ..api.deps import get_services

        services = get_services()
    scheduler = AsyncIOScheduler(timezone=settings.timezone)
    scheduler.add_job(
        run_match_sweep,
        "interval",
        minutes=settings.match_sweep_minutes,
        args=[services],
        id="match_sweep",
    )
    scheduler.add_job(
        send_class_reminders,
        "cron",
        hour=settings.reminder_hour,
        args=[services],
        id="class_reminders",
    )
    return scheduler
