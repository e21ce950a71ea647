"""Cron-driven background task that runs the missed-quiz alert batch."""

import asyncio
import logging
import os
from datetime import datetime
from typing import Callable, Dict, Optional

import pytz
from dotenv import load_dotenv
from sqlalchemy.orm import Session

from famquiz.database.alert_repository import AlertRepository
from famquiz.database.database import SessionLocal
from famquiz.database.group_repository import GroupRepository
from famquiz.engine.cron import CronSchedule
from famquiz.integrations.line_messaging import LineMessagingClient
from famquiz.services.batch_service import BatchAlertService

load_dotenv()

logger = logging.getLogger(__name__)

QUIZ_ALERT_CRON_SCHEDULE = os.getenv("QUIZ_ALERT_CRON_SCHEDULE", "0 * * * *")
QUIZ_ALERT_TIMEZONE = os.getenv("QUIZ_ALERT_TIMEZONE", "Asia/Tokyo")
ENABLE_SCHEDULER = os.getenv("ENABLE_SCHEDULER", "true").lower() in ("1", "true", "yes")

_task: Optional[asyncio.Task] = None


def run_alert_pass(
    method_name: str,
    session_factory: Callable[[], Session] = SessionLocal,
    messenger: Optional[LineMessagingClient] = None,
) -> Dict[str, int]:
    """Run one batch pass in its own database session."""
    db = session_factory()
    try:
        service = BatchAlertService(
            alert_repository=AlertRepository(db),
            group_repository=GroupRepository(db),
            messenger=messenger or LineMessagingClient(),
        )
        return getattr(service, method_name)()
    finally:
        db.close()


def run_quiz_alert_job(session_factory: Callable[[], Session] = SessionLocal) -> None:
    """Both passes: family no-quiz alerts first, then grandparent reminders.

    A failing pass is logged and does not prevent the other one.
    """
    for method_name in ("check_and_send_quiz_alerts", "check_and_send_grandparent_quiz_reminders"):
        try:
            summary = run_alert_pass(method_name, session_factory)
            logger.info(f"{method_name}: {summary}")
        except Exception as e:
            logger.error(f"{method_name} failed: {type(e).__name__}: {str(e)}")


def seconds_until_next_run(schedule: CronSchedule, timezone, now: Optional[datetime] = None) -> float:
    """Seconds from `now` (aware) until the schedule next fires in `timezone`."""
    now = now or datetime.now(timezone)
    local_now = now.astimezone(timezone)
    next_run = timezone.localize(schedule.next_after(local_now.replace(tzinfo=None)))
    return max((next_run - local_now).total_seconds(), 0.0)


async def quiz_alert_scheduler(schedule: CronSchedule, timezone) -> None:
    """Sleep until each cron tick and run the job in a worker thread."""
    logger.info(f"Quiz alert scheduler running '{schedule.expression}' ({timezone})")
    while True:
        delay = seconds_until_next_run(schedule, timezone)
        logger.debug(f"Next quiz alert run in {delay:.0f}s")
        await asyncio.sleep(delay)
        try:
            await asyncio.to_thread(run_quiz_alert_job)
        except Exception as e:
            logger.error(f"Quiz alert job crashed: {type(e).__name__}: {str(e)}")


def start_quiz_alert_scheduler(
    expression: str = QUIZ_ALERT_CRON_SCHEDULE,
    timezone_name: str = QUIZ_ALERT_TIMEZONE,
) -> asyncio.Task:
    """Validate the schedule and start the loop on the running event loop.

    Raises:
        CronExpressionError: If the cron expression is invalid
        pytz.UnknownTimeZoneError: If the timezone is unknown
    """
    global _task
    schedule = CronSchedule(expression)
    timezone = pytz.timezone(timezone_name)
    _task = asyncio.create_task(quiz_alert_scheduler(schedule, timezone))
    return _task


async def stop_quiz_alert_scheduler() -> None:
    global _task
    if _task is None or _task.done():
        _task = None
        return
    _task.cancel()
    try:
        await _task
    except asyncio.CancelledError:
        logger.info("Quiz alert scheduler stopped")
    _task = None
