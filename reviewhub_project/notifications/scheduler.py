from apscheduler.schedulers.background import BackgroundScheduler
from django.conf import settings
from django.utils import timezone
import logging

from notifications.services.reminders import send_review_deadline_reminders

logger = logging.getLogger(__name__)

# ============================================================
# GLOBAL SAFETY LOCK
# Prevents scheduler from starting more than once
# ============================================================
_scheduler = None


def start_scheduler():
    """
    Start APScheduler safely.

    - Respects ENABLE_SCHEDULER setting
    - Prevents double start (Django autoreload, imports)
    - One job, never overlapping itself
    """
    global _scheduler

    if not getattr(settings, "ENABLE_SCHEDULER", False):
        logger.info("APScheduler disabled via settings (ENABLE_SCHEDULER=False)")
        return None

    if _scheduler is not None:
        logger.info("APScheduler already running, skipping initialization")
        return _scheduler

    interval = settings.REMINDER_INTERVAL_MINUTES
    logger.info("Starting APScheduler...")

    _scheduler = BackgroundScheduler(
        timezone=settings.TIME_ZONE
    )

    _scheduler.add_job(
        run_review_reminders,
        trigger="interval",
        minutes=interval,
        id="send_review_reminders",
        replace_existing=True,
        max_instances=1,      # Cycles must not overlap
        coalesce=True,        # Merge missed runs if server was down
    )

    _scheduler.start()

    logger.info(
        "APScheduler started: review reminders scheduled every %s minutes",
        interval,
    )
    return _scheduler


def stop_scheduler():
    global _scheduler

    if _scheduler is None:
        return

    _scheduler.shutdown(wait=False)
    _scheduler = None
    logger.info("APScheduler stopped")


def run_review_reminders():
    """
    Job body. Keeps all business logic in the service layer;
    failures come back as a failed report and are logged here.
    """
    now = timezone.now()
    logger.info(f"Running scheduled review reminders at {now:%Y-%m-%d %H:%M:%S}")

    report = send_review_deadline_reminders()
    if not report.ok:
        logger.error("Scheduled review reminder cycle failed: %s", report.error)
    return report
