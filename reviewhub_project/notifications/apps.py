from django.apps import AppConfig
from django.conf import settings
import os
import sys

MANAGEMENT_ENTRY_POINTS = ("manage.py", "django-admin")


class NotificationsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "notifications"

    def ready(self):
        # --------------------------------------------------
        # Start APScheduler SAFELY
        # --------------------------------------------------
        if not owns_scheduler():
            return

        from .scheduler import start_scheduler
        start_scheduler()


def owns_scheduler():
    """
    True only in the process that should run the reminder job.

    - runserver: the autoreloaded child (RUN_MAIN=true)
    - anything else: REMINDER_SCHEDULER_PROCESS must be set, and
      management commands (migrate, check, shell, ...) never start it
    """
    if os.environ.get("RUN_MAIN") == "true":
        return True

    if not getattr(settings, "REMINDER_SCHEDULER_PROCESS", False):
        return False

    entry_point = os.path.basename(sys.argv[0]) if sys.argv else ""
    return entry_point not in MANAGEMENT_ENTRY_POINTS
