"""
notifications/services/reminders/notifier.py

Outbound delivery for review reminders.
"""

import logging
from typing import Any, Mapping, Protocol

from django.conf import settings
from django.core.mail import EmailMessage
from django.utils.module_loading import import_string

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    def send(self, recipient_address: str, event_type: str, payload: Mapping[str, Any]) -> bool:
        """Deliver one reminder. False or an exception means failure."""
        ...


# ============================================================
# EMAIL (DJANGO MAIL BACKEND)
# ============================================================

EMAIL_SUBJECTS = {
    "reviewer_24hr_reminder": "Reminder: your review is due in 24 hours",
    "reviewer_6hr_reminder": "Reminder: your review is due in 6 hours",
    "review_overdue_reminder": "Notice: your review is overdue",
}


class EmailNotifier:
    """
    Sends reminders through the configured Django EMAIL_BACKEND.
    Backend errors are raised, never silenced.
    """

    def __init__(self, from_email=None):
        self.from_email = from_email or settings.DEFAULT_FROM_EMAIL

    def send(self, recipient_address, event_type, payload):
        if not recipient_address:
            logger.warning(
                "No e-mail address for assignment %s; %s not sent.",
                payload.get("assignment_id"), event_type,
            )
            return False

        try:
            subject = EMAIL_SUBJECTS[event_type]
        except KeyError:
            raise ValueError(f"Unknown reminder event type: {event_type}") from None

        body = (
            f"Hello {payload.get('reviewer_name') or 'reviewer'},\n\n"
            f"Assignment: {payload.get('assignment_id')}\n"
            f"Due: {payload.get('due_date')}\n"
        )

        headers = {}
        if payload.get("idempotency_key"):
            headers["X-Reminder-Key"] = payload["idempotency_key"]

        message = EmailMessage(
            subject=subject,
            body=body,
            from_email=self.from_email,
            to=[recipient_address],
            headers=headers,
        )
        return message.send(fail_silently=False) == 1


def load_notifier():
    """Instantiate the notifier class named by settings.REMINDER_NOTIFIER."""
    return import_string(settings.REMINDER_NOTIFIER)()
