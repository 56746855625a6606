"""
notifications/management/commands/send_review_reminders.py

Scheduled command: one reminder cycle over all ASSIGNED reviews.

Safe to run repeatedly: a reminder is only sent while its
notified_* flag is False, and the flag is set after sending.
"""

from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from notifications.services.reminders import send_review_deadline_reminders


class Command(BaseCommand):
    help = "Send 24h / 6h / overdue reminders for active review assignments"

    def handle(self, *args, **options):
        now = timezone.now()

        self.stdout.write(
            self.style.NOTICE(
                f"[{now:%Y-%m-%d %H:%M:%S}] Starting review reminder cycle"
            )
        )

        report = send_review_deadline_reminders()

        if not report.ok:
            raise CommandError(f"Reminder cycle failed: {report.error}")

        for outcome in report.outcomes:
            if outcome.failed:
                self.stderr.write(
                    f"  {outcome.event_type} for {outcome.assignment_id}: {outcome.error}"
                )

        style = self.style.SUCCESS if not report.failed else self.style.WARNING
        self.stdout.write(
            style(
                f"[{report.finished_at:%Y-%m-%d %H:%M:%S}] Completed: "
                f"{report.evaluated} evaluated, "
                f"{report.notified} notified, "
                f"{report.failed} failed"
            )
        )
