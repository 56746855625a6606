from datetime import timedelta
from io import StringIO
from unittest import mock
import os
import sys

from django.apps import apps
from django.contrib.auth import get_user_model
from django.core import mail
from django.core.management import call_command
from django.core.management.base import CommandError
from django.db import DatabaseError
from django.test import SimpleTestCase, TestCase, override_settings
from django.urls import reverse_lazy
from django.utils import timezone

from notifications import scheduler as reminder_scheduler
from notifications.services.reminders import send_review_deadline_reminders
from notifications.services.reminders.store import DjangoAssignmentStore
from reviews.models import ReviewAssignment
from reviews.services import create_review_assignment, update_assignment_status


REFUSING = "notifications.tests.fakes.RefusingNotifier"
MISSING = "notifications.tests.fakes.MissingNotifier"


class ReminderFixtureMixin:
    @classmethod
    def setUpTestData(cls):
        cls.reviewer = get_user_model().objects.create_user(
            username="ada", email="ada@example.com", name="Ada Reviewer",
        )

    def make_assignment(self, hours, minutes=1):
        # A minute past the hour keeps the rounded value stable during the test
        return create_review_assignment(
            self.reviewer,
            due_at=timezone.now() + timedelta(hours=hours, minutes=minutes),
        )


@override_settings(
    EMAIL_BACKEND="django.core.mail.backends.locmem.EmailBackend",
    REMINDER_MAX_WORKERS=2,
    REMINDER_SEND_TIMEOUT_SECONDS=10,
)
class SendReviewDeadlineRemindersTests(ReminderFixtureMixin, TestCase):
    def test_cycle_against_database(self):
        due_tomorrow = self.make_assignment(24)
        due_soon = self.make_assignment(6)
        overdue = self.make_assignment(-3)
        later = self.make_assignment(72)
        finished = self.make_assignment(24)
        update_assignment_status(finished, ReviewAssignment.Status.APPROVED)

        report = send_review_deadline_reminders()

        self.assertTrue(report.ok)
        self.assertEqual((report.evaluated, report.notified, report.failed), (4, 3, 0))
        self.assertEqual(
            sorted(message.subject for message in mail.outbox),
            [
                "Notice: your review is overdue",
                "Reminder: your review is due in 24 hours",
                "Reminder: your review is due in 6 hours",
            ],
        )

        for assignment in (due_tomorrow, due_soon, overdue, later, finished):
            assignment.refresh_from_db()
        self.assertTrue(due_tomorrow.notified_24h)
        self.assertTrue(due_soon.notified_6h)
        self.assertTrue(overdue.notified_overdue)
        self.assertFalse(overdue.notified_24h or overdue.notified_6h)
        self.assertFalse(later.notified_24h or later.notified_6h or later.notified_overdue)
        self.assertFalse(finished.notified_24h)

    def test_second_cycle_sends_nothing(self):
        self.make_assignment(24)
        self.make_assignment(-1)

        send_review_deadline_reminders()
        second = send_review_deadline_reminders()

        self.assertEqual((second.evaluated, second.attempted), (2, 0))
        self.assertEqual(len(mail.outbox), 2)

    @override_settings(REMINDER_NOTIFIER=REFUSING)
    def test_failed_send_keeps_flag_unset(self):
        assignment = self.make_assignment(24)

        report = send_review_deadline_reminders()

        self.assertEqual((report.notified, report.failed), (0, 1))
        assignment.refresh_from_db()
        self.assertFalse(assignment.notified_24h)

    @override_settings(REMINDER_NOTIFIER=MISSING)
    def test_bad_notifier_setting_fails_cycle(self):
        self.make_assignment(24)

        with self.assertLogs("notifications", level="ERROR"):
            report = send_review_deadline_reminders()

        self.assertFalse(report.ok)
        self.assertIn("configuration error", report.error)
        self.assertEqual(report.attempted, 0)
        self.assertEqual(mail.outbox, [])


@override_settings(EMAIL_BACKEND="django.core.mail.backends.locmem.EmailBackend")
class SendReviewRemindersCommandTests(ReminderFixtureMixin, TestCase):
    def test_command_reports_summary(self):
        self.make_assignment(6)
        out = StringIO()

        call_command("send_review_reminders", stdout=out, stderr=StringIO())

        self.assertIn("Completed: 1 evaluated, 1 notified, 0 failed", out.getvalue())
        self.assertEqual(len(mail.outbox), 1)

    @override_settings(REMINDER_NOTIFIER=REFUSING)
    def test_command_lists_failures(self):
        assignment = self.make_assignment(6)
        out, err = StringIO(), StringIO()

        call_command("send_review_reminders", stdout=out, stderr=err)

        self.assertIn("1 failed", out.getvalue())
        self.assertIn(str(assignment.pk), err.getvalue())

    def test_command_fails_when_store_is_down(self):
        with mock.patch.object(
            DjangoAssignmentStore, "list_active", side_effect=DatabaseError("connection refused"),
        ):
            with self.assertRaisesMessage(CommandError, "connection refused"):
                call_command("send_review_reminders", stdout=StringIO())

    @override_settings(REMINDER_NOTIFIER=MISSING)
    def test_command_fails_on_bad_notifier_setting(self):
        with self.assertLogs("notifications", level="ERROR"):
            with self.assertRaisesMessage(CommandError, "configuration error"):
                call_command("send_review_reminders", stdout=StringIO())


@override_settings(
    EMAIL_BACKEND="django.core.mail.backends.locmem.EmailBackend",
    REMINDER_TRIGGER_TOKEN="s3cret",
)
class RunReviewRemindersViewTests(ReminderFixtureMixin, TestCase):
    url = reverse_lazy("notifications:run-review-reminders")

    def post(self, token="s3cret"):
        return self.client.post(self.url, HTTP_X_SCHEDULER_TOKEN=token)

    def test_runs_cycle(self):
        self.make_assignment(24)

        response = self.post()

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertTrue(body["success"])
        self.assertEqual(body["report"]["notified"], 1)
        self.assertEqual(body["report"]["outcomes"][0]["event_type"], "reviewer_24hr_reminder")

    def test_rejects_bad_token(self):
        self.make_assignment(24)

        response = self.post(token="wrong")

        self.assertEqual(response.status_code, 401)
        self.assertEqual(mail.outbox, [])

    def test_get_not_allowed(self):
        response = self.client.get(self.url, HTTP_X_SCHEDULER_TOKEN="s3cret")
        self.assertEqual(response.status_code, 405)

    @override_settings(REMINDER_TRIGGER_TOKEN="")
    def test_disabled_without_token(self):
        self.assertEqual(self.post(token="").status_code, 404)

    def test_store_failure_returns_500(self):
        with mock.patch.object(
            DjangoAssignmentStore, "list_active", side_effect=DatabaseError("connection refused"),
        ):
            response = self.post()

        self.assertEqual(response.status_code, 500)
        body = response.json()
        self.assertFalse(body["success"])
        self.assertIn("connection refused", body["error"])

    @override_settings(REMINDER_NOTIFIER=MISSING)
    def test_bad_notifier_setting_returns_json_500(self):
        with self.assertLogs("notifications", level="ERROR"):
            response = self.post()

        self.assertEqual(response.status_code, 500)
        body = response.json()
        self.assertFalse(body["success"])
        self.assertIn("configuration error", body["error"])


class StartSchedulerTests(TestCase):
    def tearDown(self):
        reminder_scheduler._scheduler = None

    @override_settings(ENABLE_SCHEDULER=False)
    def test_disabled_by_setting(self):
        with mock.patch.object(reminder_scheduler, "BackgroundScheduler") as background:
            self.assertIsNone(reminder_scheduler.start_scheduler())
        background.assert_not_called()

    @override_settings(ENABLE_SCHEDULER=True, REMINDER_INTERVAL_MINUTES=30, TIME_ZONE="UTC")
    def test_registers_single_non_overlapping_job(self):
        with mock.patch.object(reminder_scheduler, "BackgroundScheduler") as background:
            first = reminder_scheduler.start_scheduler()
            second = reminder_scheduler.start_scheduler()

        self.assertIs(first, second)
        background.assert_called_once_with(timezone="UTC")
        instance = background.return_value
        instance.add_job.assert_called_once_with(
            reminder_scheduler.run_review_reminders,
            trigger="interval",
            minutes=30,
            id="send_review_reminders",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        instance.start.assert_called_once_with()

    def test_job_logs_cycle_failure(self):
        with mock.patch.object(
            DjangoAssignmentStore, "list_active", side_effect=DatabaseError("connection refused"),
        ):
            with self.assertLogs("notifications.scheduler", level="ERROR"):
                report = reminder_scheduler.run_review_reminders()

        self.assertFalse(report.ok)


@override_settings(ENABLE_SCHEDULER=True)
class SchedulerOwnershipTests(SimpleTestCase):
    def run_ready(self, argv, run_main=None):
        environ = {key: value for key, value in os.environ.items() if key != "RUN_MAIN"}
        if run_main:
            environ["RUN_MAIN"] = run_main

        with mock.patch.dict(os.environ, environ, clear=True), \
                mock.patch.object(sys, "argv", argv), \
                mock.patch.object(reminder_scheduler, "start_scheduler") as start:
            apps.get_app_config("notifications").ready()
        return start

    def test_management_commands_do_not_start_scheduler(self):
        for command in ("check", "migrate", "send_review_reminders", "test"):
            with self.subTest(command=command):
                self.run_ready(["manage.py", command]).assert_not_called()

    @override_settings(REMINDER_SCHEDULER_PROCESS=True)
    def test_opted_in_management_command_still_skips(self):
        self.run_ready(["manage.py", "migrate"]).assert_not_called()

    def test_runserver_parent_skips(self):
        self.run_ready(["manage.py", "runserver"]).assert_not_called()

    def test_runserver_child_starts(self):
        self.run_ready(["manage.py", "runserver"], run_main="true").assert_called_once_with()

    def test_server_worker_needs_opt_in(self):
        self.run_ready(["gunicorn", "reviewhub_project.wsgi"]).assert_not_called()

    @override_settings(REMINDER_SCHEDULER_PROCESS=True)
    def test_opted_in_server_worker_starts(self):
        self.run_ready(["gunicorn", "reviewhub_project.wsgi"]).assert_called_once_with()
