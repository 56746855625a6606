"""
notifications/services/reminders/review.py

Scheduled deadline reminders for review assignments.

One cycle:
- reads every ASSIGNED review in a single query
- evaluates at most one threshold per assignment (pure step)
- sends the reminder, then marks the flag (effect step)
- folds every per-assignment result into a CycleReport

The flag is written only after the notifier confirms delivery.
A crash between the two can re-send once on the next cycle;
a crash before sending never double-sends.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as SendTimeout
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from django.conf import settings
from django.utils import timezone

from .notifier import Notifier, load_notifier
from .store import AssignmentSnapshot, AssignmentStore, DjangoAssignmentStore
from .thresholds import Threshold, evaluate_threshold

logger = logging.getLogger(__name__)


# ============================================================
# RESULT TYPES
# ============================================================

@dataclass(frozen=True)
class ReminderRequest:
    assignment_id: str
    threshold: Threshold
    recipient_address: str
    payload: Dict[str, Any]

    @property
    def event_type(self) -> str:
        return self.threshold.event_type


@dataclass(frozen=True)
class ReminderOutcome:
    assignment_id: str
    threshold: Threshold
    sent: bool
    flag_written: bool = False
    error: Optional[str] = None

    @property
    def event_type(self) -> str:
        return self.threshold.event_type

    @property
    def failed(self) -> bool:
        return self.error is not None

    def as_dict(self) -> Dict[str, Any]:
        return {
            "assignment_id": self.assignment_id,
            "event_type": self.event_type,
            "sent": self.sent,
            "flag_written": self.flag_written,
            "error": self.error,
        }


@dataclass(frozen=True)
class CycleReport:
    started_at: datetime
    finished_at: datetime
    evaluated: int = 0
    outcomes: Tuple[ReminderOutcome, ...] = field(default_factory=tuple)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        """False only when the whole cycle was aborted."""
        return self.error is None

    @property
    def attempted(self) -> int:
        return len(self.outcomes)

    @property
    def notified(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.sent)

    @property
    def failed(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.failed)

    @property
    def skipped_writes(self) -> int:
        return sum(
            1 for outcome in self.outcomes
            if outcome.sent and not outcome.flag_written and not outcome.failed
        )

    def as_dict(self) -> Dict[str, Any]:
        return {
            "ok": self.ok,
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat(),
            "evaluated": self.evaluated,
            "attempted": self.attempted,
            "notified": self.notified,
            "failed": self.failed,
            "skipped_writes": self.skipped_writes,
            "error": self.error,
            "outcomes": [outcome.as_dict() for outcome in self.outcomes],
        }


# ============================================================
# EVALUATE (PURE)
# ============================================================

def plan_reminders(now: datetime, assignments: Sequence[AssignmentSnapshot]) -> List[ReminderRequest]:
    """Build one request per assignment that has reached an unfired threshold."""
    requests = []
    for assignment in assignments:
        threshold = evaluate_threshold(now, assignment.due_at, assignment.flags)
        if threshold is None:
            continue

        requests.append(
            ReminderRequest(
                assignment_id=assignment.id,
                threshold=threshold,
                recipient_address=assignment.recipient_email,
                payload={
                    "assignment_id": assignment.id,
                    "reviewer_name": assignment.recipient_name,
                    "due_date": assignment.due_at.isoformat(),
                    "idempotency_key": f"{assignment.id}:{threshold.event_type}",
                },
            )
        )
    return requests


# ============================================================
# SCHEDULER
# ============================================================

class ReminderScheduler:
    """
    Runs reminder cycles against an AssignmentStore and a Notifier.

    Store reads and flag writes happen on the calling thread.
    Notifier calls run on a bounded thread pool, each limited to
    send_timeout seconds; a timeout counts as a failed send.
    """

    def __init__(
        self,
        store: AssignmentStore,
        notifier: Notifier,
        *,
        clock: Callable[[], datetime] = timezone.now,
        max_workers: int = 1,
        send_timeout: Optional[float] = None,
    ):
        self.store = store
        self.notifier = notifier
        self.clock = clock
        self.max_workers = max(1, max_workers)
        self.send_timeout = send_timeout

    def run_cycle(self) -> CycleReport:
        started_at = self.clock()

        try:
            assignments = self.store.list_active()
        except Exception as exc:
            logger.exception("Reminder cycle aborted: could not read active assignments.")
            return CycleReport(
                started_at=started_at,
                finished_at=self.clock(),
                error=f"store unavailable: {exc}",
            )

        requests = plan_reminders(started_at, assignments)
        outcomes = tuple(self._deliver(requests))

        report = CycleReport(
            started_at=started_at,
            finished_at=self.clock(),
            evaluated=len(assignments),
            outcomes=outcomes,
        )
        logger.info(
            "Reminder cycle finished: %s evaluated, %s notified, %s failed.",
            report.evaluated, report.notified, report.failed,
        )
        return report

    # --------------------------------------------------
    # EFFECTS
    # --------------------------------------------------
    def _deliver(self, requests):
        if not requests:
            return []

        executor = ThreadPoolExecutor(
            max_workers=min(self.max_workers, len(requests)),
            thread_name_prefix="reminder-send",
        )
        try:
            pending = [
                (
                    request,
                    executor.submit(
                        self.notifier.send,
                        request.recipient_address,
                        request.event_type,
                        request.payload,
                    ),
                )
                for request in requests
            ]
            return [self._settle(request, future) for request, future in pending]
        finally:
            # A stalled send keeps its worker; never block the cycle on it
            executor.shutdown(wait=False, cancel_futures=True)

    def _settle(self, request, future):
        try:
            delivered = future.result(timeout=self.send_timeout)
        except SendTimeout:
            future.cancel()
            logger.warning(
                "Notifier timed out after %ss for %s (assignment %s).",
                self.send_timeout, request.event_type, request.assignment_id,
            )
            return ReminderOutcome(
                request.assignment_id,
                request.threshold,
                sent=False,
                error=f"notifier timed out after {self.send_timeout}s",
            )
        except Exception as exc:
            logger.exception(
                "Failed to send %s for assignment %s.",
                request.event_type, request.assignment_id,
            )
            return ReminderOutcome(
                request.assignment_id,
                request.threshold,
                sent=False,
                error=str(exc) or exc.__class__.__name__,
            )

        if not delivered:
            logger.warning(
                "Notifier reported failure for %s (assignment %s).",
                request.event_type, request.assignment_id,
            )
            return ReminderOutcome(
                request.assignment_id,
                request.threshold,
                sent=False,
                error="notifier reported failure",
            )

        try:
            written = self.store.set_flag_if_unset(request.assignment_id, request.threshold.flag)
        except Exception as exc:
            logger.exception(
                "Sent %s for assignment %s but could not record %s; it may be sent again.",
                request.event_type, request.assignment_id, request.threshold.flag,
            )
            return ReminderOutcome(
                request.assignment_id,
                request.threshold,
                sent=True,
                error=f"flag write failed: {exc}",
            )

        if written:
            logger.info("Sent %s to %s.", request.event_type, request.recipient_address)
        else:
            logger.info(
                "Sent %s for assignment %s; %s was already set or the assignment left review.",
                request.event_type, request.assignment_id, request.threshold.flag,
            )

        return ReminderOutcome(
            request.assignment_id,
            request.threshold,
            sent=True,
            flag_written=written,
        )


# ============================================================
# ENTRY POINT
# ============================================================

def build_review_reminder_scheduler(store=None, notifier=None):
    """Scheduler wired from Django settings."""
    return ReminderScheduler(
        store or DjangoAssignmentStore(),
        notifier or load_notifier(),
        max_workers=settings.REMINDER_MAX_WORKERS,
        send_timeout=settings.REMINDER_SEND_TIMEOUT_SECONDS or None,
    )


def send_review_deadline_reminders():
    """
    Run one reminder cycle over all active review assignments.
    Called by the management command, APScheduler and the HTTP trigger.

    Never raises: a misconfigured notifier or store is reported as
    a failed CycleReport, like an unreachable database.
    """
    try:
        scheduler = build_review_reminder_scheduler()
    except Exception as exc:
        logger.exception("Reminder cycle aborted: could not build the scheduler.")
        now = timezone.now()
        return CycleReport(
            started_at=now,
            finished_at=now,
            error=f"configuration error: {exc}",
        )

    return scheduler.run_cycle()
