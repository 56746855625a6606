"""
notifications/services/reminders/thresholds.py

Pure deadline-threshold evaluation. No database, no clock.
"""

import enum
import math
from datetime import datetime, timedelta
from typing import Mapping, Optional


MS_PER_HOUR = 60 * 60 * 1000


class Threshold(enum.Enum):
    """
    Reminder milestones, in evaluation order.
    Value is (flag field, notifier event type).
    """

    WARNING_24H = ("notified_24h", "reviewer_24hr_reminder")
    WARNING_6H = ("notified_6h", "reviewer_6hr_reminder")
    OVERDUE = ("notified_overdue", "review_overdue_reminder")

    @property
    def flag(self) -> str:
        return self.value[0]

    @property
    def event_type(self) -> str:
        return self.value[1]


def hours_left(now: datetime, due_at: datetime) -> int:
    """
    Whole hours until due_at, rounded half-up on the millisecond
    difference (-2.5 -> -2, 23.5 -> 24).
    """
    diff_ms = (due_at - now) // timedelta(milliseconds=1)
    return math.floor(diff_ms / MS_PER_HOUR + 0.5)


def evaluate_threshold(
    now: datetime,
    due_at: datetime,
    flags: Mapping[str, bool],
) -> Optional[Threshold]:
    """
    Return the single threshold an assignment has reached and not yet
    been notified for, or None.

    Checked strictly as 24h, 6h, overdue; the first match wins.
    The 24h and 6h checks are exact hour equalities: a scan that
    never lands on that rounded hour never fires that reminder.
    """
    left = hours_left(now, due_at)

    if left == 24 and not flags.get(Threshold.WARNING_24H.flag, False):
        return Threshold.WARNING_24H
    if left == 6 and not flags.get(Threshold.WARNING_6H.flag, False):
        return Threshold.WARNING_6H
    if left < 0 and not flags.get(Threshold.OVERDUE.flag, False):
        return Threshold.OVERDUE
    return None
