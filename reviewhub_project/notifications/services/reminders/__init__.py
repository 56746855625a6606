"""
Reminder notification service layer.

Time-based reminder emitters triggered by schedulers
(management command, APScheduler job, HTTP trigger).

Reminder logic is:
- service-layer only
- threshold-based (24h, 6h, overdue)
- deduplicated by per-assignment flags
- written only after a confirmed send
"""

# =====================================================
# THRESHOLDS
# =====================================================
from .thresholds import (
    Threshold,
    evaluate_threshold,
    hours_left,
)

# =====================================================
# REVIEW ASSIGNMENT REMINDERS
# =====================================================
from .review import (
    CycleReport,
    ReminderOutcome,
    ReminderScheduler,
    build_review_reminder_scheduler,
    plan_reminders,
    send_review_deadline_reminders,
)

__all__ = [
    # Thresholds
    "Threshold",
    "evaluate_threshold",
    "hours_left",

    # Review assignments
    "CycleReport",
    "ReminderOutcome",
    "ReminderScheduler",
    "build_review_reminder_scheduler",
    "plan_reminders",
    "send_review_deadline_reminders",
]
