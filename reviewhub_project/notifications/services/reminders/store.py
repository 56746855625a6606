"""
notifications/services/reminders/store.py

Read/write boundary between the reminder scheduler and the
review_assignments table.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Protocol

from reviews.models import ReviewAssignment


FLAG_NAMES = ReviewAssignment.REMINDER_FLAGS


@dataclass(frozen=True)
class AssignmentSnapshot:
    """Point-in-time copy of an active assignment."""

    id: str
    due_at: datetime
    flags: Dict[str, bool]
    recipient_name: str
    recipient_email: str


class AssignmentStore(Protocol):
    def list_active(self) -> List[AssignmentSnapshot]:
        ...

    def set_flag_if_unset(self, assignment_id: str, flag_name: str) -> bool:
        ...


class DjangoAssignmentStore:
    """
    AssignmentStore over the Django ORM.

    Errors propagate as django.db.DatabaseError.
    """

    def list_active(self) -> List[AssignmentSnapshot]:
        rows = (
            ReviewAssignment.objects
            .select_related("reviewer")
            .filter(status=ReviewAssignment.Status.ASSIGNED)
        )
        return [
            AssignmentSnapshot(
                id=str(row.pk),
                due_at=row.due_at,
                flags={flag: getattr(row, flag) for flag in FLAG_NAMES},
                recipient_name=row.reviewer.display_name,
                recipient_email=row.reviewer.email,
            )
            for row in rows
        ]

    def set_flag_if_unset(self, assignment_id: str, flag_name: str) -> bool:
        """
        Flip one flag False -> True, only while the row is still
        ASSIGNED. Returns False when no row matched.
        """
        if flag_name not in FLAG_NAMES:
            raise ValueError(f"Unknown reminder flag: {flag_name}")

        updated = (
            ReviewAssignment.objects
            .filter(
                pk=assignment_id,
                status=ReviewAssignment.Status.ASSIGNED,
                **{flag_name: False},
            )
            .update(**{flag_name: True})
        )
        return updated == 1
