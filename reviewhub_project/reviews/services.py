from datetime import timedelta

from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Max
from django.utils import timezone

from .models import ReviewAssignment


# Reviewers get a week to complete a review
DEFAULT_REVIEW_WINDOW = timedelta(days=7)


def create_review_assignment(reviewer, *, due_at=None, now=None):
    """
    Hand a new review to a reviewer.

    The assignment starts ASSIGNED with every reminder flag False.
    """
    now = now or timezone.now()
    due_at = due_at or now + DEFAULT_REVIEW_WINDOW

    with transaction.atomic():
        last_number = (
            ReviewAssignment.objects
            .aggregate(last=Max("assignment_number"))["last"]
        )
        return ReviewAssignment.objects.create(
            reviewer=reviewer,
            assignment_number=(last_number or 0) + 1,
            assigned_at=now,
            due_at=due_at,
            status=ReviewAssignment.Status.ASSIGNED,
        )


def update_assignment_status(assignment, new_status, *, submitted_at=None, due_at=None):
    """
    Move an assignment to another status.

    Re-entering ASSIGNED opens a new active period, so a fresh
    due_at is required and the reminder flags are cleared.
    """
    if new_status not in ReviewAssignment.Status.values:
        raise ValidationError(f"Invalid status: {new_status}")

    update_fields = ["status"]

    if new_status == ReviewAssignment.Status.ASSIGNED and not assignment.is_active:
        if due_at is None:
            raise ValidationError("A due date is required to reactivate an assignment.")
        assignment.due_at = due_at
        update_fields += ["due_at", *ReviewAssignment.REMINDER_FLAGS]

    if submitted_at is not None:
        assignment.submitted_at = submitted_at
        update_fields.append("submitted_at")

    assignment.status = new_status
    assignment.save(update_fields=update_fields)
    return assignment


def cancel_assignment(assignment, *, reason=None):
    """
    Admin cancellation. Only ASSIGNED reviews can be cancelled.
    """
    if not assignment.is_active:
        raise ValidationError(
            f"Assignment cannot be cancelled (current status: {assignment.status})"
        )

    if reason:
        admin_notes = f"Assignment cancelled by admin. Reason: {reason}"
    else:
        admin_notes = "Assignment cancelled by admin due to reviewer delay"

    assignment.status = ReviewAssignment.Status.CANCELLED
    assignment.admin_notes = admin_notes
    assignment.save(update_fields=["status", "admin_notes"])
    return assignment
