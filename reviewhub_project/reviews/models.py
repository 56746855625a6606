import uuid

from django.db import models
from django.conf import settings
from django.utils import timezone


class ReviewAssignment(models.Model):
    """
    A review handed to a reviewer with a deadline.

    Only ASSIGNED rows are scanned by the reminder scheduler.
    The notified_* flags record which deadline reminders
    already went out during the current active period.
    """

    # =====================================================
    # STATUS
    # =====================================================
    class Status(models.TextChoices):
        ASSIGNED = "assigned", "Assigned"
        SUBMITTED = "submitted", "Submitted"
        APPROVED = "approved", "Approved"
        CANCELLED = "cancelled", "Cancelled"

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
    )

    reviewer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="review_assignments",
    )

    assignment_number = models.PositiveIntegerField(unique=True)

    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.ASSIGNED,
        db_index=True,
    )

    # =====================================================
    # DEADLINE
    # =====================================================
    assigned_at = models.DateTimeField(default=timezone.now)
    due_at = models.DateTimeField()
    submitted_at = models.DateTimeField(null=True, blank=True)

    # =====================================================
    # REMINDER FLAGS (MONOTONE WHILE ASSIGNED)
    # =====================================================
    REMINDER_FLAGS = ("notified_24h", "notified_6h", "notified_overdue")

    notified_24h = models.BooleanField(default=False)
    notified_6h = models.BooleanField(default=False)
    notified_overdue = models.BooleanField(default=False)

    admin_notes = models.TextField(blank=True)

    class Meta:
        ordering = ["due_at"]
        indexes = [
            models.Index(fields=["status", "due_at"], name="review_status_due_idx"),
        ]

    def __str__(self):
        return f"#{self.assignment_number} | {self.reviewer} | {self.status}"

    @property
    def is_active(self):
        return self.status == self.Status.ASSIGNED
