from django.contrib import admin, messages
from django.core.exceptions import ValidationError
from django.utils import timezone

from .models import ReviewAssignment
from .services import cancel_assignment, update_assignment_status


@admin.register(ReviewAssignment)
class ReviewAssignmentAdmin(admin.ModelAdmin):
    """
    Admin configuration for review assignments.
    Reminder flags are owned by the scheduler and shown read-only.
    Status and deadline change only through reviews.services.
    """

    # =====================================================
    # LIST VIEW
    # =====================================================
    list_display = (
        "assignment_number",
        "reviewer",
        "status",
        "due_at",
        "notified_24h",
        "notified_6h",
        "notified_overdue",
    )

    list_filter = (
        "status",
        "notified_24h",
        "notified_6h",
        "notified_overdue",
    )

    search_fields = (
        "reviewer__username",
        "reviewer__email",
        "reviewer__name",
    )

    ordering = ("due_at",)
    list_per_page = 25

    # =====================================================
    # FIELDSETS (DETAIL VIEW)
    # =====================================================
    fieldsets = (
        ("Assignment", {
            "fields": ("assignment_number", "reviewer", "status"),
        }),
        ("Deadline", {
            "fields": ("assigned_at", "due_at", "submitted_at"),
        }),
        ("Reminders", {
            "fields": ("notified_24h", "notified_6h", "notified_overdue"),
        }),
        ("Admin", {
            "fields": ("admin_notes",),
        }),
    )

    readonly_fields = (
        "status",
        "notified_24h",
        "notified_6h",
        "notified_overdue",
    )

    def get_readonly_fields(self, request, obj=None):
        # The deadline is fixed once the assignment exists
        if obj is None:
            return self.readonly_fields
        return self.readonly_fields + ("assigned_at", "due_at")

    # =====================================================
    # STATUS ACTIONS (ROUTED THROUGH reviews.services)
    # =====================================================
    actions = ("mark_submitted", "mark_approved", "cancel_selected")

    @admin.action(description="Mark selected assignments as submitted")
    def mark_submitted(self, request, queryset):
        self._apply(
            request, queryset,
            lambda assignment: update_assignment_status(
                assignment, ReviewAssignment.Status.SUBMITTED, submitted_at=timezone.now(),
            ),
            "submitted",
        )

    @admin.action(description="Mark selected assignments as approved")
    def mark_approved(self, request, queryset):
        self._apply(
            request, queryset,
            lambda assignment: update_assignment_status(assignment, ReviewAssignment.Status.APPROVED),
            "approved",
        )

    @admin.action(description="Cancel selected assignments")
    def cancel_selected(self, request, queryset):
        self._apply(request, queryset, cancel_assignment, "cancelled")

    def _apply(self, request, queryset, change, verb):
        changed = 0
        for assignment in queryset:
            try:
                change(assignment)
            except ValidationError as exc:
                self.message_user(request, f"#{assignment.assignment_number}: {exc.messages[0]}", messages.WARNING)
                continue
            changed += 1

        self.message_user(request, f"{changed} assignment(s) {verb}.")
