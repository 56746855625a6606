"""
reviews/signals.py

Keeps the reminder flags consistent with the assignment lifecycle.
"""

import logging

from django.db.models.signals import pre_save
from django.dispatch import receiver

from .models import ReviewAssignment

logger = logging.getLogger(__name__)


# ============================================================
# PRE_SAVE: RESET ON ACTIVATION, NEVER UNSET WHILE ACTIVE
# ============================================================

@receiver(pre_save, sender=ReviewAssignment)
def guard_reminder_flags(sender, instance, raw=False, **kwargs):
    """
    - New or re-activated assignments start with every flag False.
    - While an assignment stays ASSIGNED, a flag that is True in the
      database stays True even if a stale instance is saved over it.
    """
    if raw:
        return

    if instance._state.adding:
        if instance.status == ReviewAssignment.Status.ASSIGNED:
            _reset_flags(instance)
        return

    try:
        previous = ReviewAssignment.objects.only("status", *ReviewAssignment.REMINDER_FLAGS).get(pk=instance.pk)
    except ReviewAssignment.DoesNotExist:
        return

    if instance.status != ReviewAssignment.Status.ASSIGNED:
        return

    if previous.status != ReviewAssignment.Status.ASSIGNED:
        logger.info(
            "Assignment %s re-entered %s; reminder flags reset.",
            instance.pk, instance.status,
        )
        _reset_flags(instance)
        return

    for flag in ReviewAssignment.REMINDER_FLAGS:
        if getattr(previous, flag):
            setattr(instance, flag, True)


def _reset_flags(instance):
    for flag in ReviewAssignment.REMINDER_FLAGS:
        setattr(instance, flag, False)
