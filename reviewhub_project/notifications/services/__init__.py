"""
Notification service layer.

Each subpackage emits one family of notifications and talks
to the data store and the outbound sender only through the
interfaces it declares.
"""

# =====================================================
# REMINDERS
# =====================================================
from .reminders import (
    send_review_deadline_reminders,
)

__all__ = [
    "send_review_deadline_reminders",
]
