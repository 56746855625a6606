import hmac
import logging

from django.conf import settings
from django.http import Http404, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from notifications.services.reminders import send_review_deadline_reminders

logger = logging.getLogger(__name__)


@csrf_exempt
@require_POST
def run_review_reminders(request):
    """
    External timer hook: runs one reminder cycle.

    Requires the X-Scheduler-Token header to match
    REMINDER_TRIGGER_TOKEN; disabled when the setting is empty.
    """
    expected = settings.REMINDER_TRIGGER_TOKEN
    if not expected:
        raise Http404("Reminder trigger is disabled.")

    supplied = request.headers.get("X-Scheduler-Token", "")
    if not hmac.compare_digest(supplied.encode(), expected.encode()):
        logger.warning("Rejected reminder trigger with invalid token.")
        return JsonResponse({"success": False, "error": "Unauthorized"}, status=401)

    report = send_review_deadline_reminders()

    if not report.ok:
        return JsonResponse(
            {"success": False, "error": report.error, "report": report.as_dict()},
            status=500,
        )

    return JsonResponse({"success": True, "report": report.as_dict()})
