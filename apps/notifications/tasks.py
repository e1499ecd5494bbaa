"""
Notification retry tasks for the storefront payment backend
Background processing via Django-Q2.

Tasks:
- retry_failed_notifications: Resend notifications in the failure ledger
- retry_failed_notification: Resend a single ledger entry
"""

import logging
from typing import Any

from django.conf import settings
from django_q.models import Schedule
from django_q.tasks import schedule

from apps.common.constants import NOTIFICATION_RETRY_BATCH_SIZE
from apps.notifications.models import FailedNotification
from apps.notifications.services import resend_failed_notification

logger = logging.getLogger(__name__)

RETRY_INTERVAL_MINUTES = 15


def retry_failed_notification(failed_notification_id: str) -> dict[str, Any]:
    """Resend one pending_retry entry; other states are left alone."""
    try:
        record = FailedNotification.objects.select_related("order").get(id=failed_notification_id)
    except FailedNotification.DoesNotExist:
        logger.error(f"❌ [Notifications] Failed notification {failed_notification_id} not found")
        return {"success": False, "error": "Failed notification not found"}

    if not record.is_retryable:
        logger.info(f"⏭️ [Notifications] {failed_notification_id} is {record.status}, not retrying")
        return {"success": False, "error": f"Notification is {record.status}"}

    result = resend_failed_notification(record)
    return {"success": result.success, "error": result.error, "status": record.status}


def retry_failed_notifications(batch_size: int = NOTIFICATION_RETRY_BATCH_SIZE) -> dict[str, Any]:
    """
    Scan the failure ledger and resend pending_retry notifications, oldest first.

    Each entry is handled on its own; one failing resend does not stop the batch.
    """
    logger.info("🔄 [Notifications] Retrying failed notifications")

    records = (
        FailedNotification.objects.filter(status="pending_retry")
        .select_related("order")
        .order_by("created_at")[:batch_size]
    )

    results = {"processed": 0, "sent": 0, "failed": 0, "abandoned": 0}
    for record in records:
        results["processed"] += 1
        try:
            result = resend_failed_notification(record)
        except Exception:
            logger.exception(f"💥 [Notifications] Retry crashed for {record.id}")
            results["failed"] += 1
            continue

        if result.success:
            results["sent"] += 1
        elif record.status == "abandoned":
            results["abandoned"] += 1
        else:
            results["failed"] += 1

    if results["processed"]:
        logger.info(
            f"✅ [Notifications] Retry batch done: {results['sent']} sent, {results['failed']} failed, "
            f"{results['abandoned']} abandoned"
        )
    return results


def setup_notification_scheduled_tasks() -> dict[str, str]:
    """Register the periodic retry job with the Django-Q2 scheduler."""
    tasks_created = {}

    existing_tasks = list(
        Schedule.objects.filter(name__in=["notification-retry-failed"]).values_list("name", flat=True)
    )

    if "notification-retry-failed" not in existing_tasks:
        schedule(
            "apps.notifications.tasks.retry_failed_notifications",
            schedule_type=Schedule.MINUTES,
            minutes=RETRY_INTERVAL_MINUTES,
            name="notification-retry-failed",
            cluster=settings.Q_CLUSTER["name"],
        )
        tasks_created["retry_failed"] = "created"
    else:
        tasks_created["retry_failed"] = "already_exists"

    logger.info(f"✅ [Notifications] Scheduled tasks setup: {tasks_created}")
    return tasks_created
