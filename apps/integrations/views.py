import logging
from typing import Any

from django.http import HttpRequest, JsonResponse
from django.utils.decorators import method_decorator
from django.views import View
from django.views.decorators.csrf import csrf_exempt
from django_ratelimit.decorators import ratelimit

from apps.common.constants import WEBHOOK_RATE_LIMIT
from apps.common.request_ip import get_safe_client_ip

from .models import WebhookEvent
from .webhooks.base import WebhookDelivery, get_webhook_processor

logger = logging.getLogger(__name__)


# ===============================================================================
# WEBHOOK ENDPOINT VIEWS
# ===============================================================================


@method_decorator(
    [csrf_exempt, ratelimit(key="ip", rate=WEBHOOK_RATE_LIMIT, method="POST", block=False)],
    name="dispatch",
)
class WebhookView(View):
    """
    🔄 Generic payment webhook endpoint

    Handles webhooks from the payment providers:
    - POST /webhooks/paystack/ → Paystack charge events
    - POST /webhooks/nomba/ → Nomba checkout events
    - POST /webhooks/embedly/ → Embedly checkout wallet events

    The raw body is handed to the processor untouched; signatures are
    computed over the exact bytes the provider sent.
    """

    http_method_names = ["post"]  # noqa: RUF012
    source_name = ""  # Override in subclasses

    def post(self, request: HttpRequest) -> JsonResponse:
        """📨 Authenticate, reconcile and acknowledge one delivery"""
        client_ip = get_safe_client_ip(request)

        if getattr(request, "limited", False):
            logger.warning(f"🚦 [Webhook] Rate limit hit for {self.source_name} from {client_ip}")
            return JsonResponse({"error": "Too many webhook requests"}, status=429)

        processor = get_webhook_processor(self.source_name)
        if processor is None:
            logger.error(f"🔥 [Webhook] No processor configured for source: {self.source_name}")
            return JsonResponse({"error": "Webhook source not configured"}, status=500)

        delivery = WebhookDelivery(
            raw_body=request.body,
            signature=self.extract_signature(request),
            headers=dict(request.headers),
            ip_address=client_ip,
            user_agent=request.META.get("HTTP_USER_AGENT", "")[:500],
        )
        result = processor.process_webhook(delivery)

        if result.success:
            return JsonResponse({"received": True, "message": result.message})
        return JsonResponse({"error": result.message}, status=result.http_status)

    def extract_signature(self, request: HttpRequest) -> str:
        """🔐 Extract webhook signature from headers - override in subclasses"""
        return request.headers.get("X-Signature", "")


class PaystackWebhookView(WebhookView):
    """💳 Paystack webhook endpoint"""

    source_name = "paystack"

    def extract_signature(self, request: HttpRequest) -> str:
        return request.headers.get("X-Paystack-Signature", "")


class NombaWebhookView(WebhookView):
    """💳 Nomba webhook endpoint"""

    source_name = "nomba"

    def extract_signature(self, request: HttpRequest) -> str:
        """Nomba has used three header names over time."""
        for header in ("Nomba-Signature", "Nomba-Sig-Value", "X-Nomba-Signature"):
            value = request.headers.get(header)
            if value:
                return value
        return ""


class EmbedlyWebhookView(WebhookView):
    """👛 Embedly webhook endpoint"""

    source_name = "embedly"

    def extract_signature(self, request: HttpRequest) -> str:
        return request.headers.get("X-Embedly-Signature", "")


# ===============================================================================
# WEBHOOK MANAGEMENT API
# ===============================================================================


def webhook_status(request: HttpRequest) -> JsonResponse:
    """📊 Webhook processing status and statistics"""
    if not request.user.is_staff:
        return JsonResponse({"error": "Unauthorized"}, status=403)

    stats = {
        "total_webhooks": WebhookEvent.objects.count(),
        "pending": WebhookEvent.objects.filter(status="pending").count(),
        "processed": WebhookEvent.objects.filter(status="processed").count(),
        "failed": WebhookEvent.objects.filter(status="failed").count(),
        "skipped": WebhookEvent.objects.filter(status="skipped").count(),
    }

    by_source: dict[str, dict[str, Any]] = {}
    for source, _label in WebhookEvent.SOURCE_CHOICES:
        source_count = WebhookEvent.objects.filter(source=source).count()
        if source_count > 0:
            by_source[source] = {
                "total": source_count,
                "processed": WebhookEvent.objects.filter(source=source, status="processed").count(),
                "failed": WebhookEvent.objects.filter(source=source, status="failed").count(),
            }

    recent_data = [
        {
            "id": str(webhook.id),
            "source": webhook.source,
            "event_id": webhook.event_id,
            "event_type": webhook.event_type,
            "status": webhook.status,
            "delivery_count": webhook.delivery_count,
            "order_number": webhook.order.order_number if webhook.order else None,
            "error_message": webhook.error_message,
            "received_at": webhook.received_at.isoformat(),
            "processed_at": webhook.processed_at.isoformat() if webhook.processed_at else None,
            "processing_seconds": (
                webhook.processing_duration.total_seconds() if webhook.processing_duration is not None else None
            ),
        }
        for webhook in WebhookEvent.objects.select_related("order").order_by("-received_at")[:10]
    ]

    return JsonResponse(
        {
            "stats": stats,
            "by_source": by_source,
            "recent_webhooks": recent_data,
        }
    )
