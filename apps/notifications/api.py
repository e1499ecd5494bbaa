"""
Staff API for operator alerts and the failed notification ledger.
All endpoints require a staff account.
"""

import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAdminUser
from rest_framework.request import Request
from rest_framework.response import Response

from apps.notifications.models import FailedNotification, OperatorAlert
from apps.notifications.serializers import FailedNotificationSerializer, OperatorAlertSerializer
from apps.notifications.services import resend_failed_notification

logger = logging.getLogger(__name__)

MAX_LIST_RESULTS = 200


@api_view(['GET'])
@permission_classes([IsAdminUser])
def alert_list(request: Request) -> Response:
    """
    List operator alerts, newest first.
    ?unread=true limits the list to alerts nobody has acknowledged.
    """
    queryset = OperatorAlert.objects.select_related('order')

    if request.query_params.get('unread') == 'true':
        queryset = queryset.filter(is_read=False)

    alert_type = request.query_params.get('alert_type')
    if alert_type:
        queryset = queryset.filter(alert_type=alert_type)

    serializer = OperatorAlertSerializer(queryset[:MAX_LIST_RESULTS], many=True)
    return Response({'success': True, 'results': serializer.data})


@api_view(['POST'])
@permission_classes([IsAdminUser])
def alert_mark_read(request: Request, alert_id: str) -> Response:
    updated = OperatorAlert.objects.filter(id=alert_id).update(is_read=True)
    if not updated:
        return Response({'success': False, 'error': 'Alert not found'}, status=status.HTTP_404_NOT_FOUND)

    logger.info(f"✅ [Ops] Alert {alert_id} marked read by {request.user}")
    return Response({'success': True})


@api_view(['GET'])
@permission_classes([IsAdminUser])
def failed_notification_list(request: Request) -> Response:
    """List the failure ledger, optionally filtered with ?status=pending_retry|sent|abandoned."""
    queryset = FailedNotification.objects.select_related('order')

    status_filter = request.query_params.get('status')
    if status_filter:
        valid_statuses = {choice for choice, _label in FailedNotification.STATUS_CHOICES}
        if status_filter not in valid_statuses:
            return Response(
                {'success': False, 'error': f'Unknown status: {status_filter}'},
                status=status.HTTP_400_BAD_REQUEST,
            )
        queryset = queryset.filter(status=status_filter)

    serializer = FailedNotificationSerializer(queryset[:MAX_LIST_RESULTS], many=True)
    return Response({'success': True, 'results': serializer.data})


@api_view(['POST'])
@permission_classes([IsAdminUser])
def failed_notification_resend(request: Request, notification_id: str) -> Response:
    """Manually resend one ledger entry that is still pending retry."""
    record = FailedNotification.objects.select_related('order').filter(id=notification_id).first()
    if record is None:
        return Response({'success': False, 'error': 'Failed notification not found'}, status=status.HTTP_404_NOT_FOUND)

    if not record.is_retryable:
        return Response(
            {'success': False, 'error': f'Notification is already {record.status}'},
            status=status.HTTP_409_CONFLICT,
        )

    logger.info(f"🔄 [Ops] Manual resend of {record.notification_type} {record.id} by {request.user}")
    result = resend_failed_notification(record)

    return Response({
        'success': result.success,
        'error': result.error,
        'notification': FailedNotificationSerializer(record).data,
    })
