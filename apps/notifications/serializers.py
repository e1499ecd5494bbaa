"""
Staff API serializers for the notification ledgers.
"""

from rest_framework import serializers

from apps.notifications.models import FailedNotification, OperatorAlert


class OperatorAlertSerializer(serializers.ModelSerializer):
    order_number = serializers.CharField(source='order.order_number', read_only=True, default=None)

    class Meta:
        model = OperatorAlert
        fields = [
            'id', 'alert_type', 'title', 'message', 'metadata',
            'order', 'order_number', 'is_read', 'created_at'
        ]
        read_only_fields = fields


class FailedNotificationSerializer(serializers.ModelSerializer):
    order_number = serializers.CharField(source='order.order_number', read_only=True, default=None)
    notification_type_display = serializers.CharField(source='get_notification_type_display', read_only=True)

    class Meta:
        model = FailedNotification
        fields = [
            'id', 'notification_type', 'notification_type_display', 'order', 'order_number',
            'recipient', 'error_message', 'status', 'attempts', 'last_attempt_at',
            'metadata', 'created_at', 'updated_at'
        ]
        read_only_fields = fields
