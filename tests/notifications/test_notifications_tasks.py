"""
Test suite for notification retry tasks
"""

from unittest.mock import patch

from django.core import mail
from django.test import TestCase, override_settings
from django_q.models import Schedule

from apps.notifications.models import FailedNotification, OperatorAlert
from apps.notifications.services import NotificationResult
from apps.notifications.tasks import (
    retry_failed_notification,
    retry_failed_notifications,
    setup_notification_scheduled_tasks,
)
from tests.factories.storefront_factories import create_order


class RetryFailedNotificationsTestCase(TestCase):
    """🔄 Test cases for the scheduled resend job"""

    def setUp(self):
        self.order = create_order(payment_status='paid', status='confirmed', payment_reference='PSK_ref_1')

    def _failed(self, notification_type='payment_confirmation_email', attempts=1, status='pending_retry'):
        return FailedNotification.objects.create(
            notification_type=notification_type,
            order=self.order,
            recipient='ada@example.com',
            error_message='SMTP unavailable',
            attempts=attempts,
            status=status,
        )

    def test_successful_resend_marks_sent(self):
        record = self._failed()

        results = retry_failed_notifications()

        self.assertEqual(results, {'processed': 1, 'sent': 1, 'failed': 0, 'abandoned': 0})
        record.refresh_from_db()
        self.assertEqual(record.status, 'sent')
        self.assertEqual(record.attempts, 2)
        self.assertEqual(len(mail.outbox), 1)

    @patch('apps.notifications.services.EmailService.send_payment_confirmation')
    def test_failed_resend_stays_pending(self, mock_send):
        mock_send.return_value = NotificationResult(success=False, error='still down')
        record = self._failed()

        results = retry_failed_notifications()

        self.assertEqual(results['failed'], 1)
        record.refresh_from_db()
        self.assertEqual(record.status, 'pending_retry')
        self.assertEqual(record.attempts, 2)
        self.assertEqual(record.error_message, 'still down')

    @override_settings(NOTIFICATION_MAX_RETRY_ATTEMPTS=3)
    @patch('apps.notifications.services.EmailService.send_payment_confirmation')
    def test_gives_up_after_max_attempts(self, mock_send):
        mock_send.return_value = NotificationResult(success=False, error='mailbox full')
        record = self._failed(attempts=2)

        results = retry_failed_notifications()

        self.assertEqual(results['abandoned'], 1)
        record.refresh_from_db()
        self.assertEqual(record.status, 'abandoned')
        alert = OperatorAlert.objects.get()
        self.assertEqual(alert.alert_type, 'notification_abandoned')
        self.assertEqual(alert.metadata['failed_notification_id'], str(record.id))

    def test_settled_entries_are_not_retried(self):
        self._failed(status='sent')
        self._failed(status='abandoned')

        results = retry_failed_notifications()

        self.assertEqual(results['processed'], 0)
        self.assertEqual(len(mail.outbox), 0)

    def test_one_crash_does_not_stop_the_batch(self):
        first = self._failed(notification_type='confirmation_sms')
        second = self._failed()

        with patch('apps.notifications.services.SMSService.send_confirmation_sms', side_effect=RuntimeError('boom')):
            results = retry_failed_notifications()

        self.assertEqual(results['processed'], 2)
        self.assertEqual(results['sent'], 1)
        self.assertEqual(results['failed'], 1)
        first.refresh_from_db()
        second.refresh_from_db()
        self.assertEqual(first.status, 'pending_retry')
        self.assertEqual(second.status, 'sent')

    def test_single_retry_task(self):
        record = self._failed()

        self.assertEqual(retry_failed_notification(str(record.id))['status'], 'sent')
        self.assertFalse(retry_failed_notification(str(record.id))['success'])

    def test_single_retry_missing_record(self):
        result = retry_failed_notification('00000000-0000-0000-0000-000000000000')

        self.assertEqual(result, {'success': False, 'error': 'Failed notification not found'})


class ScheduledTaskSetupTestCase(TestCase):
    """Test cases for registering the periodic job"""

    def test_setup_is_idempotent(self):
        self.assertEqual(setup_notification_scheduled_tasks(), {'retry_failed': 'created'})
        self.assertEqual(setup_notification_scheduled_tasks(), {'retry_failed': 'already_exists'})

        task = Schedule.objects.get(name='notification-retry-failed')
        self.assertEqual(task.func, 'apps.notifications.tasks.retry_failed_notifications')
        self.assertEqual(task.minutes, 15)
