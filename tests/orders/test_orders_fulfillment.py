"""
Test suite for post-payment fulfillment
Only the delivery that wins the gate fulfils; every stage failure becomes an
operator alert or a failed notification instead of an error.
"""

from unittest.mock import patch

import requests
from django.contrib.auth import get_user_model
from django.core import mail
from django.test import TestCase, override_settings

from apps.customers.models import CustomerProfile
from apps.integrations.clients import EmbedlyClient
from apps.integrations.sync import SyncResult
from apps.notifications.models import FailedNotification, OperatorAlert
from apps.notifications.services import NotificationResult
from apps.orders.fulfillment import PaymentFulfillmentPipeline, handle_gate_outcome
from apps.orders.services import OrderPaymentGate
from apps.promotions.models import PointsTransaction
from apps.promotions.services import RewardProcessingResult
from tests.factories.storefront_factories import create_order, create_profile, create_promo_code, payment_event

User = get_user_model()


class PaymentFulfillmentPipelineTestCase(TestCase):
    """Test cases for the winning delivery's fulfillment run"""

    def setUp(self):
        self.order = create_order(total_cents=500000)  # ₦5,000
        self.event = payment_event(self.order)
        self.outcome = OrderPaymentGate.confirm_payment(self.event).unwrap()
        self.order = self.outcome.order

    def test_winner_grants_rewards_and_notifies(self):
        """Guest checkout becomes a profile with purchase points and the first order bonus"""
        report = handle_gate_outcome(self.outcome, self.event)

        profile = CustomerProfile.objects.get(email='ada@example.com')
        self.assertEqual(report.profile_id, profile.pk)
        self.assertTrue(report.rewards.success)
        self.assertEqual(report.rewards.points_awarded, 65)  # 50 purchase + 15 first order
        self.assertEqual(profile.points_balance, 65)
        self.assertEqual(profile.total_orders, 1)
        self.assertEqual(report.alerts, [])

        self.assertEqual(len(mail.outbox), 2)
        self.assertEqual(mail.outbox[0].to, ['ada@example.com'])
        self.assertIn(self.order.order_number, mail.outbox[0].subject)
        self.assertEqual(mail.outbox[1].to, ['ops@storefront.test'])

    def test_losing_delivery_runs_nothing(self):
        duplicate = OrderPaymentGate.confirm_payment(self.event).unwrap()

        self.assertIsNone(handle_gate_outcome(duplicate, self.event))
        self.assertFalse(CustomerProfile.objects.exists())
        self.assertEqual(len(mail.outbox), 0)

    @patch('apps.promotions.services.process_payment_atomically')
    def test_reward_failure_raises_alert_and_still_notifies(self, mock_rewards):
        """A rolled back reward transaction never undoes the payment"""
        mock_rewards.return_value = RewardProcessingResult(success=False, error_message='database is locked')
        promo = create_promo_code()
        self.order.promo_code = promo
        self.order.save(update_fields=['promo_code'])

        report = PaymentFulfillmentPipeline(self.order, self.event).run()

        self.assertFalse(report.rewards.success)
        self.assertFalse(report.promo_incremented)
        self.assertIn('reward_processing_failed', report.alerts)

        alert = OperatorAlert.objects.get(alert_type='reward_processing_failed')
        self.assertEqual(alert.order, self.order)
        self.assertIn('database is locked', alert.message)

        promo.refresh_from_db()
        self.assertEqual(promo.used_count, 0)
        self.assertEqual(len(mail.outbox), 2)

        self.order.refresh_from_db()
        self.assertEqual(self.order.payment_status, 'paid')

    @patch('apps.promotions.services.process_payment_atomically', side_effect=RuntimeError('boom'))
    def test_reward_exception_is_absorbed(self, _mock_rewards):
        report = PaymentFulfillmentPipeline(self.order, self.event).run()

        self.assertEqual(report.rewards.error_message, 'boom')
        self.assertIn('reward_processing_failed', report.alerts)

    def test_promo_usage_counted_after_rewards(self):
        promo = create_promo_code()
        self.order.promo_code = promo
        self.order.save(update_fields=['promo_code'])

        report = PaymentFulfillmentPipeline(self.order, self.event).run()

        self.assertTrue(report.promo_incremented)
        promo.refresh_from_db()
        self.assertEqual(promo.used_count, 1)

    def test_amount_mismatch_raises_alert(self):
        event = payment_event(self.order, amount_minor=self.order.total_cents - 50000)

        report = PaymentFulfillmentPipeline(self.order, event).run()

        self.assertIn('amount_mismatch', report.alerts)
        alert = OperatorAlert.objects.get(alert_type='amount_mismatch')
        self.assertEqual(alert.metadata['paid_minor'], 450000)
        self.assertEqual(alert.metadata['expected_minor'], 500000)

    def test_amount_within_tolerance_is_accepted(self):
        event = payment_event(self.order, amount_minor=self.order.total_cents - 50)

        report = PaymentFulfillmentPipeline(self.order, event).run()

        self.assertNotIn('amount_mismatch', report.alerts)

    @patch('apps.notifications.services.send_payment_confirmation')
    def test_failed_confirmation_email_is_queued_for_retry(self, mock_send):
        mock_send.return_value = NotificationResult(success=False, error='SMTP unavailable', provider='email')

        report = PaymentFulfillmentPipeline(self.order, self.event).run()

        self.assertEqual(report.failed_notifications, ['payment_confirmation_email'])
        record = FailedNotification.objects.get()
        self.assertEqual(record.status, 'pending_retry')
        self.assertEqual(record.recipient, 'ada@example.com')
        self.assertEqual(record.error_message, 'SMTP unavailable')
        self.assertEqual(record.metadata['transaction_id'], 'PSK_ref_001')
        self.assertTrue(OperatorAlert.objects.filter(alert_type='notification_failed').exists())

        # Staff notice still went out
        self.assertEqual(len(mail.outbox), 1)

    @override_settings(SMS_ENABLED=True)
    @patch('apps.notifications.services.send_confirmation_sms')
    def test_confirmation_sms_sent_when_enabled(self, mock_sms):
        mock_sms.return_value = NotificationResult(success=True, message_id='m-1', provider='termii')

        PaymentFulfillmentPipeline(self.order, self.event).run()

        mock_sms.assert_called_once_with(self.order)

    def test_sms_skipped_when_disabled(self):
        with patch('apps.notifications.services.send_confirmation_sms') as mock_sms:
            PaymentFulfillmentPipeline(self.order, self.event).run()

        mock_sms.assert_not_called()

    @patch('apps.integrations.sync.sync_order_completion')
    def test_sync_failure_raises_alert(self, mock_sync):
        mock_sync.return_value = SyncResult(errors=['ZohoCRM: POST /Deals failed with 500'])

        report = PaymentFulfillmentPipeline(self.order, self.event).run()

        self.assertEqual(report.sync_errors, ['ZohoCRM: POST /Deals failed with 500'])
        alert = OperatorAlert.objects.get(alert_type='sync_failed')
        self.assertEqual(alert.metadata['stage'], 'order')

    @patch('apps.integrations.sync.sync_new_customer')
    def test_new_profile_is_synced_once(self, mock_sync):
        mock_sync.return_value = SyncResult(skipped=['ZohoCRM', 'Embedly'])

        PaymentFulfillmentPipeline(self.order, self.event).run()

        mock_sync.assert_called_once()
        self.assertEqual(mock_sync.call_args.args[0].email, 'ada@example.com')

    def test_rerun_does_not_double_reward(self):
        PaymentFulfillmentPipeline(self.order, self.event).run()
        PaymentFulfillmentPipeline(self.order, self.event).run()

        self.assertEqual(PointsTransaction.objects.filter(order=self.order, transaction_type='purchase').count(), 1)
        self.assertEqual(CustomerProfile.objects.get().points_balance, 65)

    @patch('apps.promotions.streaks.update_streak', side_effect=RuntimeError('streak table locked'))
    def test_streak_crash_does_not_stop_later_stages(self, _mock_streak):
        report = PaymentFulfillmentPipeline(self.order, self.event).run()

        self.assertIsNone(report.streak)
        self.assertTrue(report.rewards.success)
        self.assertEqual(len(mail.outbox), 2)

        self.order.refresh_from_db()
        self.assertEqual(self.order.payment_status, 'paid')

    @patch('apps.notifications.services.send_payment_confirmation', side_effect=ConnectionRefusedError('SMTP down'))
    def test_raising_sender_is_queued_for_retry(self, _mock_send):
        report = PaymentFulfillmentPipeline(self.order, self.event).run()

        self.assertEqual(report.failed_notifications, ['payment_confirmation_email'])
        record = FailedNotification.objects.get()
        self.assertEqual(record.status, 'pending_retry')
        self.assertEqual(record.order, self.order)
        self.assertEqual(record.error_message, 'SMTP down')
        alert = OperatorAlert.objects.get(alert_type='notification_failed')
        self.assertEqual(alert.metadata['failed_notification_id'], str(record.pk))

        self.order.refresh_from_db()
        self.assertEqual(self.order.payment_status, 'paid')

    @patch('apps.integrations.sync.sync_order_completion', side_effect=requests.ConnectionError('CRM unreachable'))
    def test_raising_sync_raises_alert(self, _mock_sync):
        report = PaymentFulfillmentPipeline(self.order, self.event).run()

        self.assertEqual(report.sync_errors, ['CRM unreachable'])
        alert = OperatorAlert.objects.get(alert_type='sync_failed')
        self.assertEqual(alert.metadata['stage'], 'order')
        self.assertEqual(len(mail.outbox), 2)

        self.order.refresh_from_db()
        self.assertEqual(self.order.payment_status, 'paid')


@override_settings(EMBEDLY_API_KEY='embedly-key', EMBEDLY_ORG_ID='org-1')
class AccountOrderSyncTestCase(TestCase):
    """Test cases for syncing an order placed under a different checkout email"""

    def setUp(self):
        self.user = User.objects.create_user(username='ada', password='testpass123')
        self.profile = create_profile(
            email='acct@example.com', user=self.user, ledger_customer_id='emb-acct', ledger_wallet_id='W-1'
        )
        self.order = create_order(user=self.user, customer_email='gift@example.com')

    @patch.object(EmbedlyClient, 'credit_wallet')
    def test_points_credited_to_account_wallet(self, mock_credit):
        event = payment_event(self.order)
        outcome = OrderPaymentGate.confirm_payment(event).unwrap()

        report = handle_gate_outcome(outcome, event)

        self.assertEqual(report.profile_id, self.profile.pk)
        self.assertEqual(report.sync_errors, [])
        mock_credit.assert_called_once_with('W-1', 50, f'Points from order {self.order.order_number}')
        self.assertFalse(CustomerProfile.objects.filter(email='gift@example.com').exists())


class LosingDeliveryAlertTestCase(TestCase):
    """Test cases for success deliveries that lose the gate"""

    def test_payment_after_failure_alerts_staff(self):
        order = create_order()
        OrderPaymentGate.record_payment_failure(payment_event(order, kind='payment_failed'))
        event = payment_event(order)

        outcome = OrderPaymentGate.confirm_payment(event).unwrap()
        handle_gate_outcome(outcome, event)

        alert = OperatorAlert.objects.get()
        self.assertEqual(alert.alert_type, 'payment_after_failure')
        self.assertEqual(alert.metadata['transaction_id'], 'PSK_ref_001')

    def test_second_transaction_on_paid_order_alerts_staff(self):
        order = create_order()
        OrderPaymentGate.confirm_payment(payment_event(order))
        second = payment_event(order, provider='nomba', transaction_id='NMB-TXN-2', payment_reference=None)

        outcome = OrderPaymentGate.confirm_payment(second).unwrap()
        handle_gate_outcome(outcome, second)

        self.assertEqual(OperatorAlert.objects.get().alert_type, 'duplicate_payment')

    def test_plain_redelivery_raises_no_alert(self):
        order = create_order()
        event = payment_event(order)
        OrderPaymentGate.confirm_payment(event)

        outcome = OrderPaymentGate.confirm_payment(event).unwrap()
        handle_gate_outcome(outcome, event)

        self.assertFalse(OperatorAlert.objects.exists())
