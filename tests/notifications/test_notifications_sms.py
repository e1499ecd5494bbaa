"""
📱 SMS gateway tests
"""

from unittest.mock import MagicMock, patch

from django.test import SimpleTestCase, override_settings

from apps.common.constants import SMS_MAX_LENGTH
from apps.notifications.sms import (
    AfricasTalkingGateway,
    SMSDeliveryError,
    TermiiGateway,
    TwilioGateway,
    format_phone_number,
    get_sms_gateway,
    truncate_message,
)


def _reply(payload):
    response = MagicMock()
    response.json.return_value = payload
    response.text = str(payload)
    return response


class PhoneFormattingTestCase(SimpleTestCase):
    """Test cases for E.164 normalization"""

    def test_common_number_shapes(self):
        test_cases = [
            ('08031234567', '+2348031234567'),
            ('0803 123 4567', '+2348031234567'),
            ('2348031234567', '+2348031234567'),
            ('+2348031234567', '+2348031234567'),
            ('+447700900123', '+447700900123'),
            ('12345', '12345'),
        ]

        for phone, expected in test_cases:
            with self.subTest(phone=phone):
                self.assertEqual(format_phone_number(phone), expected)

    def test_long_message_is_truncated(self):
        message = truncate_message('a' * (SMS_MAX_LENGTH + 50))

        self.assertEqual(len(message), SMS_MAX_LENGTH)
        self.assertTrue(message.endswith('...'))
        self.assertEqual(truncate_message('short'), 'short')


class GatewayTestCase(SimpleTestCase):
    """Test cases for provider requests and replies"""

    def test_factory(self):
        self.assertIsInstance(get_sms_gateway('termii'), TermiiGateway)
        self.assertIsInstance(get_sms_gateway('AfricasTalking'), AfricasTalkingGateway)
        self.assertIsInstance(get_sms_gateway('twilio'), TwilioGateway)
        with self.assertRaises(ValueError):
            get_sms_gateway('carrier-pigeon')

    @patch('apps.notifications.sms.requests.post')
    def test_termii_strips_plus_and_returns_message_id(self, mock_post):
        mock_post.return_value = _reply({'message_id': '3017544054459', 'message': 'Successfully Sent'})

        message_id = TermiiGateway().send('+2348031234567', 'Payment received')

        self.assertEqual(message_id, '3017544054459')
        sent = mock_post.call_args.kwargs['json']
        self.assertEqual(sent['to'], '2348031234567')
        self.assertEqual(sent['api_key'], 'termii-test-key')

    @patch('apps.notifications.sms.requests.post')
    def test_termii_rejection_raises(self, mock_post):
        mock_post.return_value = _reply({'code': 'error', 'message': 'Insufficient balance'})

        with self.assertRaises(SMSDeliveryError):
            TermiiGateway().send('+2348031234567', 'Payment received')

    @override_settings(AFRICASTALKING_USERNAME='sandbox', AFRICASTALKING_API_KEY='at-key', AFRICASTALKING_SENDER_ID='')
    @patch('apps.notifications.sms.requests.post')
    def test_africastalking_reads_first_recipient(self, mock_post):
        mock_post.return_value = _reply({'SMSMessageData': {'Recipients': [{'messageId': 'ATXid_1'}]}})

        self.assertEqual(AfricasTalkingGateway().send('+2348031234567', 'hi'), 'ATXid_1')
        self.assertNotIn('from', mock_post.call_args.kwargs['data'])

    @override_settings(TWILIO_ACCOUNT_SID='AC123', TWILIO_AUTH_TOKEN='tw-token', TWILIO_FROM_NUMBER='+15005550006')
    @patch('apps.notifications.sms.requests.post')
    def test_twilio_uses_account_url(self, mock_post):
        mock_post.return_value = _reply({'sid': 'SM42'})

        self.assertEqual(TwilioGateway().send('+2348031234567', 'hi'), 'SM42')
        self.assertIn('/Accounts/AC123/Messages.json', mock_post.call_args.args[0])
        self.assertEqual(mock_post.call_args.kwargs['auth'], ('AC123', 'tw-token'))
