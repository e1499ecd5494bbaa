"""
🏷️ Provider payload normalization tests
"""

from django.test import TestCase

from apps.integrations.webhooks.base import WebhookDelivery, get_webhook_processor
from apps.integrations.webhooks.embedly import EmbedlyWebhookProcessor
from apps.integrations.webhooks.events import PAYMENT_CANCELLED, PAYMENT_FAILED, PAYMENT_SUCCEEDED, IgnoredEvent
from apps.integrations.webhooks.nomba import NombaWebhookProcessor, _naira_to_kobo
from apps.integrations.webhooks.paystack import PaystackWebhookProcessor
from tests.factories.storefront_factories import embedly_payload, nomba_payload


class ProcessorFactoryTestCase(TestCase):
    def test_known_and_unknown_sources(self):
        self.assertIsInstance(get_webhook_processor('paystack'), PaystackWebhookProcessor)
        self.assertIsInstance(get_webhook_processor('nomba'), NombaWebhookProcessor)
        self.assertIsInstance(get_webhook_processor('embedly'), EmbedlyWebhookProcessor)
        self.assertIsNone(get_webhook_processor('stripe'))


class PaystackParsingTestCase(TestCase):
    """💳 Paystack charge payloads"""

    def setUp(self):
        self.processor = PaystackWebhookProcessor()

    def test_charge_success(self):
        payload = {
            'event': 'charge.success',
            'data': {'id': 1, 'reference': 'ref-9', 'amount': 250000, 'metadata': {'order_id': 'WS-20261018-ABC123'}},
        }

        event = self.processor.parse_event(payload).unwrap()

        self.assertEqual(event.kind, PAYMENT_SUCCEEDED)
        self.assertEqual(event.transaction_id, 'ref-9')
        self.assertEqual(event.order_id, 'WS-20261018-ABC123')
        self.assertEqual(event.amount_minor, 250000)
        self.assertEqual(event.failure_reason, '')

    def test_charge_failed_keeps_gateway_response(self):
        payload = {'event': 'charge.failed', 'data': {'reference': 'ref-9', 'gateway_response': 'Do not honor'}}

        event = self.processor.parse_event(payload).unwrap()

        self.assertEqual(event.kind, PAYMENT_FAILED)
        self.assertEqual(event.failure_reason, 'Do not honor')
        self.assertIsNone(event.order_id)

    def test_missing_event_type_is_malformed(self):
        self.assertEqual(self.processor.parse_event({'data': {}}).unwrap_err().http_status, 400)

    def test_event_id_falls_back_to_body_digest(self):
        delivery = WebhookDelivery(raw_body=b'{"event": "charge.success"}', signature='', headers={})

        event_id = self.processor.extract_event_id({'event': 'charge.success'}, delivery)

        self.assertTrue(event_id.startswith('sha256:'))


class NombaParsingTestCase(TestCase):
    """💳 Nomba checkout payloads"""

    def setUp(self):
        self.processor = NombaWebhookProcessor()

    def test_naira_amounts_become_kobo(self):
        test_cases = [('5000.00', 500000), (1999.99, 199999), ('12', 1200), (None, None), ('abc', None), (True, None)]

        for amount, expected in test_cases:
            with self.subTest(amount=amount):
                self.assertEqual(_naira_to_kobo(amount), expected)

    def test_payment_success(self):
        event = self.processor.parse_event(nomba_payload('NMB-ORD-1')).unwrap()

        self.assertEqual(event.kind, PAYMENT_SUCCEEDED)
        self.assertEqual(event.transaction_id, 'NMB-TXN-1001')
        self.assertEqual(event.payment_reference, 'NMB-ORD-1')
        self.assertEqual(event.checkout_reference, 'NMB-ORD-1')
        self.assertEqual(event.amount_minor, 500000)

    def test_cancelled_without_transaction_id(self):
        payload = nomba_payload('NMB-ORD-1', event_type='payment_cancelled')
        payload['data']['transaction'] = {}
        payload['data']['message'] = 'Customer closed checkout'

        event = self.processor.parse_event(payload).unwrap()

        self.assertEqual(event.kind, PAYMENT_CANCELLED)
        self.assertEqual(event.transaction_id, '')
        self.assertEqual(event.failure_reason, 'Customer closed checkout')

    def test_missing_order_reference_is_malformed(self):
        payload = nomba_payload('')

        self.assertEqual(self.processor.parse_event(payload).unwrap_err().message, 'Missing order reference')

    def test_unknown_event_type_is_ignored(self):
        result = self.processor.parse_event({'event_type': 'payout_success', 'data': {}})

        self.assertIsInstance(result.unwrap(), IgnoredEvent)


class EmbedlyParsingTestCase(TestCase):
    """👛 Embedly checkout wallet payloads"""

    def test_invoice_and_wallet_keys(self):
        payload = embedly_payload(invoice_reference='INV-1', wallet_id='wallet-1')

        event = EmbedlyWebhookProcessor().parse_event(payload).unwrap()

        self.assertEqual(event.transaction_id, 'EMB-TXN-77')
        self.assertEqual(event.payment_reference, 'wallet-1')
        self.assertEqual(event.checkout_reference, 'INV-1')
        self.assertEqual(event.amount_minor, 500000)
