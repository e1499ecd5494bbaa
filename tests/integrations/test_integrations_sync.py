"""
External sync tests
CRM and loyalty-ledger pushes with the HTTP layer mocked out.
"""

from unittest.mock import MagicMock, patch

import requests
from django.core.cache import cache
from django.test import SimpleTestCase, TestCase, override_settings

from apps.integrations.clients import EmbedlyClient, IntegrationAPIError, ZohoCRMClient
from apps.integrations.clients.zoho import split_full_name
from apps.integrations.sync import sync_new_customer, sync_order_completion
from tests.factories.storefront_factories import create_order, create_profile

CONFIGURED = {
    'ZOHO_CRM_CLIENT_ID': 'zoho-client',
    'ZOHO_CRM_CLIENT_SECRET': 'zoho-secret',
    'ZOHO_CRM_REFRESH_TOKEN': 'zoho-refresh',
    'EMBEDLY_API_KEY': 'embedly-key',
    'EMBEDLY_ORG_ID': 'org-1',
}


def _response(status_code=200, payload=None):
    response = MagicMock()
    response.status_code = status_code
    response.ok = status_code < 400
    response.json.return_value = payload if payload is not None else {}
    response.content = b'{}' if payload is not None else b''
    response.text = str(payload)
    return response


class SyncNewCustomerTestCase(TestCase):
    """Test cases for first-payment customer sync"""

    def setUp(self):
        self.profile = create_profile(phone='08031234567')

    def test_unconfigured_systems_are_skipped(self):
        result = sync_new_customer(self.profile)

        self.assertTrue(result.success)
        self.assertEqual(result.skipped, ['ZohoCRM', 'Embedly'])

    @override_settings(**CONFIGURED)
    @patch.object(EmbedlyClient, 'setup_customer_with_wallet', return_value=('emb-cust-1', 'emb-wallet-1'))
    @patch.object(ZohoCRMClient, 'upsert_contact', return_value=('zoho-contact-1', 'created'))
    def test_links_profile_to_both_systems(self, mock_upsert, mock_setup):
        result = sync_new_customer(self.profile)

        self.assertTrue(result.success)
        mock_upsert.assert_called_once_with('ada@example.com', 'Ada Obi', '08031234567')
        mock_setup.assert_called_once()

        self.profile.refresh_from_db()
        self.assertEqual(self.profile.crm_contact_id, 'zoho-contact-1')
        self.assertEqual(self.profile.ledger_customer_id, 'emb-cust-1')
        self.assertEqual(self.profile.ledger_wallet_id, 'emb-wallet-1')
        self.assertFalse(self.profile.needs_external_sync)

    @override_settings(**CONFIGURED)
    @patch.object(EmbedlyClient, 'setup_customer_with_wallet', return_value=('emb-cust-1', ''))
    @patch.object(ZohoCRMClient, 'upsert_contact', side_effect=IntegrationAPIError('ZohoCRM', 'POST /Contacts failed', 500))
    def test_one_system_failing_does_not_block_the_other(self, _mock_upsert, _mock_setup):
        result = sync_new_customer(self.profile)

        self.assertFalse(result.success)
        self.assertEqual(len(result.errors), 1)
        self.assertIn('ZohoCRM', result.errors[0])

        self.profile.refresh_from_db()
        self.assertEqual(self.profile.crm_contact_id, '')
        self.assertEqual(self.profile.ledger_customer_id, 'emb-cust-1')
        self.assertEqual(self.profile.ledger_wallet_id, '')

    @override_settings(**CONFIGURED)
    @patch.object(EmbedlyClient, 'setup_customer_with_wallet', side_effect=requests.ConnectionError('timed out'))
    @patch.object(ZohoCRMClient, 'upsert_contact', return_value=('zoho-contact-1', 'updated'))
    def test_transport_errors_are_reported(self, _mock_upsert, _mock_setup):
        result = sync_new_customer(self.profile)

        self.assertEqual(result.errors, ['Embedly: timed out'])


@override_settings(**CONFIGURED)
class SyncOrderCompletionTestCase(TestCase):
    """Test cases for paid order sync"""

    def setUp(self):
        self.profile = create_profile(crm_contact_id='zoho-contact-1', ledger_wallet_id='emb-wallet-1')
        self.order = create_order(total_cents=500000, payment_status='paid', status='confirmed')

    @patch.object(EmbedlyClient, 'credit_wallet')
    @patch.object(ZohoCRMClient, 'add_note')
    @patch.object(ZohoCRMClient, 'create_deal', return_value='deal-1')
    def test_creates_deal_and_credits_points(self, mock_deal, mock_note, mock_credit):
        result = sync_order_completion(self.order)

        self.assertTrue(result.success)
        self.assertEqual(result.crm_deal_id, 'deal-1')
        self.assertEqual(result.points_earned, 50)

        self.assertEqual(mock_deal.call_args.kwargs['contact_id'], 'zoho-contact-1')
        self.assertEqual(mock_deal.call_args.kwargs['amount'], 5000.0)
        mock_note.assert_called_once()
        mock_credit.assert_called_once_with('emb-wallet-1', 50, f'Points from order {self.order.order_number}')

    @patch.object(EmbedlyClient, 'credit_wallet')
    @patch.object(ZohoCRMClient, 'create_deal', return_value='deal-2')
    def test_profile_without_wallet_skips_ledger(self, _mock_deal, mock_credit):
        self.profile.ledger_wallet_id = ''
        self.profile.crm_contact_id = ''
        self.profile.save()

        with patch.object(ZohoCRMClient, 'find_contact_id', return_value=None):
            result = sync_order_completion(self.order)

        self.assertEqual(result.skipped, ['Embedly'])
        mock_credit.assert_not_called()

    @patch.object(EmbedlyClient, 'credit_wallet', side_effect=IntegrationAPIError('Embedly', 'POST /wallet/credit failed', 502))
    @patch.object(ZohoCRMClient, 'add_note')
    @patch.object(ZohoCRMClient, 'create_deal', return_value='deal-3')
    def test_ledger_failure_is_reported(self, _mock_deal, _mock_note, _mock_credit):
        result = sync_order_completion(self.order)

        self.assertEqual(result.crm_deal_id, 'deal-3')
        self.assertIsNone(result.points_earned)
        self.assertEqual(len(result.errors), 1)

    @patch.object(EmbedlyClient, 'credit_wallet')
    @patch.object(ZohoCRMClient, 'add_note')
    @patch.object(ZohoCRMClient, 'create_deal', return_value='deal-4')
    def test_resolved_profile_wins_over_checkout_email(self, mock_deal, _mock_note, mock_credit):
        account = create_profile(email='acct@example.com', crm_contact_id='zoho-acct', ledger_wallet_id='W-1')
        gift_order = create_order(customer_email='gift@example.com', payment_status='paid', status='confirmed')

        with patch.object(ZohoCRMClient, 'find_contact_id') as mock_find:
            result = sync_order_completion(gift_order, account)

        self.assertTrue(result.success)
        mock_find.assert_not_called()
        self.assertEqual(mock_deal.call_args.kwargs['contact_id'], 'zoho-acct')
        mock_credit.assert_called_once_with('W-1', 50, f'Points from order {gift_order.order_number}')


class IntegrationClientTestCase(SimpleTestCase):
    """Test cases for the shared HTTP plumbing and client helpers"""

    def setUp(self):
        cache.clear()

    def tearDown(self):
        cache.clear()

    def test_split_full_name(self):
        self.assertEqual(split_full_name('Ada Obi Nwosu'), ('Ada', 'Obi Nwosu'))
        self.assertEqual(split_full_name('Cher'), ('Cher', 'Cher'))
        self.assertEqual(split_full_name(''), ('', ''))

    @override_settings(**CONFIGURED)
    def test_error_status_raises(self):
        client = EmbedlyClient()
        with patch.object(requests.Session, 'request', return_value=_response(500, {'message': 'down'})):
            with self.assertRaises(IntegrationAPIError) as ctx:
                client.request('GET', '/customers/get/all')

        self.assertEqual(ctx.exception.status_code, 500)

    @override_settings(**CONFIGURED)
    def test_request_sends_api_key(self):
        client = EmbedlyClient()
        with patch.object(requests.Session, 'request', return_value=_response(200, {'data': []})) as mock_request:
            self.assertEqual(client.request('GET', '/customers/get/all'), {'data': []})

        self.assertEqual(mock_request.call_args.kwargs['headers']['x-api-key'], 'embedly-key')
        self.assertTrue(mock_request.call_args.args[1].endswith('/customers/get/all'))

    @override_settings(**CONFIGURED)
    def test_zoho_access_token_is_cached(self):
        token_response = _response(200, {'access_token': 'tok-1', 'expires_in': 3600})
        with patch('apps.integrations.clients.zoho.requests.post', return_value=token_response) as mock_post:
            client = ZohoCRMClient()
            self.assertEqual(client._auth_headers(), {'Authorization': 'Zoho-oauthtoken tok-1'})
            client._auth_headers()

        mock_post.assert_called_once()

    @override_settings(**CONFIGURED)
    def test_zoho_upsert_updates_existing_contact(self):
        client = ZohoCRMClient()
        with patch.object(ZohoCRMClient, 'request', return_value={}) as mock_request, \
                patch.object(ZohoCRMClient, 'find_contact_id', return_value='zoho-contact-9'):
            contact_id, action = client.upsert_contact('ada@example.com', 'Ada Obi')

        self.assertEqual((contact_id, action), ('zoho-contact-9', 'updated'))
        mock_request.assert_called_once_with(
            'PUT',
            '/Contacts/zoho-contact-9',
            json={'data': [{'Email': 'ada@example.com', 'First_Name': 'Ada', 'Last_Name': 'Obi'}]},
        )

    @override_settings(**CONFIGURED)
    def test_embedly_links_existing_customer_even_without_new_wallet(self):
        client = EmbedlyClient()
        with patch.object(EmbedlyClient, 'find_customer_id', return_value='emb-cust-7'), \
                patch.object(EmbedlyClient, 'create_wallet',
                             side_effect=IntegrationAPIError('Embedly', 'wallet exists', 409)):
            self.assertEqual(client.setup_customer_with_wallet('ada@example.com', 'Ada Obi'), ('emb-cust-7', ''))
