"""
Tests for request tracing, client IP detection and the scheduled task command
"""

import logging
from io import StringIO

from django.core.management import call_command
from django.http import HttpResponse
from django.test import RequestFactory, SimpleTestCase, TestCase, override_settings

from apps.common.middleware import RequestIDFilter, RequestIDMiddleware, current_request_id
from apps.common.request_ip import get_safe_client_ip


class RequestIDMiddlewareTestCase(SimpleTestCase):
    """Test cases for request id propagation"""

    def setUp(self):
        self.factory = RequestFactory()

    def test_generates_and_exposes_request_id(self):
        seen = {}

        def view(request):
            seen['meta'] = request.META['REQUEST_ID']
            seen['context'] = current_request_id.get()
            return HttpResponse('ok')

        response = RequestIDMiddleware(view)(self.factory.post('/webhooks/paystack/'))

        self.assertEqual(response['X-Request-ID'], seen['meta'])
        self.assertEqual(seen['context'], seen['meta'])
        self.assertEqual(current_request_id.get(), '-')

    def test_reuses_upstream_request_id(self):
        request = self.factory.post('/webhooks/nomba/', HTTP_X_REQUEST_ID='lb-123')

        response = RequestIDMiddleware(lambda r: HttpResponse('ok'))(request)

        self.assertEqual(response['X-Request-ID'], 'lb-123')

    def test_filter_stamps_log_records(self):
        record = logging.LogRecord('apps', logging.INFO, __file__, 1, 'msg', (), None)
        token = current_request_id.set('req-42')
        try:
            RequestIDFilter().filter(record)
        finally:
            current_request_id.reset(token)

        self.assertEqual(record.request_id, 'req-42')


class SafeClientIPTestCase(SimpleTestCase):
    """🔒 Test cases for spoof-resistant client IP detection"""

    def setUp(self):
        self.factory = RequestFactory()

    def test_forwarded_header_ignored_without_trusted_proxies(self):
        request = self.factory.post('/', REMOTE_ADDR='203.0.113.9', HTTP_X_FORWARDED_FOR='1.2.3.4')

        self.assertEqual(get_safe_client_ip(request), '203.0.113.9')

    @override_settings(IPWARE_TRUSTED_PROXY_LIST=['10.0.0.0/8'])
    def test_forwarded_header_honored_from_trusted_proxy(self):
        request = self.factory.post('/', REMOTE_ADDR='10.1.2.3', HTTP_X_FORWARDED_FOR='52.31.139.75, 10.1.2.3')

        self.assertEqual(get_safe_client_ip(request), '52.31.139.75')

    @override_settings(IPWARE_TRUSTED_PROXY_LIST=['10.0.0.0/8'])
    def test_untrusted_peer_cannot_spoof(self):
        request = self.factory.post('/', REMOTE_ADDR='198.51.100.7', HTTP_X_FORWARDED_FOR='10.0.0.1')

        self.assertEqual(get_safe_client_ip(request), '198.51.100.7')

    @override_settings(IPWARE_TRUSTED_PROXY_LIST=['10.0.0.0/8'])
    def test_invalid_forwarded_value_falls_back(self):
        request = self.factory.post('/', REMOTE_ADDR='10.1.2.3', HTTP_X_FORWARDED_FOR='not-an-ip')

        self.assertEqual(get_safe_client_ip(request), '10.1.2.3')


class SetupScheduledTasksCommandTestCase(TestCase):
    """Test cases for the setup_scheduled_tasks management command"""

    def test_command_registers_and_skips_existing(self):
        out = StringIO()
        call_command('setup_scheduled_tasks', stdout=out)
        call_command('setup_scheduled_tasks', stdout=out)

        output = out.getvalue()
        self.assertIn('notifications_retry_failed: Created successfully', output)
        self.assertIn('notifications_retry_failed: Task already exists (skipped)', output)
