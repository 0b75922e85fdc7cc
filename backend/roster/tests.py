from unittest import mock

from django.http import HttpResponse
from django.test import RequestFactory, SimpleTestCase, override_settings

from roster.middleware import SlowRequestLoggingMiddleware


class SlowRequestLoggingTests(SimpleTestCase):
    def setUp(self):
        self.factory = RequestFactory()

    @override_settings(SLOW_REQUEST_LOG_ENABLED=True, SLOW_REQUEST_LOG_MS=0)
    def test_slow_api_request_is_logged(self):
        middleware = SlowRequestLoggingMiddleware(lambda request: HttpResponse(status=200))
        with self.assertLogs('django.request', level='WARNING') as logs:
            middleware(self.factory.get('/api/academics/sections/'))
        self.assertIn('path=/api/academics/sections/', logs.output[0])
        self.assertIn('user=anonymous', logs.output[0])

    @override_settings(SLOW_REQUEST_LOG_ENABLED=True, SLOW_REQUEST_LOG_MS=0)
    def test_static_paths_are_ignored(self):
        middleware = SlowRequestLoggingMiddleware(lambda request: HttpResponse(status=200))
        with mock.patch('roster.middleware.logger') as logger:
            middleware(self.factory.get('/static/app.css'))
        logger.warning.assert_not_called()
