from __future__ import annotations

import email.message
import gzip
import io
import json
import tempfile
import urllib.error
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import Mock, patch

from django.apps import apps
from django.core.cache import caches
from django.core.exceptions import ImproperlyConfigured
from django.http import HttpResponse
from django.test import RequestFactory, SimpleTestCase, TestCase, override_settings
from django.urls import reverse

from pageclassifier.engine.config import load_config
from pageclassifier.engine.types import PageRecord
from pageclassifier.forms import BatchClassifyForm, ClassifyForm
from pageclassifier.middleware import ClassificationRateThrottle
from pageclassifier.models import ClassificationRun
from pageclassifier.scraper import PageFetchError, fetch_html, parse_html
from pageclassifier.services import (
    clamp_limit,
    classify,
    classify_batch,
    get_engine_config,
    is_valid_url,
    summarize,
)

PRODUCT_HTML = """
<html>
  <head>
    <title> Compact   Toaster </title>
    <meta name="Description" content="Fast toast for small kitchens">
    <meta name="keywords" content="toaster, kitchen">
  </head>
  <body>
    <header><nav><a href="/nav">Nav link</a></nav><h2>Header heading</h2></header>
    <div class="breadcrumb"><a href="/">Home</a><a href="/kitchen">Kitchen</a></div>
    <h1 id="productTitle">Compact 2-Slice Toaster</h1>
    <p>Great toast every morning.</p>
    <img src="/toaster.png" alt="Toaster front">
    <img alt="Missing source">
    <script>var tracking = true;</script>
    <footer>Footer text</footer>
  </body>
</html>
"""


def toaster_page() -> PageRecord:
    return PageRecord(
        title='Compact 2-Slice Toaster',
        headings={'h1': ['Best Toasters 2024']},
        body_text='the toaster is great the toaster works well',
    )


class FakeResponse(io.BytesIO):
    def __init__(self, body: bytes, **headers: str) -> None:
        super().__init__(body)
        self.headers = email.message.Message()
        for name, value in headers.items():
            self.headers[name.replace('_', '-')] = value


class ScraperTests(SimpleTestCase):
    def test_parse_html_extracts_weighted_regions(self) -> None:
        page = parse_html(PRODUCT_HTML)

        self.assertEqual(page.title, 'Compact Toaster')
        self.assertEqual(page.meta_description, 'Fast toast for small kitchens')
        self.assertEqual(page.meta_keywords, 'toaster, kitchen')
        self.assertEqual(page.headings['h1'], ['Compact 2-Slice Toaster'])
        self.assertEqual(page.headings['h2'], ['Header heading'])
        self.assertEqual([link.text for link in page.links], ['Home', 'Kitchen'])
        self.assertEqual([(image.src, image.alt) for image in page.images], [('/toaster.png', 'Toaster front')])
        self.assertEqual(page.structured_content['product_title'], 'Compact 2-Slice Toaster')
        self.assertEqual(page.structured_content['breadcrumbs'], ['Home', 'Kitchen'])
        self.assertNotIn('article_title', page.structured_content)
        self.assertIn('Great toast every morning.', page.body_text)
        for noise in ('Nav link', 'Footer text', 'tracking', 'Header heading'):
            self.assertNotIn(noise, page.body_text)

    def test_parse_html_handles_empty_document(self) -> None:
        page = parse_html('')
        self.assertEqual(page, PageRecord())

    def test_fetch_html_decodes_body(self) -> None:
        response = FakeResponse('<p>Café</p>'.encode('utf-8'), Content_Type='text/html; charset=utf-8')
        with patch('urllib.request.urlopen', return_value=response) as urlopen:
            html = fetch_html('https://example.com', timeout=5, user_agent='TestAgent/1.0')

        self.assertEqual(html, '<p>Café</p>')
        request = urlopen.call_args.args[0]
        self.assertEqual(request.get_header('User-agent'), 'TestAgent/1.0')
        self.assertEqual(urlopen.call_args.kwargs['timeout'], 5)

    def test_fetch_html_decompresses_gzip(self) -> None:
        response = FakeResponse(gzip.compress(b'<p>zipped</p>'), Content_Encoding='gzip')
        with patch('urllib.request.urlopen', return_value=response):
            self.assertEqual(fetch_html('https://example.com'), '<p>zipped</p>')

    def test_fetch_html_falls_back_to_declared_charset(self) -> None:
        response = FakeResponse('<p>Café</p>'.encode('latin-1'), Content_Type='text/html; charset=latin-1')
        with patch('urllib.request.urlopen', return_value=response):
            self.assertEqual(fetch_html('https://example.com'), '<p>Café</p>')

    def test_fetch_html_wraps_network_errors(self) -> None:
        with patch('urllib.request.urlopen', side_effect=urllib.error.URLError('timed out')):
            with self.assertRaises(PageFetchError) as ctx:
                fetch_html('https://example.com')
        self.assertEqual(str(ctx.exception), 'Failed to fetch URL: timed out')
        self.assertEqual(ctx.exception.url, 'https://example.com')

    def test_fetch_html_wraps_http_errors(self) -> None:
        error = urllib.error.HTTPError('https://example.com', 404, 'Not Found', hdrs=None, fp=None)
        with patch('urllib.request.urlopen', side_effect=error):
            with self.assertRaises(PageFetchError) as ctx:
                fetch_html('https://example.com')
        self.assertEqual(ctx.exception.reason, 'HTTP 404 Not Found')


class ClassificationServiceTests(SimpleTestCase):
    def setUp(self) -> None:
        self.config = load_config(None)
        self.fetch = Mock(return_value=toaster_page())

    def test_classify_returns_limited_topics(self) -> None:
        result = classify('https://example.com/toaster', 2, config=self.config, fetch=self.fetch)

        self.assertTrue(result['success'])
        self.assertEqual(result['page_title'], 'Compact 2-Slice Toaster')
        self.assertEqual(result['topics'], ['Compact 2-slice', '2-slice Toaster'])
        self.assertEqual(result['topics_detailed'][0], {
            'topic': 'Compact 2-slice',
            'score': 15.0,
            'frequency': 1,
            'type': 'phrase',
        })
        metadata = result['metadata']
        self.assertEqual(metadata['topics_returned'], 2)
        self.assertGreaterEqual(metadata['topics_found'], 6)
        self.assertGreater(metadata['keyword_candidates'], 0)
        self.fetch.assert_called_once_with('https://example.com/toaster')

    def test_classify_rejects_invalid_url_without_fetching(self) -> None:
        result = classify('ftp://example.com/file', config=self.config, fetch=self.fetch)

        self.assertEqual(result, {
            'success': False,
            'url': 'ftp://example.com/file',
            'error': 'Invalid URL provided',
            'topics': [],
        })
        self.fetch.assert_not_called()

    def test_classify_reports_fetch_errors(self) -> None:
        self.fetch.side_effect = PageFetchError('https://example.com', 'timed out')

        result = classify('https://example.com', config=self.config, fetch=self.fetch)

        self.assertFalse(result['success'])
        self.assertEqual(result['error'], 'Failed to fetch URL: timed out')

    def test_classify_batch_pauses_between_urls(self) -> None:
        sleep = Mock()
        urls = ['https://example.com/a', 'not a url', 'https://example.com/c']

        result = classify_batch(urls, 5, delay=0.25, sleep=sleep, config=self.config, fetch=self.fetch)

        self.assertTrue(result['success'])
        self.assertEqual(result['total_urls'], 3)
        self.assertEqual([item['success'] for item in result['results']], [True, False, True])
        self.assertEqual(sleep.call_count, 2)
        sleep.assert_called_with(0.25)

    def test_summarize(self) -> None:
        result = classify('https://example.com/toaster', 3, config=self.config, fetch=self.fetch)
        summary = summarize(result)

        self.assertEqual(summary['status'], 'success')
        self.assertEqual(summary['total_topics'], 3)
        self.assertEqual(summary['phrase_count'], 3)
        self.assertEqual(summary['keyword_count'], 0)
        self.assertEqual(summary['average_score'], 15.0)
        self.assertEqual(summarize({'success': False, 'error': 'boom'}), {'status': 'failed', 'error': 'boom'})

    def test_clamp_limit(self) -> None:
        self.assertEqual(clamp_limit(0), 1)
        self.assertEqual(clamp_limit(500), 50)
        self.assertEqual(clamp_limit('7'), 7)
        self.assertEqual(clamp_limit('abc'), 10)
        self.assertEqual(clamp_limit(None), 10)

    def test_is_valid_url(self) -> None:
        self.assertTrue(is_valid_url('https://example.com/path?q=1'))
        self.assertTrue(is_valid_url('HTTP://EXAMPLE.COM'))
        self.assertFalse(is_valid_url('example.com'))
        self.assertFalse(is_valid_url('javascript:alert(1)'))
        self.assertFalse(is_valid_url(''))


class FormTests(SimpleTestCase):
    def test_limit_is_clamped(self) -> None:
        for raw, expected in (('0', 1), ('500', 50), ('', 10), ('25', 25), ('abc', 10), (7, 7)):
            form = ClassifyForm({'url': 'https://example.com', 'limit': raw})
            self.assertTrue(form.is_valid(), form.errors)
            self.assertEqual(form.cleaned_data['limit'], expected)

    def test_url_is_required_and_validated(self) -> None:
        missing = ClassifyForm({})
        self.assertFalse(missing.is_valid())
        self.assertEqual(missing.errors['url'], ['URL parameter is required'])

        invalid = ClassifyForm({'url': 'not-a-url'})
        self.assertFalse(invalid.is_valid())
        self.assertEqual(invalid.errors['url'], ['Invalid URL provided'])

    def test_batch_urls_must_be_a_bounded_list(self) -> None:
        too_many = BatchClassifyForm({'urls': [f'https://example.com/{index}' for index in range(11)]})
        self.assertFalse(too_many.is_valid())
        self.assertEqual(too_many.errors['urls'], ['Maximum 10 URLs allowed per batch request'])

        not_a_list = BatchClassifyForm({'urls': 'https://example.com'})
        self.assertFalse(not_a_list.is_valid())
        self.assertEqual(not_a_list.errors['urls'], ['URLs array is required'])

        mixed = BatchClassifyForm({'urls': ['https://example.com', 3]})
        self.assertFalse(mixed.is_valid())
        self.assertEqual(mixed.errors['urls'], ['Every URL must be a string'])

        valid = BatchClassifyForm({'urls': [' https://example.com '], 'limit': 100})
        self.assertTrue(valid.is_valid(), valid.errors)
        self.assertEqual(valid.cleaned_data, {'urls': ['https://example.com'], 'limit': 50})


@override_settings(PAGECLASSIFIER_BATCH_DELAY=0)
class ClassificationViewTests(TestCase):
    def setUp(self) -> None:
        caches['default'].clear()
        patcher = patch('pageclassifier.services.scrape', return_value=toaster_page())
        self.scrape = patcher.start()
        self.addCleanup(patcher.stop)

    def test_home_renders_form(self) -> None:
        response = self.client.get(reverse('pageclassifier:home'))
        self.assertEqual(response.status_code, 200)
        self.assertTemplateUsed(response, 'pageclassifier/home.html')
        self.assertContains(response, reverse('pageclassifier:classify'))

    def test_classify_get_records_run(self) -> None:
        response = self.client.get(reverse('pageclassifier:classify'), {'url': 'https://example.com/toaster', 'limit': 3})

        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertTrue(payload['success'])
        self.assertEqual(len(payload['topics']), 3)
        run = ClassificationRun.objects.get()
        self.assertTrue(run.success)
        self.assertEqual(run.topic_limit, 3)
        self.assertEqual(run.topics[0]['topic'], 'Compact 2-slice')
        self.assertEqual(payload['summary']['status'], 'success')
        self.assertEqual(payload['summary']['total_topics'], 3)
        self.assertEqual(payload['summary']['phrase_count'], 3)

    def test_classify_post_json_body(self) -> None:
        response = self.client.post(
            reverse('pageclassifier:classify'),
            data=json.dumps({'url': 'https://example.com/toaster', 'limit': 1}),
            content_type='application/json',
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['topics'], ['Compact 2-slice'])

    def test_classify_non_numeric_limit_uses_default(self) -> None:
        response = self.client.get(reverse('pageclassifier:classify'), {'url': 'https://example.com/toaster', 'limit': 'abc'})

        self.assertEqual(response.status_code, 200)
        metadata = response.json()['metadata']
        self.assertEqual(metadata['topics_returned'], min(10, metadata['topics_found']))
        self.assertEqual(ClassificationRun.objects.get().topic_limit, 10)

    def test_classify_missing_url_includes_usage(self) -> None:
        response = self.client.get(reverse('pageclassifier:classify'))

        self.assertEqual(response.status_code, 400)
        payload = response.json()
        self.assertEqual(payload['error'], 'URL parameter is required')
        self.assertIn('GET', payload['usage'])
        self.scrape.assert_not_called()

    def test_classify_invalid_url(self) -> None:
        response = self.client.get(reverse('pageclassifier:classify'), {'url': 'notaurl'})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {'success': False, 'error': 'Invalid URL provided'})
        self.assertFalse(ClassificationRun.objects.exists())

    def test_classify_fetch_failure_returns_500(self) -> None:
        self.scrape.side_effect = PageFetchError('https://example.com/down', 'Connection refused')

        response = self.client.get(reverse('pageclassifier:classify'), {'url': 'https://example.com/down'})

        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json()['error'], 'Failed to fetch URL: Connection refused')
        self.assertEqual(response.json()['summary'], {'status': 'failed', 'error': 'Failed to fetch URL: Connection refused'})
        run = ClassificationRun.objects.get()
        self.assertFalse(run.success)
        self.assertEqual(run.error, 'Failed to fetch URL: Connection refused')

    def test_classify_rejects_other_methods(self) -> None:
        response = self.client.delete(reverse('pageclassifier:classify'))
        self.assertEqual(response.status_code, 405)

    def test_batch_requires_post(self) -> None:
        response = self.client.get(reverse('pageclassifier:classify_batch'))

        self.assertEqual(response.status_code, 405)
        self.assertEqual(response.json()['error'], 'This endpoint only accepts POST requests')

    def test_batch_validates_urls(self) -> None:
        url = reverse('pageclassifier:classify_batch')

        missing = self.client.post(url, data=json.dumps({}), content_type='application/json')
        self.assertEqual(missing.status_code, 400)
        self.assertEqual(missing.json()['error'], 'URLs array is required')
        self.assertIn('usage', missing.json())

        urls = [f'https://example.com/{index}' for index in range(11)]
        too_many = self.client.post(url, data=json.dumps({'urls': urls}), content_type='application/json')
        self.assertEqual(too_many.status_code, 400)
        self.assertEqual(too_many.json()['error'], 'Maximum 10 URLs allowed per batch request')

    def test_batch_classifies_each_url(self) -> None:
        response = self.client.post(
            reverse('pageclassifier:classify_batch'),
            data=json.dumps({'urls': ['https://example.com/a', 'bad url'], 'limit': 2}),
            content_type='application/json',
        )

        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertEqual(payload['total_urls'], 2)
        self.assertEqual([result['success'] for result in payload['results']], [True, False])
        self.assertEqual(ClassificationRun.objects.count(), 2)
        self.assertEqual(self.scrape.call_count, 1)

    def test_samples_by_index(self) -> None:
        response = self.client.get(reverse('pageclassifier:classify_samples'), {'index': '1'})

        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertEqual(payload['test_index'], 1)
        self.assertIn('blog.rei.com', payload['result']['url'])

    def test_samples_all(self) -> None:
        response = self.client.get(reverse('pageclassifier:classify_samples'))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(sorted(response.json()['results']), ['0', '1', '2'])
        self.assertEqual(ClassificationRun.objects.count(), 3)

    def test_samples_invalid_index(self) -> None:
        response = self.client.get(reverse('pageclassifier:classify_samples'), {'index': '5'})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['available_indexes'], [0, 1, 2])

    def test_help_lists_endpoints(self) -> None:
        response = self.client.get(reverse('pageclassifier:help'))

        self.assertEqual(response.status_code, 200)
        paths = [endpoint['path'] for endpoint in response.json()['endpoints']]
        self.assertIn('/api/classify', paths)
        self.assertIn('/api/classify/batch', paths)

    def test_history_lists_recent_runs(self) -> None:
        self.client.get(reverse('pageclassifier:classify'), {'url': 'https://example.com/toaster'})

        response = self.client.get(reverse('pageclassifier:history'))

        self.assertEqual(response.status_code, 200)
        runs = response.json()['runs']
        self.assertEqual(len(runs), 1)
        self.assertEqual(runs[0]['url'], 'https://example.com/toaster')
        self.assertEqual(runs[0]['topics'][0], 'Compact 2-slice')

    def test_health(self) -> None:
        response = self.client.get(reverse('pageclassifier:health'))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['status'], 'OK')


class ClassificationRateThrottleTests(SimpleTestCase):
    def setUp(self) -> None:
        caches['default'].clear()
        self.factory = RequestFactory()

    def request(self, route: str = 'action', ip: str = '203.0.113.5'):
        request = self.factory.get('/api/sample', REMOTE_ADDR=ip)
        request.resolver_match = SimpleNamespace(namespace='sample', url_name=route)
        return request

    @override_settings(THROTTLED_ROUTES=['sample:action'])
    def test_blocks_after_limit(self) -> None:
        middleware = ClassificationRateThrottle(lambda request: HttpResponse('ok'), limit=2, window=60)

        self.assertIsNone(middleware.process_view(self.request(), None, (), {}))
        self.assertIsNone(middleware.process_view(self.request(), None, (), {}))
        blocked = middleware.process_view(self.request(), None, (), {})

        self.assertEqual(blocked.status_code, 429)
        self.assertEqual(json.loads(blocked.content)['route'], 'sample:action')
        self.assertIsNone(middleware.process_view(self.request(ip='198.51.100.7'), None, (), {}))

    @override_settings(THROTTLED_ROUTES=['sample:action'])
    def test_ignores_other_routes(self) -> None:
        middleware = ClassificationRateThrottle(lambda request: HttpResponse('ok'), limit=1, window=60)

        for _ in range(3):
            self.assertIsNone(middleware.process_view(self.request(route='other'), None, (), {}))

    def test_forwarded_header_identifies_client(self) -> None:
        middleware = ClassificationRateThrottle(lambda request: HttpResponse('ok'), limit=1, window=60)
        request = self.factory.get('/', HTTP_X_FORWARDED_FOR='192.0.2.1, 10.0.0.1')

        self.assertEqual(middleware._client_ip(request), '192.0.2.1')


class AppConfigTests(SimpleTestCase):
    def tearDown(self) -> None:
        get_engine_config.cache_clear()

    def test_invalid_engine_config_fails_at_startup(self) -> None:
        with tempfile.TemporaryDirectory() as directory:
            path = Path(directory) / 'engine.yaml'
            path.write_text('min_phrase_length: 6\nmax_phrase_length: 3\n', encoding='utf-8')
            get_engine_config.cache_clear()

            with override_settings(TOPIC_ENGINE_CONFIG=str(path)):
                with self.assertRaises(ImproperlyConfigured):
                    apps.get_app_config('pageclassifier').ready()
