"""Django views for the page classifier app.

These views expose the classification service as a small JSON API and
render the landing page that calls it. Each view validates its input
with the app's forms, delegates to the services module and records the
outcome as a ``ClassificationRun``.
"""

from __future__ import annotations

import json
import time
from typing import Any, Dict, Iterable

from django.conf import settings
from django.http import HttpRequest, HttpResponse, JsonResponse
from django.shortcuts import render
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_http_methods

from .forms import BatchClassifyForm, ClassifyForm
from .models import ClassificationRun
from .services import classify, classify_batch, summarize

SAMPLE_URLS = [
    'http://www.amazon.com/Cuisinart-CPT-122-Compact-2-Slice-Toaster/dp/B009GQ034C/ref=sr_1_1?s=kitchen&ie=UTF8&qid=1431620315&sr=1-1&keywords=toaster',
    'http://blog.rei.com/camp/how-to-introduce-your-indoorsy-friend-to-the-outdoors/',
    'http://www.cnn.com/2013/06/10/politics/edward-snowden-profile/',
]

CLASSIFY_USAGE = {
    'GET': '/api/classify?url=https://example.com',
    'POST': '/api/classify with JSON body: {"url": "https://example.com"}',
}
BATCH_USAGE = 'POST /api/classify/batch with JSON body: {"urls": ["url1", "url2"], "limit": 10}'

HISTORY_SIZE = 20


def _json_body(request: HttpRequest) -> Dict[str, Any]:
    """Decode a JSON object body, returning an empty dict for anything else."""

    if not request.body:
        return {}
    try:
        payload = json.loads(request.body)
    except (ValueError, UnicodeDecodeError):
        return {}
    return payload if isinstance(payload, dict) else {}


def _first_error(form) -> str:
    for errors in form.errors.values():
        if errors:
            return errors[0]
    return 'Invalid request'


def _record_runs(results: Iterable[Dict[str, Any]], limit: int) -> None:
    ClassificationRun.objects.bulk_create(
        [
            ClassificationRun(
                url=result.get('url') or '',
                success=bool(result.get('success')),
                page_title=(result.get('page_title') or '')[:500],
                error=result.get('error') or '',
                topics=result.get('topics_detailed') or [],
                topic_limit=limit,
                total_time=float(result.get('metadata', {}).get('total_time', 0.0)),
            )
            for result in results
        ]
    )


def home(request: HttpRequest) -> HttpResponse:
    """Render the landing page with a form that calls the classify API."""

    return render(request, 'pageclassifier/home.html')


@csrf_exempt
@require_http_methods(['GET', 'POST'])
def classify_url(request: HttpRequest) -> JsonResponse:
    """Classify a single URL given in the query string or a JSON body."""

    data: Dict[str, Any] = request.GET.dict()
    if request.method == 'POST' and 'url' not in data:
        data = {**_json_body(request), **data}

    form = ClassifyForm(data)
    if not form.is_valid():
        payload: Dict[str, Any] = {'success': False, 'error': _first_error(form)}
        if 'url' in form.errors and not data.get('url'):
            payload['usage'] = CLASSIFY_USAGE
        return JsonResponse(payload, status=400)

    limit = form.cleaned_data['limit']
    result = classify(form.cleaned_data['url'], limit)
    _record_runs([result], limit)
    payload = {**result, 'summary': summarize(result)}
    return JsonResponse(payload, status=200 if result['success'] else 500)


@csrf_exempt
def classify_urls_batch(request: HttpRequest) -> JsonResponse:
    """Classify up to ``PAGECLASSIFIER_BATCH_MAX_URLS`` URLs from a JSON body."""

    if request.method != 'POST':
        return JsonResponse(
            {'success': False, 'error': 'This endpoint only accepts POST requests'},
            status=405,
        )

    form = BatchClassifyForm(_json_body(request))
    if not form.is_valid():
        payload: Dict[str, Any] = {'success': False, 'error': _first_error(form)}
        if 'urls' in form.errors and not form.data.get('urls'):
            payload['usage'] = BATCH_USAGE
        return JsonResponse(payload, status=400)

    limit = form.cleaned_data['limit']
    result = classify_batch(form.cleaned_data['urls'], limit)
    _record_runs(result['results'], limit)
    return JsonResponse(result)


@require_GET
def classify_samples(request: HttpRequest) -> JsonResponse:
    """Classify the bundled sample URLs, all of them or one by ``index``."""

    index_param = request.GET.get('index', 'all')
    if index_param == 'all':
        results = {str(index): classify(url, 10) for index, url in enumerate(SAMPLE_URLS)}
        _record_runs(results.values(), 10)
        return JsonResponse({'success': True, 'test': 'all', 'results': results})

    try:
        index = int(index_param)
    except ValueError:
        index = -1
    if not 0 <= index < len(SAMPLE_URLS):
        return JsonResponse(
            {
                'success': False,
                'error': 'Invalid test index',
                'available_indexes': list(range(len(SAMPLE_URLS))),
            },
            status=400,
        )

    result = classify(SAMPLE_URLS[index], 10)
    _record_runs([result], 10)
    return JsonResponse({'success': True, 'test_index': index, 'result': result})


@require_GET
def api_help(request: HttpRequest) -> JsonResponse:
    """Describe the API endpoints and response format."""

    max_limit = getattr(settings, 'PAGECLASSIFIER_MAX_LIMIT', 50)
    return JsonResponse({
        'api_name': 'Page Classification API',
        'version': '1.0',
        'description': 'Classifies web pages and returns relevant topics using weighted density analysis',
        'endpoints': [
            {
                'method': 'GET/POST',
                'path': '/api/classify',
                'description': 'Classify a single URL',
                'parameters': {
                    'url': 'Required. The URL to classify',
                    'limit': f'Optional. Number of topics to return (default: 10, max: {max_limit})',
                },
                'examples': [
                    'GET /api/classify?url=https://example.com&limit=10',
                    'POST /api/classify with body: {"url": "https://example.com", "limit": 10}',
                ],
            },
            {
                'method': 'POST',
                'path': '/api/classify/batch',
                'description': 'Classify multiple URLs in batch',
                'parameters': {
                    'urls': 'Required. Array of URLs to classify',
                    'limit': 'Optional. Number of topics per URL (default: 10)',
                },
                'example': BATCH_USAGE,
            },
            {
                'method': 'GET',
                'path': '/api/classify/test',
                'description': 'Classify the bundled sample URLs',
                'parameters': {
                    'index': 'Optional. Sample index (0-2) or "all" (default: all)',
                },
            },
            {
                'method': 'GET',
                'path': '/api/classify/history',
                'description': f'The {HISTORY_SIZE} most recent classification runs',
            },
        ],
        'response_format': {
            'success': 'Boolean indicating if classification succeeded',
            'url': 'The URL that was classified',
            'page_title': 'The page title',
            'topics': 'Array of topic strings',
            'topics_detailed': 'Array of topics with scores and frequencies',
            'metadata': 'Processing time and statistics',
            'summary': 'Status, topic counts by type and average score (single URL only)',
        },
    })


@require_GET
def classification_history(request: HttpRequest) -> JsonResponse:
    """List the most recent classification runs."""

    runs = ClassificationRun.objects.order_by('-created_at', '-pk')[:HISTORY_SIZE]
    return JsonResponse({
        'success': True,
        'runs': [
            {
                'url': run.url,
                'success': run.success,
                'page_title': run.page_title,
                'error': run.error,
                'topics': [topic.get('topic') for topic in run.topics],
                'topic_limit': run.topic_limit,
                'total_time': run.total_time,
                'created_at': run.created_at.isoformat(),
            }
            for run in runs
        ],
    })


@require_GET
def health(request: HttpRequest) -> JsonResponse:
    return JsonResponse({'status': 'OK', 'timestamp': int(time.time())})
