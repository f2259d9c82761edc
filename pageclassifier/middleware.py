from __future__ import annotations

import time
from typing import Callable

from django.conf import settings
from django.core.cache import caches
from django.http import HttpRequest, HttpResponse, JsonResponse

DEFAULT_THROTTLE_LIMIT = 30  # classification requests
DEFAULT_THROTTLE_WINDOW = 60  # seconds
DEFAULT_THROTTLE_KEY_PREFIX = 'pageclassifier:throttle'


class ClassificationRateThrottle:
    """Per-client sliding-window limit on the classification endpoints.

    Every classify call triggers outbound fetches, so the API routes listed
    in ``THROTTLED_ROUTES`` are limited per client IP using the configured
    cache backend.
    """

    def __init__(
        self,
        get_response: Callable[[HttpRequest], HttpResponse],
        *,
        limit: int | None = None,
        window: int | None = None,
        cache_alias: str = 'default',
        key_prefix: str | None = None,
    ) -> None:
        self.get_response = get_response
        self.limit = limit or getattr(settings, 'THROTTLE_LIMIT', DEFAULT_THROTTLE_LIMIT)
        self.window = window or getattr(settings, 'THROTTLE_WINDOW', DEFAULT_THROTTLE_WINDOW)
        self.cache = caches[cache_alias]
        self.key_prefix = key_prefix or getattr(settings, 'THROTTLE_KEY_PREFIX', DEFAULT_THROTTLE_KEY_PREFIX)

    def __call__(self, request: HttpRequest) -> HttpResponse:
        return self.get_response(request)

    def process_view(self, request: HttpRequest, view_func, view_args, view_kwargs) -> HttpResponse | None:
        # resolver_match is only populated once URL resolution has run.
        resolved = getattr(request, 'resolver_match', None)
        if resolved is None:
            return None

        route_name = f"{resolved.namespace}:{resolved.url_name}" if resolved.namespace else resolved.url_name
        if route_name not in getattr(settings, 'THROTTLED_ROUTES', []):
            return None

        cache_key = f"{self.key_prefix}:{route_name}:{self._client_ip(request)}"
        now = time.time()
        bucket = [stamp for stamp in self.cache.get(cache_key, []) if stamp > now - self.window]

        if len(bucket) >= self.limit:
            return JsonResponse(
                {
                    'success': False,
                    'error': 'Rate limit exceeded. Try again shortly.',
                    'route': route_name,
                },
                status=429,
            )

        bucket.append(now)
        self.cache.set(cache_key, bucket, timeout=self.window)
        return None

    def _client_ip(self, request: HttpRequest) -> str:
        header = getattr(settings, 'THROTTLE_IP_HEADER', 'HTTP_X_FORWARDED_FOR')
        if header in request.META:
            return request.META[header].split(',')[0].strip()
        return request.META.get('REMOTE_ADDR', '0.0.0.0')
