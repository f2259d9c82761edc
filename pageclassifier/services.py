"""Service functions for classifying web pages by topic.

These functions glue the scraper to the topic engine so they can be unit
tested and reused from the views. They validate the requested URL, fetch
and parse the page, run the extraction engine, trim its output to the
caller's limit and describe the outcome as a plain dictionary ready for
JSON serialisation. Fetch and parse problems are reported as failed
results rather than raised.
"""

from __future__ import annotations

import logging
import time
from functools import lru_cache
from typing import Any, Callable, Dict, List, Sequence
from urllib.parse import urlparse

from django.conf import settings

from .engine.config import EngineConfig, load_config
from .engine.index import analyze_page
from .engine.types import PageRecord, TopicKind
from .scraper import DEFAULT_TIMEOUT, DEFAULT_USER_AGENT, ScrapeError, scrape

logger = logging.getLogger(__name__)

DEFAULT_TOPIC_LIMIT = 10
MAX_TOPIC_LIMIT = 50
DEFAULT_BATCH_DELAY = 0.5

Fetcher = Callable[[str], PageRecord]


class ClassificationError(Exception):
    """Base class for request-level failures reported back to the caller."""


class InvalidURLError(ClassificationError):
    """Raised when the URL is not an absolute http(s) URL."""


def is_valid_url(url: str | None) -> bool:
    """Return ``True`` for absolute ``http``/``https`` URLs with a host."""

    if not url or not isinstance(url, str):
        return False
    parsed = urlparse(url.strip())
    return parsed.scheme.lower() in {'http', 'https'} and bool(parsed.netloc)


def validate_url(url: str | None) -> str:
    if not is_valid_url(url):
        raise InvalidURLError('Invalid URL provided')
    return url.strip()  # type: ignore[union-attr]


def clamp_limit(value: Any, default: int | None = None) -> int:
    """Coerce ``value`` into the allowed ``[1, MAX_TOPIC_LIMIT]`` range."""

    fallback = default if default is not None else getattr(settings, 'PAGECLASSIFIER_DEFAULT_LIMIT', DEFAULT_TOPIC_LIMIT)
    maximum = getattr(settings, 'PAGECLASSIFIER_MAX_LIMIT', MAX_TOPIC_LIMIT)
    try:
        limit = int(value)
    except (TypeError, ValueError):
        limit = fallback
    return max(1, min(limit, maximum))


@lru_cache(maxsize=1)
def get_engine_config() -> EngineConfig:
    """Load the engine configuration named in settings once per process."""

    path = getattr(settings, 'TOPIC_ENGINE_CONFIG', None)
    config = load_config(path)
    logger.info('Loaded topic engine configuration from %s', path or 'defaults')
    return config


def _default_fetch(url: str) -> PageRecord:
    return scrape(
        url,
        timeout=getattr(settings, 'PAGECLASSIFIER_FETCH_TIMEOUT', DEFAULT_TIMEOUT),
        user_agent=getattr(settings, 'PAGECLASSIFIER_USER_AGENT', DEFAULT_USER_AGENT),
    )


def classify(
    url: str,
    limit: int = DEFAULT_TOPIC_LIMIT,
    *,
    config: EngineConfig | None = None,
    fetch: Fetcher | None = None,
) -> Dict[str, Any]:
    """Classify a page by URL and return its most relevant topics.

    Parameters
    ----------
    url:
        The absolute URL to classify.
    limit:
        Maximum number of topics to return; clamped to ``[1, 50]`` and
        applied after the engine's own ceiling.
    config:
        Engine configuration; defaults to the one configured in settings.
    fetch:
        Callable turning a URL into a :class:`PageRecord`. Defaults to
        :func:`pageclassifier.scraper.scrape`.

    Returns
    -------
    dict
        ``success``, ``url`` and either the topic lists with timing metadata
        or an ``error`` message.
    """

    topic_limit = clamp_limit(limit)
    engine_config = config or get_engine_config()
    fetcher = fetch or _default_fetch

    try:
        target = validate_url(url)
        logger.info('Classifying page %s', target)

        started = time.perf_counter()
        page = fetcher(target)
        scrape_time = time.perf_counter() - started
        logger.info('Page scraped %s in %.2fs', target, scrape_time)
    except (ClassificationError, ScrapeError) as exc:
        logger.warning('Page classification failed for %s: %s', url, exc)
        return {
            'success': False,
            'url': url,
            'error': str(exc),
            'topics': [],
        }

    started = time.perf_counter()
    analysis = analyze_page(page, engine_config)
    extraction_time = time.perf_counter() - started

    all_topics = analysis.topics
    logger.info('Topics extracted for %s: %d found in %.2fs', target, len(all_topics), extraction_time)

    topics = all_topics[:topic_limit]
    return {
        'success': True,
        'url': target,
        'page_title': page.title or '',
        'topics': [topic.text for topic in topics],
        'topics_detailed': [topic.as_dict() for topic in topics],
        'metadata': {
            'scrape_time': round(scrape_time, 3),
            'extraction_time': round(extraction_time, 3),
            'total_time': round(scrape_time + extraction_time, 3),
            'topics_found': len(all_topics),
            'topics_returned': len(topics),
            'phrase_candidates': len(analysis.phrases),
            'keyword_candidates': len(analysis.keywords),
        },
    }


def classify_batch(
    urls: Sequence[str],
    limit: int = DEFAULT_TOPIC_LIMIT,
    *,
    delay: float | None = None,
    sleep: Callable[[float], None] = time.sleep,
    config: EngineConfig | None = None,
    fetch: Fetcher | None = None,
) -> Dict[str, Any]:
    """Classify several URLs one after another.

    A politeness ``delay`` (seconds) separates consecutive fetches. Each
    URL produces its own success or failure entry in ``results``.
    """

    pause = delay if delay is not None else getattr(settings, 'PAGECLASSIFIER_BATCH_DELAY', DEFAULT_BATCH_DELAY)
    results: List[Dict[str, Any]] = []

    for index, url in enumerate(urls):
        if index and pause > 0:
            sleep(pause)
        results.append(classify(url, limit, config=config, fetch=fetch))

    return {
        'success': True,
        'total_urls': len(urls),
        'results': results,
    }


def summarize(result: Dict[str, Any]) -> Dict[str, Any]:
    """Return summary statistics for a classification result."""

    if not result.get('success'):
        return {
            'status': 'failed',
            'error': result.get('error') or 'Unknown error',
        }

    topics = result.get('topics_detailed') or []
    phrase_count = sum(1 for topic in topics if topic['type'] == TopicKind.PHRASE.value)
    keyword_count = len(topics) - phrase_count
    average = sum(topic['score'] for topic in topics) / len(topics) if topics else 0.0

    return {
        'status': 'success',
        'page_title': result.get('page_title', ''),
        'total_topics': len(topics),
        'phrase_count': phrase_count,
        'keyword_count': keyword_count,
        'average_score': round(average, 2),
        'processing_time': result.get('metadata', {}).get('total_time', 0),
    }
