"""Fetch a web page and parse it into a structured ``PageRecord``.

The scraper is the only part of the application that talks to the network
or inspects markup. It downloads the raw HTML with ``urllib.request`` and
hands it to BeautifulSoup, which pulls out the regions the topic engine
weighs differently: title, meta tags, headings, link and image text,
structured product/article content and the visible body text.
"""

from __future__ import annotations

import gzip
import re
import urllib.error
import urllib.request
from typing import Dict, List

from bs4 import BeautifulSoup, FeatureNotFound  # type: ignore

from .engine.types import ImageRef, LinkRef, PageRecord, StructuredValue

DEFAULT_TIMEOUT = 30
DEFAULT_USER_AGENT = 'Mozilla/5.0 (compatible; PageClassifierBot/1.0)'

# Removed before body text is read; headings are collected before this happens.
NOISE_TAGS: tuple[str, ...] = ('script', 'style', 'nav', 'footer', 'header')

PRODUCT_TITLE_SELECTOR = '#productTitle, .product-title, [data-testid="product-title"]'
ARTICLE_TITLE_SELECTOR = 'article h1, .article-title, [itemprop="headline"]'
BREADCRUMB_SELECTOR = '.breadcrumb a, [aria-label="breadcrumb"] a, #breadcrumbs a'

_WHITESPACE_RE = re.compile(r"\s+")


class ScrapeError(Exception):
    """Base class for failures while fetching or parsing a page."""


class PageFetchError(ScrapeError):
    """Raised when a page cannot be downloaded or decoded."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f'Failed to fetch URL: {reason}')
        self.url = url
        self.reason = reason


def fetch_html(url: str, timeout: int = DEFAULT_TIMEOUT, user_agent: str = DEFAULT_USER_AGENT) -> str:
    """Download ``url`` and return its decoded HTML.

    Parameters
    ----------
    url:
        Absolute http(s) URL of the page.
    timeout:
        Timeout (in seconds) for the HTTP request.
    user_agent:
        Value sent in the ``User-Agent`` header.

    Returns
    -------
    str
        The decoded document.

    Raises
    ------
    PageFetchError
        On network errors, non-success HTTP responses or undecodable bodies.
    """

    request = urllib.request.Request(
        url,
        headers={
            'User-Agent': user_agent,
            'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8',
            'Accept-Language': 'en-US,en;q=0.5',
        },
    )
    try:
        with urllib.request.urlopen(request, timeout=timeout) as resp:
            data = resp.read()
            content_encoding = resp.headers.get('Content-Encoding', '')
            charset = resp.headers.get_content_charset() or 'utf-8'
    except urllib.error.HTTPError as exc:
        raise PageFetchError(url, f'HTTP {exc.code} {exc.reason}') from exc
    except urllib.error.URLError as exc:
        raise PageFetchError(url, str(exc.reason)) from exc
    except (OSError, ValueError) as exc:
        raise PageFetchError(url, str(exc)) from exc

    if 'gzip' in content_encoding.lower():
        try:
            data = gzip.decompress(data)
        except OSError as exc:
            raise PageFetchError(url, 'Malformed gzip response body') from exc

    try:
        return data.decode('utf-8')
    except UnicodeDecodeError:
        try:
            return data.decode(charset, errors='replace')
        except LookupError as exc:
            raise PageFetchError(url, f'Unknown charset {charset!r}') from exc


def parse_html(html: str) -> PageRecord:
    """Parse ``html`` into a :class:`PageRecord`.

    Headings are read from the untouched document. Scripts, styles and page
    chrome (nav, header, footer) are then removed, so body text, links,
    images and structured content only reflect the main content.
    """

    try:
        soup = BeautifulSoup(html or '', 'lxml')
    except FeatureNotFound:
        # Fallback to html.parser if lxml isn't installed
        soup = BeautifulSoup(html or '', 'html.parser')

    title = _clean(soup.title.get_text()) if soup.title else ''
    meta_description = _meta_content(soup, 'description')
    meta_keywords = _meta_content(soup, 'keywords')
    headings = _extract_headings(soup)

    for node in soup.find_all(list(NOISE_TAGS)):
        # Nested chrome (a nav inside a header) is already gone with its parent.
        if not node.decomposed:
            node.decompose()

    return PageRecord(
        title=title,
        meta_description=meta_description,
        meta_keywords=meta_keywords,
        headings=headings,
        body_text=_extract_body_text(soup),
        links=_extract_links(soup),
        images=_extract_images(soup),
        structured_content=_extract_structured_content(soup),
    )


def scrape(url: str, timeout: int = DEFAULT_TIMEOUT, user_agent: str = DEFAULT_USER_AGENT) -> PageRecord:
    """Fetch and parse a URL in one step."""

    return parse_html(fetch_html(url, timeout=timeout, user_agent=user_agent))


def _clean(text: str) -> str:
    return _WHITESPACE_RE.sub(' ', text or '').strip()


def _meta_content(soup: BeautifulSoup, name: str) -> str:
    tag = soup.find('meta', attrs={'name': re.compile(f'^{name}$', re.IGNORECASE)})
    if tag is None:
        return ''
    return _clean(tag.get('content') or '')


def _extract_headings(soup: BeautifulSoup) -> Dict[str, List[str]]:
    headings: Dict[str, List[str]] = {}
    for level in range(1, 7):
        name = f'h{level}'
        for node in soup.find_all(name):
            text = _clean(node.get_text(' '))
            if text:
                headings.setdefault(name, []).append(text)
    return headings


def _extract_body_text(soup: BeautifulSoup) -> str:
    body = soup.body
    if body is None:
        return ''
    return _clean(body.get_text(' '))


def _extract_links(soup: BeautifulSoup) -> List[LinkRef]:
    links: List[LinkRef] = []
    for anchor in soup.find_all('a', href=True):
        href = anchor['href'].strip()
        text = _clean(anchor.get_text(' '))
        if href and text:
            links.append(LinkRef(href=href, text=text))
    return links


def _extract_images(soup: BeautifulSoup) -> List[ImageRef]:
    images: List[ImageRef] = []
    for image in soup.find_all('img'):
        src = (image.get('src') or '').strip()
        if src:
            images.append(ImageRef(src=src, alt=_clean(image.get('alt') or '')))
    return images


def _extract_structured_content(soup: BeautifulSoup) -> Dict[str, StructuredValue]:
    structured: Dict[str, StructuredValue] = {}

    product_title = soup.select_one(PRODUCT_TITLE_SELECTOR)
    if product_title is not None:
        text = _clean(product_title.get_text(' '))
        if text:
            structured['product_title'] = text

    article_title = soup.select_one(ARTICLE_TITLE_SELECTOR)
    if article_title is not None:
        text = _clean(article_title.get_text(' '))
        if text:
            structured['article_title'] = text

    breadcrumbs = [
        text
        for text in (_clean(node.get_text(' ')) for node in soup.select(BREADCRUMB_SELECTOR))
        if text
    ]
    if breadcrumbs:
        structured['breadcrumbs'] = breadcrumbs

    return structured
