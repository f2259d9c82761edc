"""Collect weighted text fragments from a structured page record."""

from __future__ import annotations

from typing import Iterable, List

from .config import EngineConfig
from .types import FieldKind, PageRecord, WeightedFragment

_HEADING_KINDS = (
    ("h1", FieldKind.H1),
    ("h2", FieldKind.H2),
    ("h3", FieldKind.H3),
)


def collect_fragments(page: PageRecord, config: EngineConfig) -> List[WeightedFragment]:
    """Return page text as fragments in a fixed, deterministic order.

    Title, meta description and meta keywords come first, then h1, h2 and h3
    headings, structured content entries, link texts, image alt texts and
    finally a single truncated body fragment. Blank values are skipped.
    """

    fragments: List[WeightedFragment] = []

    def add(text: object, kind: FieldKind) -> None:
        if not isinstance(text, str) or not text.strip():
            return
        fragments.append(WeightedFragment(text=text, weight=config.weight(kind), source=kind))

    add(page.title, FieldKind.TITLE)
    add(page.meta_description, FieldKind.META_DESCRIPTION)
    add(page.meta_keywords, FieldKind.META_KEYWORDS)

    headings = page.headings or {}
    for level, kind in _HEADING_KINDS:
        for heading in headings.get(level) or []:
            add(heading, kind)

    for value in (page.structured_content or {}).values():
        for item in _flatten(value):
            add(item, FieldKind.STRUCTURED_CONTENT)

    for link in list(page.links or [])[: config.max_links]:
        add(link.text, FieldKind.LINK_TEXT)

    for image in list(page.images or [])[: config.max_images]:
        add(image.alt, FieldKind.IMAGE_ALT)

    body = page.body_text or ""
    add(body[: config.max_body_chars], FieldKind.BODY_TEXT)

    return fragments


def _flatten(value: object) -> Iterable[object]:
    if isinstance(value, str):
        return [value]
    if isinstance(value, (list, tuple)):
        return value
    return []
