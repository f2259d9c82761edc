"""Shared fixtures for topic engine tests."""

from __future__ import annotations

from typing import Dict, Iterable, List

import pytest

from pageclassifier.engine.config import load_config
from pageclassifier.engine.types import FieldKind, ImageRef, LinkRef, PageRecord, WeightedFragment


@pytest.fixture()
def engine_config():
    """Provide the default engine configuration."""

    return load_config(None)


def make_page(
    title: str = "",
    *,
    meta_description: str = "",
    meta_keywords: str = "",
    h1: Iterable[str] = (),
    h2: Iterable[str] = (),
    h3: Iterable[str] = (),
    body: str = "",
    link_texts: Iterable[str] = (),
    image_alts: Iterable[str] = (),
    structured: Dict[str, object] | None = None,
) -> PageRecord:
    headings: Dict[str, List[str]] = {}
    for level, values in (("h1", h1), ("h2", h2), ("h3", h3)):
        if values:
            headings[level] = list(values)
    return PageRecord(
        title=title,
        meta_description=meta_description,
        meta_keywords=meta_keywords,
        headings=headings,
        body_text=body,
        links=[LinkRef(href=f"/link-{index}", text=text) for index, text in enumerate(link_texts)],
        images=[ImageRef(src=f"/img-{index}.png", alt=alt) for index, alt in enumerate(image_alts)],
        structured_content=dict(structured or {}),
    )


def fragment(text: str, weight: int = 1, source: FieldKind = FieldKind.BODY_TEXT) -> WeightedFragment:
    return WeightedFragment(text=text, weight=weight, source=source)
