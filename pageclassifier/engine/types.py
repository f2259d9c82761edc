"""Typed data structures used by the topic extraction pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Sequence, Union

StructuredValue = Union[str, Sequence[str]]


class FieldKind(str, Enum):
    """Page regions that contribute text, each with its own importance tier."""

    TITLE = "title"
    META_DESCRIPTION = "meta_description"
    META_KEYWORDS = "meta_keywords"
    H1 = "h1"
    H2 = "h2"
    H3 = "h3"
    STRUCTURED_CONTENT = "structured_content"
    LINK_TEXT = "link_text"
    IMAGE_ALT = "image_alt"
    BODY_TEXT = "body_text"


class TopicKind(str, Enum):
    KEYWORD = "keyword"
    PHRASE = "phrase"


@dataclass(frozen=True)
class LinkRef:
    href: str
    text: str = ""


@dataclass(frozen=True)
class ImageRef:
    src: str
    alt: str = ""


@dataclass(frozen=True)
class PageRecord:
    """Structured text of a fetched page, as produced by the scraper."""

    title: str = ""
    meta_description: str = ""
    meta_keywords: str = ""
    headings: Dict[str, List[str]] = field(default_factory=dict)
    body_text: str = ""
    links: List[LinkRef] = field(default_factory=list)
    images: List[ImageRef] = field(default_factory=list)
    structured_content: Dict[str, StructuredValue] = field(default_factory=dict)


@dataclass(frozen=True)
class WeightedFragment:
    """A unit of page text paired with the weight of the region it came from."""

    text: str
    weight: int
    source: FieldKind


@dataclass
class PhraseCandidate:
    """Aggregated score for one multi-word n-gram, keyed by its lower-cased text."""

    phrase: str
    score: int = 0
    frequency: int = 0


@dataclass
class KeywordCandidate:
    """Aggregated score for one lower-cased single token."""

    keyword: str
    score: int = 0
    frequency: int = 0


@dataclass(frozen=True)
class Topic:
    """A ranked topic returned to callers."""

    text: str
    score: float
    frequency: int
    kind: TopicKind

    def as_dict(self) -> Dict[str, object]:
        return {
            "topic": self.text,
            "score": self.score,
            "frequency": self.frequency,
            "type": self.kind.value,
        }
