"""Scoring, ranking and de-duplication of topic candidates."""

from __future__ import annotations

from typing import List, Mapping

from .config import EngineConfig
from .types import KeywordCandidate, PhraseCandidate, Topic, TopicKind


def display_text(text: str) -> str:
    """Return the canonical display form of a topic.

    Multi-word topics are lower-cased and the first letter of each
    space-separated word is capitalised; single words are returned as-is.
    """

    cleaned = text.strip()
    if " " not in cleaned:
        return cleaned
    return " ".join(word[:1].upper() + word[1:] for word in cleaned.lower().split(" "))


def rank_topics(
    phrases: Mapping[str, PhraseCandidate],
    keywords: Mapping[str, KeywordCandidate],
    config: EngineConfig,
) -> List[Topic]:
    """Merge phrase and keyword candidates into an ordered topic list."""

    topics: List[Topic] = []
    for candidate in phrases.values():
        topics.append(
            Topic(
                text=display_text(candidate.phrase),
                score=candidate.score * config.phrase_score_boost,
                frequency=candidate.frequency,
                kind=TopicKind.PHRASE,
            )
        )
    for candidate in keywords.values():
        topics.append(
            Topic(
                text=candidate.keyword,
                score=float(candidate.score),
                frequency=candidate.frequency,
                kind=TopicKind.KEYWORD,
            )
        )

    # sorted() is stable, so equal scores keep phrase-then-keyword insertion order.
    topics = sorted(topics, key=lambda topic: topic.score, reverse=True)
    return remove_duplicates(topics)[: config.max_topics]


def remove_duplicates(topics: List[Topic]) -> List[Topic]:
    """Drop exact duplicates and keywords already covered by a stronger phrase.

    Coverage is plain case-insensitive substring containment, so a keyword
    such as ``art`` is dropped under a higher-scored ``Smart Phone``.
    """

    unique: List[Topic] = []
    seen: set[str] = set()

    for topic in topics:
        normalized = topic.text.lower()
        if normalized in seen:
            continue
        if topic.kind is TopicKind.KEYWORD and _covered_by_phrase(topic, normalized, unique):
            continue
        seen.add(normalized)
        unique.append(topic)

    return unique


def _covered_by_phrase(topic: Topic, normalized: str, kept: List[Topic]) -> bool:
    for existing in kept:
        if (
            existing.kind is TopicKind.PHRASE
            and existing.score > topic.score
            and normalized in existing.text.lower()
        ):
            return True
    return False
