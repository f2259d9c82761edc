"""Single-word keyword candidates."""

from __future__ import annotations

import logging
from typing import Dict, Sequence

from .config import EngineConfig
from .text import tokenize
from .types import KeywordCandidate, WeightedFragment

logger = logging.getLogger(__name__)


def extract_keywords(
    fragments: Sequence[WeightedFragment],
    config: EngineConfig,
) -> Dict[str, KeywordCandidate]:
    """Aggregate weighted occurrences of every non-stop-word token."""

    keywords: Dict[str, KeywordCandidate] = {}

    for fragment in fragments:
        for token in tokenize(fragment.text, config.min_word_length):
            word = token.lower()
            if not is_keyword(word, config):
                continue
            candidate = keywords.get(word)
            if candidate is None:
                candidate = keywords[word] = KeywordCandidate(keyword=word)
            candidate.score += fragment.weight
            candidate.frequency += 1

    logger.debug("Keyword candidates: %d", len(keywords))
    return keywords


def is_keyword(word: str, config: EngineConfig) -> bool:
    if word in config.stop_words:
        return False
    return config.min_word_length <= len(word) <= config.max_word_length
