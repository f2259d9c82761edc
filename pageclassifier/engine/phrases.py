"""Multi-word phrase candidates built from weighted n-gram density."""

from __future__ import annotations

import logging
from typing import Dict, Sequence

from .config import EngineConfig
from .stopwords import count_stop_words
from .text import ngrams, tokenize
from .types import PhraseCandidate, WeightedFragment

logger = logging.getLogger(__name__)


def extract_phrases(
    fragments: Sequence[WeightedFragment],
    config: EngineConfig,
) -> Dict[str, PhraseCandidate]:
    """Aggregate n-gram scores across fragments, keyed by lower-cased phrase.

    Every window of ``min_phrase_length`` to ``max_phrase_length`` tokens is a
    candidate unless more than half of its tokens are stop words. The first
    casing seen for a phrase is kept for display.
    """

    phrases: Dict[str, PhraseCandidate] = {}

    for fragment in fragments:
        tokens = tokenize(fragment.text, config.min_word_length)
        for size in range(config.min_phrase_length, config.max_phrase_length + 1):
            for window in ngrams(tokens, size):
                if _mostly_stop_words(window, config):
                    continue
                phrase = " ".join(window)
                key = phrase.lower()
                candidate = phrases.get(key)
                if candidate is None:
                    candidate = phrases[key] = PhraseCandidate(phrase=phrase)
                candidate.score += fragment.weight
                candidate.frequency += 1

    kept = {
        key: candidate
        for key, candidate in phrases.items()
        if len(candidate.phrase) >= config.min_phrase_char_length
    }
    logger.debug("Phrase candidates: %d kept of %d", len(kept), len(phrases))
    return kept


def _mostly_stop_words(window: Sequence[str], config: EngineConfig) -> bool:
    # A window with exactly half stop words is kept.
    return count_stop_words(window, config.stop_words) > len(window) / 2
