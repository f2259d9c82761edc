"""Coordinator for the topic extraction pipeline."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List

from . import fragments as fragments_module
from . import keywords as keywords_module
from . import phrases as phrases_module
from . import rank as rank_module
from .config import EngineConfig, load_config
from .types import KeywordCandidate, PageRecord, PhraseCandidate, Topic, WeightedFragment

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TopicAnalysis:
    """Intermediate and final results of one extraction pass."""

    fragments: List[WeightedFragment]
    phrases: Dict[str, PhraseCandidate]
    keywords: Dict[str, KeywordCandidate]
    topics: List[Topic]


def analyze_page(page: PageRecord, config: EngineConfig | None = None) -> TopicAnalysis:
    """Run every stage of the pipeline and keep the intermediate candidates."""

    engine_config = config or load_config(None)

    fragments = fragments_module.collect_fragments(page, engine_config)
    phrases = phrases_module.extract_phrases(fragments, engine_config)
    keywords = keywords_module.extract_keywords(fragments, engine_config)
    topics = rank_module.rank_topics(phrases, keywords, engine_config)

    logger.debug(
        "Extracted %d topics from %d fragments (%d phrases, %d keywords)",
        len(topics),
        len(fragments),
        len(phrases),
        len(keywords),
    )
    return TopicAnalysis(fragments=fragments, phrases=phrases, keywords=keywords, topics=topics)


def extract_topics(page: PageRecord, config: EngineConfig | None = None) -> List[Topic]:
    """Return the ranked topic list for the page."""

    return analyze_page(page, config).topics
