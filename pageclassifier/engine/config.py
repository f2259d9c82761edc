"""Configuration helpers for the topic engine."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Mapping

import yaml

from .stopwords import DEFAULT_STOP_WORDS, build_stop_words
from .types import FieldKind


class EngineConfigError(ValueError):
    """Raised when engine configuration values are inconsistent."""


DEFAULT_FIELD_WEIGHTS: Mapping[FieldKind, int] = MappingProxyType(
    {
        FieldKind.TITLE: 10,
        FieldKind.H1: 9,
        FieldKind.META_DESCRIPTION: 8,
        FieldKind.STRUCTURED_CONTENT: 8,
        FieldKind.META_KEYWORDS: 7,
        FieldKind.H2: 6,
        FieldKind.H3: 5,
        FieldKind.IMAGE_ALT: 4,
        FieldKind.LINK_TEXT: 3,
        FieldKind.BODY_TEXT: 1,
    }
)


DEFAULTS: Dict[str, Any] = {
    "min_word_length": 2,
    "max_word_length": 50,
    "min_phrase_length": 2,
    "max_phrase_length": 5,
    "phrase_score_boost": 1.5,
    "min_phrase_char_length": 5,
    "max_links": 50,
    "max_images": 20,
    "max_body_chars": 5000,
    "max_topics": 20,
    "weights": {kind.value: weight for kind, weight in DEFAULT_FIELD_WEIGHTS.items()},
    "stop_words": sorted(DEFAULT_STOP_WORDS),
    "extra_stop_words": [],
}


@dataclass(frozen=True)
class EngineConfig:
    """Immutable set of tunables injected into every pipeline stage."""

    stop_words: FrozenSet[str] = DEFAULT_STOP_WORDS
    min_word_length: int = 2
    max_word_length: int = 50
    min_phrase_length: int = 2
    max_phrase_length: int = 5
    phrase_score_boost: float = 1.5
    min_phrase_char_length: int = 5
    field_weights: Mapping[FieldKind, int] = field(default_factory=lambda: DEFAULT_FIELD_WEIGHTS)
    max_links: int = 50
    max_images: int = 20
    max_body_chars: int = 5000
    max_topics: int = 20

    def __post_init__(self) -> None:
        _validate(self)
        object.__setattr__(self, "field_weights", MappingProxyType(dict(self.field_weights)))

    def weight(self, kind: FieldKind) -> int:
        return self.field_weights[kind]

    def is_stop_word(self, token: str) -> bool:
        return token.lower() in self.stop_words

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "EngineConfig":
        """Build a config from a plain dictionary shaped like ``DEFAULTS``."""

        raw_weights = raw.get("weights") or {}
        if not isinstance(raw_weights, Mapping):
            raise EngineConfigError("weights must be a mapping of field name to weight")

        weights: Dict[FieldKind, int] = dict(DEFAULT_FIELD_WEIGHTS)
        for key, value in raw_weights.items():
            try:
                kind = FieldKind(key)
            except ValueError as exc:
                raise EngineConfigError(f"Unknown field weight: {key!r}") from exc
            weights[kind] = _as_int(f"weights.{key}", value)

        stop_words = build_stop_words(raw.get("stop_words", DEFAULT_STOP_WORDS))
        stop_words |= build_stop_words(raw.get("extra_stop_words") or [])

        try:
            boost = float(raw.get("phrase_score_boost", 1.5))
        except (TypeError, ValueError) as exc:
            raise EngineConfigError("phrase_score_boost must be a number") from exc

        return cls(
            stop_words=stop_words,
            min_word_length=_as_int("min_word_length", raw.get("min_word_length", 2)),
            max_word_length=_as_int("max_word_length", raw.get("max_word_length", 50)),
            min_phrase_length=_as_int("min_phrase_length", raw.get("min_phrase_length", 2)),
            max_phrase_length=_as_int("max_phrase_length", raw.get("max_phrase_length", 5)),
            phrase_score_boost=boost,
            min_phrase_char_length=_as_int("min_phrase_char_length", raw.get("min_phrase_char_length", 5)),
            field_weights=MappingProxyType(weights),
            max_links=_as_int("max_links", raw.get("max_links", 50)),
            max_images=_as_int("max_images", raw.get("max_images", 20)),
            max_body_chars=_as_int("max_body_chars", raw.get("max_body_chars", 5000)),
            max_topics=_as_int("max_topics", raw.get("max_topics", 20)),
        )


def load_config(
    path: str | Path | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> EngineConfig:
    """Load configuration from YAML, merging with defaults."""

    data: Dict[str, Any] = copy.deepcopy(DEFAULTS)

    if path is not None and Path(path).exists():
        with Path(path).open("r", encoding="utf-8") as stream:
            user = yaml.safe_load(stream) or {}
        if not isinstance(user, dict):
            raise EngineConfigError(f"Engine config {path} must be a mapping")
        merge_into(data, user)

    if overrides:
        merge_into(data, dict(overrides))

    return EngineConfig.from_mapping(data)


def merge_into(base: Dict[str, Any], override: Mapping[str, Any]) -> None:
    """Recursively merge override into base dict."""

    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            merge_into(base[key], value)
        else:
            base[key] = value


def _as_int(name: str, value: Any) -> int:
    if isinstance(value, bool):
        raise EngineConfigError(f"{name} must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise EngineConfigError(f"{name} must be an integer") from exc


def _validate(config: EngineConfig) -> None:
    if config.min_word_length < 1:
        raise EngineConfigError("min_word_length must be at least 1")
    if config.max_word_length < config.min_word_length:
        raise EngineConfigError("max_word_length must not be smaller than min_word_length")
    if config.min_phrase_length < 2:
        raise EngineConfigError("min_phrase_length must be at least 2")
    if config.min_phrase_length > config.max_phrase_length:
        raise EngineConfigError("min_phrase_length must not exceed max_phrase_length")
    if config.phrase_score_boost <= 0:
        raise EngineConfigError("phrase_score_boost must be positive")
    if config.min_phrase_char_length < 0:
        raise EngineConfigError("min_phrase_char_length must not be negative")
    for name in ("max_links", "max_images", "max_body_chars"):
        if getattr(config, name) < 0:
            raise EngineConfigError(f"{name} must not be negative")
    if config.max_topics < 1:
        raise EngineConfigError("max_topics must be at least 1")
    missing = [kind.value for kind in FieldKind if kind not in config.field_weights]
    if missing:
        raise EngineConfigError(f"Missing field weights: {', '.join(missing)}")
    for kind, weight in config.field_weights.items():
        if weight < 1:
            raise EngineConfigError(f"Weight for {kind.value} must be at least 1")
