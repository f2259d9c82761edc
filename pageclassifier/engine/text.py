"""Shared text utilities for the topic engine."""

from __future__ import annotations

import re
import unicodedata
from typing import List, Sequence

_WHITESPACE_RE = re.compile(r"\s+")

# Unicode major categories kept inside words: letters, combining marks
# (Devanagari vowel signs, Thai tone marks, ...) and numbers.
_WORD_CATEGORIES = frozenset("LMN")


def _word_char(char: str) -> bool:
    return char == "-" or char.isspace() or unicodedata.category(char)[0] in _WORD_CATEGORIES


def tokenize(text: str, min_length: int = 2) -> List[str]:
    """Return word tokens from the text in their original casing.

    Punctuation and symbols (the underscore included) are replaced with
    spaces, hyphenated words are kept whole and tokens shorter than
    ``min_length`` characters are dropped.
    """

    if not text:
        return []
    cleaned = "".join(char if _word_char(char) else " " for char in text)
    return [token for token in _WHITESPACE_RE.split(cleaned) if token and len(token) >= min_length]


def ngrams(tokens: Sequence[str], size: int) -> List[Sequence[str]]:
    """Return every contiguous window of ``size`` tokens."""

    if size <= 0:
        return []
    return [tokens[index:index + size] for index in range(len(tokens) - size + 1)]
