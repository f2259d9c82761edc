"""Default English stop-word vocabulary."""

from __future__ import annotations

from typing import FrozenSet, Iterable

DEFAULT_STOP_WORDS: FrozenSet[str] = frozenset(
    """
    a an and are as at be by for from has he in is it its of on that the to was
    will with this but they have had what when where who which why how all each
    every both few more most other some such no nor not only own same so than
    too very s t can just don should now i you your my our their his her am been
    being having does did doing would could ought im youre hes shes were theyre
    ive youve weve theyve id youd hed shed wed theyd ill youll hell shell well
    theyll isnt arent wasnt werent hasnt havent hadnt doesnt dont didnt wont
    wouldnt shant shouldnt cant cannot couldnt mustnt lets thats whos whats
    heres theres whens wheres whys hows get got also may might must need shall
    go going gone make made making see seen saw one two three four five six
    seven eight nine ten about above after again against among any because
    before below between down during further here into off once out over then
    there these those through under until up upon while within without yes yet
    new amp nbsp if or
    """.split()
)


def build_stop_words(words: Iterable[str]) -> FrozenSet[str]:
    """Return a lower-cased, frozen stop-word set with blanks removed."""

    return frozenset(word.strip().lower() for word in words if word and word.strip())


def count_stop_words(tokens: Iterable[str], stop_words: FrozenSet[str]) -> int:
    return sum(1 for token in tokens if token.lower() in stop_words)
