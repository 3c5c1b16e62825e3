"""Phrase tokenizing and cross-phrase capitalization.

Puzzles are authored as plain sentences, so the same word can show up as
"The" at the start of one phrase and "the" in the middle of another. Both
phrases are tokenized together and every token is rewritten to a single
canonical spelling, which keeps placement and completion checks honest.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Literal


Role = Literal['target', 'facsimile']
Owner = Literal['target', 'facsimile', 'shared']

_SEPARATORS = re.compile(r'[\s—–]+')  # whitespace, em dash, en dash
_STRIP_CHARS = '.,!?;:"()[]{}'


@dataclass(frozen=True)
class WordToken:
    text: str
    key: str
    owner: Owner
    source_index: int
    phrase: Role

    @property
    def catalog_key(self) -> str:
        # Unique across both phrases even when the literal repeats
        return f"{self.phrase}-{self.source_index}"


@dataclass(frozen=True)
class Phrase:
    id: str
    text: str
    tokens: tuple[WordToken, ...]
    role: Role

    @property
    def words(self) -> list[str]:
        return [t.text for t in self.tokens]

    @property
    def keys(self) -> list[str]:
        return [t.key for t in self.tokens]

    def __len__(self) -> int:
        return len(self.tokens)


def parse_words(text: str) -> list[str]:
    """Split a phrase into words, trimming punctuation off each end.

    Apostrophes and inner punctuation ("U.S", "3.14") are kept.
    """
    if not text:
        return []
    words = []
    for chunk in _SEPARATORS.split(text):
        word = chunk.strip(_STRIP_CHARS)
        if word:
            words.append(word)
    return words


def parse(text: str, role: Role = 'target') -> list[WordToken]:
    return [
        WordToken(text=w, key=w.lower(), owner=role, source_index=i, phrase=role)
        for i, w in enumerate(parse_words(text))
    ]


def normalize_across_corpus(texts: Iterable[str]) -> dict[str, str]:
    """Map each lowercase word to the spelling it should be shown with.

    A word keeps its capital only if it is never seen in lowercase anywhere
    in the corpus (a proper noun, or a word that only ever opens a sentence).
    """
    capitalized: dict[str, str] = {}
    seen_lower: set[str] = set()
    for text in texts:
        for word in parse_words(text):
            key = word.lower()
            if word[0].isupper():
                capitalized.setdefault(key, word)
            else:
                seen_lower.add(key)

    canonical = {key: key for key in seen_lower}
    for key, spelling in capitalized.items():
        if key not in seen_lower:
            canonical[key] = spelling
    return canonical


def _tokens_for(words: list[str], role: Role, canonical: dict[str, str],
                other_keys: set[str]) -> tuple[WordToken, ...]:
    tokens = []
    for i, word in enumerate(words):
        key = word.lower()
        tokens.append(WordToken(
            text=canonical.get(key, word),
            key=key,
            owner='shared' if key in other_keys else role,
            source_index=i,
            phrase=role,
        ))
    return tuple(tokens)


def build_phrases(target_text: str, facsimile_text: str) -> tuple[Phrase, Phrase]:
    """Tokenize both phrases of a puzzle with shared capitalization and ownership."""
    canonical = normalize_across_corpus([target_text, facsimile_text])
    target_words = parse_words(target_text)
    facsimile_words = parse_words(facsimile_text)
    target_keys = {w.lower() for w in target_words}
    facsimile_keys = {w.lower() for w in facsimile_words}

    target = Phrase(
        id='target',
        text=target_text,
        tokens=_tokens_for(target_words, 'target', canonical, facsimile_keys),
        role='target',
    )
    facsimile = Phrase(
        id='facsimile',
        text=facsimile_text,
        tokens=_tokens_for(facsimile_words, 'facsimile', canonical, target_keys),
        role='facsimile',
    )
    return target, facsimile


def unique_word_count(target: Phrase, facsimile: Phrase) -> int:
    return len({t.key for t in target.tokens} | {t.key for t in facsimile.tokens})
