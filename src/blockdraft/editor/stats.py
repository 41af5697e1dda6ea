"""Word counts and mention-trigger detection for the editor shell."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Sequence

from .document_model import DocumentState, MentionData

MENTION_TRIGGER = "@"
DEFAULT_MENTION_WINDOW = 20

_WORD_RE = re.compile(r"\S+")


@dataclass(slots=True, frozen=True)
class DocumentStats:
    words: int
    characters: int
    blocks: int


@dataclass(slots=True, frozen=True)
class MentionQuery:
    """Pending mention: ``start`` is the offset of the trigger character."""

    start: int
    query: str

    @property
    def end(self) -> int:
        return self.start + len(MENTION_TRIGGER) + len(self.query)


def document_stats(state: DocumentState) -> DocumentStats:
    """Count whitespace-separated words and characters across all blocks."""

    words = 0
    characters = 0
    for block in state.blocks:
        words += len(_WORD_RE.findall(block.text))
        characters += len(block.text)
    return DocumentStats(words=words, characters=characters, blocks=len(state.blocks))


def find_mention_query(text: str, caret: int, max_distance: int = DEFAULT_MENTION_WINDOW) -> MentionQuery | None:
    """Return the mention being typed before ``caret``, if any.

    The nearest trigger before the caret opens a query when it lies within
    ``max_distance`` characters of the caret.
    """

    caret = max(0, min(int(caret), len(text)))
    start = text.rfind(MENTION_TRIGGER, 0, caret)
    if start < 0 or caret - start > max_distance:
        return None
    return MentionQuery(start=start, query=text[start + len(MENTION_TRIGGER) : caret])


def filter_mentions(candidates: Iterable[MentionData], query: str) -> Sequence[MentionData]:
    """Return the candidates whose name contains ``query`` (case-insensitive)."""

    needle = query.casefold()
    return [candidate for candidate in candidates if needle in candidate.name.casefold()]


__all__ = [
    "DEFAULT_MENTION_WINDOW",
    "DocumentStats",
    "MENTION_TRIGGER",
    "MentionQuery",
    "document_stats",
    "filter_mentions",
    "find_mention_query",
]
