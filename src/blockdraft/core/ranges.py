"""Half-open offset intervals used by style and entity range arithmetic."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(slots=True, frozen=True)
class TextRange:
    """``[start, end)`` interval over code point offsets of a block's text.

    Bounds are coerced to non-negative integers and swapped when inverted,
    so every instance is well-formed.
    """

    start: int
    end: int

    def __post_init__(self) -> None:
        start = self._coerce_offset(self.start, "start")
        end = self._coerce_offset(self.end, "end")
        if end < start:
            start, end = end, start
        object.__setattr__(self, "start", start)
        object.__setattr__(self, "end", end)

    @staticmethod
    def _coerce_offset(value: Any, label: str) -> int:
        if isinstance(value, bool):
            raise ValueError(f"TextRange {label} must be an integer")
        try:
            number = int(value)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"TextRange {label} must be an integer") from exc
        return max(0, number)

    @classmethod
    def from_span(cls, offset: int, length: int) -> TextRange:
        """Build a range from the ``offset``/``length`` pair stored on block ranges."""

        return cls(offset, int(offset) + int(length))

    @property
    def length(self) -> int:
        return self.end - self.start

    @property
    def is_caret(self) -> bool:
        return self.start == self.end

    def contains(self, other: TextRange) -> bool:
        """Return ``True`` when ``other`` lies entirely inside this range."""

        return self.start <= other.start and other.end <= self.end

    def touches(self, other: TextRange) -> bool:
        """Return ``True`` for overlapping or directly adjacent ranges."""

        return self.start <= other.end and other.start <= self.end

    def union(self, other: TextRange) -> TextRange:
        return TextRange(min(self.start, other.start), max(self.end, other.end))

    def clamp(self, *, upper: int) -> TextRange:
        """Trim the range so neither bound passes ``upper``."""

        return TextRange(min(self.start, upper), min(self.end, upper))


__all__ = ["TextRange"]
