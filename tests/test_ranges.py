"""Tests for :mod:`blockdraft.core.ranges`."""

from __future__ import annotations

import pytest

from blockdraft.core.ranges import TextRange
from blockdraft.editor.document_model import InlineStyle, InlineStyleRange


def test_text_range_swaps_inverted_bounds_and_clamps_negative() -> None:
    assert TextRange(7, 3) == TextRange(3, 7)
    assert (TextRange(-4, 2).start, TextRange(-4, 2).end) == (0, 2)


def test_text_range_rejects_non_integers() -> None:
    with pytest.raises(ValueError):
        TextRange("a", 3)
    with pytest.raises(ValueError):
        TextRange(True, 3)


def test_from_span_matches_block_range_offsets() -> None:
    span = InlineStyleRange(InlineStyle.BOLD, 2, 3).text_range()
    assert span == TextRange.from_span(2, 3) == TextRange(2, 5)
    assert span.length == 3
    assert not span.is_caret
    assert TextRange.from_span(4, 0).is_caret


def test_contains_versus_touch() -> None:
    left = TextRange(0, 5)
    adjacent = TextRange(5, 8)
    inside = TextRange(1, 3)

    assert left.touches(adjacent)
    assert not left.touches(TextRange(6, 8))
    assert left.contains(inside)
    assert not inside.contains(left)
    assert not left.contains(adjacent)
    assert left.union(adjacent) == TextRange(0, 8)


def test_clamp_limits_upper_bound() -> None:
    assert TextRange(3, 20).clamp(upper=10) == TextRange(3, 10)
    assert TextRange(12, 20).clamp(upper=10).is_caret
