"""Interval arithmetic for inline style ranges and entity ranges.

All helpers are pure: they accept a sequence of ranges and return a new
tuple, leaving the input untouched. Offsets are half-open ``[offset,
offset + length)`` intervals over a block's text.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from itertools import combinations
from typing import Iterable, Sequence, TypeVar

from ..core.ranges import TextRange
from .document_model import EntityRange, InlineStyle, InlineStyleRange

LOGGER = logging.getLogger(__name__)

R = TypeVar("R", InlineStyleRange, EntityRange)


def toggle_style_range(
    ranges: Sequence[InlineStyleRange],
    style: InlineStyle | str,
    start: int,
    end: int,
) -> tuple[InlineStyleRange, ...]:
    """Toggle ``style`` over ``[start, end)`` and return the updated range set.

    A range of the same style that fully contains the selection is removed,
    re-emitting the uncovered leading/trailing remainders. Otherwise a new
    range is added and merged with any overlapping or adjacent range of the
    same style. Empty or inverted selections leave the ranges unchanged.
    """

    current = tuple(ranges)
    target = InlineStyle(style)
    if start >= end:
        LOGGER.debug("Ignoring %s toggle over degenerate span [%s, %s)", target.value, start, end)
        return current

    current = _normalize_style(current, target)
    selection = TextRange(start, end)
    index = _find_covering(current, target, selection)
    if index is None:
        return _merge_into(current, InlineStyleRange(target, selection.start, selection.length))

    existing = current[index]
    remainders: list[InlineStyleRange] = []
    if selection.start > existing.offset:
        remainders.append(InlineStyleRange(target, existing.offset, selection.start - existing.offset))
    if selection.end < existing.end:
        remainders.append(InlineStyleRange(target, selection.end, existing.end - selection.end))
    return current[:index] + current[index + 1 :] + tuple(remainders)


def merge_style_ranges(ranges: Iterable[InlineStyleRange]) -> tuple[InlineStyleRange, ...]:
    """Merge overlapping or adjacent ranges of the same style.

    Zero-length ranges are dropped. Ranges of different styles never merge.
    """

    merged: tuple[InlineStyleRange, ...] = ()
    for entry in ranges:
        if entry.length <= 0:
            continue
        merged = _merge_into(merged, entry)
    return merged


def shift_ranges_for_insert(
    ranges: Sequence[R],
    position: int,
    length: int,
    *,
    grow_spanning: bool = True,
) -> tuple[R, ...]:
    """Adjust range offsets after ``length`` characters were inserted at ``position``.

    Ranges starting at or after the insertion point move right. Ranges that
    strictly span it grow when ``grow_spanning`` is set.
    """

    if length <= 0:
        return tuple(ranges)
    shifted: list[R] = []
    for entry in ranges:
        if entry.offset >= position:
            shifted.append(replace(entry, offset=entry.offset + length))
        elif grow_spanning and entry.offset < position < entry.end:
            shifted.append(replace(entry, length=entry.length + length))
        else:
            shifted.append(entry)
    return tuple(shifted)


def resolve_entity_insert_point(entity_ranges: Sequence[EntityRange], position: int) -> int:
    """Move ``position`` out of any entity it falls strictly inside.

    Entities are atomic, so an insertion inside one lands at its end instead.
    """

    resolved = position
    moved = True
    while moved:
        moved = False
        for entry in entity_ranges:
            if entry.offset < resolved < entry.end:
                resolved = entry.end
                moved = True
    return resolved


def clamp_ranges(ranges: Sequence[R], text_length: int) -> tuple[R, ...]:
    """Trim ranges to ``[0, text_length]`` and drop the ones that become empty."""

    clamped: list[R] = []
    for entry in ranges:
        bounded = entry.text_range().clamp(upper=text_length)
        if bounded.is_caret:
            continue
        if bounded.start == entry.offset and bounded.length == entry.length:
            clamped.append(entry)
        else:
            clamped.append(replace(entry, offset=bounded.start, length=bounded.length))
    return tuple(clamped)


def _normalize_style(
    ranges: tuple[InlineStyleRange, ...], style: InlineStyle
) -> tuple[InlineStyleRange, ...]:
    same = [entry for entry in ranges if entry.style is style]
    if not any(first.text_range().touches(second.text_range()) for first, second in combinations(same, 2)):
        return ranges
    LOGGER.debug("Merging overlapping %s ranges before toggle", style.value)
    others = tuple(entry for entry in ranges if entry.style is not style)
    return others + merge_style_ranges(same)


def _find_covering(
    ranges: Sequence[InlineStyleRange], style: InlineStyle, selection: TextRange
) -> int | None:
    for index, entry in enumerate(ranges):
        if entry.style is style and entry.text_range().contains(selection):
            return index
    return None


def _merge_into(
    ranges: tuple[InlineStyleRange, ...], candidate: InlineStyleRange
) -> tuple[InlineStyleRange, ...]:
    span = candidate.text_range()
    pending = ranges
    absorbed = True
    while absorbed:
        absorbed = False
        remaining: list[InlineStyleRange] = []
        for entry in pending:
            if entry.style is candidate.style and entry.text_range().touches(span):
                span = span.union(entry.text_range())
                absorbed = True
            else:
                remaining.append(entry)
        pending = tuple(remaining)
    return pending + (InlineStyleRange(candidate.style, span.start, span.length),)


__all__ = [
    "clamp_ranges",
    "merge_style_ranges",
    "resolve_entity_insert_point",
    "shift_ranges_for_insert",
    "toggle_style_range",
]
