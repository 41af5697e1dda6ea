"""Project a block's text, style ranges and entity ranges into paintable segments."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence, Union

from .document_model import (
    Block,
    ComponentData,
    EntityRange,
    EntityType,
    InlineStyle,
    InlineStyleRange,
    MentionData,
)
from .style_ranges import clamp_ranges

LOGGER = logging.getLogger(__name__)

Payload = Union[ComponentData, MentionData]


@dataclass(slots=True, frozen=True)
class EntityRef:
    """Resolved reference from a segment to its entity payload."""

    key: str
    type: EntityType
    payload: Optional[Payload] = None


@dataclass(slots=True, frozen=True)
class Segment:
    """Contiguous run of block text sharing the same styles and entity."""

    text: str
    offset: int
    styles: tuple[InlineStyle, ...] = ()
    entity: Optional[EntityRef] = None

    @property
    def end(self) -> int:
        return self.offset + len(self.text)

    @property
    def is_plain(self) -> bool:
        return not self.styles and self.entity is None


def segment_block(
    block: Block,
    *,
    components: Mapping[str, ComponentData] | None = None,
    mentions: Mapping[str, MentionData] | None = None,
) -> tuple[Segment, ...]:
    """Split ``block`` into segments covering its whole text in order.

    Style ranges come before entity ranges and both keep their insertion
    order among ranges starting at the same offset. Overlapping ranges are
    resolved per elementary interval: every covering style applies and the
    first covering entity owns the interval. Entities whose payload is
    missing from the side-tables render as plain text with their styles.
    """

    text = block.text
    if not text:
        return (Segment("", 0),)

    styles = clamp_ranges(block.style_ranges, len(text))
    entities = clamp_ranges(block.entity_ranges, len(text))
    if not styles and not entities:
        return (Segment(text, 0),)

    ordered_styles = _stable_by_offset(styles)
    ordered_entities = _stable_by_offset(entities)
    boundaries = _boundaries(len(text), ordered_styles, ordered_entities)

    segments: list[Segment] = []
    for start, end in zip(boundaries, boundaries[1:]):
        applied = _covering_styles(ordered_styles, start, end)
        entity = _covering_entity(ordered_entities, start, end)
        reference = _resolve(entity, components or {}, mentions or {}) if entity is not None else None
        previous = segments[-1] if segments else None
        if previous is not None and previous.styles == applied and previous.entity == reference:
            segments[-1] = Segment(previous.text + text[start:end], previous.offset, applied, reference)
        else:
            segments.append(Segment(text[start:end], start, applied, reference))
    return tuple(segments)


def segment_text(segments: Sequence[Segment]) -> str:
    return "".join(segment.text for segment in segments)


def _stable_by_offset(ranges):
    return sorted(ranges, key=lambda entry: entry.offset)


def _boundaries(
    length: int,
    styles: Sequence[InlineStyleRange],
    entities: Sequence[EntityRange],
) -> list[int]:
    points = {0, length}
    for entry in (*styles, *entities):
        points.add(entry.offset)
        points.add(entry.end)
    return sorted(points)


def _covering_styles(ranges: Sequence[InlineStyleRange], start: int, end: int) -> tuple[InlineStyle, ...]:
    applied: list[InlineStyle] = []
    for entry in ranges:
        if entry.offset <= start and entry.end >= end and entry.style not in applied:
            applied.append(entry.style)
    return tuple(applied)


def _covering_entity(ranges: Sequence[EntityRange], start: int, end: int) -> EntityRange | None:
    for entry in ranges:
        if entry.offset <= start and entry.end >= end:
            return entry
    return None


def _resolve(
    entity: EntityRange,
    components: Mapping[str, ComponentData],
    mentions: Mapping[str, MentionData],
) -> EntityRef | None:
    if entity.type is EntityType.LINK:
        return EntityRef(entity.key, entity.type, components.get(entity.key))
    table: Mapping[str, Payload] = components if entity.type is EntityType.COMPONENT else mentions
    payload = table.get(entity.key)
    if payload is None:
        LOGGER.debug("Rendering %s entity %r as plain text: payload missing", entity.type.value, entity.key)
        return None
    return EntityRef(entity.key, entity.type, payload)


__all__ = ["EntityRef", "Payload", "Segment", "segment_block", "segment_text"]
