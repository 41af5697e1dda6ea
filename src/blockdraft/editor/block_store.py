"""Keyed lookup and block-level mutation primitives over the block sequence.

Every helper returns new objects; the input sequence and blocks are never
modified. Replacement keeps every untouched ``Block`` instance as-is so
snapshots share structure.
"""

from __future__ import annotations

import uuid
from typing import Sequence

from .document_model import Block, BlockType, EntityRange, InlineStyleRange
from .style_ranges import clamp_ranges, shift_ranges_for_insert


def new_block_key() -> str:
    """Return a fresh block key that is never reused within a session."""

    return f"block-{uuid.uuid4().hex}"


def create_block(
    text: str = "",
    block_type: BlockType | str = BlockType.PARAGRAPH,
    *,
    key: str | None = None,
    depth: int = 0,
    style_ranges: Sequence[InlineStyleRange] = (),
    entity_ranges: Sequence[EntityRange] = (),
) -> Block:
    """Build a block, clamping any supplied ranges to its text."""

    return Block(
        key=key or new_block_key(),
        text=text,
        block_type=BlockType(block_type),
        depth=depth,
        style_ranges=clamp_ranges(tuple(style_ranges), len(text)),
        entity_ranges=clamp_ranges(tuple(entity_ranges), len(text)),
    )


def find_index(blocks: Sequence[Block], key: str) -> int | None:
    """Return the position of the block with ``key`` or ``None`` when absent."""

    if not key:
        return None
    for index, block in enumerate(blocks):
        if block.key == key:
            return index
    return None


def get_block(blocks: Sequence[Block], key: str) -> Block | None:
    index = find_index(blocks, key)
    if index is None:
        return None
    return blocks[index]


def replace_at(blocks: Sequence[Block], index: int, block: Block) -> tuple[Block, ...]:
    """Return a new block tuple with ``block`` at ``index``."""

    current = tuple(blocks)
    if not 0 <= index < len(current):
        raise IndexError(f"Block index {index} out of range")
    return current[:index] + (block,) + current[index + 1 :]


def set_block_type(block: Block, block_type: BlockType | str) -> Block:
    resolved = BlockType(block_type)
    if block.block_type is resolved:
        return block
    return block.with_changes(block_type=resolved)


def set_style_ranges(block: Block, ranges: Sequence[InlineStyleRange]) -> Block:
    return block.with_changes(style_ranges=tuple(ranges))


def append_entity_range(block: Block, entity: EntityRange) -> Block:
    return block.with_changes(entity_ranges=block.entity_ranges + (entity,))


def insert_text(
    block: Block,
    position: int,
    text: str,
    *,
    entity_range: EntityRange | None = None,
) -> Block:
    """Insert ``text`` at ``position`` and keep existing ranges aligned.

    ``position`` is clamped to the block. When ``entity_range`` is given it
    is appended after the existing entities; its offset must already point
    at the inserted text.
    """

    at = max(0, min(int(position), len(block.text)))
    size = len(text)
    style_ranges = shift_ranges_for_insert(block.style_ranges, at, size)
    entity_ranges = shift_ranges_for_insert(block.entity_ranges, at, size, grow_spanning=False)
    if entity_range is not None:
        entity_ranges = entity_ranges + (entity_range,)
    return block.with_changes(
        text=block.text[:at] + text + block.text[at:],
        style_ranges=style_ranges,
        entity_ranges=entity_ranges,
    )


def replace_text(block: Block, text: str) -> Block:
    """Replace the block text, trimming ranges that no longer fit."""

    return block.with_changes(
        text=text,
        style_ranges=clamp_ranges(block.style_ranges, len(text)),
        entity_ranges=clamp_ranges(block.entity_ranges, len(text)),
    )


__all__ = [
    "append_entity_range",
    "create_block",
    "find_index",
    "get_block",
    "insert_text",
    "new_block_key",
    "replace_at",
    "replace_text",
    "set_block_type",
    "set_style_ranges",
]
