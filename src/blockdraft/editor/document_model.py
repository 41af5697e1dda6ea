"""Dataclasses representing the block document, its selection and side-tables."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Mapping, Optional

from ..core.ranges import TextRange


class InlineStyle(str, Enum):
    """Character-level styles that can be toggled over a selection."""

    BOLD = "BOLD"
    ITALIC = "ITALIC"
    UNDERLINE = "UNDERLINE"
    STRIKETHROUGH = "STRIKETHROUGH"
    CODE = "CODE"
    HIGHLIGHT = "HIGHLIGHT"
    SUBSCRIPT = "SUBSCRIPT"
    SUPERSCRIPT = "SUPERSCRIPT"


class BlockType(str, Enum):
    """Structural kinds of block."""

    PARAGRAPH = "paragraph"
    HEADER_ONE = "header-one"
    HEADER_TWO = "header-two"
    HEADER_THREE = "header-three"
    UNORDERED_LIST_ITEM = "unordered-list-item"
    ORDERED_LIST_ITEM = "ordered-list-item"
    BLOCKQUOTE = "blockquote"
    CODE_BLOCK = "code-block"
    CALLOUT = "callout"


class EntityType(str, Enum):
    """Kinds of out-of-band payload an entity range can reference."""

    LINK = "LINK"
    COMPONENT = "COMPONENT"
    MENTION = "MENTION"


@dataclass(slots=True, frozen=True)
class InlineStyleRange:
    """Half-open interval of a block's text carrying one inline style."""

    style: InlineStyle
    offset: int
    length: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "style", InlineStyle(self.style))

    @property
    def end(self) -> int:
        return self.offset + self.length

    def text_range(self) -> TextRange:
        return TextRange.from_span(self.offset, self.length)


@dataclass(slots=True, frozen=True)
class EntityRange:
    """Half-open interval of a block's text referencing a side-table entry."""

    key: str
    offset: int
    length: int
    type: EntityType

    def __post_init__(self) -> None:
        object.__setattr__(self, "type", EntityType(self.type))

    @property
    def end(self) -> int:
        return self.offset + self.length

    def text_range(self) -> TextRange:
        return TextRange.from_span(self.offset, self.length)


@dataclass(slots=True, frozen=True)
class Block:
    """One structural unit of the document (paragraph, heading, list item...)."""

    key: str
    text: str = ""
    block_type: BlockType = BlockType.PARAGRAPH
    depth: int = 0
    style_ranges: tuple[InlineStyleRange, ...] = ()
    entity_ranges: tuple[EntityRange, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "block_type", BlockType(self.block_type))
        object.__setattr__(self, "depth", max(0, int(self.depth)))
        object.__setattr__(self, "style_ranges", tuple(self.style_ranges))
        object.__setattr__(self, "entity_ranges", tuple(self.entity_ranges))

    @property
    def length(self) -> int:
        return len(self.text)

    def with_changes(self, **changes: Any) -> Block:
        """Return a copy of the block with ``changes`` applied."""

        return replace(self, **changes)


@dataclass(slots=True, frozen=True)
class ComponentPosition:
    x: float = 0
    y: float = 0


@dataclass(slots=True, frozen=True)
class ComponentData:
    """Payload of an embedded inline component, keyed by its entity key."""

    type: str
    data: Mapping[str, Any] = field(default_factory=dict)
    position: ComponentPosition = field(default_factory=ComponentPosition)
    id: Optional[str] = None


@dataclass(slots=True, frozen=True)
class MentionData:
    """Payload of a mention entity (a user, topic, team...)."""

    id: str
    name: str
    type: str = "user"
    avatar_url: Optional[str] = None
    data: Optional[Mapping[str, Any]] = None

    @property
    def display_text(self) -> str:
        """Return the literal text inserted into the block for this mention."""

        return f"@{self.name}"


@dataclass(slots=True, frozen=True)
class SelectionState:
    """Abstract cursor anchored to block identity plus in-block text offsets."""

    start_key: str = ""
    end_key: str = ""
    start_offset: int = 0
    end_offset: int = 0
    has_focus: bool = False

    @property
    def is_collapsed(self) -> bool:
        return self.start_key == self.end_key and self.start_offset == self.end_offset

    @property
    def is_single_block(self) -> bool:
        return self.start_key == self.end_key

    @classmethod
    def caret(cls, key: str, offset: int = 0, *, has_focus: bool = True) -> SelectionState:
        """Return a collapsed selection inside block ``key``."""

        return cls(key, key, offset, offset, has_focus)

    @classmethod
    def span(cls, key: str, start: int, end: int, *, has_focus: bool = True) -> SelectionState:
        """Return a selection covering ``[start, end)`` inside block ``key``."""

        return cls(key, key, start, end, has_focus)


@dataclass(slots=True, frozen=True)
class DocumentState:
    """Immutable snapshot of the document plus its undo/redo history.

    Every transition produces a new instance; published snapshots are never
    mutated. History entries are stored with their own stacks stripped.
    """

    blocks: tuple[Block, ...] = ()
    selection: SelectionState = field(default_factory=SelectionState)
    components: Mapping[str, ComponentData] = field(default_factory=dict)
    mentions: Mapping[str, MentionData] = field(default_factory=dict)
    undo_stack: tuple[DocumentState, ...] = ()
    redo_stack: tuple[DocumentState, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "blocks", tuple(self.blocks))
        object.__setattr__(self, "undo_stack", tuple(self.undo_stack))
        object.__setattr__(self, "redo_stack", tuple(self.redo_stack))

    @property
    def can_undo(self) -> bool:
        return bool(self.undo_stack)

    @property
    def can_redo(self) -> bool:
        return bool(self.redo_stack)

    def block_keys(self) -> tuple[str, ...]:
        return tuple(block.key for block in self.blocks)

    def without_history(self) -> DocumentState:
        """Return this snapshot with empty undo/redo stacks."""

        if not self.undo_stack and not self.redo_stack:
            return self
        return replace(self, undo_stack=(), redo_stack=())

    def with_changes(self, **changes: Any) -> DocumentState:
        return replace(self, **changes)

    def content_equals(self, other: DocumentState) -> bool:
        """Compare blocks, selection and side-tables, ignoring history."""

        return (
            self.blocks == other.blocks
            and self.selection == other.selection
            and dict(self.components) == dict(other.components)
            and dict(self.mentions) == dict(other.mentions)
        )


__all__ = [
    "Block",
    "BlockType",
    "ComponentData",
    "ComponentPosition",
    "DocumentState",
    "EntityRange",
    "EntityType",
    "InlineStyle",
    "InlineStyleRange",
    "MentionData",
    "SelectionState",
]
