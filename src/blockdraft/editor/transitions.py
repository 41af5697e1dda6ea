"""The closed set of user intents the document reducer understands."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional, Union

from .document_model import (
    BlockType,
    ComponentData,
    ComponentPosition,
    InlineStyle,
    MentionData,
    SelectionState,
)
from .payloads import validate_component, validate_mention


class TransitionKind(str, Enum):
    """Wire names of the supported transitions."""

    TOGGLE_INLINE_STYLE = "TOGGLE_INLINE_STYLE"
    TOGGLE_BLOCK_TYPE = "TOGGLE_BLOCK_TYPE"
    INSERT_COMPONENT = "INSERT_COMPONENT"
    INSERT_MENTION = "INSERT_MENTION"
    UPDATE_COMPONENT = "UPDATE_COMPONENT"
    SET_SELECTION = "SET_SELECTION"
    UNDO = "UNDO"
    REDO = "REDO"


@dataclass(slots=True, frozen=True)
class ToggleInlineStyle:
    style: InlineStyle
    kind: TransitionKind = field(default=TransitionKind.TOGGLE_INLINE_STYLE, init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "style", InlineStyle(self.style))


@dataclass(slots=True, frozen=True)
class ToggleBlockType:
    block_type: BlockType
    kind: TransitionKind = field(default=TransitionKind.TOGGLE_BLOCK_TYPE, init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "block_type", BlockType(self.block_type))


@dataclass(slots=True, frozen=True)
class InsertComponent:
    """Insert a component placeholder at the caret and register its payload.

    The payload is schema-checked on construction so the reducer never has
    to reject it.
    """

    id: str
    component: ComponentData
    position: Optional[ComponentPosition] = None
    kind: TransitionKind = field(default=TransitionKind.INSERT_COMPONENT, init=False)

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("InsertComponent requires a non-empty id")
        validate_component(self.component)


@dataclass(slots=True, frozen=True)
class InsertMention:
    mention: MentionData
    kind: TransitionKind = field(default=TransitionKind.INSERT_MENTION, init=False)

    def __post_init__(self) -> None:
        validate_mention(self.mention)


@dataclass(slots=True, frozen=True)
class UpdateComponent:
    """Replace the ``data`` payload of an already inserted component."""

    id: str
    data: Mapping[str, Any]
    kind: TransitionKind = field(default=TransitionKind.UPDATE_COMPONENT, init=False)


@dataclass(slots=True, frozen=True)
class SetSelection:
    selection: SelectionState
    kind: TransitionKind = field(default=TransitionKind.SET_SELECTION, init=False)


@dataclass(slots=True, frozen=True)
class Undo:
    kind: TransitionKind = field(default=TransitionKind.UNDO, init=False)


@dataclass(slots=True, frozen=True)
class Redo:
    kind: TransitionKind = field(default=TransitionKind.REDO, init=False)


Transition = Union[
    ToggleInlineStyle,
    ToggleBlockType,
    InsertComponent,
    InsertMention,
    UpdateComponent,
    SetSelection,
    Undo,
    Redo,
]

__all__ = [
    "InsertComponent",
    "InsertMention",
    "Redo",
    "SetSelection",
    "ToggleBlockType",
    "ToggleInlineStyle",
    "Transition",
    "TransitionKind",
    "Undo",
    "UpdateComponent",
]
