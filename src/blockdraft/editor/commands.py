"""Toolbar/menu commands and the keyboard shortcuts that trigger them."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from jsonschema import Draft7Validator, ValidationError

from .document_model import BlockType, InlineStyle
from .transitions import Redo, ToggleBlockType, ToggleInlineStyle, Transition, Undo


class CommandKind(str, Enum):
    """Commands exposed to toolbars, menus and shortcuts."""

    TOGGLE_INLINE_STYLE = "toggleInlineStyle"
    TOGGLE_BLOCK_TYPE = "toggleBlockType"
    UNDO = "undo"
    REDO = "redo"


@dataclass(slots=True, frozen=True)
class Command:
    """A user command; ``style`` or ``block_type`` is set for the toggles."""

    kind: CommandKind
    style: Optional[InlineStyle] = None
    block_type: Optional[BlockType] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "kind", CommandKind(self.kind))
        if self.style is not None:
            object.__setattr__(self, "style", InlineStyle(self.style))
        if self.block_type is not None:
            object.__setattr__(self, "block_type", BlockType(self.block_type))
        if self.kind is CommandKind.TOGGLE_INLINE_STYLE and self.style is None:
            raise ValueError("toggleInlineStyle requires a style")
        if self.kind is CommandKind.TOGGLE_BLOCK_TYPE and self.block_type is None:
            raise ValueError("toggleBlockType requires a block type")

    @classmethod
    def toggle_inline_style(cls, style: InlineStyle | str) -> Command:
        return cls(CommandKind.TOGGLE_INLINE_STYLE, style=InlineStyle(style))

    @classmethod
    def toggle_block_type(cls, block_type: BlockType | str) -> Command:
        return cls(CommandKind.TOGGLE_BLOCK_TYPE, block_type=BlockType(block_type))

    @classmethod
    def undo(cls) -> Command:
        return cls(CommandKind.UNDO)

    @classmethod
    def redo(cls) -> Command:
        return cls(CommandKind.REDO)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"type": self.kind.value}
        if self.style is not None:
            payload["style"] = self.style.value
        if self.block_type is not None:
            payload["blockType"] = self.block_type.value
        return payload


@dataclass(slots=True, frozen=True)
class KeyChord:
    """Normalized key combination such as ``Ctrl+Shift+Z``."""

    key: str
    ctrl: bool = False
    shift: bool = False
    alt: bool = False

    def __str__(self) -> str:
        parts = [name for name, flag in (("Ctrl", self.ctrl), ("Shift", self.shift), ("Alt", self.alt)) if flag]
        parts.append(self.key.upper() if len(self.key) == 1 else self.key)
        return "+".join(parts)


@dataclass(slots=True)
class ValidationResult:
    """Outcome of validating a command payload."""

    ok: bool
    message: str = ""


COMMAND_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["type"],
    "properties": {
        "type": {"type": "string", "enum": [item.value for item in CommandKind]},
        "style": {"type": "string", "enum": [item.value for item in InlineStyle]},
        "blockType": {"type": "string", "enum": [item.value for item in BlockType]},
    },
    "additionalProperties": False,
    "allOf": [
        {
            "if": {"properties": {"type": {"const": CommandKind.TOGGLE_INLINE_STYLE.value}}},
            "then": {"required": ["style"]},
        },
        {
            "if": {"properties": {"type": {"const": CommandKind.TOGGLE_BLOCK_TYPE.value}}},
            "then": {"required": ["blockType"]},
        },
    ],
}

_COMMAND_VALIDATOR = Draft7Validator(COMMAND_SCHEMA)

_MODIFIER_ALIASES: Mapping[str, str] = {
    "ctrl": "ctrl",
    "control": "ctrl",
    "cmd": "ctrl",
    "command": "ctrl",
    "meta": "ctrl",
    "shift": "shift",
    "alt": "alt",
    "option": "alt",
}

DEFAULT_KEYMAP: Mapping[KeyChord, Command] = {
    KeyChord("b", ctrl=True): Command.toggle_inline_style(InlineStyle.BOLD),
    KeyChord("i", ctrl=True): Command.toggle_inline_style(InlineStyle.ITALIC),
    KeyChord("u", ctrl=True): Command.toggle_inline_style(InlineStyle.UNDERLINE),
    KeyChord("z", ctrl=True): Command.undo(),
    KeyChord("z", ctrl=True, shift=True): Command.redo(),
    KeyChord("y", ctrl=True): Command.redo(),
}


def validate_command(payload: Mapping[str, Any]) -> ValidationResult:
    """Validate a ``{"type": ..., "style"|"blockType": ...}`` payload."""

    if not isinstance(payload, Mapping):
        return ValidationResult(ok=False, message="Command payload must be a mapping")
    try:
        _COMMAND_VALIDATOR.validate(dict(payload))
    except ValidationError as error:
        return ValidationResult(ok=False, message=_format_validation_error(error))
    return ValidationResult(ok=True)


def parse_command(payload: Mapping[str, Any]) -> Command:
    """Return the :class:`Command` described by ``payload`` or raise ``ValueError``."""

    result = validate_command(payload)
    if not result.ok:
        raise ValueError(result.message)
    return Command(payload["type"], style=payload.get("style"), block_type=payload.get("blockType"))


def command_to_transition(command: Command) -> Transition:
    if command.kind is CommandKind.TOGGLE_INLINE_STYLE:
        assert command.style is not None
        return ToggleInlineStyle(command.style)
    if command.kind is CommandKind.TOGGLE_BLOCK_TYPE:
        assert command.block_type is not None
        return ToggleBlockType(command.block_type)
    if command.kind is CommandKind.UNDO:
        return Undo()
    return Redo()


def parse_shortcut(text: str) -> KeyChord:
    """Parse ``"Ctrl+Shift+Z"`` style text into a :class:`KeyChord`.

    ``Meta``/``Cmd`` map onto ``Ctrl`` so one keymap serves every platform.
    """

    parts = [part.strip() for part in str(text or "").split("+")]
    if not parts or not parts[-1]:
        raise ValueError(f"Invalid shortcut: {text!r}")
    modifiers = {"ctrl": False, "shift": False, "alt": False}
    for part in parts[:-1]:
        alias = _MODIFIER_ALIASES.get(part.lower())
        if alias is None:
            raise ValueError(f"Unknown modifier {part!r} in shortcut {text!r}")
        modifiers[alias] = True
    key = parts[-1]
    return KeyChord(key.lower() if len(key) == 1 else key, **modifiers)


def command_for_chord(
    chord: KeyChord | str,
    keymap: Mapping[KeyChord, Command] | None = None,
) -> Command | None:
    resolved = parse_shortcut(chord) if isinstance(chord, str) else chord
    return (keymap if keymap is not None else DEFAULT_KEYMAP).get(resolved)


def _format_validation_error(error: ValidationError) -> str:
    path = ".".join(str(part) for part in error.path)
    if path:
        return f"{path}: {error.message}"
    return error.message


__all__ = [
    "COMMAND_SCHEMA",
    "Command",
    "CommandKind",
    "DEFAULT_KEYMAP",
    "KeyChord",
    "ValidationResult",
    "command_for_chord",
    "command_to_transition",
    "parse_command",
    "parse_shortcut",
    "validate_command",
]
