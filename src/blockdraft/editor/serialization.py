"""JSON persistence for document snapshots.

The wire format keeps the camelCase field names used by block-editor
payloads (``inlineStyleRanges``, ``entityRanges``, ``startKey``...). Undo
and redo history is session-local and never persisted.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Mapping

from jsonschema import Draft7Validator

from ..utils.file_io import read_text, write_text
from .document_model import (
    Block,
    BlockType,
    ComponentData,
    ComponentPosition,
    DocumentState,
    EntityRange,
    EntityType,
    InlineStyle,
    InlineStyleRange,
    MentionData,
    SelectionState,
)
from .payloads import (
    PayloadValidationError,
    component_payload,
    mention_payload,
    validate_component,
    validate_mention,
)
from .style_ranges import clamp_ranges, merge_style_ranges

LOGGER = logging.getLogger(__name__)

FORMAT_VERSION = 1


class DocumentFormatError(ValueError):
    """Raised when a persisted document cannot be decoded."""

    def __init__(self, message: str, *, errors: tuple[str, ...] = (), path: str | None = None) -> None:
        super().__init__(message)
        self.errors = errors or (message,)
        self.path = path

    def details(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"message": str(self), "errors": list(self.errors)}
        if self.path:
            payload["path"] = self.path
        return payload


_RANGE_BOUNDS: Dict[str, Any] = {
    "offset": {"type": "integer", "minimum": 0},
    "length": {"type": "integer", "minimum": 0},
}

DOCUMENT_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["blocks"],
    "properties": {
        "version": {"type": "integer"},
        "blocks": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["key", "text"],
                "properties": {
                    "key": {"type": "string", "minLength": 1},
                    "text": {"type": "string"},
                    "type": {"enum": [member.value for member in BlockType]},
                    "depth": {"type": "integer", "minimum": 0},
                    "inlineStyleRanges": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "required": ["style", "offset", "length"],
                            "properties": {
                                "style": {"enum": [member.value for member in InlineStyle]},
                                **_RANGE_BOUNDS,
                            },
                        },
                    },
                    "entityRanges": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "required": ["key", "offset", "length", "type"],
                            "properties": {
                                "key": {"type": "string", "minLength": 1},
                                "type": {"enum": [member.value for member in EntityType]},
                                **_RANGE_BOUNDS,
                            },
                        },
                    },
                },
            },
        },
        "selection": {
            "type": "object",
            "properties": {
                "startKey": {"type": "string"},
                "endKey": {"type": "string"},
                "startOffset": {"type": "integer", "minimum": 0},
                "endOffset": {"type": "integer", "minimum": 0},
                "hasFocus": {"type": "boolean"},
            },
        },
        "components": {"type": "object", "additionalProperties": {"type": "object"}},
        "mentions": {"type": "object", "additionalProperties": {"type": "object"}},
    },
}

_DOCUMENT_VALIDATOR = Draft7Validator(DOCUMENT_SCHEMA)


def state_to_dict(state: DocumentState) -> Dict[str, Any]:
    """Return a JSON-ready mapping describing ``state`` without its history."""

    return {
        "version": FORMAT_VERSION,
        "blocks": [_block_to_dict(block) for block in state.blocks],
        "selection": {
            "startKey": state.selection.start_key,
            "endKey": state.selection.end_key,
            "startOffset": state.selection.start_offset,
            "endOffset": state.selection.end_offset,
            "hasFocus": state.selection.has_focus,
        },
        "components": {key: component_payload(component) for key, component in state.components.items()},
        "mentions": {key: mention_payload(mention) for key, mention in state.mentions.items()},
    }


def state_from_dict(payload: Mapping[str, Any], *, normalize: bool = True) -> DocumentState:
    """Build a :class:`DocumentState` from ``payload``.

    Ranges are clamped to their block text and, when ``normalize`` is set,
    overlapping or adjacent same-style ranges are merged.
    """

    if not isinstance(payload, Mapping):
        raise DocumentFormatError("Document payload must be an object")
    errors = sorted(_DOCUMENT_VALIDATOR.iter_errors(dict(payload)), key=lambda error: [str(part) for part in error.path])
    if errors:
        messages = tuple(_format_error(error) for error in errors)
        raise DocumentFormatError(f"Invalid document: {messages[0]}", errors=messages)

    version = payload.get("version", FORMAT_VERSION)
    if version > FORMAT_VERSION:
        raise DocumentFormatError(f"Unsupported document version {version}")

    blocks = tuple(_block_from_dict(entry, normalize=normalize) for entry in payload["blocks"])
    keys = [block.key for block in blocks]
    duplicates = sorted({key for key in keys if keys.count(key) > 1})
    if duplicates:
        raise DocumentFormatError(f"Duplicate block keys: {', '.join(duplicates)}")

    return DocumentState(
        blocks=blocks,
        selection=_selection_from_dict(payload.get("selection") or {}),
        components={key: _component_from_dict(key, entry) for key, entry in (payload.get("components") or {}).items()},
        mentions={key: _mention_from_dict(key, entry) for key, entry in (payload.get("mentions") or {}).items()},
    )


def dumps(state: DocumentState, *, indent: int | None = 2) -> str:
    return json.dumps(state_to_dict(state), indent=indent, ensure_ascii=False)


def loads(text: str) -> DocumentState:
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise DocumentFormatError(f"Document is not valid JSON: {exc}") from exc
    return state_from_dict(payload)


def save_document(path: Path | str, state: DocumentState) -> Path:
    """Persist ``state`` to ``path`` with an atomic write."""

    target = write_text(path, dumps(state) + "\n")
    LOGGER.debug("Saved document with %s blocks to %s", len(state.blocks), target)
    return target


def load_document(path: Path | str) -> DocumentState:
    """Load a document previously written by :func:`save_document`."""

    target = Path(path)
    try:
        state = loads(read_text(target))
    except DocumentFormatError as exc:
        raise DocumentFormatError(str(exc), errors=exc.errors, path=str(target)) from exc
    LOGGER.debug("Loaded document with %s blocks from %s", len(state.blocks), target)
    return state


def _block_to_dict(block: Block) -> Dict[str, Any]:
    return {
        "key": block.key,
        "text": block.text,
        "type": block.block_type.value,
        "depth": block.depth,
        "inlineStyleRanges": [
            {"style": entry.style.value, "offset": entry.offset, "length": entry.length}
            for entry in block.style_ranges
        ],
        "entityRanges": [
            {"key": entry.key, "offset": entry.offset, "length": entry.length, "type": entry.type.value}
            for entry in block.entity_ranges
        ],
    }


def _block_from_dict(entry: Mapping[str, Any], *, normalize: bool) -> Block:
    text = entry["text"]
    styles = tuple(
        InlineStyleRange(item["style"], item["offset"], item["length"]) for item in entry.get("inlineStyleRanges", ())
    )
    entities = tuple(
        EntityRange(item["key"], item["offset"], item["length"], item["type"]) for item in entry.get("entityRanges", ())
    )
    styles = clamp_ranges(styles, len(text))
    if normalize:
        styles = merge_style_ranges(styles)
    return Block(
        key=entry["key"],
        text=text,
        block_type=entry.get("type", BlockType.PARAGRAPH.value),
        depth=entry.get("depth", 0),
        style_ranges=styles,
        entity_ranges=clamp_ranges(entities, len(text)),
    )


def _selection_from_dict(entry: Mapping[str, Any]) -> SelectionState:
    return SelectionState(
        start_key=entry.get("startKey", ""),
        end_key=entry.get("endKey", ""),
        start_offset=entry.get("startOffset", 0),
        end_offset=entry.get("endOffset", 0),
        has_focus=entry.get("hasFocus", False),
    )


def _component_from_dict(key: str, entry: Mapping[str, Any]) -> ComponentData:
    try:
        validate_component(entry)
    except PayloadValidationError as exc:
        raise DocumentFormatError(f"Component {key!r}: {exc}", errors=exc.errors) from exc
    position = entry.get("position") or {}
    return ComponentData(
        type=entry["type"],
        data=dict(entry["data"]),
        position=ComponentPosition(position.get("x", 0), position.get("y", 0)),
        id=entry.get("id"),
    )


def _mention_from_dict(key: str, entry: Mapping[str, Any]) -> MentionData:
    try:
        validate_mention(entry)
    except PayloadValidationError as exc:
        raise DocumentFormatError(f"Mention {key!r}: {exc}", errors=exc.errors) from exc
    data = entry.get("data")
    return MentionData(
        id=entry["id"],
        name=entry["name"],
        type=entry["type"],
        avatar_url=entry.get("avatarUrl"),
        data=dict(data) if data is not None else None,
    )


def _format_error(error: Any) -> str:
    path = ".".join(str(part) for part in error.path)
    if path:
        return f"{path}: {error.message}"
    return error.message


__all__ = [
    "DOCUMENT_SCHEMA",
    "DocumentFormatError",
    "FORMAT_VERSION",
    "dumps",
    "load_document",
    "loads",
    "save_document",
    "state_from_dict",
    "state_to_dict",
]
