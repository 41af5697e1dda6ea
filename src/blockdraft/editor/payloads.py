"""Schema validation for component and mention side-table payloads."""

from __future__ import annotations

from typing import Any, Dict, Mapping

from jsonschema import Draft7Validator, ValidationError

from .document_model import ComponentData, MentionData


class PayloadValidationError(ValueError):
    """Raised when a component or mention payload does not match its schema."""

    def __init__(self, message: str, *, errors: tuple[str, ...] = ()) -> None:
        super().__init__(message)
        self.errors = errors or (message,)

    def details(self) -> dict[str, Any]:
        return {"message": str(self), "errors": list(self.errors)}


_POSITION_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "x": {"type": "number"},
        "y": {"type": "number"},
    },
    "required": ["x", "y"],
    "additionalProperties": False,
}

COMPONENT_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["type", "data"],
    "properties": {
        "id": {"type": ["string", "null"]},
        "type": {"type": "string", "minLength": 1},
        "data": {"type": "object"},
        "position": _POSITION_SCHEMA,
    },
    "additionalProperties": False,
    "allOf": [
        {
            "if": {"properties": {"type": {"const": "image"}}},
            "then": {
                "properties": {
                    "data": {
                        "type": "object",
                        "properties": {
                            "src": {"type": "string", "minLength": 1},
                            "alt": {"type": "string"},
                        },
                        "required": ["src"],
                    }
                }
            },
        },
        {
            "if": {"properties": {"type": {"const": "link"}}},
            "then": {
                "properties": {
                    "data": {
                        "type": "object",
                        "properties": {
                            "url": {"type": "string", "minLength": 1},
                            "text": {"type": "string"},
                        },
                        "required": ["url"],
                    }
                }
            },
        },
    ],
}

MENTION_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["id", "name", "type"],
    "properties": {
        "id": {"type": "string", "minLength": 1},
        "name": {"type": "string", "minLength": 1},
        "type": {"type": "string", "minLength": 1},
        "avatarUrl": {"type": ["string", "null"]},
        "data": {"type": ["object", "null"]},
    },
    "additionalProperties": False,
}

_COMPONENT_VALIDATOR = Draft7Validator(COMPONENT_SCHEMA)
_MENTION_VALIDATOR = Draft7Validator(MENTION_SCHEMA)


def component_payload(component: ComponentData) -> Dict[str, Any]:
    """Return the JSON-ready mapping for ``component``."""

    return {
        "id": component.id,
        "type": component.type,
        "data": dict(component.data),
        "position": {"x": component.position.x, "y": component.position.y},
    }


def mention_payload(mention: MentionData) -> Dict[str, Any]:
    """Return the JSON-ready mapping for ``mention``."""

    payload: Dict[str, Any] = {"id": mention.id, "name": mention.name, "type": mention.type}
    if mention.avatar_url is not None:
        payload["avatarUrl"] = mention.avatar_url
    if mention.data is not None:
        payload["data"] = dict(mention.data)
    return payload


def validate_component(component: ComponentData | Mapping[str, Any]) -> None:
    """Raise :class:`PayloadValidationError` when ``component`` is malformed."""

    payload = component_payload(component) if isinstance(component, ComponentData) else dict(component)
    _raise_for_errors(_COMPONENT_VALIDATOR, payload, label="component")


def validate_mention(mention: MentionData | Mapping[str, Any]) -> None:
    """Raise :class:`PayloadValidationError` when ``mention`` is malformed."""

    payload = mention_payload(mention) if isinstance(mention, MentionData) else dict(mention)
    _raise_for_errors(_MENTION_VALIDATOR, payload, label="mention")


def _raise_for_errors(validator: Draft7Validator, payload: Mapping[str, Any], *, label: str) -> None:
    errors = sorted(validator.iter_errors(payload), key=lambda error: [str(part) for part in error.path])
    if not errors:
        return
    messages = tuple(_format_validation_error(error) for error in errors)
    raise PayloadValidationError(f"Invalid {label} payload: {messages[0]}", errors=messages)


def _format_validation_error(error: ValidationError) -> str:
    path = ".".join(str(part) for part in error.path)
    if path:
        return f"{path}: {error.message}"
    return error.message


__all__ = [
    "COMPONENT_SCHEMA",
    "MENTION_SCHEMA",
    "PayloadValidationError",
    "component_payload",
    "mention_payload",
    "validate_component",
    "validate_mention",
]
