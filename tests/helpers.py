"""Shared test helpers.

Import from here instead of duplicating builders in individual test files.
"""

from __future__ import annotations

from blockdraft.editor.document_model import Block, DocumentState, SelectionState


def with_selection(state: DocumentState, key: str, start: int, end: int | None = None) -> DocumentState:
    """Return ``state`` with a single-block selection, bypassing history."""

    return state.with_changes(selection=SelectionState.span(key, start, start if end is None else end))


def single_block_state(text: str, *, key: str = "b1", **block_fields) -> DocumentState:
    return DocumentState(blocks=(Block(key, text, **block_fields),))
