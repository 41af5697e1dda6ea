"""Pure reducer applying transitions to document snapshots, with undo/redo.

``apply_transition`` never raises for a well-formed transition: references
that no longer resolve (a selection pointing at a removed block, an unknown
component id) and degenerate selections return the input state object
unchanged, so neither the blocks nor the history stacks move.
"""

from __future__ import annotations

import itertools
import logging
import uuid
from dataclasses import replace
from typing import Callable, Mapping

from . import block_store
from .document_model import (
    BlockType,
    DocumentState,
    EntityRange,
    EntityType,
    SelectionState,
)
from .payloads import PayloadValidationError, validate_component
from .style_ranges import resolve_entity_insert_point, toggle_style_range
from .transitions import (
    InsertComponent,
    InsertMention,
    Redo,
    SetSelection,
    ToggleBlockType,
    ToggleInlineStyle,
    Transition,
    TransitionKind,
    Undo,
    UpdateComponent,
)

LOGGER = logging.getLogger(__name__)

COMPONENT_PLACEHOLDER = "\u29bf"

KeyFactory = Callable[[], str]


class MentionKeyFactory:
    """Generate mention keys from a per-session random token and a counter.

    Keys stay unique however many mentions are inserted within one clock
    tick, unlike timestamp-derived identifiers.
    """

    def __init__(self, prefix: str = "mention") -> None:
        self._prefix = prefix
        self._session = uuid.uuid4().hex[:12]
        self._counter = itertools.count(1)

    def __call__(self) -> str:
        return f"{self._prefix}-{self._session}-{next(self._counter)}"


_DEFAULT_MENTION_KEYS = MentionKeyFactory()


def apply_transition(
    state: DocumentState,
    transition: Transition,
    *,
    key_factory: KeyFactory | None = None,
    history_limit: int | None = None,
    placeholder: str = COMPONENT_PLACEHOLDER,
) -> DocumentState:
    """Return the snapshot produced by applying ``transition`` to ``state``."""

    context = _Context(
        key_factory=key_factory or _DEFAULT_MENTION_KEYS,
        history_limit=history_limit,
        placeholder=_single_code_point(placeholder),
    )
    handler = _HANDLERS.get(transition.kind)
    if handler is None:  # pragma: no cover - closed set guarded by typing
        LOGGER.warning("Unsupported transition %r", transition)
        return state
    return handler(state, transition, context)


def _single_code_point(placeholder: str) -> str:
    if placeholder and len(placeholder) == 1:
        return placeholder
    LOGGER.debug("Ignoring component placeholder %r: not a single code point", placeholder)
    return COMPONENT_PLACEHOLDER


class _Context:
    __slots__ = ("key_factory", "history_limit", "placeholder")

    def __init__(self, *, key_factory: KeyFactory, history_limit: int | None, placeholder: str) -> None:
        self.key_factory = key_factory
        self.history_limit = history_limit
        self.placeholder = placeholder


# ---------------------------------------------------------------------------
# Edit transitions
# ---------------------------------------------------------------------------
def _toggle_inline_style(state: DocumentState, transition: ToggleInlineStyle, context: _Context) -> DocumentState:
    selection = state.selection
    if not selection.is_single_block:
        LOGGER.debug("Inline style toggle skipped: selection spans blocks")
        return state
    if selection.start_offset >= selection.end_offset:
        LOGGER.debug("Inline style toggle skipped: empty or inverted selection")
        return state
    index = block_store.find_index(state.blocks, selection.start_key)
    if index is None:
        LOGGER.debug("Inline style toggle skipped: block %r not found", selection.start_key)
        return state

    block = state.blocks[index]
    start = max(0, selection.start_offset)
    end = min(selection.end_offset, block.length)
    if start >= end:
        LOGGER.debug("Inline style toggle skipped: selection lies outside block %r", block.key)
        return state

    ranges = toggle_style_range(block.style_ranges, transition.style, start, end)
    updated = block_store.set_style_ranges(block, ranges)
    return _commit(state, context, blocks=block_store.replace_at(state.blocks, index, updated))


def _toggle_block_type(state: DocumentState, transition: ToggleBlockType, context: _Context) -> DocumentState:
    index = block_store.find_index(state.blocks, state.selection.start_key)
    if index is None:
        LOGGER.debug("Block type toggle skipped: block %r not found", state.selection.start_key)
        return state

    block = state.blocks[index]
    target = BlockType.PARAGRAPH if block.block_type is transition.block_type else transition.block_type
    updated = block_store.set_block_type(block, target)
    return _commit(state, context, blocks=block_store.replace_at(state.blocks, index, updated))


def _insert_component(state: DocumentState, transition: InsertComponent, context: _Context) -> DocumentState:
    located = _locate_insert_point(state)
    if located is None:
        return state
    index, position = located

    block = state.blocks[index]
    text = context.placeholder
    entity = EntityRange(transition.id, position, len(text), EntityType.COMPONENT)
    updated = block_store.insert_text(block, position, text, entity_range=entity)

    component = replace(
        transition.component,
        id=transition.component.id or transition.id,
        position=transition.position or transition.component.position,
    )
    components = dict(state.components)
    components[transition.id] = component
    return _commit(
        state,
        context,
        blocks=block_store.replace_at(state.blocks, index, updated),
        components=components,
        selection=_caret_after(state.selection, block.key, position + len(text)),
    )


def _insert_mention(state: DocumentState, transition: InsertMention, context: _Context) -> DocumentState:
    located = _locate_insert_point(state)
    if located is None:
        return state
    index, position = located

    key = context.key_factory()
    while key in state.mentions:
        key = context.key_factory()

    block = state.blocks[index]
    text = transition.mention.display_text
    entity = EntityRange(key, position, len(text), EntityType.MENTION)
    updated = block_store.insert_text(block, position, text, entity_range=entity)

    mentions = dict(state.mentions)
    mentions[key] = transition.mention
    return _commit(
        state,
        context,
        blocks=block_store.replace_at(state.blocks, index, updated),
        mentions=mentions,
        selection=_caret_after(state.selection, block.key, position + len(text)),
    )


def _update_component(state: DocumentState, transition: UpdateComponent, context: _Context) -> DocumentState:
    existing = state.components.get(transition.id)
    if existing is None:
        LOGGER.debug("Component update skipped: unknown component %r", transition.id)
        return state

    candidate = replace(existing, data=dict(transition.data))
    try:
        validate_component(candidate)
    except PayloadValidationError as exc:
        LOGGER.warning("Component update for %r rejected: %s", transition.id, exc)
        return state
    if candidate == existing:
        return state

    components = dict(state.components)
    components[transition.id] = candidate
    return _commit(state, context, components=components)


# ---------------------------------------------------------------------------
# Selection & history transitions
# ---------------------------------------------------------------------------
def _set_selection(state: DocumentState, transition: SetSelection, context: _Context) -> DocumentState:
    del context
    if state.selection == transition.selection:
        return state
    return replace(state, selection=transition.selection)


def _undo(state: DocumentState, transition: Undo, context: _Context) -> DocumentState:
    del transition
    if not state.undo_stack:
        return state
    previous = state.undo_stack[-1]
    return replace(
        previous,
        undo_stack=state.undo_stack[:-1],
        redo_stack=state.redo_stack + (state.without_history(),),
    )


def _redo(state: DocumentState, transition: Redo, context: _Context) -> DocumentState:
    del transition
    if not state.redo_stack:
        return state
    following = state.redo_stack[-1]
    return replace(
        following,
        undo_stack=_cap(state.undo_stack + (state.without_history(),), context.history_limit),
        redo_stack=state.redo_stack[:-1],
    )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def _commit(state: DocumentState, context: _Context, **changes: object) -> DocumentState:
    """Apply ``changes`` while recording ``state`` as the newest undo entry."""

    undo_stack = _cap(state.undo_stack + (state.without_history(),), context.history_limit)
    return replace(state, undo_stack=undo_stack, redo_stack=(), **changes)


def _cap(stack: tuple[DocumentState, ...], limit: int | None) -> tuple[DocumentState, ...]:
    if limit is None or limit < 0 or len(stack) <= limit:
        return stack
    return stack[len(stack) - limit :]


def _locate_insert_point(state: DocumentState) -> tuple[int, int] | None:
    selection = state.selection
    index = block_store.find_index(state.blocks, selection.start_key)
    if index is None:
        LOGGER.debug("Insert skipped: block %r not found", selection.start_key)
        return None
    block = state.blocks[index]
    position = max(0, min(selection.start_offset, block.length))
    return index, resolve_entity_insert_point(block.entity_ranges, position)


def _caret_after(selection: SelectionState, key: str, offset: int) -> SelectionState:
    return SelectionState(key, key, offset, offset, selection.has_focus)


_Handler = Callable[[DocumentState, Transition, _Context], DocumentState]

_HANDLERS: Mapping[TransitionKind, _Handler] = {
    TransitionKind.TOGGLE_INLINE_STYLE: _toggle_inline_style,  # type: ignore[dict-item]
    TransitionKind.TOGGLE_BLOCK_TYPE: _toggle_block_type,  # type: ignore[dict-item]
    TransitionKind.INSERT_COMPONENT: _insert_component,  # type: ignore[dict-item]
    TransitionKind.INSERT_MENTION: _insert_mention,  # type: ignore[dict-item]
    TransitionKind.UPDATE_COMPONENT: _update_component,  # type: ignore[dict-item]
    TransitionKind.SET_SELECTION: _set_selection,  # type: ignore[dict-item]
    TransitionKind.UNDO: _undo,  # type: ignore[dict-item]
    TransitionKind.REDO: _redo,  # type: ignore[dict-item]
}


__all__ = ["COMPONENT_PLACEHOLDER", "KeyFactory", "MentionKeyFactory", "apply_transition"]
