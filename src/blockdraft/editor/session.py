"""Editor session: the explicit holder of the current document snapshot.

Hosts create one :class:`EditorSession` per open document and pass it to
the collaborators that need it (surfaces, toolbars, persistence). All edits
flow through :meth:`EditorSession.dispatch`, which applies the pure reducer
and notifies listeners synchronously.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Protocol

from ..events import (
    DocumentChanged,
    DocumentLoaded,
    EventBus,
    HistoryChanged,
    SelectionChanged,
    TransitionSkipped,
)
from ..services.settings import Settings
from . import block_store
from .commands import Command, command_to_transition, parse_command
from .document_model import (
    Block,
    BlockType,
    ComponentData,
    ComponentPosition,
    DocumentState,
    InlineStyle,
    MentionData,
    SelectionState,
)
from .history import KeyFactory, MentionKeyFactory, apply_transition
from .html_renderer import render_document_html
from .stats import DocumentStats, MentionQuery, document_stats, find_mention_query
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

DEFAULT_BLOCK_KEY = "block-1"


class StateListener(Protocol):
    """Callback invoked with the new snapshot after every applied transition."""

    def __call__(self, state: DocumentState, transition: Transition | None) -> None:
        ...


class SelectionListener(Protocol):
    """Callback invoked when the block-anchored selection moves."""

    def __call__(self, selection: SelectionState) -> None:
        ...


def default_state(text: str = "Start writing here...") -> DocumentState:
    """Return the single-paragraph document a new session starts from."""

    return DocumentState(blocks=(Block(DEFAULT_BLOCK_KEY, text, BlockType.PARAGRAPH),))


class EditorSession:
    """Own one document snapshot and route transitions through the reducer."""

    def __init__(
        self,
        state: DocumentState | None = None,
        *,
        settings: Settings | None = None,
        event_bus: EventBus | None = None,
        key_factory: KeyFactory | None = None,
    ) -> None:
        self._settings = settings or Settings()
        self._state = state if state is not None else default_state(self._settings.default_block_text)
        self._event_bus = event_bus
        self._key_factory = key_factory or MentionKeyFactory()
        self._state_listeners: list[StateListener] = []
        self._selection_listeners: list[SelectionListener] = []

    @property
    def state(self) -> DocumentState:
        return self._state

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def event_bus(self) -> EventBus | None:
        return self._event_bus

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------
    def add_state_listener(self, listener: StateListener) -> None:
        self._state_listeners.append(listener)

    def remove_state_listener(self, listener: StateListener) -> None:
        if listener in self._state_listeners:
            self._state_listeners.remove(listener)

    def add_selection_listener(self, listener: SelectionListener) -> None:
        self._selection_listeners.append(listener)

    def remove_selection_listener(self, listener: SelectionListener) -> None:
        if listener in self._selection_listeners:
            self._selection_listeners.remove(listener)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------
    def dispatch(self, transition: Transition) -> DocumentState:
        """Apply ``transition`` and return the resulting snapshot."""

        previous = self._state
        updated = apply_transition(
            previous,
            transition,
            key_factory=self._key_factory,
            history_limit=self._settings.history_limit,
            placeholder=self._settings.component_placeholder,
        )
        if updated is previous:
            reason = _skip_reason(previous, transition)
            LOGGER.debug("Transition %s skipped: %s", transition.kind.value, reason)
            self._publish(TransitionSkipped(transition=transition.kind.value, reason=reason))
            return previous

        self._state = updated
        self._notify(previous, updated, transition)
        return updated

    def execute_command(self, command: Command | Mapping[str, Any]) -> DocumentState:
        """Dispatch the transition behind a toolbar/menu/shortcut command."""

        resolved = command if isinstance(command, Command) else parse_command(command)
        return self.dispatch(command_to_transition(resolved))

    def toggle_inline_style(self, style: InlineStyle | str) -> DocumentState:
        return self.dispatch(ToggleInlineStyle(InlineStyle(style)))

    def toggle_block_type(self, block_type: BlockType | str) -> DocumentState:
        return self.dispatch(ToggleBlockType(BlockType(block_type)))

    def update_selection(self, selection: SelectionState) -> DocumentState:
        return self.dispatch(SetSelection(selection))

    def insert_component(
        self,
        component_id: str,
        component: ComponentData,
        position: ComponentPosition | None = None,
    ) -> DocumentState:
        return self.dispatch(InsertComponent(component_id, component, position))

    def insert_mention(self, mention: MentionData) -> DocumentState:
        return self.dispatch(InsertMention(mention))

    def update_component(self, component_id: str, data: Mapping[str, Any]) -> DocumentState:
        return self.dispatch(UpdateComponent(component_id, dict(data)))

    def undo(self) -> DocumentState:
        return self.dispatch(Undo())

    def redo(self) -> DocumentState:
        return self.dispatch(Redo())

    def can_undo(self) -> bool:
        return self._state.can_undo

    def can_redo(self) -> bool:
        return self._state.can_redo

    def load(self, state: DocumentState, *, path: str | None = None) -> DocumentState:
        """Replace the document wholesale, discarding undo/redo history."""

        previous = self._state
        self._state = state.without_history()
        LOGGER.debug("Loaded document with %s blocks", len(self._state.blocks))
        self._publish(DocumentLoaded(block_count=len(self._state.blocks), path=path))
        self._notify(previous, self._state, None)
        return self._state

    # ------------------------------------------------------------------
    # Projections
    # ------------------------------------------------------------------
    def render_html(self) -> str:
        return render_document_html(self._state)

    def stats(self) -> DocumentStats:
        return document_stats(self._state)

    def mention_query(self) -> MentionQuery | None:
        """Return the mention being typed at a collapsed caret, if any."""

        selection = self._state.selection
        if not selection.is_collapsed:
            return None
        block = block_store.get_block(self._state.blocks, selection.start_key)
        if block is None:
            return None
        return find_mention_query(block.text, selection.start_offset, self._settings.mention_window)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _notify(self, previous: DocumentState, updated: DocumentState, transition: Transition | None) -> None:
        for listener in list(self._state_listeners):
            listener(updated, transition)

        if not _content_unchanged(previous, updated):
            name = transition.kind.value if transition is not None else "LOAD"
            self._publish(DocumentChanged(transition=name, block_count=len(updated.blocks)))

        if previous.selection != updated.selection:
            for selection_listener in list(self._selection_listeners):
                selection_listener(updated.selection)
            self._publish(SelectionChanged(selection=updated.selection))

        depths = (len(updated.undo_stack), len(updated.redo_stack))
        if depths != (len(previous.undo_stack), len(previous.redo_stack)):
            self._publish(HistoryChanged(undo_depth=depths[0], redo_depth=depths[1]))

    def _publish(self, event: Any) -> None:
        if self._event_bus is not None:
            self._event_bus.publish(event)


def _content_unchanged(previous: DocumentState, updated: DocumentState) -> bool:
    return (
        previous.blocks == updated.blocks
        and dict(previous.components) == dict(updated.components)
        and dict(previous.mentions) == dict(updated.mentions)
    )


def _skip_reason(state: DocumentState, transition: Transition) -> str:
    if transition.kind is TransitionKind.UNDO:
        return "nothing to undo"
    if transition.kind is TransitionKind.REDO:
        return "nothing to redo"
    if transition.kind is TransitionKind.SET_SELECTION:
        return "selection unchanged"
    if transition.kind is TransitionKind.UPDATE_COMPONENT:
        return "unknown component or unchanged data"
    selection = state.selection
    if transition.kind is TransitionKind.TOGGLE_INLINE_STYLE:
        if not selection.is_single_block:
            return "selection spans multiple blocks"
        if selection.start_offset >= selection.end_offset:
            return "selection is empty"
    return "selection does not reference a block"


__all__ = [
    "DEFAULT_BLOCK_KEY",
    "EditorSession",
    "SelectionListener",
    "StateListener",
    "default_state",
]
