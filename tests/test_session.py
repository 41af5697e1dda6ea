"""Tests for :class:`blockdraft.editor.session.EditorSession`."""

from __future__ import annotations

from typing import Any

import pytest

from blockdraft.editor.commands import Command
from blockdraft.editor.document_model import (
    BlockType,
    ComponentData,
    DocumentState,
    InlineStyle,
    InlineStyleRange,
    MentionData,
    SelectionState,
)
from blockdraft.editor.session import DEFAULT_BLOCK_KEY, EditorSession, default_state
from blockdraft.editor.transitions import ToggleInlineStyle, TransitionKind
from blockdraft.events import (
    DocumentChanged,
    DocumentLoaded,
    EventBus,
    HistoryChanged,
    SelectionChanged,
    TransitionSkipped,
)
from blockdraft.services.settings import Settings


@pytest.fixture
def bus() -> EventBus:
    return EventBus()


@pytest.fixture
def recorded(bus: EventBus) -> list[Any]:
    events: list[Any] = []
    for event_type in (DocumentChanged, SelectionChanged, HistoryChanged, TransitionSkipped, DocumentLoaded):
        bus.subscribe(event_type, events.append)
    return events


@pytest.fixture
def session(hello_state: DocumentState, bus: EventBus) -> EditorSession:
    return EditorSession(hello_state, event_bus=bus)


def test_default_state_is_single_paragraph() -> None:
    state = default_state("Draft")
    assert state.block_keys() == (DEFAULT_BLOCK_KEY,)
    assert state.blocks[0].block_type is BlockType.PARAGRAPH
    assert state.blocks[0].text == "Draft"


def test_new_session_uses_settings_default_text() -> None:
    session = EditorSession(settings=Settings(default_block_text="Welcome"))
    assert session.state.blocks[0].text == "Welcome"


def test_bold_scenario_through_session(session: EditorSession) -> None:
    session.update_selection(SelectionState.span("b1", 0, 5))

    session.toggle_inline_style(InlineStyle.BOLD)
    assert session.state.blocks[0].style_ranges == (InlineStyleRange(InlineStyle.BOLD, 0, 5),)
    session.toggle_inline_style("BOLD")
    assert session.state.blocks[0].style_ranges == ()
    assert session.can_undo()

    session.undo()
    assert session.state.blocks[0].style_ranges == (InlineStyleRange(InlineStyle.BOLD, 0, 5),)
    assert session.can_redo()
    session.redo()
    assert session.state.blocks[0].style_ranges == ()


def test_listeners_receive_snapshots(session: EditorSession) -> None:
    seen: list[tuple[DocumentState, Any]] = []
    selections: list[SelectionState] = []
    session.add_state_listener(lambda state, transition: seen.append((state, transition)))
    session.add_selection_listener(selections.append)

    session.update_selection(SelectionState.span("b1", 0, 5))
    session.toggle_inline_style(InlineStyle.ITALIC)

    assert [transition.kind for _, transition in seen] == [
        TransitionKind.SET_SELECTION,
        TransitionKind.TOGGLE_INLINE_STYLE,
    ]
    assert seen[-1][0] is session.state
    assert selections == [SelectionState.span("b1", 0, 5)]


def test_removed_listener_is_not_called(session: EditorSession) -> None:
    calls: list[Any] = []

    def listener(state: DocumentState, transition: Any) -> None:
        calls.append(transition)

    session.add_state_listener(listener)
    session.remove_state_listener(listener)
    session.remove_state_listener(listener)
    session.update_selection(SelectionState.caret("b1", 1))

    assert calls == []


def test_events_published_for_edit(session: EditorSession, recorded: list[Any]) -> None:
    session.update_selection(SelectionState.span("b1", 0, 5))
    recorded.clear()

    session.toggle_inline_style(InlineStyle.BOLD)

    assert recorded == [
        DocumentChanged(transition="TOGGLE_INLINE_STYLE", block_count=1),
        HistoryChanged(undo_depth=1, redo_depth=0),
    ]


def test_selection_change_publishes_only_selection_event(session: EditorSession, recorded: list[Any]) -> None:
    session.update_selection(SelectionState.caret("b1", 3))
    assert recorded == [SelectionChanged(selection=SelectionState.caret("b1", 3))]


def test_skipped_transitions_report_reason(session: EditorSession, recorded: list[Any]) -> None:
    before = session.state

    assert session.undo() is before
    assert session.toggle_inline_style(InlineStyle.BOLD) is before
    session.update_selection(SelectionState("b1", "b2", 0, 1, True))
    recorded.clear()
    session.toggle_inline_style(InlineStyle.BOLD)

    assert recorded == [
        TransitionSkipped(transition="TOGGLE_INLINE_STYLE", reason="selection spans multiple blocks"),
    ]


def test_skip_reason_for_empty_selection(session: EditorSession, recorded: list[Any]) -> None:
    session.update_selection(SelectionState.caret("b1", 2))
    recorded.clear()

    session.toggle_inline_style(InlineStyle.BOLD)

    assert recorded == [TransitionSkipped(transition="TOGGLE_INLINE_STYLE", reason="selection is empty")]


def test_execute_command_accepts_objects_and_payloads(session: EditorSession) -> None:
    session.update_selection(SelectionState.caret("b1", 0))

    session.execute_command(Command.toggle_block_type(BlockType.HEADER_THREE))
    assert session.state.blocks[0].block_type is BlockType.HEADER_THREE

    session.execute_command({"type": "undo"})
    assert session.state.blocks[0].block_type is BlockType.PARAGRAPH

    with pytest.raises(ValueError):
        session.execute_command({"type": "toggleInlineStyle"})


def test_insert_and_update_component(session: EditorSession) -> None:
    session.update_selection(SelectionState.caret("b1", 5))

    session.insert_component("img", ComponentData("image", {"src": "a.png"}))
    session.update_component("img", {"src": "b.png", "alt": "B"})

    assert session.state.components["img"].data == {"src": "b.png", "alt": "B"}
    assert len(session.state.undo_stack) == 2


def test_insert_mention_uses_session_key_factory(hello_state: DocumentState) -> None:
    keys = iter(["k1", "k2"])
    session = EditorSession(hello_state, key_factory=lambda: next(keys))
    session.update_selection(SelectionState.caret("b1", 0))

    session.insert_mention(MentionData("u1", "Ada"))
    session.insert_mention(MentionData("u2", "Bob"))

    assert list(session.state.mentions) == ["k1", "k2"]
    assert session.state.blocks[0].text.startswith("@Ada@Bob")


def test_history_limit_comes_from_settings(hello_state: DocumentState) -> None:
    session = EditorSession(hello_state, settings=Settings(history_limit=2))
    session.update_selection(SelectionState.span("b1", 0, 5))
    for _ in range(4):
        session.dispatch(ToggleInlineStyle(InlineStyle.BOLD))
    assert len(session.state.undo_stack) == 2


def test_load_resets_history_and_publishes(session: EditorSession, recorded: list[Any]) -> None:
    session.update_selection(SelectionState.span("b1", 0, 5))
    session.toggle_inline_style(InlineStyle.BOLD)
    recorded.clear()

    loaded = session.load(default_state("Fresh"), path="doc.json")

    assert not session.can_undo() and not session.can_redo()
    assert loaded.blocks[0].text == "Fresh"
    assert recorded[0] == DocumentLoaded(block_count=1, path="doc.json")
    assert DocumentChanged(transition="LOAD", block_count=1) in recorded
    assert HistoryChanged(undo_depth=0, redo_depth=0) in recorded


def test_projections(session: EditorSession) -> None:
    assert session.render_html().startswith('<div class="blockdraft-document">')
    stats = session.stats()
    assert (stats.words, stats.characters, stats.blocks) == (2, 11, 1)


def test_mention_query_uses_caret_block_and_window() -> None:
    state = default_state("ping @ad")
    session = EditorSession(state, settings=Settings(mention_window=5))

    session.update_selection(SelectionState.caret(DEFAULT_BLOCK_KEY, 8))
    query = session.mention_query()
    assert query is not None and query.query == "ad"

    session.update_selection(SelectionState.span(DEFAULT_BLOCK_KEY, 5, 8))
    assert session.mention_query() is None

    narrow = EditorSession(state, settings=Settings(mention_window=2))
    narrow.update_selection(SelectionState.caret(DEFAULT_BLOCK_KEY, 8))
    assert narrow.mention_query() is None
