"""Tests for mapping surface selections onto block offsets and back."""

from __future__ import annotations

import pytest

from blockdraft.editor.document_model import (
    Block,
    BlockType,
    DocumentState,
    InlineStyle,
    InlineStyleRange,
    SelectionState,
)
from blockdraft.editor.selection_gateway import SelectionGateway
from blockdraft.editor.surface import SurfaceDocument, SurfaceNode, parse_surface


@pytest.fixture
def styled_state() -> DocumentState:
    return DocumentState(
        blocks=(
            Block(
                "b1",
                "Hello world",
                style_ranges=(InlineStyleRange(InlineStyle.BOLD, 0, 5), InlineStyleRange(InlineStyle.ITALIC, 2, 6)),
            ),
            Block("b2", "Second line", BlockType.UNORDERED_LIST_ITEM, depth=1),
            Block("b3", ""),
        )
    )


def test_parse_surface_builds_tree() -> None:
    root = parse_surface('<p data-block data-block-key="k">a<strong>b</strong>c<br>d</p>')
    (paragraph,) = root.children
    assert paragraph.tag == "p"
    assert paragraph.attributes == {"data-block": None, "data-block-key": "k"}
    assert paragraph.text_content() == "abcd"
    assert [child.tag for child in paragraph.children] == [None, "strong", None, "br", None]
    assert paragraph.children[1].parent is paragraph


def test_surface_lists_block_keys(styled_state: DocumentState) -> None:
    surface = SurfaceDocument.from_state(styled_state)
    assert surface.block_keys() == ("b1", "b2", "b3")
    assert surface.find_block("b2").tag == "li"
    assert surface.find_block("missing") is None


def test_capture_sums_text_before_node(styled_state: DocumentState) -> None:
    surface = SurfaceDocument.from_state(styled_state)
    block = surface.find_block("b1")
    nodes = list(block.text_nodes())
    assert [node.text for node in nodes] == ["He", "llo", " wo", "rld"]
    gateway = SelectionGateway(surface)

    surface.select(nodes[1], 1, nodes[2], 2)

    assert gateway.capture_selection() == SelectionState("b1", "b1", 3, 7, True)


def test_capture_clamps_offsets_inside_text_nodes(styled_state: DocumentState) -> None:
    surface = SurfaceDocument.from_state(styled_state)
    node = list(surface.find_block("b1").text_nodes())[0]
    surface.select(node, 99, node, 99)
    assert SelectionGateway(surface).capture_selection() == SelectionState.caret("b1", 2)


def test_capture_element_boundary_counts_child_text(styled_state: DocumentState) -> None:
    surface = SurfaceDocument.from_state(styled_state)
    block = surface.find_block("b1")
    surface.select(block, 1, block, len(block.children))

    selection = SelectionGateway(surface).capture_selection()

    assert selection == SelectionState("b1", "b1", 2, 11, True)


def test_capture_across_blocks(styled_state: DocumentState) -> None:
    surface = SurfaceDocument.from_state(styled_state)
    first = list(surface.find_block("b1").text_nodes())[-1]
    second = list(surface.find_block("b2").text_nodes())[0]
    surface.select(first, 1, second, 6)

    assert SelectionGateway(surface).capture_selection() == SelectionState("b1", "b2", 9, 6, True)


def test_capture_outside_blocks_returns_none(styled_state: DocumentState) -> None:
    surface = SurfaceDocument.from_state(styled_state)
    gateway = SelectionGateway(surface)
    assert gateway.capture_selection() is None

    surface.select(surface.root, 0, surface.root, 0)
    assert gateway.capture_selection() is None

    detached = SurfaceNode.text_node("loose")
    surface.select(detached, 1, detached, 2)
    assert gateway.capture_selection() is None


def test_apply_selection_places_host_selection(styled_state: DocumentState) -> None:
    surface = SurfaceDocument.from_state(styled_state)
    gateway = SelectionGateway(surface)

    assert gateway.apply_selection(SelectionState("b1", "b2", 4, 3, True))

    native = surface.selection
    assert native.start_node.text == "llo" and native.start_offset == 2
    assert native.end_node.text == "Second line" and native.end_offset == 3


def test_apply_then_capture_round_trips(styled_state: DocumentState) -> None:
    surface = SurfaceDocument.from_state(styled_state)
    gateway = SelectionGateway(surface)
    for start, end in [(0, 0), (0, 11), (2, 5), (5, 8), (11, 11)]:
        selection = SelectionState("b1", "b1", start, end, True)
        assert gateway.apply_selection(selection)
        assert gateway.capture_selection() == selection


def test_apply_selection_in_empty_block_uses_block_element(styled_state: DocumentState) -> None:
    surface = SurfaceDocument.from_state(styled_state)
    gateway = SelectionGateway(surface)

    assert gateway.apply_selection(SelectionState.caret("b3", 0))

    assert surface.selection.start_node is surface.find_block("b3")
    assert gateway.capture_selection() == SelectionState.caret("b3", 0)


def test_apply_selection_clamps_past_end(styled_state: DocumentState) -> None:
    surface = SurfaceDocument.from_state(styled_state)
    gateway = SelectionGateway(surface)
    assert gateway.apply_selection(SelectionState.caret("b2", 500))
    assert gateway.capture_selection() == SelectionState.caret("b2", 11)


def test_apply_selection_with_unknown_block_fails(styled_state: DocumentState) -> None:
    surface = SurfaceDocument.from_state(styled_state)
    assert not SelectionGateway(surface).apply_selection(SelectionState.caret("ghost", 0))
    assert surface.selection is None
