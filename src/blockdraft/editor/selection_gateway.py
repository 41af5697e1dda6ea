"""Bridge between native host selections and block-anchored selection state."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator, Mapping, Optional, Protocol, Sequence

from .document_model import SelectionState

LOGGER = logging.getLogger(__name__)

BLOCK_ATTRIBUTE = "data-block"
BLOCK_KEY_ATTRIBUTE = "data-block-key"


class HostNode(Protocol):
    """Node of a host surface tree (an element or a text node)."""

    parent: Optional["HostNode"]
    children: Sequence["HostNode"]
    text: str
    attributes: Mapping[str, Optional[str]]

    @property
    def is_text(self) -> bool:
        ...


class HostSelection(Protocol):
    start_node: HostNode
    start_offset: int
    end_node: HostNode
    end_offset: int


class HostSurface(Protocol):
    """Surface exposing its root node and a writable selection."""

    root: HostNode
    selection: Optional[HostSelection]

    def select(self, start_node: HostNode, start_offset: int, end_node: HostNode, end_offset: int) -> None:
        ...


@dataclass(slots=True, frozen=True)
class _Point:
    key: str
    offset: int


@dataclass(slots=True)
class SelectionGateway:
    """Translate host (node, offset) boundaries to and from block offsets."""

    surface: HostSurface

    def capture_selection(self, host_selection: HostSelection | None = None) -> SelectionState | None:
        """Return the block-anchored selection or ``None`` when outside the document."""

        native = host_selection if host_selection is not None else self.surface.selection
        if native is None:
            return None
        start = self._resolve_point(native.start_node, native.start_offset)
        end = self._resolve_point(native.end_node, native.end_offset)
        if start is None or end is None:
            LOGGER.debug("Selection outside document blocks ignored")
            return None
        return SelectionState(start.key, end.key, start.offset, end.offset, True)

    def apply_selection(self, selection: SelectionState) -> bool:
        """Move the host selection onto ``selection``; ``False`` when a block is missing."""

        start_block = self._find_block(selection.start_key)
        end_block = self._find_block(selection.end_key)
        if start_block is None or end_block is None:
            LOGGER.debug(
                "Cannot apply selection: block %r or %r not on surface",
                selection.start_key,
                selection.end_key,
            )
            return False
        start_node, start_offset = _locate(start_block, selection.start_offset)
        end_node, end_offset = _locate(end_block, selection.end_offset)
        self.surface.select(start_node, start_offset, end_node, end_offset)
        return True

    def _resolve_point(self, node: HostNode, offset: int) -> _Point | None:
        block = _block_ancestor(node)
        if block is None:
            return None
        key = block.attributes.get(BLOCK_KEY_ATTRIBUTE) or ""
        if not key:
            return None
        offset = max(0, int(offset))
        if node.is_text:
            position = _text_before(block, node) + min(offset, len(node.text))
        else:
            position = _text_before(block, node) + sum(_text_length(child) for child in node.children[:offset])
        return _Point(key, position)

    def _find_block(self, key: str) -> HostNode | None:
        if not key:
            return None
        for node in _walk(self.surface.root):
            if _is_block(node) and node.attributes.get(BLOCK_KEY_ATTRIBUTE) == key:
                return node
        return None


def _walk(node: HostNode) -> Iterator[HostNode]:
    yield node
    for child in node.children:
        yield from _walk(child)


def _is_block(node: HostNode) -> bool:
    return not node.is_text and BLOCK_ATTRIBUTE in node.attributes


def _block_ancestor(node: HostNode | None) -> HostNode | None:
    current = node
    while current is not None:
        if _is_block(current):
            return current
        current = current.parent
    return None


def _text_length(node: HostNode) -> int:
    return sum(len(entry.text) for entry in _walk(node) if entry.is_text)


def _text_before(block: HostNode, target: HostNode) -> int:
    total = 0
    for node in _walk(block):
        if node is target:
            break
        if node.is_text:
            total += len(node.text)
    return total


def _locate(block: HostNode, offset: int) -> tuple[HostNode, int]:
    """Return the (text node, in-node offset) holding block ``offset``.

    Offsets past the end clamp to the end of the last text node; a block
    without text resolves to the block element itself.
    """

    text_nodes = [node for node in _walk(block) if node.is_text]
    if not text_nodes:
        return block, 0
    target = max(0, int(offset))
    consumed = 0
    for node in text_nodes:
        size = len(node.text)
        if consumed + size >= target:
            return node, target - consumed
        consumed += size
    last = text_nodes[-1]
    return last, len(last.text)


__all__ = [
    "BLOCK_ATTRIBUTE",
    "BLOCK_KEY_ATTRIBUTE",
    "HostNode",
    "HostSelection",
    "HostSurface",
    "SelectionGateway",
]
