"""In-memory host surface: a lightweight node tree built from rendered markup.

The tree mirrors what a browser-like host would expose (elements, text
nodes, attributes and a single selection range) so that the selection
bridge can be exercised without a real rendering engine.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from html.parser import HTMLParser
from typing import Iterator, Optional

from .document_model import DocumentState
from .html_renderer import render_document_html

_VOID_TAGS = frozenset({"area", "base", "br", "col", "embed", "hr", "img", "input", "link", "meta", "source", "wbr"})


@dataclass(slots=True, eq=False)
class SurfaceNode:
    """Element (``tag`` set) or text node (``tag`` is ``None``)."""

    tag: Optional[str] = None
    text: str = ""
    attributes: dict[str, Optional[str]] = field(default_factory=dict)
    children: list[SurfaceNode] = field(default_factory=list)
    parent: Optional[SurfaceNode] = field(default=None, repr=False)

    @classmethod
    def element(cls, tag: str, attributes: dict[str, Optional[str]] | None = None) -> SurfaceNode:
        return cls(tag=tag, attributes=dict(attributes or {}))

    @classmethod
    def text_node(cls, text: str) -> SurfaceNode:
        return cls(text=text)

    @property
    def is_text(self) -> bool:
        return self.tag is None

    def append(self, child: SurfaceNode) -> SurfaceNode:
        child.parent = self
        self.children.append(child)
        return child

    def walk(self) -> Iterator[SurfaceNode]:
        """Yield this node and its descendants in document order."""

        yield self
        for child in self.children:
            yield from child.walk()

    def text_nodes(self) -> Iterator[SurfaceNode]:
        return (node for node in self.walk() if node.is_text)

    def text_content(self) -> str:
        return "".join(node.text for node in self.text_nodes())


@dataclass(slots=True)
class SurfaceSelection:
    """Native selection range expressed as (node, offset) boundary points.

    Offsets inside text nodes count characters; offsets inside elements
    count child nodes, as in the DOM.
    """

    start_node: SurfaceNode
    start_offset: int
    end_node: SurfaceNode
    end_offset: int

    @classmethod
    def collapsed(cls, node: SurfaceNode, offset: int) -> SurfaceSelection:
        return cls(node, offset, node, offset)


class SurfaceDocument:
    """Root of a parsed surface plus its current selection."""

    def __init__(self, root: SurfaceNode | None = None) -> None:
        self.root = root or SurfaceNode.element("#document")
        self.selection: SurfaceSelection | None = None

    @classmethod
    def from_markup(cls, markup: str) -> SurfaceDocument:
        return cls(parse_surface(markup))

    @classmethod
    def from_state(cls, state: DocumentState) -> SurfaceDocument:
        return cls.from_markup(render_document_html(state))

    def find_block(self, key: str) -> SurfaceNode | None:
        if not key:
            return None
        for node in self.root.walk():
            if not node.is_text and "data-block" in node.attributes and node.attributes.get("data-block-key") == key:
                return node
        return None

    def block_keys(self) -> tuple[str, ...]:
        return tuple(
            node.attributes.get("data-block-key") or ""
            for node in self.root.walk()
            if not node.is_text and "data-block" in node.attributes
        )

    def select(self, start_node: SurfaceNode, start_offset: int, end_node: SurfaceNode, end_offset: int) -> None:
        self.selection = SurfaceSelection(start_node, start_offset, end_node, end_offset)

    def clear_selection(self) -> None:
        self.selection = None


def parse_surface(markup: str) -> SurfaceNode:
    """Parse ``markup`` into a :class:`SurfaceNode` tree rooted at ``#document``."""

    parser = _SurfaceParser()
    parser.feed(markup)
    parser.close()
    return parser.root


class _SurfaceParser(HTMLParser):
    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.root = SurfaceNode.element("#document")
        self._stack: list[SurfaceNode] = [self.root]

    def handle_starttag(self, tag: str, attrs: list[tuple[str, Optional[str]]]) -> None:
        node = self._stack[-1].append(SurfaceNode.element(tag, dict(attrs)))
        if tag not in _VOID_TAGS:
            self._stack.append(node)

    def handle_startendtag(self, tag: str, attrs: list[tuple[str, Optional[str]]]) -> None:
        self._stack[-1].append(SurfaceNode.element(tag, dict(attrs)))

    def handle_endtag(self, tag: str) -> None:
        for depth in range(len(self._stack) - 1, 0, -1):
            if self._stack[depth].tag == tag:
                del self._stack[depth:]
                return

    def handle_data(self, data: str) -> None:
        if not data:
            return
        parent = self._stack[-1]
        if parent.children and parent.children[-1].is_text:
            parent.children[-1].text += data
            return
        parent.append(SurfaceNode.text_node(data))


__all__ = ["SurfaceDocument", "SurfaceNode", "SurfaceSelection", "parse_surface"]
