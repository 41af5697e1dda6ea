"""Render segmented blocks into HTML markup tagged with block identity.

Every block element carries ``data-block`` and ``data-block-key`` so a host
surface built from the markup can map native selections back onto blocks.
"""

from __future__ import annotations

import html
from typing import Iterable, Mapping, Sequence

from .document_model import Block, BlockType, DocumentState, EntityType, InlineStyle
from .segmenter import Segment, segment_block

DOCUMENT_CLASS = "blockdraft-document"
LIST_INDENT_REM = 1.5

_STYLE_TAGS: Mapping[InlineStyle, str] = {
    InlineStyle.BOLD: "strong",
    InlineStyle.ITALIC: "em",
    InlineStyle.UNDERLINE: "u",
    InlineStyle.STRIKETHROUGH: "s",
    InlineStyle.CODE: "code",
    InlineStyle.HIGHLIGHT: "mark",
    InlineStyle.SUBSCRIPT: "sub",
    InlineStyle.SUPERSCRIPT: "sup",
}

_HEADING_TAGS: Mapping[BlockType, str] = {
    BlockType.HEADER_ONE: "h1",
    BlockType.HEADER_TWO: "h2",
    BlockType.HEADER_THREE: "h3",
}

_LIST_TAGS: Mapping[BlockType, str] = {
    BlockType.UNORDERED_LIST_ITEM: "ul",
    BlockType.ORDERED_LIST_ITEM: "ol",
}


def render_document_html(state: DocumentState) -> str:
    """Return the markup for every block of ``state`` in document order."""

    body = "\n".join(
        render_block_html(block, segment_block(block, components=state.components, mentions=state.mentions))
        for block in state.blocks
    )
    return f'<div class="{DOCUMENT_CLASS}">\n{body}\n</div>' if body else f'<div class="{DOCUMENT_CLASS}"></div>'


def render_block_html(block: Block, segments: Sequence[Segment] | None = None) -> str:
    """Return the element for ``block`` wrapping its rendered segments."""

    if segments is None:
        segments = segment_block(block)
    inner = render_segments_html(segments)
    marker = _block_attributes(block)

    heading = _HEADING_TAGS.get(block.block_type)
    if heading is not None:
        return f"<{heading} {marker}>{inner}</{heading}>"
    list_tag = _LIST_TAGS.get(block.block_type)
    if list_tag is not None:
        indent = f"margin-left: {block.depth * LIST_INDENT_REM:g}rem"
        return (
            f'<{list_tag} data-depth="{block.depth}" style="{indent}">'
            f"<li {marker}>{inner}</li></{list_tag}>"
        )
    if block.block_type is BlockType.BLOCKQUOTE:
        return f"<blockquote {marker}>{inner}</blockquote>"
    if block.block_type is BlockType.CODE_BLOCK:
        return f"<pre {marker}><code>{inner}</code></pre>"
    if block.block_type is BlockType.CALLOUT:
        return f'<div class="callout" {marker}>{inner}</div>'
    return f"<p {marker}>{inner}</p>"


def render_segments_html(segments: Iterable[Segment]) -> str:
    return "".join(_render_segment(segment) for segment in segments)


def _render_segment(segment: Segment) -> str:
    markup = html.escape(segment.text, quote=False)
    for style in reversed(segment.styles):
        tag = _STYLE_TAGS[style]
        markup = f"<{tag}>{markup}</{tag}>"
    entity = segment.entity
    if entity is None:
        return markup
    key = _attr(entity.key)
    if entity.type is EntityType.LINK:
        return f'<a href="{_attr(_link_target(segment))}" data-entity-key="{key}">{markup}</a>'
    if entity.type is EntityType.COMPONENT:
        return f'<span class="inline-component" data-component-id="{key}">{markup}</span>'
    return f'<span class="mention" data-mention-id="{key}">{markup}</span>'


def _link_target(segment: Segment) -> str:
    payload = segment.entity.payload if segment.entity is not None else None
    data = getattr(payload, "data", None) or {}
    url = data.get("url") if isinstance(data, Mapping) else None
    return str(url) if url else "#"


def _block_attributes(block: Block) -> str:
    return f'data-block data-block-key="{_attr(block.key)}" data-block-type="{block.block_type.value}"'


def _attr(value: str) -> str:
    return html.escape(str(value), quote=True)


__all__ = ["render_block_html", "render_document_html", "render_segments_html"]
