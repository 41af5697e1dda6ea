"""Qt host surface: paint a document into ``QTextDocument`` and map cursors.

Each ``QTextBlock`` is tagged with its block key through
``QTextBlockUserData`` so cursor positions translate back to
block-anchored selections. Newlines inside a block are painted as Unicode line
separators so one document block stays one ``QTextBlock``. Qt positions count
UTF-16 code units while block offsets count code points; the conversion
happens at this boundary.
"""

from __future__ import annotations

import logging
from typing import Mapping, Optional

from PySide6.QtGui import (
    QColor,
    QFont,
    QTextBlock,
    QTextBlockFormat,
    QTextBlockUserData,
    QTextCharFormat,
    QTextCursor,
    QTextDocument,
    QTextFormat,
)

from .document_model import BlockType, DocumentState, EntityType, InlineStyle, SelectionState
from .segmenter import Segment, segment_block

LOGGER = logging.getLogger(__name__)

ENTITY_KEY_PROPERTY = QTextFormat.Property.UserProperty.value + 1
ENTITY_TYPE_PROPERTY = QTextFormat.Property.UserProperty.value + 2
HIGHLIGHT_COLOR = "#fef08a"
LINE_SEPARATOR = "\u2028"
LIST_INDENT = 1

_HEADING_LEVELS: Mapping[BlockType, int] = {
    BlockType.HEADER_ONE: 1,
    BlockType.HEADER_TWO: 2,
    BlockType.HEADER_THREE: 3,
}


class BlockKeyData(QTextBlockUserData):
    """User data attaching a document block key to a ``QTextBlock``."""

    def __init__(self, key: str) -> None:
        super().__init__()
        self.key = key


class QtTextSurface:
    """Render :class:`DocumentState` snapshots into a ``QTextDocument``."""

    def __init__(self, document: QTextDocument | None = None) -> None:
        self._document = document if document is not None else QTextDocument()
        self._keys: list[str] = []

    @property
    def document(self) -> QTextDocument:
        return self._document

    def block_keys(self) -> tuple[str, ...]:
        return tuple(self._keys)

    def render(self, state: DocumentState) -> None:
        """Replace the surface contents with ``state``'s blocks."""

        self._document.clear()
        self._keys = []
        cursor = QTextCursor(self._document)
        for index, block in enumerate(state.blocks):
            block_format = _block_format(block.block_type, block.depth)
            if index == 0:
                cursor.setBlockFormat(block_format)
            else:
                cursor.insertBlock(block_format)
            cursor.block().setUserData(BlockKeyData(block.key))
            self._keys.append(block.key)
            for segment in segment_block(block, components=state.components, mentions=state.mentions):
                if segment.text:
                    cursor.insertText(segment.text.replace("\n", LINE_SEPARATOR), _char_format(segment))
        LOGGER.debug("Rendered %s blocks into Qt surface", len(self._keys))

    def capture_selection(self, cursor: QTextCursor) -> SelectionState | None:
        """Translate ``cursor`` into a block-anchored selection."""

        start = self._resolve_position(cursor.selectionStart())
        end = self._resolve_position(cursor.selectionEnd())
        if start is None or end is None:
            return None
        return SelectionState(start[0], end[0], start[1], end[1], True)

    def apply_selection(self, cursor: QTextCursor, selection: SelectionState) -> bool:
        """Position ``cursor`` on ``selection``; ``False`` when a key is not painted."""

        start = self._find_block(selection.start_key)
        end = self._find_block(selection.end_key)
        if start is None or end is None:
            LOGGER.debug("Cannot apply selection: block %r or %r not painted", selection.start_key, selection.end_key)
            return False
        cursor.setPosition(_document_position(start, selection.start_offset))
        cursor.setPosition(_document_position(end, selection.end_offset), QTextCursor.MoveMode.KeepAnchor)
        return True

    def _resolve_position(self, position: int) -> Optional[tuple[str, int]]:
        block = self._document.findBlock(position)
        if not block.isValid():
            return None
        key = self._block_key(block)
        if not key:
            return None
        return key, _code_points(block.text(), position - block.position())

    def _block_key(self, block: QTextBlock) -> str:
        data = block.userData()
        if isinstance(data, BlockKeyData):
            return data.key
        number = block.blockNumber()
        if 0 <= number < len(self._keys):
            return self._keys[number]
        return ""

    def _find_block(self, key: str) -> QTextBlock | None:
        if not key:
            return None
        block = self._document.begin()
        while block.isValid():
            if self._block_key(block) == key:
                return block
            block = block.next()
        return None


def _document_position(block: QTextBlock, offset: int) -> int:
    text = block.text()
    bounded = max(0, min(int(offset), len(text)))
    return block.position() + _utf16_units(text[:bounded])


def _utf16_units(text: str) -> int:
    return len(text.encode("utf-16-le")) // 2


def _code_points(text: str, units: int) -> int:
    """Convert a UTF-16 offset into ``text`` to a code point offset."""

    consumed = 0
    for index, char in enumerate(text):
        if consumed >= units:
            return index
        consumed += 2 if ord(char) > 0xFFFF else 1
    return len(text)


def _block_format(block_type: BlockType, depth: int) -> QTextBlockFormat:
    block_format = QTextBlockFormat()
    level = _HEADING_LEVELS.get(block_type)
    if level is not None:
        block_format.setHeadingLevel(level)
    if block_type in (BlockType.UNORDERED_LIST_ITEM, BlockType.ORDERED_LIST_ITEM):
        block_format.setIndent(LIST_INDENT + depth)
    elif block_type in (BlockType.BLOCKQUOTE, BlockType.CALLOUT):
        block_format.setIndent(1)
    return block_format


def _char_format(segment: Segment) -> QTextCharFormat:
    char_format = QTextCharFormat()
    for style in segment.styles:
        if style is InlineStyle.BOLD:
            char_format.setFontWeight(QFont.Weight.Bold)
        elif style is InlineStyle.ITALIC:
            char_format.setFontItalic(True)
        elif style is InlineStyle.UNDERLINE:
            char_format.setFontUnderline(True)
        elif style is InlineStyle.STRIKETHROUGH:
            char_format.setFontStrikeOut(True)
        elif style is InlineStyle.CODE:
            char_format.setFontFixedPitch(True)
        elif style is InlineStyle.HIGHLIGHT:
            char_format.setBackground(QColor(HIGHLIGHT_COLOR))
        elif style is InlineStyle.SUBSCRIPT:
            char_format.setVerticalAlignment(QTextCharFormat.VerticalAlignment.AlignSubScript)
        elif style is InlineStyle.SUPERSCRIPT:
            char_format.setVerticalAlignment(QTextCharFormat.VerticalAlignment.AlignSuperScript)
    entity = segment.entity
    if entity is not None:
        char_format.setProperty(ENTITY_KEY_PROPERTY, entity.key)
        char_format.setProperty(ENTITY_TYPE_PROPERTY, entity.type.value)
        if entity.type is EntityType.LINK:
            data = getattr(entity.payload, "data", None) or {}
            char_format.setAnchor(True)
            char_format.setAnchorHref(str(data.get("url") or "#"))
    return char_format


__all__ = ["BlockKeyData", "ENTITY_KEY_PROPERTY", "ENTITY_TYPE_PROPERTY", "LINE_SEPARATOR", "QtTextSurface"]
