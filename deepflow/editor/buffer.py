"""Plain-text editing buffer tracking caret and selection positions."""

from __future__ import annotations

from typing import Optional

from deepflow.ai.models import TextRange
from deepflow.core.document import Document

__all__ = ["EditorBuffer"]


class EditorBuffer:
    """Owns the document being edited plus the caret and selection.

    Positions are character offsets into ``document.content``. Every content
    change refreshes the document's modification time.
    """

    def __init__(self, document: Document, caret: Optional[int] = None) -> None:
        self._document = document
        self._caret = len(document.content) if caret is None else self._clamp(caret)
        self._selection = TextRange(self._caret, self._caret)

    @property
    def document(self) -> Document:
        return self._document

    @property
    def content(self) -> str:
        return self._document.content

    @property
    def caret(self) -> int:
        return self._caret

    @property
    def selection(self) -> TextRange:
        return self._selection

    @property
    def selected_text(self) -> str:
        return self._selection.slice(self._document.content)

    @property
    def caret_at_end(self) -> bool:
        return self._caret == len(self._document.content)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    def set_content(self, content: str, caret: Optional[int] = None) -> None:
        """Replace the full text, as after a user edit.

        The caret defaults to the end of the new text and the selection
        collapses onto it.
        """

        self._document.content = content
        self._document.touch()
        self._caret = len(content) if caret is None else self._clamp(caret)
        self._selection = TextRange(self._caret, self._caret)

    def insert(self, position: int, text: str) -> int:
        """Insert ``text`` at ``position`` and return the caret after it."""

        position = self._clamp(position)
        content = self._document.content
        self.set_content(content[:position] + text + content[position:], position + len(text))
        return self._caret

    def replace(self, rng: TextRange, text: str) -> int:
        """Replace the characters in ``rng`` and return the caret after them."""

        start = self._clamp(rng.start)
        end = max(start, self._clamp(rng.end))
        content = self._document.content
        self.set_content(content[:start] + text + content[end:], start + len(text))
        return self._caret

    def move_caret(self, position: int) -> int:
        self._caret = self._clamp(position)
        self._selection = TextRange(self._caret, self._caret)
        return self._caret

    def select(self, start: int, end: int) -> TextRange:
        """Select ``[start, end)``; reversed bounds are normalised."""

        start, end = sorted((self._clamp(start), self._clamp(end)))
        self._selection = TextRange(start, end)
        self._caret = end
        return self._selection

    def _clamp(self, position: int) -> int:
        return max(0, min(int(position), len(self._document.content)))
