"""Whole-document replacements that always keep a backup version."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from deepflow.core.document import Document, VersionRecord
from deepflow.editor.buffer import EditorBuffer

if TYPE_CHECKING:  # pragma: no cover - typing only
    from deepflow.core.storage import DocumentStore

__all__ = [
    "RESTORE_NOTE",
    "RewriteApplier",
    "rewrite_note",
]

logger = logging.getLogger(__name__)

RESTORE_NOTE = "Automatic backup before restore"


def rewrite_note(label: str) -> str:
    return f"Before AI rewrite ({label})"


class RewriteApplier:
    """Apply AI rewrites and version restores to the buffer's document.

    Each operation first pushes the current title and content onto the
    version log, then replaces the text and persists the document. The
    operations are serialised, so a second call starts only after the first
    one has been saved. When saving fails the error propagates, but the
    in-memory change and its backup are kept.
    """

    def __init__(self, buffer: EditorBuffer, store: "DocumentStore") -> None:
        self._buffer = buffer
        self._store = store
        self._lock = asyncio.Lock()

    @property
    def document(self) -> Document:
        return self._buffer.document

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    async def apply_rewrite(self, new_content: str, label: str) -> VersionRecord:
        """Replace the content with ``new_content`` and return the backup."""

        async with self._lock:
            document = self._buffer.document
            backup = document.push_version(rewrite_note(label))
            self._buffer.set_content(new_content)
            logger.info("Applied AI rewrite '%s' to document '%s'", label, document.id)
            await self._store.save(document)
            return backup

    async def restore_version(self, version: VersionRecord) -> VersionRecord:
        """Bring back the title and content of ``version`` and return the backup."""

        async with self._lock:
            document = self._buffer.document
            backup = document.push_version(RESTORE_NOTE)
            document.title = version.title
            self._buffer.set_content(version.content)
            logger.info(
                "Restored document '%s' to version from %s",
                document.id, version.timestamp.isoformat(),
            )
            await self._store.save(document)
            return backup
