"""Persistence collaborators for DeepFlow documents."""

from __future__ import annotations

import asyncio
import copy
import json
import logging
import os
from pathlib import Path
from typing import Protocol, runtime_checkable

from deepflow.core.document import Document, DocumentSummary
from deepflow.core.exceptions import DFPersistError

__all__ = [
    "DocumentStore",
    "JsonDocumentStore",
    "MemoryDocumentStore",
]

logger = logging.getLogger(__name__)


@runtime_checkable
class DocumentStore(Protocol):
    """Storage interface the editor session depends on."""

    async def save(self, document: Document) -> None:  # pragma: no cover - protocol
        ...

    async def load(self, document_id: str) -> Document | None:  # pragma: no cover - protocol
        ...

    async def list_recent(self, limit: int) -> list[DocumentSummary]:  # pragma: no cover - protocol
        ...

    async def delete(self, document_id: str) -> bool:  # pragma: no cover - protocol
        ...


class MemoryDocumentStore:
    """Process-local store holding deep copies of saved documents."""

    def __init__(self) -> None:
        self._documents: dict[str, Document] = {}
        self.save_count = 0

    async def save(self, document: Document) -> None:
        self._documents[document.id] = copy.deepcopy(document)
        self.save_count += 1

    async def load(self, document_id: str) -> Document | None:
        stored = self._documents.get(document_id)
        return copy.deepcopy(stored) if stored is not None else None

    async def list_recent(self, limit: int) -> list[DocumentSummary]:
        ordered = sorted(self._documents.values(), key=lambda doc: doc.updated_at, reverse=True)
        return [doc.summary() for doc in ordered[: max(0, limit)]]

    async def delete(self, document_id: str) -> bool:
        return self._documents.pop(document_id, None) is not None


class JsonDocumentStore:
    """Store each document as ``<id>.json`` inside a directory.

    Writes go to a temporary sibling file first and are then moved into place,
    so an interrupted save never leaves a truncated document behind. File
    access runs in a worker thread to keep the event loop responsive.
    """

    SUFFIX = ".json"

    def __init__(self, directory: str | os.PathLike[str]) -> None:
        self._directory = Path(directory).expanduser()

    @property
    def directory(self) -> Path:
        return self._directory

    async def save(self, document: Document) -> None:
        await asyncio.to_thread(self._write, document)

    async def load(self, document_id: str) -> Document | None:
        return await asyncio.to_thread(self._read, document_id)

    async def list_recent(self, limit: int) -> list[DocumentSummary]:
        return await asyncio.to_thread(self._list, limit)

    async def delete(self, document_id: str) -> bool:
        return await asyncio.to_thread(self._remove, document_id)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _path_for(self, document_id: str) -> Path:
        cleaned = (document_id or "").strip()
        if not cleaned or cleaned != Path(cleaned).name or cleaned.startswith("."):
            raise DFPersistError(
                f"Invalid document id '{document_id}'.",
                document_id=document_id,
                operation="resolve",
            )
        return self._directory / f"{cleaned}{self.SUFFIX}"

    def _write(self, document: Document) -> None:
        path = self._path_for(document.id)
        temp = path.with_suffix(".tmp")
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            temp.write_text(
                json.dumps(document.to_dict(), ensure_ascii=False, indent=2),
                encoding="utf-8",
            )
            os.replace(temp, path)
        except (OSError, TypeError, ValueError) as exc:
            logger.error("Failed to save document '%s': %s", document.id, exc)
            raise DFPersistError(
                f"Could not save document: {exc}",
                document_id=document.id,
                operation="save",
            ) from exc
        logger.debug("Saved document '%s' to %s", document.id, path)

    def _read(self, document_id: str) -> Document | None:
        path = self._path_for(document_id)
        if not path.is_file():
            return None
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            return Document.from_dict(data)
        except (OSError, ValueError, TypeError, AttributeError) as exc:
            logger.error("Failed to load document '%s': %s", document_id, exc)
            raise DFPersistError(
                f"Could not load document: {exc}",
                document_id=document_id,
                operation="load",
            ) from exc

    def _list(self, limit: int) -> list[DocumentSummary]:
        if not self._directory.is_dir():
            return []
        documents: list[Document] = []
        for path in self._directory.glob(f"*{self.SUFFIX}"):
            try:
                documents.append(Document.from_dict(json.loads(path.read_text(encoding="utf-8"))))
            except (OSError, ValueError, TypeError, AttributeError) as exc:
                logger.warning("Skipping unreadable document file %s: %s", path, exc)
        documents.sort(key=lambda doc: doc.updated_at, reverse=True)
        return [doc.summary() for doc in documents[: max(0, limit)]]

    def _remove(self, document_id: str) -> bool:
        path = self._path_for(document_id)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as exc:
            raise DFPersistError(
                f"Could not delete document: {exc}",
                document_id=document_id,
                operation="delete",
            ) from exc
        logger.debug("Deleted document '%s'", document_id)
        return True
