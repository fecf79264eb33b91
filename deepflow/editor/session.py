"""Editing session wiring the buffer, assistant engines and persistence."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Any, Callable, Optional

from deepflow.core.document import Document, VersionRecord, utc_now
from deepflow.core.exceptions import DFPersistError
from deepflow.editor.buffer import EditorBuffer
from deepflow.editor.debounce import DebounceController
from deepflow.editor.ghost import GhostTextEngine
from deepflow.editor.polishing import PolishingEngine
from deepflow.editor.rewrite import RewriteApplier

if TYPE_CHECKING:  # pragma: no cover - typing only
    from deepflow.ai.assist import WritingAssistant
    from deepflow.ai.config import AIConfig
    from deepflow.ai.models import PopupAnchor, StructureSuggestion
    from deepflow.core.storage import DocumentStore

__all__ = ["EditorSession"]

logger = logging.getLogger(__name__)

_AUTOSAVE_KEY = "autosave"


class EditorSession:
    """One open document together with its assistant features.

    The editor surface reports edits, caret moves and selections through the
    methods below and re-renders when ``on_change`` fires. Routine edits are
    saved after ``autosave_delay_ms`` of inactivity. Persistence failures are
    passed to ``on_error`` before they propagate.
    """

    def __init__(
        self,
        document: Document,
        *,
        assistant: "WritingAssistant",
        store: "DocumentStore",
        config: "AIConfig",
        on_change: Optional[Callable[[], None]] = None,
        on_error: Optional[Callable[[Exception], None]] = None,
    ) -> None:
        self._assistant = assistant
        self._store = store
        self._config = config
        self._on_change = on_change
        self._on_error = on_error

        self.buffer = EditorBuffer(document)
        self.controller = DebounceController()
        self.ghost = GhostTextEngine(
            self.buffer, self.controller, assistant, config, on_change=self._notify
        )
        self.polishing = PolishingEngine(
            self.buffer, self.controller, assistant, config, on_change=self._notify
        )
        self.rewriter = RewriteApplier(self.buffer, store)

        self._saver = DebounceController()
        self._dirty = False
        self._revision = 0
        self._saving = False
        self._analyzing = False
        self.last_saved: Optional[datetime] = None
        self.structure_suggestions: list["StructureSuggestion"] = []

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        *,
        assistant: "WritingAssistant",
        store: "DocumentStore",
        config: "AIConfig",
        title: str = "",
        content: str = "",
        topic: Optional[str] = None,
        topic_description: Optional[str] = None,
        **kwargs: Any,
    ) -> "EditorSession":
        """Start a session on a new, unsaved document."""

        document = Document.new(title, content, topic=topic, topic_description=topic_description)
        return cls(document, assistant=assistant, store=store, config=config, **kwargs)

    @classmethod
    async def create_from_inspiration(
        cls,
        hint: Optional[str] = None,
        *,
        assistant: "WritingAssistant",
        store: "DocumentStore",
        config: "AIConfig",
        **kwargs: Any,
    ) -> "EditorSession":
        """Start a session on a new document seeded with a generated topic."""

        idea = await assistant.inspiration(hint)
        return cls.create(
            assistant=assistant,
            store=store,
            config=config,
            topic=idea.topic,
            topic_description=idea.description,
            **kwargs,
        )

    @classmethod
    async def open(
        cls,
        document_id: str,
        *,
        assistant: "WritingAssistant",
        store: "DocumentStore",
        config: "AIConfig",
        **kwargs: Any,
    ) -> "EditorSession":
        document = await store.load(document_id)
        if document is None:
            raise DFPersistError(
                f"Document '{document_id}' does not exist.",
                document_id=document_id,
                operation="load",
            )
        return cls(document, assistant=assistant, store=store, config=config, **kwargs)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------
    @property
    def document(self) -> Document:
        return self.buffer.document

    @property
    def dirty(self) -> bool:
        return self._dirty

    @property
    def saving(self) -> bool:
        return self._saving

    @property
    def analyzing(self) -> bool:
        return self._analyzing

    def export_markdown(self) -> str:
        return self.document.to_markdown()

    # ------------------------------------------------------------------
    # Editor events
    # ------------------------------------------------------------------
    def update_content(self, content: str, caret: Optional[int] = None) -> None:
        """Record a user edit; the caret defaults to the end of the text."""

        self.buffer.set_content(content, caret)
        self.polishing.handle_selection()
        self.ghost.handle_edit()
        self._content_changed()

    def move_caret(self, position: int) -> None:
        self.buffer.move_caret(position)
        self.ghost.handle_caret_moved()
        self.polishing.handle_selection()

    def select(self, start: int, end: int, anchor: Optional["PopupAnchor"] = None) -> None:
        self.buffer.select(start, end)
        self.ghost.handle_caret_moved()
        self.polishing.handle_selection(anchor)

    def set_title(self, title: str) -> None:
        if title == self.document.title:
            return
        self.document.title = title
        self.document.touch()
        self._content_changed()

    # ------------------------------------------------------------------
    # Ghost text
    # ------------------------------------------------------------------
    def accept_ghost(self) -> Optional[str]:
        inserted = self.ghost.accept()
        if inserted is not None:
            self.polishing.handle_selection()
            self._content_changed()
        return inserted

    def cycle_ghost(self, step: int = 1) -> None:
        if step < 0:
            self.ghost.previous()
        elif step > 0:
            self.ghost.next()

    def dismiss_ghost(self) -> None:
        self.ghost.dismiss()

    # ------------------------------------------------------------------
    # Polishing
    # ------------------------------------------------------------------
    def apply_polish(self, text: str) -> bool:
        """Replace the polished selection with ``text``."""

        if not self.polishing.apply_option(text):
            return False
        self.ghost.handle_edit()
        self._content_changed()
        return True

    # ------------------------------------------------------------------
    # Structural rewrites
    # ------------------------------------------------------------------
    async def analyze_structure(self) -> list["StructureSuggestion"]:
        """Ask for alternative versions of the whole document."""

        self._analyzing = True
        self._notify()
        try:
            self.structure_suggestions = await self._assistant.analyze_structure(
                self.document.content, self.document.topic
            )
        finally:
            self._analyzing = False
            self._notify()
        return list(self.structure_suggestions)

    async def apply_structure(self, suggestion: "StructureSuggestion") -> VersionRecord:
        """Replace the document with ``suggestion``, keeping a backup version."""

        self._prepare_replacement()
        self._revision += 1
        revision = self._revision
        try:
            backup = await self.rewriter.apply_rewrite(
                suggestion.rewritten_content, suggestion.style_name
            )
        except DFPersistError as exc:
            self._report(exc)
            self._content_changed()
            raise
        finally:
            self._notify()
        self.structure_suggestions = []
        self._mark_saved(revision)
        return backup

    async def restore_version(self, version: VersionRecord) -> VersionRecord:
        """Bring back ``version``, keeping a backup of the current text."""

        self._prepare_replacement()
        self._revision += 1
        revision = self._revision
        try:
            backup = await self.rewriter.restore_version(version)
        except DFPersistError as exc:
            self._report(exc)
            self._content_changed()
            raise
        finally:
            self._notify()
        self._mark_saved(revision)
        return backup

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------
    async def save(self) -> None:
        """Persist the document now, cancelling any pending auto-save."""

        self._saver.cancel(_AUTOSAVE_KEY)
        revision = self._revision
        self._saving = True
        try:
            await self._store.save(self.document)
        except DFPersistError as exc:
            self._report(exc)
            raise
        finally:
            self._saving = False
        self._mark_saved(revision)

    async def wait_idle(self) -> None:
        """Wait for outstanding suggestion requests and auto-saves."""

        await self.controller.drain()
        await self._saver.drain()

    async def aclose(self, *, flush: bool = True) -> None:
        """Stop all background work, saving unsaved changes when ``flush`` is set."""

        await self.controller.aclose()
        await self._saver.aclose()
        if flush and self._dirty:
            await self.save()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _content_changed(self) -> None:
        self._revision += 1
        self._dirty = True
        self._saver.schedule(
            _AUTOSAVE_KEY,
            self._config.autosave_delay_ms,
            self._autosave,
            snapshot=None,
            current=lambda: None,
            on_result=lambda _: None,
            fallback=lambda: None,
        )

    async def _autosave(self) -> None:
        try:
            await self.save()
        except DFPersistError as exc:
            logger.warning("Auto-save of document '%s' failed: %s", self.document.id, exc)

    def _prepare_replacement(self) -> None:
        self._saver.cancel(_AUTOSAVE_KEY)
        self.ghost.dismiss()
        self.polishing.clear()

    def _mark_saved(self, revision: int) -> None:
        # Edits made while the save was awaited are still unsaved
        if revision == self._revision:
            self._dirty = False
        self.last_saved = utc_now()

    def _report(self, exc: Exception) -> None:
        logger.error("Persisting document '%s' failed: %s", self.document.id, exc)
        if self._on_error is not None:
            self._on_error(exc)

    def _notify(self) -> None:
        if self._on_change is not None:
            self._on_change()
