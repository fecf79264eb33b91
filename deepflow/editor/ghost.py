"""Inline ghost-text continuation at the end of the document."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Callable, Iterable, Optional

from deepflow.editor.buffer import EditorBuffer
from deepflow.editor.debounce import DebounceController

if TYPE_CHECKING:  # pragma: no cover - typing only
    from deepflow.ai.assist import WritingAssistant
    from deepflow.ai.config import AIConfig

__all__ = [
    "GHOST_KEY",
    "GhostCandidateSet",
    "GhostPhase",
    "GhostTextEngine",
    "unique_candidates",
]

logger = logging.getLogger(__name__)

GHOST_KEY = "ghost"


class GhostPhase(enum.Enum):
    """Lifecycle of a ghost-text request."""

    IDLE = "idle"
    PENDING = "pending"
    LOADING = "loading"
    READY = "ready"


@dataclass(frozen=True)
class GhostCandidateSet:
    """Continuation candidates and the editor state they belong to."""

    candidates: tuple[str, ...]
    origin_content: str
    origin_caret: int
    active_index: int = 0

    @property
    def active(self) -> str:
        return self.candidates[self.active_index]

    def rotated(self, step: int) -> "GhostCandidateSet":
        return replace(self, active_index=(self.active_index + step) % len(self.candidates))


def unique_candidates(items: Iterable[str]) -> tuple[str, ...]:
    """Drop blank entries and exact duplicates, keeping first-seen order."""

    seen: set[str] = set()
    result: list[str] = []
    for item in items:
        if not isinstance(item, str) or not item.strip() or item in seen:
            continue
        seen.add(item)
        result.append(item)
    return tuple(result)


class GhostTextEngine:
    """Suggest continuations while the author types at the end of the text.

    The engine is driven by :meth:`handle_edit` and :meth:`handle_caret_moved`
    notifications from the editor surface. Candidates are only ever shown for
    the exact text and caret they were generated for.
    """

    def __init__(
        self,
        buffer: EditorBuffer,
        controller: DebounceController,
        assistant: "WritingAssistant",
        config: "AIConfig",
        *,
        on_change: Optional[Callable[[], None]] = None,
    ) -> None:
        self._buffer = buffer
        self._controller = controller
        self._assistant = assistant
        self._config = config
        self._on_change = on_change
        self._phase = GhostPhase.IDLE
        self._candidates: Optional[GhostCandidateSet] = None
        self._tracked_caret: Optional[int] = None

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------
    @property
    def phase(self) -> GhostPhase:
        return self._phase

    @property
    def candidate_set(self) -> Optional[GhostCandidateSet]:
        return self._candidates

    @property
    def candidates(self) -> tuple[str, ...]:
        return self._candidates.candidates if self._candidates else ()

    @property
    def active_index(self) -> int:
        return self._candidates.active_index if self._candidates else 0

    @property
    def active_suggestion(self) -> Optional[str]:
        """Return the candidate currently rendered as ghost text."""

        return self._candidates.active if self._candidates else None

    # ------------------------------------------------------------------
    # Editor notifications
    # ------------------------------------------------------------------
    def handle_edit(self) -> None:
        """React to a user change of the document content."""

        self._candidates = None
        content = self._buffer.content
        if self._buffer.caret_at_end and len(content) > self._config.ghost_min_chars:
            self._request(self._config.ghost_delay_ms)
        else:
            self._controller.cancel(GHOST_KEY)
            self._tracked_caret = None
            self._set_phase(GhostPhase.IDLE)
        self._notify()

    def handle_caret_moved(self) -> None:
        """Abandon the suggestion when the caret leaves the tracked position."""

        if self._tracked_caret is None or self._buffer.caret == self._tracked_caret:
            return
        logger.debug("Caret left ghost position, dropping suggestion")
        self.dismiss()

    # ------------------------------------------------------------------
    # User actions
    # ------------------------------------------------------------------
    def next(self) -> None:
        if self._candidates and len(self._candidates.candidates) > 1:
            self._candidates = self._candidates.rotated(1)
            self._notify()

    def previous(self) -> None:
        if self._candidates and len(self._candidates.candidates) > 1:
            self._candidates = self._candidates.rotated(-1)
            self._notify()

    def accept(self) -> Optional[str]:
        """Insert the active candidate at the end of the text.

        Returns the inserted text, or ``None`` when nothing was inserted
        because no candidate is shown or the document changed since the
        candidates were generated. Acceptance arms one follow-up request.
        """

        candidates = self._candidates
        if candidates is None:
            return None
        buffer = self._buffer
        if buffer.content != candidates.origin_content or buffer.caret != candidates.origin_caret:
            logger.debug("Document changed since ghost generation, rejecting accept")
            self.dismiss()
            return None

        text = candidates.active
        self._candidates = None
        buffer.insert(len(buffer.content), text)
        self._request(self._config.chain_delay_ms)
        self._notify()
        return text

    def dismiss(self) -> None:
        self._controller.cancel(GHOST_KEY)
        self._candidates = None
        self._tracked_caret = None
        self._set_phase(GhostPhase.IDLE)
        self._notify()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _snapshot(self) -> tuple[str, int]:
        return self._buffer.content, self._buffer.caret

    def _request(self, delay_ms: int) -> None:
        snapshot = self._snapshot()
        text = snapshot[0]

        async def produce() -> list[str]:
            return await self._assistant.ghost_completions(text)

        self._tracked_caret = snapshot[1]
        self._set_phase(GhostPhase.PENDING)
        self._controller.schedule(
            GHOST_KEY,
            delay_ms,
            produce,
            snapshot=snapshot,
            current=self._snapshot,
            on_result=lambda result: self._install(result, snapshot),
            on_start=self._mark_loading,
        )

    def _mark_loading(self) -> None:
        self._set_phase(GhostPhase.LOADING)
        self._notify()

    def _install(self, result: Iterable[str], snapshot: tuple[str, int]) -> None:
        unique = unique_candidates(result or ())
        if not unique:
            self._candidates = None
            self._tracked_caret = None
            self._set_phase(GhostPhase.IDLE)
        else:
            content, caret = snapshot
            self._candidates = GhostCandidateSet(unique, content, caret)
            self._set_phase(GhostPhase.READY)
        self._notify()

    def _set_phase(self, phase: GhostPhase) -> None:
        if phase is not self._phase:
            logger.debug("Ghost text %s -> %s", self._phase.value, phase.value)
            self._phase = phase

    def _notify(self) -> None:
        if self._on_change is not None:
            self._on_change()
