"""Rewrite options for the current text selection."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Optional

from deepflow.ai.models import PolishOption, PopupAnchor, TextRange
from deepflow.editor.buffer import EditorBuffer
from deepflow.editor.debounce import DebounceController, RequestToken

if TYPE_CHECKING:  # pragma: no cover - typing only
    from deepflow.ai.assist import WritingAssistant
    from deepflow.ai.config import AIConfig

__all__ = [
    "POLISH_KEY",
    "PolishingEngine",
    "SelectionState",
]

logger = logging.getLogger(__name__)

POLISH_KEY = "polish"


@dataclass(frozen=True)
class SelectionState:
    """The selection options were requested for."""

    selected_text: str
    range: TextRange
    anchor: Optional[PopupAnchor] = None


class PolishingEngine:
    """Offer correction, polish and rewrite variants of a selected span.

    Options are requested once per distinct selection text. Applying an
    option replaces exactly the recorded range, and only while that range
    still holds the text the options were generated for.
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
        self._state: Optional[SelectionState] = None
        self._options: list[PolishOption] = []
        self._loading = False
        self._token: Optional[RequestToken] = None

    @property
    def state(self) -> Optional[SelectionState]:
        return self._state

    @property
    def options(self) -> list[PolishOption]:
        return list(self._options)

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def anchor(self) -> Optional[PopupAnchor]:
        return self._state.anchor if self._state else None

    def handle_selection(self, anchor: Optional[PopupAnchor] = None) -> None:
        """React to a change of the buffer selection."""

        rng = self._buffer.selection
        if rng.collapsed or rng.length <= 1:
            if self._state is not None or self._loading:
                self.clear()
            return

        text = self._buffer.selected_text
        state = self._state
        if state is not None and state.selected_text == text:
            if state.range == rng:
                if anchor is not None and anchor != state.anchor:
                    self._state = SelectionState(text, rng, anchor)
                    self._notify()
                return
            if not self._loading:
                # Same text elsewhere: keep the options, follow the selection
                self._state = SelectionState(text, rng, anchor or state.anchor)
                self._notify()
                return

        self._state = SelectionState(selected_text=text, range=rng, anchor=anchor)
        self._options = []
        self._loading = True
        context = self._buffer.content[:rng.start]

        async def produce() -> list[PolishOption]:
            return await self._assistant.polishing_options(text, context)

        self._token = self._controller.schedule(
            POLISH_KEY,
            self._config.polish_delay_ms,
            produce,
            snapshot=(rng.start, rng.end, text),
            current=self._snapshot,
            on_result=self._install,
            on_discard=self._dropped,
        )
        self._notify()

    def apply_option(self, text: str) -> bool:
        """Replace the recorded selection with ``text``.

        Returns ``False`` without touching the document when the recorded
        range no longer holds the original selection.
        """

        state = self._state
        if state is None:
            return False
        if state.range.slice(self._buffer.content) != state.selected_text:
            logger.debug("Selection changed since polishing request, not applying")
            self.clear()
            return False

        self._buffer.replace(state.range, text)
        self.clear()
        return True

    def clear(self) -> None:
        self._controller.cancel(POLISH_KEY)
        self._state = None
        self._options = []
        self._loading = False
        self._token = None
        self._notify()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _snapshot(self) -> tuple[int, int, str]:
        rng = self._buffer.selection
        return rng.start, rng.end, self._buffer.selected_text

    def _install(self, options: list[PolishOption]) -> None:
        self._options = list(options or [])
        self._loading = False
        self._token = None
        self._notify()

    def _dropped(self, token: RequestToken) -> None:
        # Nothing newer is coming for a selection that no longer exists
        if token is self._token:
            logger.debug("Polishing request for %r dropped, clearing options", token.snapshot[2])
            self.clear()

    def _notify(self) -> None:
        if self._on_change is not None:
            self._on_change()
