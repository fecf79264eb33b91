"""Feature-level producers built on top of the suggestion client."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from . import prompts
from .errors import DFAiError
from .models import PolishOption, PromptIdea, StructureSuggestion
from .normalizer import parse_list, parse_single

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .client import SuggestionClient
    from .config import AIConfig

__all__ = ["WritingAssistant", "DEFAULT_IDEA"]

logger = logging.getLogger(__name__)

DEFAULT_IDEA = PromptIdea(
    topic="The boundary between self and world",
    description=(
        "How do we define our true self? Is it found in solitude, or in the way "
        "we meet other people?"
    ),
)


class WritingAssistant:
    """Turn editor state into prompts and model answers into typed results.

    Ghost text and polishing calls let provider errors propagate so the
    debounce controller can decide what to deliver. Structural analysis and
    inspiration are user-initiated one-shot calls and degrade in place.
    """

    def __init__(self, client: "SuggestionClient", config: "AIConfig") -> None:
        self._client = client
        self._config = config

    @property
    def client(self) -> "SuggestionClient":
        return self._client

    async def ghost_completions(self, text: str) -> list[str]:
        """Return raw continuation candidates for the end of ``text``."""

        window = self._config.ghost_context_chars
        context = text[-window:] if window > 0 else text
        raw = await self._client.generate(
            prompts.GHOST_TEXT.system,
            prompts.GHOST_TEXT.render(context=context),
            json_mode=True,
        )
        candidates = parse_list(raw, str)
        if not candidates:
            plain = raw.strip()
            if plain and "{" not in plain and "[" not in plain:
                logger.debug("Using plain-text ghost answer as single candidate")
                candidates = [plain]
        return candidates

    async def polishing_options(self, selected: str, context: str) -> list[PolishOption]:
        """Return rewrite options for ``selected`` given the preceding ``context``."""

        window = self._config.polish_context_chars
        context = context[-window:] if window > 0 else ""
        raw = await self._client.generate(
            prompts.POLISHING.system,
            prompts.POLISHING.render(selected=selected, context=context),
            json_mode=True,
        )
        return parse_list(raw, PolishOption)

    async def analyze_structure(self, text: str, topic: Optional[str] = None) -> list[StructureSuggestion]:
        if len(text) < self._config.structure_min_chars:
            return []
        try:
            raw = await self._client.generate(
                prompts.STRUCTURE_ANALYSIS.system,
                prompts.STRUCTURE_ANALYSIS.render(text=text, topic=topic or "(none)"),
                json_mode=True,
            )
        except DFAiError as exc:
            logger.warning("Structural analysis failed: %s", exc)
            return []
        return parse_list(raw, StructureSuggestion)

    async def inspiration(self, hint: Optional[str] = None) -> PromptIdea:
        """Return a writing topic, or :data:`DEFAULT_IDEA` when generation fails."""

        try:
            raw = await self._client.generate(
                prompts.INSPIRATION.system,
                prompts.INSPIRATION.render(hint=(hint or "").strip() or "(free choice)"),
                json_mode=True,
            )
            return parse_single(raw, PromptIdea)
        except DFAiError as exc:
            logger.warning("Inspiration request failed, using default topic: %s", exc)
            return DEFAULT_IDEA
