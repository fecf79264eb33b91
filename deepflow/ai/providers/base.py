"""Base provider abstractions shared by the assistant integrations."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Mapping

if TYPE_CHECKING:  # pragma: no cover - typing only
    import httpx

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ProviderSettings:
    """Immutable-like configuration holder for provider instances."""

    base_url: str
    api_key: str
    model: str
    timeout: float = 30.0
    temperature: float = 0.7
    extra_headers: Mapping[str, str] | None = None
    user_agent: str | None = None
    transport: "httpx.AsyncBaseTransport" | None = None


class BaseProvider(ABC):
    """Base class for asynchronous text-generation providers."""

    name = "base"

    def __init__(self, settings: ProviderSettings) -> None:
        self._settings = settings
        self._request_count = 0
        self._last_error: str | None = None

    @property
    def settings(self) -> ProviderSettings:
        """Return the provider settings."""

        return self._settings

    @property
    def last_error(self) -> str | None:
        """Return the message of the most recent failed request, if any."""

        return self._last_error

    @property
    def request_count(self) -> int:
        return self._request_count

    @staticmethod
    def build_messages(system_prompt: str, user_prompt: str) -> list[dict[str, str]]:
        """Build a chat message list from a system and a user prompt."""

        messages: list[dict[str, str]] = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": user_prompt})
        return messages

    async def generate(
        self,
        messages: list[Mapping[str, Any]],
        *,
        json_mode: bool = False,
        **kwargs: Any,
    ) -> str:
        """Execute a generation request and return the raw answer text."""

        self._request_count += 1
        try:
            text = await self._generate(list(messages), json_mode=json_mode, **kwargs)
        except Exception as exc:
            self._last_error = str(exc) or exc.__class__.__name__
            logger.warning("AI provider '%s' request failed: %s", self.name, self._last_error)
            raise
        self._last_error = None
        return text

    @abstractmethod
    async def _generate(
        self,
        messages: list[Mapping[str, Any]],
        *,
        json_mode: bool,
        **kwargs: Any,
    ) -> str:
        """Implement the provider-specific request."""

    async def aclose(self) -> None:
        """Release any resources held by the provider instance."""

    async def __aenter__(self) -> "BaseProvider":  # pragma: no cover - context mgr sugar
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:  # pragma: no cover - context mgr sugar
        await self.aclose()
