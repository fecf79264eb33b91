"""Suggestion client: the single entry point to the text-generation backend."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from .cache import CacheConfig, ResponseCache, build_cache_key, config_from_ai
from .errors import DFAiProviderError

if TYPE_CHECKING:  # pragma: no cover - typing only
    import httpx
    from .config import AIConfig
    from .providers.base import BaseProvider

__all__ = ["SuggestionClient"]

logger = logging.getLogger(__name__)


class SuggestionClient:
    """Send a system and user prompt to a provider and return the raw answer.

    The client owns an optional response cache. Identical prompts sent to the
    same provider, endpoint and model within the cache lifetime are answered
    without another network round trip.
    """

    def __init__(self, provider: "BaseProvider", cache_config: Optional[CacheConfig] = None) -> None:
        self._provider = provider
        self._cache: Optional[ResponseCache] = None
        if cache_config is not None and cache_config.enabled:
            self._cache = ResponseCache(cache_config)

    @classmethod
    def from_config(
        cls,
        ai_config: "AIConfig",
        *,
        transport: "httpx.AsyncBaseTransport" | None = None,
    ) -> "SuggestionClient":
        """Build a client from explicit configuration.

        Raises :class:`DFAiConfigError` when the configuration is incomplete.
        """

        provider = ai_config.create_provider(transport=transport)
        return cls(provider, config_from_ai(ai_config))

    @property
    def provider(self) -> "BaseProvider":
        return self._provider

    @property
    def cache(self) -> Optional[ResponseCache]:
        return self._cache

    async def generate(self, system_prompt: str, user_prompt: str, json_mode: bool = False) -> str:
        """Return the provider's answer text for the given prompts."""

        cache_key = None
        if self._cache is not None:
            settings = self._provider.settings
            cache_key = build_cache_key(
                provider=self._provider.name,
                base_url=settings.base_url,
                model=settings.model,
                system_prompt=system_prompt,
                user_prompt=user_prompt,
                json_mode=json_mode,
            )
            cached = self._cache.fetch(cache_key)
            if cached is not None:
                logger.debug("Answer served from cache")
                return cached.text

        messages = self._provider.build_messages(system_prompt, user_prompt)
        try:
            text = await self._provider.generate(messages, json_mode=json_mode)
        except DFAiProviderError:
            raise
        except Exception as exc:
            raise DFAiProviderError(f"AI provider request failed: {exc}") from exc

        if self._cache is not None and cache_key is not None and text:
            self._cache.store(cache_key, text)
        return text

    async def aclose(self) -> None:
        if self._cache is not None:
            self._cache.clear()
        await self._provider.aclose()
