"""Provider implementation backed by the official OpenAI Python SDK."""

from __future__ import annotations

import logging
from typing import Any, Mapping

import httpx

from deepflow.ai.errors import DFAiProviderError

from .base import BaseProvider, ProviderSettings

try:  # Optional dependency (deepflow[ai])
    from openai import AsyncOpenAI as _AsyncOpenAIClient
    from openai import OpenAIError as _OpenAIError
except ImportError as exc:  # pragma: no cover - optional dependency missing
    _AsyncOpenAIClient = None
    _OpenAIError = None
    _OPENAI_IMPORT_ERROR = exc
else:  # pragma: no cover - executed when dependency available
    _OPENAI_IMPORT_ERROR = None

logger = logging.getLogger(__name__)


class OpenAISDKProvider(BaseProvider):
    """Provider implementation delegating to ``openai.AsyncOpenAI``."""

    name = "openai-sdk"

    def __init__(self, settings: ProviderSettings) -> None:
        if _AsyncOpenAIClient is None:
            message = (
                "OpenAI SDK provider requires the optional dependency 'openai'. "
                "Install deepflow[ai] to enable it."
            )
            raise DFAiProviderError(message) from _OPENAI_IMPORT_ERROR

        super().__init__(settings)
        self._client: Any | None = None
        self._http_client: httpx.AsyncClient | None = None

    async def _generate(
        self,
        messages: list[Mapping[str, Any]],
        *,
        json_mode: bool,
        **kwargs: Any,
    ) -> str:
        client = self._ensure_client()
        request: dict[str, Any] = {
            "model": self.settings.model,
            "messages": [dict(message) for message in messages],
            "temperature": self.settings.temperature,
        }
        if json_mode:
            request["response_format"] = {"type": "json_object"}
        request.update(kwargs)

        try:
            completion = await client.chat.completions.create(**request)
        except _OpenAIError as exc:
            raise DFAiProviderError(f"OpenAI SDK request failed: {exc}") from exc

        choices = getattr(completion, "choices", None) or []
        if not choices:
            return ""
        message = getattr(choices[0], "message", None)
        content = getattr(message, "content", None)
        return content if isinstance(content, str) else ""

    async def aclose(self) -> None:
        client = self._client
        if client is not None:
            closer = getattr(client, "close", None)
            if callable(closer):
                await closer()
            self._client = None
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    # ------------------------------------------------------------------
    # OpenAI client helpers
    # ------------------------------------------------------------------
    def _ensure_client(self) -> Any:
        if self._client is not None:
            return self._client

        client_kwargs: dict[str, Any] = {
            "api_key": self.settings.api_key,
            "base_url": self.settings.base_url,
        }
        if self.settings.timeout:
            client_kwargs["timeout"] = float(self.settings.timeout)

        headers: dict[str, str] = {}
        if self.settings.user_agent:
            headers["User-Agent"] = self.settings.user_agent
        if self.settings.extra_headers:
            headers.update(self.settings.extra_headers)
        if headers:
            client_kwargs["default_headers"] = headers

        if self.settings.transport is not None:
            self._http_client = httpx.AsyncClient(
                transport=self.settings.transport,
                timeout=self.settings.timeout,
            )
            client_kwargs["http_client"] = self._http_client

        self._client = _AsyncOpenAIClient(**client_kwargs)
        return self._client
