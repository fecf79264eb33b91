"""OpenAI API compatible provider talking plain HTTP through httpx."""

from __future__ import annotations

import json
import logging
from typing import Any, Mapping

import httpx

from deepflow.ai.errors import DFAiProviderError

from .base import BaseProvider, ProviderSettings

logger = logging.getLogger(__name__)


_CHAT_COMPLETIONS_ENDPOINT = "/chat/completions"
_USER_AGENT = "DeepFlow-AI-Provider/1.0"


class OpenAICompatibleProvider(BaseProvider):
    """Provider implementation for OpenAI compatible chat completion endpoints."""

    name = "openai"

    def __init__(self, settings: ProviderSettings) -> None:
        super().__init__(settings)
        self._client: httpx.AsyncClient | None = None

    async def _generate(
        self,
        messages: list[Mapping[str, Any]],
        *,
        json_mode: bool,
        **kwargs: Any,
    ) -> str:
        client = self._ensure_client()
        extra = dict(kwargs)
        timeout_override = extra.pop("timeout", None)
        timeout = timeout_override if timeout_override is not None else self.settings.timeout

        payload = self._build_chat_payload(messages, json_mode=json_mode, extra=extra)
        logger.debug(
            "Dispatching OpenAI-compatible request (model=%s, json_mode=%s)",
            self.settings.model,
            json_mode,
        )

        try:
            response = await client.post(_CHAT_COMPLETIONS_ENDPOINT, json=payload, timeout=timeout)
        except httpx.HTTPError as exc:
            raise DFAiProviderError(f"Request to AI provider failed: {exc}") from exc

        if response.status_code >= 400:
            raise DFAiProviderError(self._build_error_message(_CHAT_COMPLETIONS_ENDPOINT, response))

        return self._extract_text(self._safe_json(response))

    async def aclose(self) -> None:
        client = self._client
        if client is not None:
            await client.aclose()
            self._client = None

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is not None:
            return self._client

        headers = {
            "Authorization": f"Bearer {self.settings.api_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": self.settings.user_agent or _USER_AGENT,
        }
        if self.settings.extra_headers:
            headers.update(self.settings.extra_headers)

        self._client = httpx.AsyncClient(
            base_url=self.settings.base_url.rstrip("/"),
            headers=headers,
            timeout=self.settings.timeout,
            transport=self.settings.transport,
        )
        return self._client

    def _build_chat_payload(
        self,
        messages: list[Mapping[str, Any]],
        *,
        json_mode: bool,
        extra: dict[str, Any],
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "model": self.settings.model,
            "messages": [dict(message) for message in messages],
            "temperature": self.settings.temperature,
        }
        if json_mode:
            payload["response_format"] = {"type": "json_object"}
        payload.update(extra)
        return payload

    @staticmethod
    def _extract_text(payload: Any) -> str:
        if not isinstance(payload, dict):
            raise DFAiProviderError("AI provider returned a non-JSON response.")
        choices = payload.get("choices")
        if not isinstance(choices, list) or not choices:
            return ""
        first = choices[0]
        if not isinstance(first, dict):
            return ""
        message = first.get("message")
        if isinstance(message, dict):
            content = message.get("content")
            if isinstance(content, str):
                return content
        text = first.get("text")
        return text if isinstance(text, str) else ""

    @staticmethod
    def _safe_json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            return response.text

    @staticmethod
    def _build_error_message(endpoint: str, response: httpx.Response) -> str:
        payload = OpenAICompatibleProvider._safe_json(response)
        if isinstance(payload, dict) and "error" in payload:
            detail = payload["error"]
            if isinstance(detail, dict) and "message" in detail:
                return f"{endpoint} {response.status_code}: {detail['message']}"
            return f"{endpoint} {response.status_code}: {detail}"
        return f"{endpoint} {response.status_code}"
