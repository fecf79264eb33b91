"""Shared fixtures and fakes for the DeepFlow test suite."""
from __future__ import annotations

import logging
from typing import Any, Mapping

import pytest

from deepflow.ai.assist import WritingAssistant
from deepflow.ai.client import SuggestionClient
from deepflow.ai.config import AIConfig
from deepflow.ai.providers.base import BaseProvider, ProviderSettings
from deepflow.core.document import Document
from deepflow.core.exceptions import DFPersistError
from deepflow.core.storage import MemoryDocumentStore


class FakeProvider(BaseProvider):
    """Provider replaying scripted replies.

    A reply is either answer text, an exception instance to raise, or a
    coroutine function whose result is returned.
    """

    name = "fake"

    def __init__(self, replies: list[Any] | None = None) -> None:
        super().__init__(
            ProviderSettings(base_url="https://fake.local/v1", api_key="test-key", model="fake-model")
        )
        self.replies: list[Any] = list(replies or [])
        self.calls: list[dict[str, Any]] = []
        self.closed = False

    async def _generate(
        self,
        messages: list[Mapping[str, Any]],
        *,
        json_mode: bool,
        **kwargs: Any,
    ) -> str:
        self.calls.append({"messages": messages, "json_mode": json_mode})
        if not self.replies:
            return ""
        reply = self.replies.pop(0)
        if isinstance(reply, BaseException):
            raise reply
        if callable(reply):
            return await reply()
        return reply

    async def aclose(self) -> None:
        self.closed = True

    def user_prompts(self) -> list[str]:
        return [call["messages"][-1]["content"] for call in self.calls]


class FailingStore(MemoryDocumentStore):
    """Memory store whose saves fail while ``fail`` is set."""

    def __init__(self) -> None:
        super().__init__()
        self.fail = True

    async def save(self, document: Document) -> None:
        if self.fail:
            raise DFPersistError("disk full", document_id=document.id, operation="save")
        await super().save(document)


@pytest.fixture(autouse=True)
def debug_logging(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG, logger="deepflow")


@pytest.fixture
def ai_config() -> AIConfig:
    cfg = AIConfig()
    cfg.api_key = "test-key"
    cfg.ghost_delay_ms = 10
    cfg.chain_delay_ms = 20
    cfg.polish_delay_ms = 10
    cfg.autosave_delay_ms = 10_000
    cfg.cache_enabled = False
    return cfg


@pytest.fixture
def fake_provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def assistant(fake_provider: FakeProvider, ai_config: AIConfig) -> WritingAssistant:
    return WritingAssistant(SuggestionClient(fake_provider), ai_config)


@pytest.fixture
def memory_store() -> MemoryDocumentStore:
    return MemoryDocumentStore()


@pytest.fixture
def failing_store() -> FailingStore:
    return FailingStore()
