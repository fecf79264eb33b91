"""Provider lookup by canonical identifier."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable, Mapping

from deepflow.ai.errors import DFAiConfigError

from .base import BaseProvider, ProviderSettings
from .openai_compatible import OpenAICompatibleProvider
from .openai_sdk import OpenAISDKProvider

if TYPE_CHECKING:  # pragma: no cover - typing only
    import httpx
    from deepflow.ai.config import AIConfig

logger = logging.getLogger(__name__)

# Keys are canonical ids; AIConfig maps user-facing synonyms onto them
_PROVIDERS: Mapping[str, Callable[[ProviderSettings], BaseProvider]] = {
    "openai": OpenAICompatibleProvider,
    "openai-sdk": OpenAISDKProvider,
}


def create_provider(provider_id: str, settings: ProviderSettings) -> BaseProvider:
    try:
        provider_cls = _PROVIDERS[provider_id]
    except KeyError as exc:
        raise DFAiConfigError(f"Unsupported AI provider '{provider_id}'.") from exc
    logger.debug("Created AI provider '%s' for %s", provider_id, settings.base_url)
    return provider_cls(settings)


def provider_from_config(
    ai_config: "AIConfig",
    *,
    transport: "httpx.AsyncBaseTransport" | None = None,
) -> BaseProvider:
    """Create the provider selected in ``ai_config``."""

    settings = ai_config.build_provider_settings(transport=transport)
    return create_provider(ai_config.provider_id, settings)
