"""Provider implementations for the DeepFlow AI assistant."""

from .base import BaseProvider, ProviderSettings
from .factory import create_provider, provider_from_config
from .openai_compatible import OpenAICompatibleProvider
from .openai_sdk import OpenAISDKProvider

__all__ = [
    "ProviderSettings",
    "BaseProvider",
    "OpenAICompatibleProvider",
    "OpenAISDKProvider",
    "create_provider",
    "provider_from_config",
]
