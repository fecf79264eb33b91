"""Configuration helpers for the DeepFlow AI assistant."""

from __future__ import annotations

import logging
import os
from configparser import ConfigParser
from typing import TYPE_CHECKING, Any, Protocol

from deepflow.ai.errors import DFAiConfigError, DFAiProviderError

if TYPE_CHECKING:  # pragma: no cover - typing only
    import httpx
    from deepflow.ai.providers.base import BaseProvider, ProviderSettings

logger = logging.getLogger(__name__)


class _ConfigReader(Protocol):
    """Protocol describing the subset of config readers we rely on."""

    def has_option(self, section: str, option: str) -> bool:  # pragma: no cover - typing aid
        ...

    def get(self, section: str, option: str, *args: Any, **kwargs: Any) -> str:  # pragma: no cover
        ...

    def getboolean(self, section: str, option: str, *args: Any, **kwargs: Any) -> bool:  # pragma: no cover
        ...

    def getint(self, section: str, option: str, *args: Any, **kwargs: Any) -> int:  # pragma: no cover
        ...

    def getfloat(self, section: str, option: str, *args: Any, **kwargs: Any) -> float:  # pragma: no cover
        ...


_DEF_BASE_URL = "https://api.openai.com/v1"
_DEF_MODEL = "gpt-4o-mini"
_ENV_API_KEY = "OPENAI_API_KEY"

_PROVIDER_SYNONYMS: dict[str, str] = {
    "openai": "openai",
    "openai-compatible": "openai",
    "openai_compatible": "openai",
    "openai-sdk": "openai-sdk",
    "openai_sdk": "openai-sdk",
}

# Integer options and their defaults, in persistence order
_INT_OPTIONS: tuple[tuple[str, int], ...] = (
    ("timeout", 30),
    ("cache_max_entries", 64),
    ("ghost_delay_ms", 1000),
    ("chain_delay_ms", 1500),
    ("ghost_min_chars", 2),
    ("ghost_context_chars", 1000),
    ("polish_delay_ms", 300),
    ("polish_context_chars", 300),
    ("structure_min_chars", 10),
    ("autosave_delay_ms", 2000),
)


class AIConfig:
    """Encapsulates persistent configuration for the writing assistant."""

    __slots__ = (
        "enabled",
        "provider",
        "model",
        "base_url",
        "api_key",
        "timeout",
        "temperature",
        "cache_enabled",
        "cache_max_entries",
        "cache_ttl_seconds",
        "ghost_delay_ms",
        "chain_delay_ms",
        "ghost_min_chars",
        "ghost_context_chars",
        "polish_delay_ms",
        "polish_context_chars",
        "structure_min_chars",
        "autosave_delay_ms",
        "availability_reason",
        "_api_key_from_env",
    )

    SECTION = "AI"

    def __init__(self) -> None:
        self.enabled: bool = True
        self.provider: str = "openai"
        self.model: str = _DEF_MODEL
        self.base_url: str = _DEF_BASE_URL
        self.api_key: str = ""
        self.timeout: int = 30
        self.temperature: float = 0.7
        self.cache_enabled: bool = True
        self.cache_max_entries: int = 64
        self.cache_ttl_seconds: float = 120.0
        self.ghost_delay_ms: int = 1000
        self.chain_delay_ms: int = 1500
        self.ghost_min_chars: int = 2
        self.ghost_context_chars: int = 1000
        self.polish_delay_ms: int = 300
        self.polish_context_chars: int = 300
        self.structure_min_chars: int = 10
        self.autosave_delay_ms: int = 2000
        self.availability_reason: str | None = None
        self._api_key_from_env: bool = False

    @property
    def api_key_from_env(self) -> bool:
        """Return ``True`` when the API key originates from an env var."""

        return self._api_key_from_env

    @property
    def provider_id(self) -> str:
        """The canonical identifier of the configured provider."""

        return self._normalise_provider_id(self.provider)

    # ------------------------------------------------------------------
    # Persistence helpers
    # ------------------------------------------------------------------
    def load(self, conf: _ConfigReader) -> None:
        """Populate the AI settings from a config parser."""

        reader = _ReaderFacade(conf)
        section = self.SECTION

        self.enabled = reader.get_bool(section, "enabled", self.enabled)
        self.provider = self._normalise_provider_id(
            reader.get_str(section, "provider", self.provider)
        )
        self.model = reader.get_str(section, "model", self.model)
        self.base_url = reader.get_str(section, "base_url", self.base_url)
        self.temperature = reader.get_float(section, "temperature", self.temperature)
        self.cache_enabled = reader.get_bool(section, "cache_enabled", self.cache_enabled)
        self.cache_ttl_seconds = reader.get_float(section, "cache_ttl_seconds", self.cache_ttl_seconds)
        for option, _ in _INT_OPTIONS:
            current = getattr(self, option)
            setattr(self, option, max(0, reader.get_int(section, option, current)))
        self.availability_reason = None

        stored_key = reader.get_str(section, "api_key", "")
        env_key = os.environ.get(_ENV_API_KEY, "").strip()

        if env_key:
            self.api_key = env_key
            self._api_key_from_env = True
            if stored_key:
                logger.debug("Ignoring stored AI API key due to %s override", _ENV_API_KEY)
        else:
            self.api_key = stored_key
            self._api_key_from_env = False

    def save(self, conf: ConfigParser) -> None:
        """Persist current AI configuration into the config parser."""

        section = self.SECTION
        if not conf.has_section(section):
            conf[section] = {}

        conf[section]["enabled"] = str(self.enabled)
        conf[section]["provider"] = self._normalise_provider_id(self.provider)
        conf[section]["model"] = str(self.model)
        conf[section]["base_url"] = str(self.base_url)
        conf[section]["temperature"] = str(self.temperature)
        conf[section]["cache_enabled"] = str(self.cache_enabled)
        conf[section]["cache_ttl_seconds"] = str(self.cache_ttl_seconds)
        for option, _ in _INT_OPTIONS:
            conf[section][option] = str(getattr(self, option))

        if self._api_key_from_env:
            if conf.has_option(section, "api_key"):
                conf.remove_option(section, "api_key")
        else:
            conf[section]["api_key"] = str(self.api_key)

    def reset_api_key(self) -> None:
        """Clear any cached API key information and disable env overrides."""

        self.api_key = ""
        self._api_key_from_env = False

    def build_provider_settings(
        self,
        *,
        transport: "httpx.AsyncBaseTransport" | None = None,
    ) -> "ProviderSettings":
        """Translate configuration values into :class:`ProviderSettings`."""

        from deepflow.ai.providers.base import ProviderSettings  # Local import to avoid cycles

        base_url = (self.base_url or "").strip()
        if not base_url:
            raise DFAiConfigError("AI base URL is not configured.")

        api_key = (self.api_key or "").strip()
        if not api_key:
            raise DFAiConfigError("AI API key is not configured.")

        model = (self.model or "").strip()
        if not model:
            raise DFAiConfigError("Model name must be configured for the AI provider.")

        return ProviderSettings(
            base_url=base_url,
            api_key=api_key,
            model=model,
            timeout=float(self.timeout),
            temperature=float(self.temperature),
            transport=transport,
        )

    def create_provider(
        self,
        *,
        transport: "httpx.AsyncBaseTransport" | None = None,
    ) -> "BaseProvider":
        """Instantiate the configured provider implementation."""

        from deepflow.ai.providers.factory import provider_from_config

        if not self.enabled:
            self.set_availability_reason("AI assistance is disabled.")
            raise DFAiConfigError("AI assistance is disabled.")

        try:
            provider = provider_from_config(self, transport=transport)
        except (DFAiConfigError, DFAiProviderError) as exc:
            message = str(exc) or exc.__class__.__name__
            self.set_availability_reason(message)
            if isinstance(exc, DFAiConfigError):
                raise
            raise DFAiConfigError(message) from exc

        self.set_availability_reason(None)
        return provider

    def set_availability_reason(self, message: str | None) -> None:
        """Update availability diagnostics for UI surfaces."""

        self.availability_reason = self._normalise_optional(message)

    def _normalise_provider_id(self, provider: str) -> str:
        key = (provider or "openai").strip().lower()
        return _PROVIDER_SYNONYMS.get(key, key)

    @staticmethod
    def _normalise_optional(value: str | None) -> str | None:
        cleaned = (value or "").strip()
        return cleaned or None


class _ReaderFacade:
    """Typed accessors that fall back to defaults on bad values."""

    __slots__ = ("_conf",)

    def __init__(self, conf: _ConfigReader) -> None:
        self._conf = conf

    def get_str(self, section: str, option: str, default: str) -> str:
        return self._conf.get(section, option, fallback=default)

    def get_bool(self, section: str, option: str, default: bool) -> bool:
        try:
            return self._conf.getboolean(section, option, fallback=default)
        except ValueError:
            logger.warning("Invalid boolean for '%s:%s' in AI config", section, option)
            return default

    def get_int(self, section: str, option: str, default: int) -> int:
        try:
            return self._conf.getint(section, option, fallback=default)
        except ValueError:
            logger.warning("Invalid integer for '%s:%s' in AI config", section, option)
            return default

    def get_float(self, section: str, option: str, default: float) -> float:
        try:
            return self._conf.getfloat(section, option, fallback=default)
        except ValueError:
            logger.warning("Invalid float for '%s:%s' in AI config", section, option)
            return default
