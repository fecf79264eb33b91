"""Error hierarchy shared by the DeepFlow AI assistant layer."""

from __future__ import annotations

__all__ = [
    "DFAiError",
    "DFAiProviderError",
    "DFAiParseError",
    "DFAiConfigError",
    "DFAiStaleResult",
]


class DFAiError(Exception):
    """Base error for all AI assistant failures."""


class DFAiProviderError(DFAiError):
    """Raised when a provider backend fails or behaves unexpectedly."""


class DFAiParseError(DFAiError):
    """Raised when a model answer cannot be turned into the expected shape."""


class DFAiConfigError(DFAiError):
    """Raised when AI-specific configuration values are missing or invalid."""


class DFAiStaleResult(DFAiError):
    """Raised internally when a result no longer matches the editing context.

    This is an expected outcome of the debounce protocol and is never shown
    to the user.
    """
