"""AI assistant layer for DeepFlow: providers, client and answer parsing."""

from .assist import WritingAssistant
from .client import SuggestionClient
from .config import AIConfig
from .errors import (
    DFAiConfigError,
    DFAiError,
    DFAiParseError,
    DFAiProviderError,
    DFAiStaleResult,
)
from .models import PolishOption, PopupAnchor, PromptIdea, StructureSuggestion, TextRange

__all__ = [
    "AIConfig",
    "SuggestionClient",
    "WritingAssistant",
    "DFAiError",
    "DFAiProviderError",
    "DFAiParseError",
    "DFAiConfigError",
    "DFAiStaleResult",
    "TextRange",
    "PopupAnchor",
    "PolishOption",
    "StructureSuggestion",
    "PromptIdea",
]
