"""Data transfer objects shared across the AI assistant layer."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

__all__ = [
    "TextRange",
    "PopupAnchor",
    "PolishOption",
    "StructureSuggestion",
    "PromptIdea",
]


@dataclass(frozen=True)
class TextRange:
    """Half-open text range expressed as character offsets in a document."""

    start: int
    end: int

    @property
    def length(self) -> int:
        return max(0, self.end - self.start)

    @property
    def collapsed(self) -> bool:
        return self.end <= self.start

    def slice(self, text: str) -> str:
        """Return the part of ``text`` covered by this range."""

        return text[self.start:self.end]


@dataclass(frozen=True)
class PopupAnchor:
    """Screen placement hint supplied by the editor surface for popups."""

    top: float
    left: float = 0.0


class PolishOption(BaseModel):
    """A labelled rewrite option for a selected span of text."""

    model_config = ConfigDict(extra="ignore")

    label: str = Field(description="Kind of change, e.g. correction or polish")
    text: str = Field(description="Replacement text for the selection")
    description: Optional[str] = Field(default=None, description="Why the change helps")


class StructureSuggestion(BaseModel):
    """A full-document alternative produced by structural analysis."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    style_name: str = Field(alias="styleName", description="Name of the rewrite style")
    explanation: str = Field(default="", description="Benefits of this version")
    rewritten_content: str = Field(alias="rewrittenContent", description="Complete rewritten text")


class PromptIdea(BaseModel):
    """A writing topic with a short guiding description."""

    model_config = ConfigDict(extra="ignore")

    topic: str
    description: str = ""
