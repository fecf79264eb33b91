"""Prompt catalogue used by the writing assistant features."""

from __future__ import annotations

from dataclasses import dataclass

__all__ = [
    "PromptTemplate",
    "GHOST_TEXT",
    "POLISHING",
    "STRUCTURE_ANALYSIS",
    "INSPIRATION",
]


@dataclass(frozen=True)
class PromptTemplate:
    """A system prompt plus a ``str.format`` template for the user turn."""

    name: str
    system: str
    user_template: str

    def render(self, **values: str) -> str:
        return self.user_template.format(**values)


GHOST_TEXT = PromptTemplate(
    name="ghost_text",
    system=(
        "You are an inline writing companion. Continue the author's text in their "
        "own voice and language. Suggest short continuations of at most one "
        "sentence each. Keep any leading space the continuation needs. Respond "
        'with a JSON object of the form {"suggestions": ["...", "..."]} holding '
        "three distinct options."
    ),
    user_template="Continue the following text:\n\n{context}",
)

POLISHING = PromptTemplate(
    name="polishing",
    system=(
        "You are a careful copy editor. For the selected passage return a JSON "
        'object {"options": [...]} where each option has the keys "label", '
        '"text" and "description". Provide exactly three options labelled '
        '"correction" (fix errors only), "polish" (improve flow while keeping '
        'meaning) and "rewrite" (a bolder restatement). Answer in the language '
        "of the passage."
    ),
    user_template=(
        "Preceding context:\n{context}\n\n"
        "Selected passage:\n{selected}"
    ),
)

STRUCTURE_ANALYSIS = PromptTemplate(
    name="structure_analysis",
    system=(
        "You are a structural editor for short essays. Produce alternative full "
        'versions of the essay as a JSON object {"versions": [...]} where each '
        'entry has "styleName", "explanation" and "rewrittenContent". Range from '
        "a light proofread to a creative restructuring. Always return the "
        "complete text in rewrittenContent."
    ),
    user_template="Topic: {topic}\n\nEssay:\n{text}",
)

INSPIRATION = PromptTemplate(
    name="inspiration",
    system=(
        "You suggest thought-provoking essay topics. Respond with a JSON object "
        '{"topic": "...", "description": "..."} where the description is one or '
        "two guiding sentences."
    ),
    user_template="Suggest a writing topic. Keywords from the author: {hint}",
)
