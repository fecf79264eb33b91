"""Tests for parsing model answers into typed candidates."""
from __future__ import annotations

import pytest

from deepflow.ai.errors import DFAiParseError
from deepflow.ai.models import PolishOption, PromptIdea, StructureSuggestion
from deepflow.ai.normalizer import extract_json, parse_list, parse_single, strip_code_fences


def test_strip_code_fences_returns_block_content() -> None:
    assert strip_code_fences('```json\n["a"]\n```') == '["a"]'
    assert strip_code_fences("```\nplain\n```") == "plain"
    assert strip_code_fences("  no fences  ") == "no fences"


def test_parse_list_handles_fenced_array() -> None:
    assert parse_list('```json\n["a","b"]\n```') == ["a", "b"]


def test_parse_list_unwraps_first_list_in_object() -> None:
    raw = '{"count": 2, "suggestions": ["x", "y"], "other": ["z"]}'

    assert parse_list(raw) == ["x", "y"]


@pytest.mark.parametrize("raw", ["not json", "", "   ", '{"answer": "none"}', "42", "```json\n```"])
def test_parse_list_never_raises(raw: str) -> None:
    assert parse_list(raw) == []


def test_parse_list_recovers_json_surrounded_by_prose() -> None:
    raw = 'Sure, here you go: ["one", "two"] Let me know if you need more.'

    assert parse_list(raw, str) == ["one", "two"]


def test_parse_list_drops_items_of_wrong_type() -> None:
    assert parse_list('["a", 3, null, "b"]', str) == ["a", "b"]


def test_parse_list_validates_polish_options() -> None:
    raw = """```json
    [
      {"label": "correction", "text": "I have an apple."},
      {"label": "polish", "text": "I own an apple.", "description": "Smoother"},
      {"label": "rewrite"}
    ]
    ```"""

    options = parse_list(raw, PolishOption)

    assert [option.label for option in options] == ["correction", "polish"]
    assert options[0].description is None
    assert options[1].description == "Smoother"


def test_parse_list_accepts_structure_wire_names() -> None:
    raw = (
        '{"versions": [{"styleName": "Concise", "explanation": "Shorter",'
        ' "rewrittenContent": "Short text."}]}'
    )

    suggestions = parse_list(raw, StructureSuggestion)

    assert len(suggestions) == 1
    assert suggestions[0].style_name == "Concise"
    assert suggestions[0].rewritten_content == "Short text."


def test_parse_single_reads_object_and_first_list_entry() -> None:
    idea = parse_single('```json\n{"topic": "Rain", "description": "Write about rain"}\n```', PromptIdea)
    assert idea.topic == "Rain"

    first = parse_single('[{"topic": "Snow"}, {"topic": "Hail"}]', PromptIdea)
    assert first.topic == "Snow"
    assert first.description == ""


@pytest.mark.parametrize("raw", ["oops", "[]", '{"description": "no topic"}'])
def test_parse_single_raises_parse_error(raw: str) -> None:
    with pytest.raises(DFAiParseError):
        parse_single(raw, PromptIdea)


def test_extract_json_rejects_non_text() -> None:
    with pytest.raises(DFAiParseError):
        extract_json(None)  # type: ignore[arg-type]
