"""Turn loosely formatted model answers into typed candidate lists.

Models asked for JSON frequently wrap their answer in a Markdown code fence,
prefix it with a sentence, or nest the list inside an object such as
``{"suggestions": [...]}``. The helpers here tolerate all of these shapes.
"""

from __future__ import annotations

import json
import logging
import re
from functools import lru_cache
from typing import Any, Optional, TypeVar, overload

from pydantic import TypeAdapter, ValidationError

from deepflow.ai.errors import DFAiParseError

__all__ = [
    "extract_json",
    "parse_list",
    "parse_single",
    "strip_code_fences",
]

logger = logging.getLogger(__name__)

T = TypeVar("T")

_FENCE_BLOCK = re.compile(r"```[A-Za-z0-9_-]*[ \t]*\n?(.*?)```", re.DOTALL)
_FENCE_MARKER = re.compile(r"```[A-Za-z0-9_-]*")


def strip_code_fences(text: str) -> str:
    """Return the content of the first fenced block, or ``text`` without fences."""

    match = _FENCE_BLOCK.search(text)
    if match:
        return match.group(1).strip()
    return _FENCE_MARKER.sub("", text).strip()


def extract_json(raw: str) -> Any:
    """Decode the JSON payload embedded in a model answer.

    Raises :class:`DFAiParseError` when no JSON value can be recovered.
    """

    if not isinstance(raw, str):
        raise DFAiParseError(f"Expected text, got {type(raw).__name__}.")
    text = strip_code_fences(raw)
    if not text:
        raise DFAiParseError("Model answer is empty.")
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        candidate = _outermost_json(text)
        if candidate is None:
            raise DFAiParseError(f"Model answer is not JSON: {exc.msg}") from exc
        try:
            return json.loads(candidate)
        except json.JSONDecodeError as inner:
            raise DFAiParseError(f"Model answer is not JSON: {inner.msg}") from inner


def _outermost_json(text: str) -> Optional[str]:
    starts = [index for index in (text.find("["), text.find("{")) if index >= 0]
    if not starts:
        return None
    start = min(starts)
    closer = "]" if text[start] == "[" else "}"
    end = text.rfind(closer)
    if end <= start:
        return None
    return text[start:end + 1]


@lru_cache(maxsize=32)
def _adapter(item_type: Any) -> TypeAdapter:
    return TypeAdapter(item_type)


@overload
def parse_list(raw: str) -> list[Any]: ...
@overload
def parse_list(raw: str, item_type: type[T]) -> list[T]: ...


def parse_list(raw: str, item_type: Any = None) -> list[Any]:
    """Parse a model answer into a list, never raising.

    A top-level list is used as is; for an object, the first list-valued
    member is taken. With ``item_type`` every entry is validated through
    pydantic and entries that do not fit are dropped. Anything unparseable
    yields an empty list.
    """

    try:
        payload = extract_json(raw)
    except DFAiParseError as exc:
        logger.debug("Discarding unparseable list answer: %s", exc)
        return []

    items: Optional[list[Any]] = None
    if isinstance(payload, list):
        items = payload
    elif isinstance(payload, dict):
        for value in payload.values():
            if isinstance(value, list):
                items = value
                break
    if items is None:
        logger.debug("Model answer did not contain a list")
        return []

    if item_type is None:
        return list(items)

    adapter = _adapter(item_type)
    result: list[Any] = []
    for index, item in enumerate(items):
        try:
            result.append(adapter.validate_python(item))
        except ValidationError as exc:
            logger.debug("Dropping invalid list entry %d: %s", index, exc.errors()[:1])
    return result


def parse_single(raw: str, item_type: type[T]) -> T:
    """Parse a model answer holding one object of ``item_type``.

    Raises :class:`DFAiParseError` when the answer is malformed or does not
    validate.
    """

    payload = extract_json(raw)
    if isinstance(payload, list):
        if not payload:
            raise DFAiParseError("Model answer is an empty list.")
        payload = payload[0]
    try:
        return _adapter(item_type).validate_python(payload)
    except ValidationError as exc:
        raise DFAiParseError(f"Model answer does not match {getattr(item_type, '__name__', item_type)}.") from exc
