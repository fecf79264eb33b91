"""Tests for the document model."""
from __future__ import annotations

from datetime import datetime, timezone

import pytest

from deepflow.core.document import Document, VersionRecord


def test_new_document_has_identifier_and_timestamps() -> None:
    document = Document.new("Title", "Body", topic="Rain", topic_description="Write about rain.")

    assert len(document.id) == 32
    assert document.created_at == document.updated_at
    assert document.created_at.tzinfo is not None
    assert document.versions == []
    assert Document.new().id != document.id


def test_push_version_inserts_most_recent_first() -> None:
    document = Document.new("Title", "first")
    document.push_version("one")
    document.content = "second"
    record = document.push_version("two")

    assert document.versions[0] is record
    assert [version.content for version in document.versions] == ["second", "first"]
    assert record.title == "Title"


def test_version_record_is_immutable() -> None:
    record = VersionRecord(timestamp=datetime.now(timezone.utc), title="t", content="c")

    with pytest.raises(AttributeError):
        record.content = "changed"  # type: ignore[misc]


def test_roundtrip_uses_wire_keys() -> None:
    document = Document.new("Title", "Body", topic="Rain", topic_description="Desc")
    document.push_version("Before AI rewrite (Concise)")

    payload = document.to_dict()

    assert set(payload) == {
        "id", "title", "content", "createdAt", "updatedAt", "versions", "topic", "topicDescription",
    }
    restored = Document.from_dict(payload)
    assert restored == document


def test_from_dict_accepts_millisecond_and_zulu_timestamps() -> None:
    document = Document.from_dict(
        {
            "id": "abc",
            "title": "Old",
            "content": "Text",
            "createdAt": 1700000000000,
            "updatedAt": "2024-03-01T12:00:00Z",
            "versions": [{"timestamp": 1700000000000, "title": "Old", "content": "Before"}],
        }
    )

    assert document.created_at == datetime.fromtimestamp(1700000000, tz=timezone.utc)
    assert document.updated_at == datetime(2024, 3, 1, 12, tzinfo=timezone.utc)
    assert document.versions[0].note is None
    assert document.topic is None


def test_from_dict_requires_identifier() -> None:
    with pytest.raises(ValueError):
        Document.from_dict({"title": "No id", "createdAt": "2024-01-01T00:00:00+00:00"})


def test_summary_and_markdown_export() -> None:
    document = Document.new("", "word " * 40)
    document.push_version()

    summary = document.summary()

    assert summary.id == document.id
    assert summary.version_count == 1
    assert summary.excerpt.endswith("...")
    assert len(summary.excerpt) <= 123
    assert document.to_markdown().startswith("# Untitled\n\nword ")
