"""Tests for the document stores."""
from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from deepflow.core.document import Document
from deepflow.core.exceptions import DFPersistError
from deepflow.core.storage import DocumentStore, JsonDocumentStore, MemoryDocumentStore


def _dated(title: str, days_ago: int) -> Document:
    document = Document.new(title, f"{title} content")
    document.updated_at = datetime(2024, 6, 1, tzinfo=timezone.utc) - timedelta(days=days_ago)
    return document


@pytest.mark.parametrize("factory", [MemoryDocumentStore, JsonDocumentStore])
def test_stores_satisfy_protocol(factory, tmp_path: Path) -> None:
    store = factory(tmp_path) if factory is JsonDocumentStore else factory()

    assert isinstance(store, DocumentStore)


@pytest.mark.asyncio
async def test_json_store_save_load_delete(tmp_path: Path) -> None:
    store = JsonDocumentStore(tmp_path / "docs")
    document = Document.new("Essay", "Body text")
    document.push_version("Automatic backup before restore")

    await store.save(document)

    path = tmp_path / "docs" / f"{document.id}.json"
    assert path.is_file()
    assert json.loads(path.read_text(encoding="utf-8"))["title"] == "Essay"
    assert not list((tmp_path / "docs").glob("*.tmp"))

    loaded = await store.load(document.id)
    assert loaded == document

    assert await store.delete(document.id) is True
    assert await store.delete(document.id) is False
    assert await store.load(document.id) is None


@pytest.mark.asyncio
async def test_json_store_lists_recent_first(tmp_path: Path) -> None:
    store = JsonDocumentStore(tmp_path)
    for document in (_dated("old", 10), _dated("new", 1), _dated("mid", 5)):
        await store.save(document)
    (tmp_path / "broken.json").write_text("{not json", encoding="utf-8")

    summaries = await store.list_recent(2)

    assert [summary.title for summary in summaries] == ["new", "mid"]


@pytest.mark.asyncio
async def test_json_store_rejects_path_like_ids(tmp_path: Path) -> None:
    store = JsonDocumentStore(tmp_path)

    with pytest.raises(DFPersistError) as excinfo:
        await store.load("../escape")

    assert excinfo.value.operation == "resolve"


@pytest.mark.asyncio
async def test_json_store_reports_corrupt_files(tmp_path: Path) -> None:
    store = JsonDocumentStore(tmp_path)
    (tmp_path / "abc.json").write_text("{not json", encoding="utf-8")

    with pytest.raises(DFPersistError) as excinfo:
        await store.load("abc")

    assert excinfo.value.document_id == "abc"
    assert excinfo.value.details["operation"] == "load"


@pytest.mark.asyncio
async def test_json_store_wraps_write_failures(tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")
    store = JsonDocumentStore(blocker)

    with pytest.raises(DFPersistError) as excinfo:
        await store.save(Document.new("Essay", "Body"))

    assert excinfo.value.operation == "save"


@pytest.mark.asyncio
async def test_memory_store_keeps_independent_copies() -> None:
    store = MemoryDocumentStore()
    document = Document.new("Essay", "Body")
    await store.save(document)

    document.content = "changed after save"
    loaded = await store.load(document.id)

    assert loaded is not None
    assert loaded.content == "Body"
    assert store.save_count == 1
    assert [summary.id for summary in await store.list_recent(5)] == [document.id]
    assert await store.delete(document.id) is True
