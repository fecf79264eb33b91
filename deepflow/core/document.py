"""Document and version records owned by an editing session."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping, Optional
from uuid import uuid4

__all__ = [
    "Document",
    "DocumentSummary",
    "VersionRecord",
    "utc_now",
]

_EXCERPT_LENGTH = 120


def utc_now() -> datetime:
    """Return the current time as an aware UTC timestamp."""

    return datetime.now(timezone.utc)


def _parse_timestamp(value: Any) -> datetime:
    """Accept ISO strings and millisecond epochs written by older clients."""

    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
    if isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    raise ValueError(f"Invalid timestamp value: {value!r}")


@dataclass(frozen=True)
class VersionRecord:
    """Immutable backup snapshot taken before a destructive replacement."""

    timestamp: datetime
    title: str
    content: str
    note: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "timestamp": self.timestamp.isoformat(),
            "title": self.title,
            "content": self.content,
        }
        if self.note is not None:
            payload["note"] = self.note
        return payload

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "VersionRecord":
        return cls(
            timestamp=_parse_timestamp(data.get("timestamp")),
            title=str(data.get("title") or ""),
            content=str(data.get("content") or ""),
            note=data.get("note"),
        )


@dataclass(frozen=True)
class DocumentSummary:
    """Lightweight listing entry for recently edited documents."""

    id: str
    title: str
    updated_at: datetime
    excerpt: str
    version_count: int


@dataclass
class Document:
    """A single piece of writing and its backup history.

    ``versions`` is ordered most-recent-first and only ever grows at the
    front. ``updated_at`` is refreshed through :meth:`touch` on every change.
    """

    id: str
    title: str
    content: str
    created_at: datetime
    updated_at: datetime
    topic: Optional[str] = None
    topic_description: Optional[str] = None
    versions: list[VersionRecord] = field(default_factory=list)

    @classmethod
    def new(
        cls,
        title: str = "",
        content: str = "",
        *,
        topic: Optional[str] = None,
        topic_description: Optional[str] = None,
    ) -> "Document":
        """Create an unsaved document with a fresh identifier."""

        now = utc_now()
        return cls(
            id=uuid4().hex,
            title=title,
            content=content,
            created_at=now,
            updated_at=now,
            topic=topic,
            topic_description=topic_description,
        )

    def touch(self) -> None:
        """Mark the document as modified now."""

        self.updated_at = utc_now()

    def push_version(self, note: Optional[str] = None) -> VersionRecord:
        """Snapshot the current title and content at the front of the log."""

        record = VersionRecord(
            timestamp=utc_now(),
            title=self.title,
            content=self.content,
            note=note,
        )
        self.versions.insert(0, record)
        return record

    def summary(self) -> DocumentSummary:
        excerpt = " ".join(self.content.split())
        if len(excerpt) > _EXCERPT_LENGTH:
            excerpt = excerpt[:_EXCERPT_LENGTH].rstrip() + "..."
        return DocumentSummary(
            id=self.id,
            title=self.title,
            updated_at=self.updated_at,
            excerpt=excerpt,
            version_count=len(self.versions),
        )

    def to_markdown(self) -> str:
        """Render the document as a Markdown export."""

        return f"# {self.title or 'Untitled'}\n\n{self.content}"

    # ------------------------------------------------------------------
    # Serialisation
    # ------------------------------------------------------------------
    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
            "versions": [version.to_dict() for version in self.versions],
        }
        if self.topic is not None:
            payload["topic"] = self.topic
        if self.topic_description is not None:
            payload["topicDescription"] = self.topic_description
        return payload

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Document":
        doc_id = str(data.get("id") or "").strip()
        if not doc_id:
            raise ValueError("Document payload is missing an id.")
        created = _parse_timestamp(data.get("createdAt"))
        updated_raw = data.get("updatedAt")
        updated = _parse_timestamp(updated_raw) if updated_raw is not None else created
        raw_versions = data.get("versions") or []
        return cls(
            id=doc_id,
            title=str(data.get("title") or ""),
            content=str(data.get("content") or ""),
            created_at=created,
            updated_at=updated,
            topic=data.get("topic"),
            topic_description=data.get("topicDescription"),
            versions=[VersionRecord.from_dict(entry) for entry in raw_versions],
        )
