"""Document model and persistence for DeepFlow."""

from .document import Document, DocumentSummary, VersionRecord
from .exceptions import DFCoreError, DFPersistError
from .storage import DocumentStore, JsonDocumentStore, MemoryDocumentStore

__all__ = [
    "Document",
    "DocumentSummary",
    "VersionRecord",
    "DFCoreError",
    "DFPersistError",
    "DocumentStore",
    "JsonDocumentStore",
    "MemoryDocumentStore",
]
