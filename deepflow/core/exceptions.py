"""
DeepFlow – Core Exceptions
==========================

Exceptions raised by the document and persistence layer. Unlike assistant
failures these are always surfaced to the user, since they affect durability.
"""
from __future__ import annotations

from typing import Any

__all__ = [
    "DFCoreError",
    "DFPersistError",
]


class DFCoreError(Exception):
    """Base exception for document and storage errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialise a core error with message and optional details.

        Args:
            message: Human-readable error message
            details: Additional error details for debugging

        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


class DFPersistError(DFCoreError):
    """Raised when a document cannot be saved, loaded or deleted."""

    def __init__(self, message: str, document_id: str | None = None,
                 operation: str | None = None, **details: Any) -> None:
        """Initialise a persistence error.

        Args:
            message: Persistence error message
            document_id: Identifier of the affected document
            operation: Storage operation that failed
            **details: Additional error details

        """
        error_details = {"document_id": document_id, "operation": operation, **details}
        super().__init__(message, error_details)
        self.document_id = document_id
        self.operation = operation
