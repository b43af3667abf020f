"""Exception hierarchy shared by the import core and its adapters.

Operation level errors (source, input, configuration, locking) propagate to
the caller and terminate the current chunk. Record level errors are caught by
the reconciliation engine and converted into ``Err`` results.
"""

from __future__ import annotations

from enum import StrEnum


class FeedImportError(RuntimeError):
    """Base class for every error raised by the import pipeline."""


class SourceErrorKind(StrEnum):
    NETWORK = "network"
    PERMISSION = "permission"
    NOT_FOUND = "not_found"


class SourceUnavailableError(FeedImportError):
    """Raised by fetchers when the raw source cannot be retrieved."""

    def __init__(self, message: str, *, kind: SourceErrorKind = SourceErrorKind.NETWORK) -> None:
        super().__init__(message)
        self.kind = kind


class MalformedInputError(FeedImportError):
    """Raised by parsers when the fetched payload cannot be parsed."""


class EmptyFeedError(MalformedInputError):
    """Raised by parsers when the fetched payload is empty or whitespace only."""


class MappingConfigurationError(FeedImportError):
    """Raised while building an importer whose configuration cannot work."""


class SourceLockedError(FeedImportError):
    """Raised when another logical operation holds the source lock."""

    def __init__(self, source_id: str, operation: str) -> None:
        super().__init__(f"Source {source_id!r} is locked by a running {operation} operation")
        self.source_id = source_id
        self.operation = operation


class RecordError(FeedImportError):
    """Base class for failures confined to a single record."""


class TargetValueError(RecordError):
    """Raised by a target handler that cannot accept a mapped value."""


class StoreError(RecordError):
    """Raised by the entity store when a save cannot be committed."""


class LookupUnavailableError(RecordError):
    """Raised by a target handler that cannot answer a unique lookup."""
