"""Results reported by chunked operations."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from feedimport.domain.model import OperationKind, OperationStatus, ProgressState

if TYPE_CHECKING:
    from datetime import datetime


def _count(count: int, label: str) -> str:
    return f"{count} {label}" if count == 1 else f"{count} {label}s"


@dataclass(frozen=True, slots=True, kw_only=True)
class OperationSummary:
    """Counts of a finished logical operation."""

    kind: OperationKind
    source_id: str
    created: int = 0
    updated: int = 0
    skipped: int = 0
    failed: int = 0
    deleted: int = 0
    messages: tuple[str, ...] = ()

    @classmethod
    def from_progress(
        cls,
        kind: OperationKind,
        source_id: str,
        progress: ProgressState,
    ) -> OperationSummary:
        return cls(
            kind=kind,
            source_id=source_id,
            created=progress.created,
            updated=progress.updated,
            skipped=progress.skipped,
            failed=progress.failed,
            deleted=progress.deleted,
            messages=tuple(progress.messages),
        )

    def describe(self, label: str) -> list[tuple[int, str]]:
        """Return ``(log level, message)`` pairs for the user-facing summary."""

        if self.kind is not OperationKind.IMPORT:
            if self.deleted:
                verb = "Deleted" if self.kind is OperationKind.CLEAR else "Expired"
                message = f"{verb} {_count(self.deleted, label)} from {self.source_id}."
                return [(logging.INFO, message)]
            return [(logging.INFO, f"There are no {label}s to delete.")]

        lines: list[tuple[int, str]] = []
        if self.created:
            lines.append((logging.INFO, f"Created {_count(self.created, label)}."))
        if self.updated:
            lines.append((logging.INFO, f"Updated {_count(self.updated, label)}."))
        if self.failed:
            lines.append((logging.ERROR, f"Failed importing {_count(self.failed, label)}."))
        if not lines:
            lines.append((logging.INFO, f"There are no new {label}s."))
        return lines


@dataclass(frozen=True, slots=True, kw_only=True)
class OperationResult:
    """What one chunk reports to its caller."""

    kind: OperationKind
    source_id: str
    status: OperationStatus
    progress: ProgressState
    summary: OperationSummary | None = None

    @property
    def complete(self) -> bool:
        return self.status is OperationStatus.COMPLETE


@dataclass(frozen=True, slots=True, kw_only=True)
class SourceStatus:
    source_id: str
    lock_operation: OperationKind | None
    locked_at: datetime | None
    item_count: int
    progress: dict[OperationKind, ProgressState] = field(default_factory=dict)
