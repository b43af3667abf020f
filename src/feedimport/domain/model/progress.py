"""Persisted progress and lock state of resumable operations."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import TYPE_CHECKING, Final, cast

from feedimport.domain.errors import SourceLockedError

from .results import Err, Outcome

if TYPE_CHECKING:
    from collections.abc import Mapping

    from .results import RecordResult

MAX_MESSAGES: Final[int] = 50


class OperationKind(StrEnum):
    IMPORT = "import"
    CLEAR = "clear"
    EXPIRE = "expire"


class Phase(StrEnum):
    NOT_STARTED = "not_started"
    RUNNING = "running"
    COMPLETE = "complete"


class OperationStatus(StrEnum):
    """What a chunk reports back to the scheduler."""

    RUNNING = "running"
    COMPLETE = "complete"


@dataclass(slots=True, kw_only=True)
class ProgressState:
    phase: Phase = Phase.NOT_STARTED
    total: int | None = None
    processed: int = 0
    created: int = 0
    updated: int = 0
    skipped: int = 0
    failed: int = 0
    deleted: int = 0
    messages: list[str] = field(default_factory=list)
    # expire only: items imported before this instant belong to the operation
    cutoff: datetime | None = None

    @property
    def is_complete(self) -> bool:
        return self.total is not None and self.processed >= self.total

    @property
    def fraction(self) -> float:
        if not self.total:
            return 1.0 if self.total == 0 else 0.0
        return min(1.0, self.processed / self.total)

    def start(self, *, total: int) -> None:
        if total < 0:
            raise ValueError("Total must be non-negative")
        self.phase = Phase.RUNNING
        self.total = total

    def resize(self, total: int) -> None:
        """Adopt a new total when the source changed between chunks."""

        if total < 0:
            raise ValueError("Total must be non-negative")
        self.total = total
        self.processed = min(self.processed, total)

    def advance(self, count: int) -> None:
        if count < 0:
            raise ValueError("Progress cannot move backwards")
        self.processed += count
        if self.total is not None:
            self.processed = min(self.processed, self.total)

    def finish(self) -> None:
        if self.total is None:
            self.total = self.processed
        self.processed = self.total
        self.phase = Phase.COMPLETE

    def tally(self, result: RecordResult) -> None:
        if isinstance(result, Err):
            self.failed += 1
            self.note(result.message)
            return
        match result.outcome:
            case Outcome.CREATED:
                self.created += 1
            case Outcome.UPDATED:
                self.updated += 1
            case Outcome.SKIPPED:
                self.skipped += 1

    def note(self, message: str) -> None:
        if len(self.messages) < MAX_MESSAGES:
            self.messages.append(message)

    def to_dict(self) -> dict[str, object]:
        payload = asdict(self)
        payload["phase"] = self.phase.value
        payload["cutoff"] = None if self.cutoff is None else self.cutoff.isoformat()
        return payload

    @classmethod
    def from_dict(cls, payload: Mapping[str, object] | None) -> ProgressState:
        if not payload:
            return cls()
        total = payload.get("total")
        cutoff = payload.get("cutoff")
        return cls(
            phase=Phase(str(payload.get("phase", Phase.NOT_STARTED))),
            total=None if total is None else int(cast("int", total)),
            processed=int(cast("int", payload.get("processed", 0))),
            created=int(cast("int", payload.get("created", 0))),
            updated=int(cast("int", payload.get("updated", 0))),
            skipped=int(cast("int", payload.get("skipped", 0))),
            failed=int(cast("int", payload.get("failed", 0))),
            deleted=int(cast("int", payload.get("deleted", 0))),
            messages=[str(message) for message in cast("list[object]", payload.get("messages", []))],
            cutoff=None if cutoff is None else datetime.fromisoformat(str(cutoff)),
        )


@dataclass(eq=False, kw_only=True)
class SourceState:
    """Lock holder and per-operation progress of one source."""

    source_id: str
    lock_operation: OperationKind | None = None
    locked_at: datetime | None = None
    progress: dict[str, dict[str, object]] = field(default_factory=dict)

    @property
    def locked(self) -> bool:
        return self.lock_operation is not None

    def acquire(self, kind: OperationKind, now: datetime) -> None:
        """Take the lock for ``kind``; chunks of the same logical operation re-enter."""

        if self.lock_operation is not None and self.lock_operation != kind:
            raise SourceLockedError(self.source_id, self.lock_operation.value)
        if self.lock_operation is None:
            self.lock_operation = kind
            self.locked_at = now

    def release(self) -> None:
        self.lock_operation = None
        self.locked_at = None

    def progress_for(self, kind: OperationKind) -> ProgressState:
        return ProgressState.from_dict(self.progress.get(kind.value))

    def store_progress(self, kind: OperationKind, state: ProgressState) -> None:
        self.progress = {**self.progress, kind.value: state.to_dict()}

    def reset_progress(self, kind: OperationKind | None = None) -> None:
        if kind is None:
            self.progress = {}
            return
        self.progress = {key: value for key, value in self.progress.items() if key != kind.value}
