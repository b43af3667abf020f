from __future__ import annotations

from datetime import UTC, datetime
from uuid import uuid4

import pytest

from feedimport.domain.errors import SourceLockedError
from feedimport.domain.model import (
    MAX_MESSAGES,
    Err,
    ErrorKind,
    Ok,
    OperationKind,
    Outcome,
    Phase,
    ProgressState,
    SourceState,
)

NOW = datetime(2025, 1, 1, tzinfo=UTC)


def test_advance_never_passes_total() -> None:
    progress = ProgressState()
    progress.start(total=3)

    progress.advance(2)
    progress.advance(5)

    assert progress.processed == 3
    assert progress.is_complete


def test_advance_rejects_negative_steps() -> None:
    with pytest.raises(ValueError, match="backwards"):
        ProgressState().advance(-1)


def test_tally_counts_outcomes_and_keeps_bounded_messages() -> None:
    progress = ProgressState()
    progress.tally(Ok(outcome=Outcome.CREATED, entity_id=uuid4()))
    progress.tally(Ok(outcome=Outcome.UPDATED, entity_id=uuid4()))
    progress.tally(Ok(outcome=Outcome.SKIPPED, entity_id=uuid4()))
    for index in range(MAX_MESSAGES + 5):
        progress.tally(Err(kind=ErrorKind.VALUE, message=f"bad {index}", entity_id=None))

    assert (progress.created, progress.updated, progress.skipped) == (1, 1, 1)
    assert progress.failed == MAX_MESSAGES + 5
    assert len(progress.messages) == MAX_MESSAGES


def test_progress_survives_serialization() -> None:
    progress = ProgressState()
    progress.start(total=10)
    progress.advance(4)
    progress.created = 3
    progress.note("something")

    restored = ProgressState.from_dict(progress.to_dict())

    assert restored == progress
    assert restored.phase is Phase.RUNNING


def test_empty_payload_is_not_started() -> None:
    assert ProgressState.from_dict(None).phase is Phase.NOT_STARTED
    assert ProgressState.from_dict({}).total is None


def test_lock_is_reentrant_for_the_same_operation() -> None:
    state = SourceState(source_id="feed")

    state.acquire(OperationKind.IMPORT, NOW)
    state.acquire(OperationKind.IMPORT, NOW)

    assert state.lock_operation is OperationKind.IMPORT
    assert state.locked_at == NOW


def test_lock_rejects_a_different_operation() -> None:
    state = SourceState(source_id="feed")
    state.acquire(OperationKind.IMPORT, NOW)

    with pytest.raises(SourceLockedError) as excinfo:
        state.acquire(OperationKind.CLEAR, NOW)

    assert excinfo.value.source_id == "feed"


def test_reset_progress_of_one_kind() -> None:
    state = SourceState(source_id="feed")
    progress = ProgressState()
    progress.start(total=2)
    state.store_progress(OperationKind.IMPORT, progress)
    state.store_progress(OperationKind.EXPIRE, progress)

    state.reset_progress(OperationKind.IMPORT)

    assert state.progress_for(OperationKind.IMPORT).total is None
    assert state.progress_for(OperationKind.EXPIRE).total == 2
