"""Periodic triggering of import and expire operations.

Scheduling state lives next to, but apart from, the import core: the core only
exposes chunked operations returning RUNNING or COMPLETE, and this module
decides when to invoke them based on each source's ``ScheduleState``.
"""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from feedimport.domain.errors import SourceLockedError
from feedimport.domain.model import OperationKind, ScheduleState

if TYPE_CHECKING:
    from datetime import datetime

    from feedimport.domain.batch import BatchController, OperationResult
    from feedimport.domain.ports import FeedUnitOfWork, SourceDescriptor

log = getLogger(__name__)

SCHEDULED_KINDS = (OperationKind.IMPORT, OperationKind.EXPIRE)


@dataclass(frozen=True, slots=True)
class SchedulePolicy:
    import_period: int | None = 1800
    expire_period: int | None = 3600


def _schedule(uow: FeedUnitOfWork, source_id: str) -> ScheduleState:
    schedules = uow.repositories.schedules
    schedule = schedules.get(source_id)
    if schedule is None:
        schedule = ScheduleState(source_id=source_id)
        schedules.add(schedule)
    return schedule


def due_operations(
    controller: BatchController,
    source_id: str,
    *,
    policy: SchedulePolicy,
    now: datetime,
) -> list[OperationKind]:
    """Return the operations to run for ``source_id`` now.

    An operation that is still running always continues, and nothing else is
    started next to it.
    """

    with controller.unit_of_work_factory() as uow:
        schedule = _schedule(uow, source_id)
        if schedule.sync_periods(
            import_period=policy.import_period, expire_period=policy.expire_period
        ):
            log.info("Rescheduling %s", source_id)
        schedule.apply_reschedule(now)
        state = uow.repositories.sources.get(source_id)
        running = state.lock_operation if state is not None else None
        due = [running] if running is not None else [
            kind for kind in SCHEDULED_KINDS if schedule.is_due(kind, now)
        ]
        uow.commit()
    return due


def run_due_operations(
    controller: BatchController,
    source: SourceDescriptor,
    *,
    policy: SchedulePolicy,
    now: datetime | None = None,
) -> list[OperationResult]:
    """Run one chunk of every due operation and advance finished schedules."""

    moment = now or controller.clock()
    results: list[OperationResult] = []
    for kind in due_operations(controller, source.source_id, policy=policy, now=moment):
        try:
            match kind:
                case OperationKind.IMPORT:
                    result = controller.import_chunk(source)
                case OperationKind.EXPIRE:
                    result = controller.expire_chunk(source.source_id)
                case OperationKind.CLEAR:
                    result = controller.clear_chunk(source.source_id)
        except SourceLockedError as exc:
            log.info("Skipping scheduled %s: %s", kind.value, exc)
            continue
        results.append(result)
        if result.complete:
            with controller.unit_of_work_factory() as uow:
                _schedule(uow, source.source_id).completed(kind, moment)
                uow.commit()
    return results
