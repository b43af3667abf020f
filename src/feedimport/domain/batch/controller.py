"""Resumable, chunked import, clear and expire operations.

Each public method runs exactly one chunk and returns RUNNING or COMPLETE;
the caller re-invokes until COMPLETE. Progress, item metadata and the source
lock are persisted through the unit of work, and every chunk commits its
entity writes and its progress in the same transaction.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from logging import getLogger
from typing import TYPE_CHECKING, Final

from feedimport.domain.errors import (
    MalformedInputError,
    MappingConfigurationError,
    SourceUnavailableError,
)
from feedimport.domain.fingerprint import Fingerprinter, FingerprintPolicy
from feedimport.domain.mapping import MappingEngine, validate_mappings
from feedimport.domain.model import (
    Err,
    OperationKind,
    OperationStatus,
    Phase,
    ProgressState,
    SourceState,
)
from feedimport.domain.reconciliation import ReconciliationEngine, utcnow
from feedimport.domain.resolver import UniqueKeyResolver

from .summary import OperationResult, OperationSummary, SourceStatus

if TYPE_CHECKING:
    from datetime import datetime, timedelta
    from uuid import UUID

    from feedimport.domain.model import FieldMapping, Record
    from feedimport.domain.ports import (
        FeedUnitOfWork,
        Fetcher,
        Parser,
        SourceDescriptor,
    )
    from feedimport.domain.reconciliation import EntityHook, ProcessorSettings
    from feedimport.domain.targets import TargetRegistry

log = getLogger(__name__)

DEFAULT_LIMIT: Final[int] = 50
MAX_LIMIT: Final[int] = 1000

type UnitOfWorkFactory = Callable[[], FeedUnitOfWork]


class BatchController:
    """Drive one importer's operations against its sources."""

    def __init__(  # noqa: PLR0913
        self,
        *,
        importer_id: str,
        settings: ProcessorSettings,
        mappings: Sequence[FieldMapping],
        targets: TargetRegistry,
        fetcher: Fetcher,
        parser: Parser,
        unit_of_work_factory: UnitOfWorkFactory,
        limit: int = DEFAULT_LIMIT,
        expire_after: timedelta | None = None,
        fingerprint_policy: FingerprintPolicy = FingerprintPolicy.FULL,
        hooks: Sequence[EntityHook] = (),
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        if not 1 <= limit <= MAX_LIMIT:
            raise MappingConfigurationError(f"Process limit must be between 1 and {MAX_LIMIT}")
        validate_mappings(mappings, targets)
        self.importer_id = importer_id
        self.settings = settings
        self.mappings = tuple(mappings)
        self.targets = targets
        self.fetcher = fetcher
        self.parser = parser
        self.unit_of_work_factory = unit_of_work_factory
        self.limit = limit
        self.expire_after = expire_after
        self.hooks = tuple(hooks)
        self.clock = clock
        self._mapper = MappingEngine(self.mappings, targets)
        self._fingerprinter = Fingerprinter(self.mappings, fingerprint_policy)

    # Import ---------------------------------------------------------------

    def import_chunk(self, source: SourceDescriptor) -> OperationResult:
        source_id = source.source_id
        self._acquire(source_id, OperationKind.IMPORT)
        try:
            records = self._read_records(source)
            return self._import_records(source_id, records)
        except SourceUnavailableError:
            # keep progress so the next invocation resumes where this one stopped
            self._release(source_id, OperationKind.IMPORT, reset=False)
            raise
        except Exception:
            self._release(source_id, OperationKind.IMPORT, reset=True)
            raise

    def _read_records(self, source: SourceDescriptor) -> list[Record]:
        log.debug("Fetching %s from %s", source.source_id, source.location)
        try:
            result = self.fetcher.fetch(source)
        except SourceUnavailableError as exc:
            log.error("%s: could not fetch %s: %s", self.importer_id, source.source_id, exc)
            raise
        try:
            records = list(self.parser.parse(result))
        except MalformedInputError as exc:
            log.error("%s: could not parse %s: %s", self.importer_id, source.source_id, exc)
            raise
        log.debug("Parsed %d record(s) from %s", len(records), source.source_id)
        return records

    def _import_records(self, source_id: str, records: list[Record]) -> OperationResult:
        with self.unit_of_work_factory() as uow:
            state = self._state(uow, source_id)
            progress = state.progress_for(OperationKind.IMPORT)
            if progress.total is None:
                progress.start(total=len(records))
            elif progress.total != len(records):
                log.warning(
                    "%s: %s changed during import (%d records expected, %d parsed)",
                    self.importer_id,
                    source_id,
                    progress.total,
                    len(records),
                )
                progress.resize(len(records))

            chunk = records[progress.processed : progress.processed + self.limit]
            log.info(
                "Importing %s: records %d-%d of %s",
                source_id,
                progress.processed + 1,
                progress.processed + len(chunk),
                progress.total,
            )
            engine = self._engine(uow, source_id)
            for record in chunk:
                result = engine.process(record)
                progress.tally(result)
                if isinstance(result, Err):
                    log.warning("%s: %s", self.importer_id, result.message)
            progress.advance(len(chunk))
            exhausted = not chunk or progress.processed >= len(records)

            outcome = self._conclude(state, OperationKind.IMPORT, progress, exhausted=exhausted)
            uow.commit()
        return outcome

    def _engine(self, uow: FeedUnitOfWork, source_id: str) -> ReconciliationEngine:
        return ReconciliationEngine(
            settings=self.settings,
            mapper=self._mapper,
            resolver=UniqueKeyResolver(self.mappings, self.targets, uow.repositories.entities),
            fingerprinter=self._fingerprinter,
            unit_of_work=uow,
            source_id=source_id,
            hooks=self.hooks,
            clock=self.clock,
        )

    # Clear / expire -------------------------------------------------------

    def clear_chunk(self, source_id: str) -> OperationResult:
        return self._delete_chunk(source_id, OperationKind.CLEAR, max_age=None)

    def expire_chunk(self, source_id: str) -> OperationResult:
        if self.expire_after is None:
            progress = ProgressState()
            progress.finish()
            return OperationResult(
                kind=OperationKind.EXPIRE,
                source_id=source_id,
                status=OperationStatus.COMPLETE,
                progress=progress,
                summary=OperationSummary(kind=OperationKind.EXPIRE, source_id=source_id),
            )
        return self._delete_chunk(source_id, OperationKind.EXPIRE, max_age=self.expire_after)

    def _delete_chunk(
        self,
        source_id: str,
        kind: OperationKind,
        *,
        max_age: timedelta | None,
    ) -> OperationResult:
        self._acquire(source_id, kind)
        try:
            with self.unit_of_work_factory() as uow:
                state = self._state(uow, source_id)
                progress = state.progress_for(kind)
                items = uow.repositories.items
                if progress.total is None:
                    # the cutoff is fixed for the whole logical operation
                    if max_age is not None:
                        progress.cutoff = self.clock() - max_age
                    progress.start(
                        total=items.count_for_source(source_id, imported_before=progress.cutoff)
                    )
                # deleted rows drop out of the query, so every chunk starts at offset zero
                ids = items.ids_for_source(
                    source_id, limit=self.limit, imported_before=progress.cutoff
                )
                deleted = self._delete_entities(uow, ids)
                progress.deleted += deleted
                progress.advance(len(ids))
                log.info("%s %s: deleted %d entities", kind.value.capitalize(), source_id, deleted)

                outcome = self._conclude(state, kind, progress, exhausted=not ids)
                uow.commit()
            return outcome
        except Exception:
            self._release(source_id, kind, reset=True)
            raise

    @staticmethod
    def _delete_entities(uow: FeedUnitOfWork, ids: list[UUID]) -> int:
        if not ids:
            return 0
        uow.repositories.items.delete(ids)
        return uow.repositories.entities.delete(ids)

    # Lock and progress bookkeeping ------------------------------------------

    def unlock(self, source_id: str) -> None:
        """Force-release the lock and discard all progress, e.g. after a crash."""

        with self.unit_of_work_factory() as uow:
            state = self._state(uow, source_id)
            state.release()
            state.reset_progress()
            uow.commit()
        log.info("%s: unlocked %s", self.importer_id, source_id)

    def status(self, source_id: str) -> SourceStatus:
        with self.unit_of_work_factory() as uow:
            state = uow.repositories.sources.get(source_id) or SourceState(source_id=source_id)
            return SourceStatus(
                source_id=source_id,
                lock_operation=state.lock_operation,
                locked_at=state.locked_at,
                item_count=uow.repositories.items.count_for_source(source_id),
                progress={kind: state.progress_for(kind) for kind in OperationKind},
            )

    def delete_source(self, source_id: str) -> int:
        """Forget a source: drop its item metadata and state; entities are kept."""

        with self.unit_of_work_factory() as uow:
            removed = uow.repositories.items.delete_for_source(source_id)
            state = uow.repositories.sources.get(source_id)
            if state is not None:
                state.release()
                state.reset_progress()
            uow.commit()
        log.info("%s: removed %d item record(s) of %s", self.importer_id, removed, source_id)
        return removed

    def _acquire(self, source_id: str, kind: OperationKind) -> None:
        with self.unit_of_work_factory() as uow:
            state = self._state(uow, source_id)
            was_locked = state.locked
            state.acquire(kind, self.clock())
            progress = state.progress_for(kind)
            if progress.phase is Phase.NOT_STARTED:
                progress.phase = Phase.RUNNING
                state.store_progress(kind, progress)
            uow.commit()
        if not was_locked:
            log.info("%s: started %s of %s", self.importer_id, kind.value, source_id)

    def _release(self, source_id: str, kind: OperationKind, *, reset: bool) -> None:
        with self.unit_of_work_factory() as uow:
            state = self._state(uow, source_id)
            if reset:
                state.reset_progress(kind)
            if state.lock_operation is kind:
                state.release()
            uow.commit()

    def _conclude(
        self,
        state: SourceState,
        kind: OperationKind,
        progress: ProgressState,
        *,
        exhausted: bool,
    ) -> OperationResult:
        if not (exhausted or progress.is_complete):
            state.store_progress(kind, progress)
            return OperationResult(
                kind=kind,
                source_id=state.source_id,
                status=OperationStatus.RUNNING,
                progress=progress,
            )

        progress.finish()
        summary = OperationSummary.from_progress(kind, state.source_id, progress)
        for level, message in summary.describe(self.settings.entity_label):
            log.log(level, "%s: %s", self.importer_id, message)
        state.reset_progress(kind)
        state.release()
        return OperationResult(
            kind=kind,
            source_id=state.source_id,
            status=OperationStatus.COMPLETE,
            progress=progress,
            summary=summary,
        )

    @staticmethod
    def _state(uow: FeedUnitOfWork, source_id: str) -> SourceState:
        sources = uow.repositories.sources
        state = sources.get(source_id)
        if state is None:
            state = SourceState(source_id=source_id)
            sources.add(state)
        return state

    # Convenience ----------------------------------------------------------

    def run(self, kind: OperationKind, source: SourceDescriptor) -> OperationResult:
        """Invoke chunks of ``kind`` until the logical operation completes."""

        while True:
            match kind:
                case OperationKind.IMPORT:
                    result = self.import_chunk(source)
                case OperationKind.CLEAR:
                    result = self.clear_chunk(source.source_id)
                case OperationKind.EXPIRE:
                    result = self.expire_chunk(source.source_id)
            if result.complete:
                return result
