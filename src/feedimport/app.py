"""Application orchestration entry points."""

from __future__ import annotations

from collections.abc import Callable
from datetime import timedelta
from functools import partial
from logging import getLogger
from typing import TYPE_CHECKING

from feedimport.adapters.fetchers import build_fetcher
from feedimport.adapters.parsers import build_parser
from feedimport.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyFeedUnitOfWork,
    is_started,
    startup,
)
from feedimport.domain.batch import BatchController
from feedimport.domain.errors import MalformedInputError, SourceUnavailableError
from feedimport.domain.model import OperationKind
from feedimport.domain.ports import SourceDescriptor
from feedimport.domain.reconciliation import (
    DefaultValues,
    OwnerAccessPolicy,
    ProcessorSettings,
    RequiredFields,
    utcnow,
)
from feedimport.domain.scheduling import SchedulePolicy, run_due_operations
from feedimport.domain.targets import FieldTarget, OwnerTarget, TargetRegistry, TimestampTarget

if TYPE_CHECKING:
    from datetime import datetime

    from feedimport.config.importer import ImporterDefinition, SourceSection, TargetSection
    from feedimport.domain.batch import OperationResult, SourceStatus, UnitOfWorkFactory
    from feedimport.domain.ports import Fetcher, Parser
    from feedimport.domain.reconciliation import AccessPolicy, EntityHook
    from feedimport.domain.targets import TargetHandler

log = getLogger(__name__)


def _target_handler(section: TargetSection, *, owner_default: str | None) -> TargetHandler:
    match section.type:
        case "owner":
            return OwnerTarget(name=section.name, default=owner_default)
        case "timestamp":
            return TimestampTarget(
                name=section.name,
                multiple=bool(section.multiple),
                columns=section.columns,
                column_defaults=section.column_defaults,
            )
        case _:
            return FieldTarget(
                name=section.name,
                multiple=True if section.multiple is None else section.multiple,
                columns=section.columns,
                column_defaults=section.column_defaults,
            )


def build_target_registry(definition: ImporterDefinition) -> TargetRegistry:
    owner_default = definition.importer.owner_id
    return TargetRegistry(
        _target_handler(section, owner_default=owner_default) for section in definition.targets
    )


def build_hooks(definition: ImporterDefinition) -> list[EntityHook]:
    importer = definition.importer
    hooks: list[EntityHook] = []
    if importer.defaults:
        hooks.append(DefaultValues(dict(importer.defaults)))
    if importer.required_fields:
        hooks.append(RequiredFields(tuple(importer.required_fields)))
    return hooks


def build_access_policy(definition: ImporterDefinition) -> AccessPolicy | None:
    owners = definition.importer.authorized_owners
    if owners is None:
        return None
    return OwnerAccessPolicy(frozenset(owners))


def build_controller(
    definition: ImporterDefinition,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    fetcher: Fetcher | None = None,
    parser: Parser | None = None,
    clock: Callable[[], datetime] | None = None,
) -> BatchController:
    """Wire an importer definition to its fetcher, parser and store."""

    importer = definition.importer
    effective_uow = unit_of_work_factory or partial(
        SqlAlchemyFeedUnitOfWork,
        importer.entity_type,
        access_policy=build_access_policy(definition),
    )
    expire_after = (
        timedelta(seconds=importer.expire_after_seconds)
        if importer.expire_after_seconds is not None
        else None
    )
    return BatchController(
        importer_id=importer.id,
        settings=ProcessorSettings(
            entity_type=importer.entity_type,
            label=importer.label,
            update_policy=importer.update_existing,
            force_update=importer.force_update,
            authorize=importer.authorize,
            owner_id=importer.owner_id,
        ),
        mappings=definition.field_mappings(),
        targets=build_target_registry(definition),
        fetcher=fetcher or build_fetcher(definition.fetcher),
        parser=parser or build_parser(definition.parser),
        unit_of_work_factory=effective_uow,
        limit=importer.limit,
        expire_after=expire_after,
        fingerprint_policy=importer.fingerprint_policy,
        hooks=build_hooks(definition),
        clock=clock or utcnow,
    )


def _descriptor(source: SourceSection) -> SourceDescriptor:
    return SourceDescriptor(
        source_id=source.id,
        location=source.location,
        options=dict(source.options),
    )


def _ensure_controller(
    definition: ImporterDefinition,
    controller: BatchController | None,
) -> BatchController:
    if controller is not None:
        return controller
    if not is_started():
        startup()
    return build_controller(definition)


def _run(
    definition: ImporterDefinition,
    kind: OperationKind,
    source_id: str,
    *,
    single_chunk: bool,
    controller: BatchController | None,
) -> OperationResult:
    source = _descriptor(definition.source(source_id))
    effective = _ensure_controller(definition, controller)
    log.info(
        "Starting %s of %s for importer %s (single_chunk=%s)",
        kind.value,
        source_id,
        definition.importer.id,
        single_chunk,
    )
    if not single_chunk:
        result = effective.run(kind, source)
    elif kind is OperationKind.IMPORT:
        result = effective.import_chunk(source)
    elif kind is OperationKind.CLEAR:
        result = effective.clear_chunk(source_id)
    else:
        result = effective.expire_chunk(source_id)
    log.info(
        f"Finished {kind.value} chunk of {source_id}: status={result.status.value}, "
        f"processed={result.progress.processed}/{result.progress.total}"
    )
    return result


def import_source(
    definition: ImporterDefinition,
    source_id: str,
    *,
    single_chunk: bool = False,
    controller: BatchController | None = None,
) -> OperationResult:
    """Import a configured source, to completion unless ``single_chunk`` is set."""

    return _run(
        definition,
        OperationKind.IMPORT,
        source_id,
        single_chunk=single_chunk,
        controller=controller,
    )


def clear_source(
    definition: ImporterDefinition,
    source_id: str,
    *,
    single_chunk: bool = False,
    controller: BatchController | None = None,
) -> OperationResult:
    """Delete every entity imported from a source."""

    return _run(
        definition,
        OperationKind.CLEAR,
        source_id,
        single_chunk=single_chunk,
        controller=controller,
    )


def expire_source(
    definition: ImporterDefinition,
    source_id: str,
    *,
    single_chunk: bool = False,
    controller: BatchController | None = None,
) -> OperationResult:
    """Delete entities of a source that are older than the configured age."""

    return _run(
        definition,
        OperationKind.EXPIRE,
        source_id,
        single_chunk=single_chunk,
        controller=controller,
    )


def unlock_source(
    definition: ImporterDefinition,
    source_id: str,
    *,
    controller: BatchController | None = None,
) -> None:
    definition.source(source_id)
    effective = _ensure_controller(definition, controller)
    effective.unlock(source_id)


def source_status(
    definition: ImporterDefinition,
    source_id: str,
    *,
    controller: BatchController | None = None,
) -> SourceStatus:
    definition.source(source_id)
    effective = _ensure_controller(definition, controller)
    return effective.status(source_id)


def run_scheduled(
    definition: ImporterDefinition,
    *,
    now: datetime | None = None,
    controller: BatchController | None = None,
) -> dict[str, list[OperationResult]]:
    """Run one chunk of every due import and expire operation of every source."""

    effective = _ensure_controller(definition, controller)
    importer = definition.importer
    policy = SchedulePolicy(
        import_period=importer.import_period_seconds,
        expire_period=importer.expire_period_seconds,
    )
    results: dict[str, list[OperationResult]] = {}
    for source in definition.sources:
        try:
            results[source.id] = run_due_operations(
                effective, _descriptor(source), policy=policy, now=now
            )
        except (SourceUnavailableError, MalformedInputError) as exc:
            # the schedule is not advanced, so the source is retried on the next run
            log.error("Scheduled run of %s failed: %s", source.id, exc)
            results[source.id] = []
    ran = sum(len(source_results) for source_results in results.values())
    log.info("Finished scheduled run of %s: %d chunk(s) executed", importer.id, ran)
    return results


def forget_source(
    definition: ImporterDefinition,
    source_id: str,
    *,
    controller: BatchController | None = None,
) -> int:
    """Drop the bookkeeping of a source; its entities stay in the store."""

    definition.source(source_id)
    effective = _ensure_controller(definition, controller)
    return effective.delete_source(source_id)
