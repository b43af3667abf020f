from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

import pytest

from feedimport.domain.fingerprint import Fingerprinter
from feedimport.domain.mapping import MappingEngine
from feedimport.domain.model import (
    Entity,
    EntityOperation,
    Err,
    ErrorKind,
    FieldMapping,
    Ok,
    Outcome,
    Record,
)
from feedimport.domain.reconciliation import (
    DefaultValues,
    EntityHook,
    ProcessorSettings,
    ReconciliationEngine,
    RequiredFields,
    UpdatePolicy,
)
from feedimport.domain.resolver import UniqueKeyResolver
from feedimport.domain.targets import TargetRegistry, TimestampTarget
from tests.support.memory import MemoryDatabase, MemoryUnitOfWork

if TYPE_CHECKING:
    from collections.abc import Iterator

NOW = datetime(2025, 1, 1, tzinfo=UTC)

MAPPINGS = (
    FieldMapping(source="guid", target="guid", unique=True),
    FieldMapping(source="title", target="title"),
    FieldMapping(source="published", target="published"),
)


@pytest.fixture
def database() -> MemoryDatabase:
    return MemoryDatabase()


@pytest.fixture
def uow(database: MemoryDatabase) -> Iterator[MemoryUnitOfWork]:
    with MemoryUnitOfWork(database) as unit_of_work:
        yield unit_of_work


def _engine(
    uow: MemoryUnitOfWork,
    *,
    policy: UpdatePolicy = UpdatePolicy.UPDATE,
    force_update: bool = False,
    hooks: tuple[EntityHook, ...] = (),
    owner_id: str | None = None,
) -> ReconciliationEngine:
    targets = TargetRegistry([TimestampTarget("published")])
    return ReconciliationEngine(
        settings=ProcessorSettings(
            entity_type="item",
            label="item",
            update_policy=policy,
            force_update=force_update,
            owner_id=owner_id,
        ),
        mapper=MappingEngine(MAPPINGS, targets),
        resolver=UniqueKeyResolver(MAPPINGS, targets, uow.repositories.entities),
        fingerprinter=Fingerprinter(MAPPINGS),
        unit_of_work=uow,
        source_id="feed",
        hooks=hooks,
        clock=lambda: NOW,
    )


def _record(guid: str = "g-1", title: str = "Hello", published: int = 1700000000) -> Record:
    return Record({"guid": guid, "title": title, "published": published})


def test_new_record_is_created_with_metadata(uow: MemoryUnitOfWork) -> None:
    result = _engine(uow, owner_id="importer").process(_record())

    assert isinstance(result, Ok)
    assert result.outcome is Outcome.CREATED
    entity = uow.repositories.entities.load(result.entity_id)
    assert entity is not None
    assert entity.first("title") == "Hello"
    assert entity.first("published") == "2023-11-14T22:13:20+00:00"
    assert entity.owner_id == "importer"
    item = uow.repositories.items.get(result.entity_id)
    assert item is not None
    assert item.source_id == "feed"
    assert item.imported_at == NOW
    assert item.fingerprint == Fingerprinter(MAPPINGS)(_record())


def test_unchanged_record_is_skipped_without_writes(
    uow: MemoryUnitOfWork, database: MemoryDatabase
) -> None:
    engine = _engine(uow)
    created = engine.process(_record())
    writes = database.entity_writes

    result = engine.process(_record())

    assert result == Ok(outcome=Outcome.SKIPPED, entity_id=created.entity_id)
    assert database.entity_writes == writes


def test_force_update_rewrites_unchanged_record(uow: MemoryUnitOfWork) -> None:
    _engine(uow).process(_record())

    result = _engine(uow, force_update=True).process(_record())

    assert isinstance(result, Ok)
    assert result.outcome is Outcome.UPDATED


def test_changed_record_updates_existing_entity(uow: MemoryUnitOfWork) -> None:
    engine = _engine(uow)
    created = engine.process(_record())

    result = engine.process(_record(title="Changed"))

    assert result == Ok(outcome=Outcome.UPDATED, entity_id=created.entity_id)
    entity = uow.repositories.entities.load(created.entity_id)
    assert entity is not None
    assert entity.first("title") == "Changed"


def test_skip_policy_stops_before_loading(uow: MemoryUnitOfWork, database: MemoryDatabase) -> None:
    created = _engine(uow).process(_record())
    writes = database.entity_writes

    result = _engine(uow, policy=UpdatePolicy.SKIP).process(_record(title="Changed"))

    assert result == Ok(outcome=Outcome.SKIPPED, entity_id=created.entity_id)
    assert database.entity_writes == writes


def test_replace_policy_resets_unmapped_fields(uow: MemoryUnitOfWork) -> None:
    hooks = (DefaultValues({"status": 1}),)
    created = _engine(uow, hooks=hooks).process(_record())
    entity = uow.repositories.entities.load(created.entity_id)
    assert entity is not None
    entity.set("status", [{"value": 0}])
    entity.set("note", [{"value": "manual"}])

    _engine(uow, policy=UpdatePolicy.REPLACE, hooks=hooks).process(_record(title="New"))

    assert entity.first("status") == 1
    assert "note" not in entity.fields
    assert entity.first("title") == "New"


def test_update_policy_keeps_unmapped_fields(uow: MemoryUnitOfWork) -> None:
    created = _engine(uow).process(_record())
    entity = uow.repositories.entities.load(created.entity_id)
    assert entity is not None
    entity.set("note", [{"value": "manual"}])

    _engine(uow).process(_record(title="New"))

    assert entity.first("note") == "manual"


def test_validation_failure_is_reported_not_raised(uow: MemoryUnitOfWork) -> None:
    hooks = (RequiredFields(("title",)),)

    result = _engine(uow, hooks=hooks).process(_record(title=""))

    assert isinstance(result, Err)
    assert result.kind is ErrorKind.VALIDATION
    assert "title: this value should not be blank" in result.message
    assert "Please check your mappings" in result.message
    assert uow.repositories.items.count_for_source("feed") == 0


def test_store_validation_is_merged_with_hooks(
    uow: MemoryUnitOfWork, database: MemoryDatabase
) -> None:
    database.validator = lambda entity: ["store says no"]
    hooks = (RequiredFields(("title",)),)

    result = _engine(uow, hooks=hooks).process(_record(title=""))

    assert isinstance(result, Err)
    assert "store says no" in result.message
    assert "title: this value" in result.message


def test_failed_update_does_not_leak_mapped_values(
    uow: MemoryUnitOfWork, database: MemoryDatabase
) -> None:
    created = _engine(uow).process(_record())
    uow.commit()
    database.validator = lambda entity: ["nope"] if entity.first("title") == "Bad" else []

    result = _engine(uow).process(_record(title="Bad"))

    assert isinstance(result, Err)
    entity = uow.repositories.entities.load(created.entity_id)
    assert entity is not None
    assert entity.first("title") == "Hello"


def test_authorization_failure(uow: MemoryUnitOfWork, database: MemoryDatabase) -> None:
    seen: list[EntityOperation] = []

    def deny(entity: Entity, operation: EntityOperation) -> bool:
        seen.append(operation)
        return False

    database.authorizer = deny

    result = _engine(uow).process(_record())

    assert isinstance(result, Err)
    assert result.kind is ErrorKind.ACCESS
    assert seen == [EntityOperation.CREATE]


def test_rejected_value_fails_only_that_record(uow: MemoryUnitOfWork) -> None:
    engine = _engine(uow)

    bad = engine.process(Record({"guid": "g-1", "title": "x", "published": "tomorrow-ish"}))
    good = engine.process(_record(guid="g-2"))

    assert isinstance(bad, Err)
    assert bad.kind is ErrorKind.VALUE
    assert isinstance(good, Ok)
    assert good.outcome is Outcome.CREATED


def test_store_error_rolls_back_only_that_record(
    uow: MemoryUnitOfWork, database: MemoryDatabase
) -> None:
    database.fail_save = lambda entity: entity.first("guid") == "g-1"
    engine = _engine(uow)

    failed = engine.process(_record(guid="g-1"))
    created = engine.process(_record(guid="g-2"))

    assert isinstance(failed, Err)
    assert failed.kind is ErrorKind.STORE
    assert isinstance(created, Ok)
    assert uow.repositories.items.count_for_source("feed") == 1
