from __future__ import annotations

from datetime import UTC, datetime

import pytest

from feedimport.domain.errors import (
    LookupUnavailableError,
    MappingConfigurationError,
    TargetValueError,
)
from feedimport.domain.model import Entity
from feedimport.domain.targets import (
    FieldTarget,
    OwnerTarget,
    TargetRegistry,
    TimestampTarget,
    parse_timestamp,
)


def test_single_valued_field_keeps_first_delta() -> None:
    entity = Entity(entity_type="item")

    FieldTarget("title", multiple=False).set_value(entity, [{"value": "a"}, {"value": "b"}])

    assert entity.get("title") == [{"value": "a"}]


def test_blank_deltas_are_dropped() -> None:
    entity = Entity(entity_type="item")

    FieldTarget("tags").set_value(entity, [{"value": " "}, {"value": None}, {"value": "x"}])

    assert entity.get("tags") == [{"value": "x"}]


def test_unknown_column_is_rejected() -> None:
    target = FieldTarget("link", columns=("url", "title"))

    with pytest.raises(TargetValueError, match="no column 'rel'"):
        target.set_value(Entity(entity_type="item"), [{"rel": "alternate"}])


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (0, datetime(1970, 1, 1, tzinfo=UTC)),
        ("1700000000", datetime(2023, 11, 14, 22, 13, 20, tzinfo=UTC)),
        ("2024-05-01T12:00:00Z", datetime(2024, 5, 1, 12, tzinfo=UTC)),
        ("2024-05-01T14:00:00+02:00", datetime(2024, 5, 1, 12, tzinfo=UTC)),
        ("2024-05-01", datetime(2024, 5, 1, tzinfo=UTC)),
    ],
)
def test_parse_timestamp(value: str | int, expected: datetime) -> None:
    assert parse_timestamp(value) == expected


def test_timestamp_target_stores_iso_utc() -> None:
    entity = Entity(entity_type="item")

    TimestampTarget("published").set_value(entity, [{"value": 1700000000}])

    assert entity.first("published") == "2023-11-14T22:13:20+00:00"


def test_timestamp_target_rejects_garbage() -> None:
    with pytest.raises(TargetValueError):
        TimestampTarget("published").set_value(Entity(entity_type="item"), [{"value": "soon"}])


def test_owner_target_sets_and_resets_owner() -> None:
    target = OwnerTarget(default="importer")
    entity = Entity(entity_type="item")

    target.set_value(entity, [{"value": " alice "}])
    assert entity.owner_id == "alice"

    target.clear(entity)
    assert entity.owner_id == "importer"


def test_owner_target_cannot_answer_lookups() -> None:
    with pytest.raises(LookupUnavailableError):
        OwnerTarget().find_by_value(store=None, column="value", value="alice")  # type: ignore[arg-type]


def test_registry_caches_fallback_handlers() -> None:
    registry = TargetRegistry()

    handler = registry.resolve("title")

    assert isinstance(handler, FieldTarget)
    assert registry.resolve("title") is handler
    assert "title" in registry


def test_registry_rejects_duplicate_registration() -> None:
    registry = TargetRegistry([FieldTarget("title")])

    with pytest.raises(MappingConfigurationError):
        registry.register(TimestampTarget("title"))
