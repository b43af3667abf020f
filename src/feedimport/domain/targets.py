"""Target handlers and the registry that resolves target paths to them.

A handler owns the semantics of one entity target: how positional tuples
produced by the mapping engine are written onto an entity, and whether the
target can be used to find an existing entity by value.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from feedimport.domain.errors import (
    LookupUnavailableError,
    MappingConfigurationError,
    TargetValueError,
)
from feedimport.domain.model import DEFAULT_COLUMN

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from uuid import UUID

    from feedimport.domain.model import Entity, FieldTuple, Scalar
    from feedimport.domain.ports import EntityStore

log = getLogger(__name__)


@runtime_checkable
class TargetHandler(Protocol):
    @property
    def name(self) -> str: ...

    def accepts_column(self, column: str) -> bool: ...

    def clear(self, entity: Entity) -> None: ...

    def set_value(self, entity: Entity, deltas: Sequence[FieldTuple]) -> None: ...

    def find_by_value(self, store: EntityStore, column: str, value: Scalar) -> UUID | None:
        """Return the id of an entity holding ``value``; raise ``LookupUnavailableError``
        when this target cannot be searched."""
        ...


def _is_empty(value: Scalar) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


@dataclass(frozen=True, slots=True)
class FieldTarget:
    """Plain entity field holding one or more deltas of column values."""

    name: str
    multiple: bool = True
    columns: tuple[str, ...] | None = None
    column_defaults: Mapping[str, Scalar] = field(default_factory=dict)

    def accepts_column(self, column: str) -> bool:
        return self.columns is None or column in self.columns

    def clear(self, entity: Entity) -> None:
        entity.clear(self.name)

    def set_value(self, entity: Entity, deltas: Sequence[FieldTuple]) -> None:
        cleaned: list[FieldTuple] = []
        for delta in deltas:
            converted = {
                column: self._convert_column(column, value) for column, value in delta.items()
            }
            if all(_is_empty(value) for value in converted.values()):
                continue
            for column, default in self.column_defaults.items():
                if _is_empty(converted.get(column)):
                    converted[column] = default
            cleaned.append(converted)
        if not self.multiple:
            cleaned = cleaned[:1]
        entity.set(self.name, cleaned)

    def find_by_value(self, store: EntityStore, column: str, value: Scalar) -> UUID | None:
        self._check_column(column)
        return store.find_by_value(self.name, column, self.convert(column, value))

    def convert(self, column: str, value: Scalar) -> Scalar:
        """Normalise a mapped value before it is stored; subclasses override."""

        _ = column
        return value

    def _convert_column(self, column: str, value: Scalar) -> Scalar:
        self._check_column(column)
        if _is_empty(value):
            return None
        return self.convert(column, value)

    def _check_column(self, column: str) -> None:
        if not self.accepts_column(column):
            raise TargetValueError(f"Target {self.name!r} has no column {column!r}")


@dataclass(frozen=True, slots=True)
class TimestampTarget(FieldTarget):
    """Field storing ISO-8601 UTC timestamps; accepts epoch seconds or ISO strings."""

    multiple: bool = False

    def convert(self, column: str, value: Scalar) -> Scalar:
        if column != DEFAULT_COLUMN or value is None:
            return value
        return parse_timestamp(value).isoformat()


def parse_timestamp(value: Scalar) -> datetime:
    if isinstance(value, bool):
        raise TargetValueError(f"Cannot interpret {value!r} as a timestamp")
    if isinstance(value, int | float):
        return datetime.fromtimestamp(value, tz=UTC)
    text = str(value).strip()
    try:
        if text.lstrip("-").isdigit():
            return datetime.fromtimestamp(int(text), tz=UTC)
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    except (ValueError, OverflowError, OSError) as exc:
        raise TargetValueError(f"Cannot interpret {value!r} as a timestamp") from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


@dataclass(frozen=True, slots=True)
class OwnerTarget:
    """Maps a record value onto the entity owner."""

    name: str = "owner"
    default: str | None = None

    def accepts_column(self, column: str) -> bool:
        return column == DEFAULT_COLUMN

    def clear(self, entity: Entity) -> None:
        entity.owner_id = self.default

    def set_value(self, entity: Entity, deltas: Sequence[FieldTuple]) -> None:
        for delta in deltas:
            value = delta.get(DEFAULT_COLUMN)
            if not _is_empty(value):
                entity.owner_id = str(value).strip()
                return
        entity.owner_id = self.default

    def find_by_value(self, store: EntityStore, column: str, value: Scalar) -> UUID | None:
        _ = (store, column, value)
        raise LookupUnavailableError(f"Target {self.name!r} does not support unique lookups")


type TargetFactory = Callable[[str], TargetHandler]


class TargetRegistry:
    """Explicit registry of target handlers, with an optional fallback factory.

    Handlers are registered at configuration time; resolution is a plain
    lookup by target name. Targets without a registered handler are built by
    the fallback factory (if any) and cached.
    """

    def __init__(
        self,
        handlers: Iterable[TargetHandler] = (),
        *,
        fallback: TargetFactory | None = FieldTarget,
    ) -> None:
        self._handlers: dict[str, TargetHandler] = {}
        self._fallback = fallback
        for handler in handlers:
            self.register(handler)

    def register(self, handler: TargetHandler) -> None:
        if handler.name in self._handlers:
            raise MappingConfigurationError(f"Target {handler.name!r} is registered twice")
        self._handlers[handler.name] = handler

    def resolve(self, name: str) -> TargetHandler:
        handler = self._handlers.get(name)
        if handler is not None:
            return handler
        if self._fallback is None:
            raise MappingConfigurationError(f"Unknown target {name!r}")
        log.debug("Using fallback handler for target %s", name)
        handler = self._fallback(name)
        self._handlers[name] = handler
        return handler

    def __contains__(self, name: object) -> bool:
        return name in self._handlers
