"""Unit-of-work abstractions for coordinating repositories."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from contextlib import AbstractContextManager
    from types import TracebackType

    from feedimport.domain.ports.persistence import (
        EntityStore,
        ItemMetadataRepository,
        ScheduleRepository,
        SourceStateRepository,
    )


@runtime_checkable
class RepositoryCollection(Protocol):
    """Marker protocol for groups of repositories managed together."""


@runtime_checkable
class UnitOfWork[TRepositories: RepositoryCollection](Protocol):
    """Generic unit-of-work boundary around a repository collection."""

    @property
    def repositories(self) -> TRepositories: ...

    def __enter__(self) -> UnitOfWork[TRepositories]: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...

    def savepoint(self) -> AbstractContextManager[None]:
        """Scope writes that must be undone together; failures raise ``StoreError``."""
        ...


@dataclass(slots=True)
class FeedRepositories(RepositoryCollection):
    """Repositories touched by import, clear and expire operations."""

    entities: EntityStore
    items: ItemMetadataRepository
    sources: SourceStateRepository
    schedules: ScheduleRepository


type FeedUnitOfWork = UnitOfWork[FeedRepositories]
