"""SQLAlchemy adapter package for feedimport."""

from __future__ import annotations

from .mappings import mapper_registry, start_mappers
from .repositories import (
    SqlAlchemyEntityStore,
    SqlAlchemyItemMetadataRepository,
    SqlAlchemyScheduleRepository,
    SqlAlchemySourceStateRepository,
)
from .unit_of_work import SqlAlchemyFeedUnitOfWork, shutdown, startup

__all__ = [
    "SqlAlchemyEntityStore",
    "SqlAlchemyFeedUnitOfWork",
    "SqlAlchemyItemMetadataRepository",
    "SqlAlchemyScheduleRepository",
    "SqlAlchemySourceStateRepository",
    "mapper_registry",
    "shutdown",
    "start_mappers",
    "startup",
]
