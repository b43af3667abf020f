"""Domain ports."""

from __future__ import annotations

from .fetching import Fetcher, FetcherResult, SourceDescriptor
from .parsing import Parser
from .persistence import (
    EntityStore,
    ItemMetadataRepository,
    ScheduleRepository,
    SourceStateRepository,
)
from .unit_of_work import FeedRepositories, FeedUnitOfWork, RepositoryCollection, UnitOfWork

__all__ = [
    "EntityStore",
    "FeedRepositories",
    "FeedUnitOfWork",
    "Fetcher",
    "FetcherResult",
    "ItemMetadataRepository",
    "Parser",
    "RepositoryCollection",
    "ScheduleRepository",
    "SourceDescriptor",
    "SourceStateRepository",
    "UnitOfWork",
]
