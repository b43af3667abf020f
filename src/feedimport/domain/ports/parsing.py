"""Ports for turning raw payloads into records."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Iterable

    from feedimport.domain.model import Record
    from feedimport.domain.ports.fetching import FetcherResult


@runtime_checkable
class Parser(Protocol):
    """Port for parsing one fetched payload.

    Implementations raise ``EmptyFeedError`` for blank input and
    ``MalformedInputError`` for anything they cannot read. Record order must be
    stable for identical input.
    """

    def parse(self, result: FetcherResult) -> Iterable[Record]: ...


__all__ = ["Parser"]
