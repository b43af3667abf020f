"""Ports for retrieving raw source payloads."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from feedimport.domain.errors import SourceErrorKind, SourceUnavailableError

if TYPE_CHECKING:
    from collections.abc import Mapping


@dataclass(frozen=True, slots=True)
class SourceDescriptor:
    """Where to fetch from; opaque to the core, interpreted by the fetcher."""

    source_id: str
    location: str
    options: Mapping[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class FetcherResult:
    """Raw payload handed from a fetcher to a parser.

    A result carries in-memory bytes, a file on disk, a directory listing, or a
    combination.
    """

    raw: bytes | None = None
    path: Path | None = None
    files: tuple[Path, ...] = ()
    location: str | None = None

    def read_bytes(self) -> bytes:
        if self.raw is not None:
            return self.raw
        if self.path is not None:
            try:
                return self.path.read_bytes()
            except FileNotFoundError as exc:
                raise SourceUnavailableError(
                    f"File {self.path} disappeared", kind=SourceErrorKind.NOT_FOUND
                ) from exc
        return b""

    def text(self, encoding: str = "utf-8") -> str:
        return self.read_bytes().decode(encoding)


@runtime_checkable
class Fetcher(Protocol):
    """Port for retrieving the raw payload of a source."""

    def fetch(self, source: SourceDescriptor) -> FetcherResult: ...


__all__ = ["Fetcher", "FetcherResult", "SourceDescriptor"]
