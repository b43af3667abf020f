"""Fetch source payloads from the local file system."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from pathlib import Path
from typing import TYPE_CHECKING

from feedimport.domain.errors import SourceErrorKind, SourceUnavailableError
from feedimport.domain.ports.fetching import Fetcher, FetcherResult, SourceDescriptor

log = getLogger(__name__)


def _resolve(location: str) -> Path:
    if location.startswith("file://"):
        location = location.removeprefix("file://")
    return Path(location).expanduser()


@dataclass(slots=True)
class FileFetcher:
    """Fetch a single file, or the sorted listing of a directory.

    Directory listings are sorted so record order stays stable between chunks.
    """

    pattern: str = "*"
    recursive: bool = False

    def fetch(self, source: SourceDescriptor) -> FetcherResult:
        path = _resolve(source.location)
        try:
            if path.is_dir():
                return FetcherResult(path=path, files=self._list(path), location=str(path))
            if not path.exists():
                raise SourceUnavailableError(
                    f"File {path} does not exist", kind=SourceErrorKind.NOT_FOUND
                )
            return FetcherResult(raw=path.read_bytes(), path=path, location=str(path))
        except PermissionError as exc:
            raise SourceUnavailableError(
                f"Permission denied reading {path}", kind=SourceErrorKind.PERMISSION
            ) from exc
        except FileNotFoundError as exc:
            raise SourceUnavailableError(
                f"File {path} does not exist", kind=SourceErrorKind.NOT_FOUND
            ) from exc
        except OSError as exc:
            raise SourceUnavailableError(f"Could not read {path}: {exc}") from exc

    def _list(self, directory: Path) -> tuple[Path, ...]:
        matches = directory.rglob(self.pattern) if self.recursive else directory.glob(self.pattern)
        files = sorted(match for match in matches if match.is_file())
        log.debug("Found %d file(s) in %s", len(files), directory)
        return tuple(files)


if TYPE_CHECKING:
    _fetcher_check: Fetcher = FileFetcher()
