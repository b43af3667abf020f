"""Directory listings: one record per file."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from feedimport.domain.errors import EmptyFeedError
from feedimport.domain.model import Record

if TYPE_CHECKING:
    from feedimport.domain.ports import FetcherResult, Parser


@dataclass(slots=True)
class DirectoryParser:
    def parse(self, result: FetcherResult) -> list[Record]:
        files = result.files or ((result.path,) if result.path is not None else ())
        if not files:
            raise EmptyFeedError(f"No files found in {result.location or 'source'}")
        records: list[Record] = []
        for path in files:
            stat = path.stat()
            records.append(
                Record(
                    {
                        "path": str(path),
                        "filename": path.name,
                        "extension": path.suffix.lstrip(".").lower(),
                        "size": stat.st_size,
                        "modified": int(stat.st_mtime),
                    }
                )
            )
        return records


if TYPE_CHECKING:
    _parser_check: Parser = DirectoryParser()
