"""Delimited text files (CSV, TSV and friends)."""

from __future__ import annotations

import csv
import io
from dataclasses import dataclass
from typing import TYPE_CHECKING

from feedimport.domain.errors import EmptyFeedError, MalformedInputError
from feedimport.domain.model import Record

from .base import read_text

if TYPE_CHECKING:
    from feedimport.domain.ports import FetcherResult, Parser


@dataclass(slots=True)
class DelimitedParser:
    """One record per row, keyed by the header row or explicit ``fieldnames``.

    ``utf-8-sig`` is the default encoding so a leading BOM does not end up in
    the first column name.
    """

    delimiter: str = ","
    encoding: str = "utf-8-sig"
    fieldnames: tuple[str, ...] | None = None

    def parse(self, result: FetcherResult) -> list[Record]:
        text = read_text(result, self.encoding)
        reader = csv.DictReader(
            io.StringIO(text, newline=""),
            fieldnames=list(self.fieldnames) if self.fieldnames else None,
            delimiter=self.delimiter,
            restkey="_extra",
        )
        records: list[Record] = []
        try:
            for row in reader:
                values = {
                    (name or "").strip(): value.strip() if isinstance(value, str) else value
                    for name, value in row.items()
                }
                if not any(values.values()):
                    continue
                records.append(Record(values))
        except csv.Error as exc:
            raise MalformedInputError(f"Line {reader.line_num}: {exc}") from exc
        if not reader.fieldnames:
            raise EmptyFeedError("The delimited file has no header row")
        return records


if TYPE_CHECKING:
    _parser_check: Parser = DelimitedParser()
