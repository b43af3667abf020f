"""Parser adapters."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .delimited import DelimitedParser
from .directory import DirectoryParser
from .opml import OpmlParser
from .syndication import SyndicationParser

if TYPE_CHECKING:
    from feedimport.config.importer import ParserSection
    from feedimport.domain.ports import Parser


def build_parser(section: ParserSection) -> Parser:
    match section.type:
        case "delimited":
            return DelimitedParser(
                delimiter=section.delimiter,
                encoding=section.encoding,
                fieldnames=section.fieldnames,
            )
        case "opml":
            return OpmlParser()
        case "directory":
            return DirectoryParser()
        case _:
            return SyndicationParser()


__all__ = [
    "DelimitedParser",
    "DirectoryParser",
    "OpmlParser",
    "SyndicationParser",
    "build_parser",
]
