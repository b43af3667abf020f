"""OPML subscription lists: one record per outline carrying an ``xmlUrl``."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from feedimport.domain.errors import MalformedInputError
from feedimport.domain.model import Record

from .base import child_text, children, local_name, read_xml

if TYPE_CHECKING:
    from collections.abc import Iterator
    from xml.etree import ElementTree

    from feedimport.domain.ports import FetcherResult, Parser


def _attribute(element: ElementTree.Element, name: str) -> str | None:
    """Case-insensitive attribute lookup; OPML producers disagree on casing."""

    wanted = name.lower()
    for key, value in element.attrib.items():
        if key.lower() == wanted and value.strip():
            return value.strip()
    return None


def _walk(
    outlines: list[ElementTree.Element],
    categories: tuple[str, ...],
) -> Iterator[tuple[ElementTree.Element, tuple[str, ...]]]:
    for outline in outlines:
        if _attribute(outline, "xmlUrl"):
            yield outline, categories
        nested = children(outline, "outline")
        if nested:
            text = _attribute(outline, "text") or _attribute(outline, "title")
            inner = (*categories, text) if text else categories
            yield from _walk(nested, inner)


@dataclass(slots=True)
class OpmlParser:
    def parse(self, result: FetcherResult) -> list[Record]:
        root = read_xml(result)
        if local_name(root.tag) != "opml":
            raise MalformedInputError(f"Expected an OPML document, found <{local_name(root.tag)}>")
        head = next(iter(children(root, "head")), None)
        body = next(iter(children(root, "body")), None)
        if body is None:
            raise MalformedInputError("OPML document has no body")
        feed_title = child_text(head, "title") if head is not None else None

        records: list[Record] = []
        for outline, categories in _walk(children(body, "outline"), ()):
            records.append(
                Record(
                    {
                        "title": _attribute(outline, "title") or _attribute(outline, "text"),
                        "xmlurl": _attribute(outline, "xmlUrl"),
                        "htmlurl": _attribute(outline, "htmlUrl"),
                        "categories": list(categories),
                        "feed_title": feed_title,
                    }
                )
            )
        return records


if TYPE_CHECKING:
    _parser_check: Parser = OpmlParser()
