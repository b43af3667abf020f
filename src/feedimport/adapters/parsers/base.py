"""Helpers shared by the parser adapters."""

from __future__ import annotations

from typing import TYPE_CHECKING
from xml.etree import ElementTree

from feedimport.domain.errors import EmptyFeedError, MalformedInputError

if TYPE_CHECKING:
    from feedimport.domain.ports import FetcherResult


def read_text(result: FetcherResult, encoding: str = "utf-8") -> str:
    """Decode the fetched payload; blank payloads raise ``EmptyFeedError``."""

    raw = result.read_bytes()
    if not raw.strip():
        raise EmptyFeedError(f"The feed from {result.location or 'source'} is empty")
    try:
        text = raw.decode(encoding)
    except UnicodeDecodeError as exc:
        raise MalformedInputError(f"Payload is not valid {encoding}: {exc}") from exc
    if not text.strip():
        raise EmptyFeedError(f"The feed from {result.location or 'source'} is empty")
    return text


def read_xml(result: FetcherResult) -> ElementTree.Element:
    raw = result.read_bytes()
    if not raw.strip():
        raise EmptyFeedError(f"The feed from {result.location or 'source'} is empty")
    try:
        # bytes keep the encoding declared in the XML prolog authoritative
        return ElementTree.fromstring(raw.strip())
    except ElementTree.ParseError as exc:
        raise MalformedInputError(f"Malformed XML: {exc}") from exc


def local_name(tag: str) -> str:
    """Strip an ``{namespace}`` prefix from an element tag."""

    return tag.rpartition("}")[2]


def child_text(element: ElementTree.Element, *names: str) -> str | None:
    """Text of the first direct child whose local name is in ``names``."""

    for name in names:
        for child in element:
            if local_name(child.tag) == name:
                text = "".join(child.itertext()).strip()
                if text:
                    return text
    return None


def children(element: ElementTree.Element, name: str) -> list[ElementTree.Element]:
    return [child for child in element if local_name(child.tag) == name]
