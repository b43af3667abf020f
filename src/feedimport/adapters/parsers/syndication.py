"""RSS 2.0, RSS 1.0 (RDF) and Atom 1.0 feeds."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from email.utils import parsedate_to_datetime
from logging import getLogger
from typing import TYPE_CHECKING

from feedimport.domain.errors import MalformedInputError
from feedimport.domain.model import Record

from .base import child_text, children, local_name, read_xml

if TYPE_CHECKING:
    from xml.etree import ElementTree

    from feedimport.domain.ports import FetcherResult, Parser

log = getLogger(__name__)


def parse_date(value: str | None) -> int | None:
    """Epoch seconds of an RFC 822 or ISO-8601 date; ``None`` if unreadable."""

    if not value:
        return None
    text = value.strip()
    try:
        parsed = parsedate_to_datetime(text)
    except (TypeError, ValueError, IndexError):
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            log.debug("Unreadable date %r", value)
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return int(parsed.timestamp())


def _feed_fields(channel: ElementTree.Element, *, atom: bool) -> dict[str, object]:
    if atom:
        link = _atom_link(channel, "alternate")
        description = child_text(channel, "subtitle")
    else:
        link = child_text(channel, "link")
        description = child_text(channel, "description")
    return {
        "feed_title": child_text(channel, "title"),
        "feed_description": description,
        "feed_url": link,
    }


def _atom_link(element: ElementTree.Element, rel: str) -> str | None:
    for link in children(element, "link"):
        if link.get("rel", "alternate") == rel and link.get("href"):
            return link.get("href")
    return None


def _rss_item(item: ElementTree.Element, feed: dict[str, object]) -> Record:
    url = child_text(item, "link")
    enclosures = [
        enclosure.get("url") for enclosure in children(item, "enclosure") if enclosure.get("url")
    ]
    return Record(
        {
            **feed,
            "title": child_text(item, "title"),
            "guid": child_text(item, "guid") or url,
            "url": url,
            "description": child_text(item, "encoded", "description"),
            "author_name": child_text(item, "author", "creator"),
            "timestamp": parse_date(child_text(item, "pubDate", "date")),
            "tags": _texts(item, "category", "subject"),
            "enclosures": enclosures,
        }
    )


def _atom_entry(entry: ElementTree.Element, feed: dict[str, object]) -> Record:
    url = _atom_link(entry, "alternate")
    author = next(iter(children(entry, "author")), None)
    return Record(
        {
            **feed,
            "title": child_text(entry, "title"),
            "guid": child_text(entry, "id") or url,
            "url": url,
            "description": child_text(entry, "content", "summary"),
            "author_name": child_text(author, "name") if author is not None else None,
            "timestamp": parse_date(child_text(entry, "published", "updated")),
            "tags": [
                category.get("term")
                for category in children(entry, "category")
                if category.get("term")
            ],
            "enclosures": [
                link.get("href")
                for link in children(entry, "link")
                if link.get("rel") == "enclosure" and link.get("href")
            ],
        }
    )


def _texts(element: ElementTree.Element, *names: str) -> list[str]:
    values: list[str] = []
    for child in element:
        if local_name(child.tag) in names and child.text and child.text.strip():
            values.append(child.text.strip())
    return values


@dataclass(slots=True)
class SyndicationParser:
    def parse(self, result: FetcherResult) -> list[Record]:
        root = read_xml(result)
        kind = local_name(root.tag)
        if kind == "feed":
            feed = _feed_fields(root, atom=True)
            return [_atom_entry(entry, feed) for entry in children(root, "entry")]
        if kind == "rss":
            channel = next(iter(children(root, "channel")), None)
            if channel is None:
                raise MalformedInputError("RSS document has no channel")
            feed = _feed_fields(channel, atom=False)
            return [_rss_item(item, feed) for item in children(channel, "item")]
        if kind == "RDF":
            channel = next(iter(children(root, "channel")), None)
            feed = _feed_fields(channel, atom=False) if channel is not None else {}
            return [_rss_item(item, feed) for item in children(root, "item")]
        raise MalformedInputError(f"Unsupported feed format <{kind}>")


if TYPE_CHECKING:
    _parser_check: Parser = SyndicationParser()
