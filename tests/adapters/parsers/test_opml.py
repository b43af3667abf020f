from __future__ import annotations

import pytest

from feedimport.adapters.parsers import OpmlParser
from feedimport.domain.errors import MalformedInputError
from feedimport.domain.ports import FetcherResult

OPML = b"""<?xml version="1.0"?>
<opml version="2.0">
  <head><title>My subscriptions</title></head>
  <body>
    <outline text="Tech">
      <outline text="Example" title="Example Feed" type="rss"
               xmlUrl="https://example.com/feed.xml" htmlUrl="https://example.com/"/>
      <outline text="Deep">
        <outline text="Nested" xmlurl="https://nested.example.com/rss"/>
      </outline>
    </outline>
    <outline text="Loose" xmlUrl="https://loose.example.com/atom"/>
    <outline text="No feed here"/>
  </body>
</opml>
"""


def test_outlines_are_flattened_with_categories() -> None:
    records = OpmlParser().parse(FetcherResult(raw=OPML))

    assert [dict(record) for record in records] == [
        {
            "title": "Example Feed",
            "xmlurl": "https://example.com/feed.xml",
            "htmlurl": "https://example.com/",
            "categories": ("Tech",),
            "feed_title": "My subscriptions",
        },
        {
            "title": "Nested",
            "xmlurl": "https://nested.example.com/rss",
            "htmlurl": None,
            "categories": ("Tech", "Deep"),
            "feed_title": "My subscriptions",
        },
        {
            "title": "Loose",
            "xmlurl": "https://loose.example.com/atom",
            "htmlurl": None,
            "categories": (),
            "feed_title": "My subscriptions",
        },
    ]


def test_non_opml_document_is_malformed() -> None:
    with pytest.raises(MalformedInputError):
        OpmlParser().parse(FetcherResult(raw=b"<rss/>"))
