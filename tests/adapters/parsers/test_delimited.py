from __future__ import annotations

import pytest

from feedimport.adapters.parsers import DelimitedParser
from feedimport.domain.errors import EmptyFeedError, MalformedInputError
from feedimport.domain.ports import FetcherResult


def test_rows_become_records_keyed_by_header() -> None:
    payload = "\ufeffguid,title\n1, First \n\n2,Second\n".encode()

    records = DelimitedParser().parse(FetcherResult(raw=payload))

    assert [dict(record) for record in records] == [
        {"guid": "1", "title": "First"},
        {"guid": "2", "title": "Second"},
    ]


def test_explicit_fieldnames_and_delimiter() -> None:
    payload = b"1;First\n2;Second\n"

    records = DelimitedParser(delimiter=";", fieldnames=("guid", "title")).parse(
        FetcherResult(raw=payload)
    )

    assert [record["title"] for record in records] == ["First", "Second"]


def test_extra_columns_are_collected() -> None:
    records = DelimitedParser().parse(FetcherResult(raw=b"a,b\n1,2,3,4\n"))

    assert records[0]["_extra"] == ("3", "4")


def test_empty_file() -> None:
    with pytest.raises(EmptyFeedError):
        DelimitedParser().parse(FetcherResult(raw=b"\n \n"))


def test_undecodable_payload() -> None:
    with pytest.raises(MalformedInputError):
        DelimitedParser(encoding="utf-8").parse(FetcherResult(raw=b"a,b\n\xff\xfe,1\n"))
