from __future__ import annotations

from feedimport.domain.fingerprint import Fingerprinter, FingerprintPolicy, fingerprint
from feedimport.domain.model import FieldMapping, Record

MAPPINGS = (
    FieldMapping(source="guid", target="guid", unique=True),
    FieldMapping(source="title", target="title"),
)


def test_fingerprint_is_deterministic() -> None:
    first = Record({"guid": "a", "title": "Hello", "tags": ["x", "y"]})
    second = Record({"guid": "a", "title": "Hello", "tags": ["x", "y"]})

    assert fingerprint(first, MAPPINGS) == fingerprint(second, MAPPINGS)
    assert len(fingerprint(first, MAPPINGS)) == 32


def test_changed_value_changes_fingerprint() -> None:
    before = Record({"guid": "a", "title": "Hello"})
    after = Record({"guid": "a", "title": "Hello!"})

    assert fingerprint(before, MAPPINGS) != fingerprint(after, MAPPINGS)


def test_mapping_changes_invalidate_fingerprints() -> None:
    record = Record({"guid": "a", "title": "Hello"})
    reordered = (MAPPINGS[1], MAPPINGS[0])
    extended = (*MAPPINGS, FieldMapping(source="title", target="summary"))

    original = fingerprint(record, MAPPINGS)

    assert fingerprint(record, reordered) != original
    assert fingerprint(record, extended) != original


def test_full_policy_sees_unmapped_fields() -> None:
    before = Record({"guid": "a", "title": "Hello", "fetched": 1})
    after = Record({"guid": "a", "title": "Hello", "fetched": 2})

    assert fingerprint(before, MAPPINGS) != fingerprint(after, MAPPINGS)


def test_mapped_policy_ignores_unmapped_fields() -> None:
    before = Record({"guid": "a", "title": "Hello", "fetched": 1})
    after = Record({"guid": "a", "title": "Hello", "fetched": 2})
    fingerprinter = Fingerprinter(MAPPINGS, FingerprintPolicy.MAPPED)

    assert fingerprinter(before) == fingerprinter(after)
    assert fingerprinter(before) != fingerprint(before, MAPPINGS, FingerprintPolicy.FULL)
