"""Content fingerprints used to detect unchanged records."""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from feedimport.domain.model import FieldMapping, Record


class FingerprintPolicy(StrEnum):
    """Which part of a record feeds the fingerprint.

    ``FULL`` hashes every record field, so any mapping change invalidates every
    stored fingerprint of the importer. ``MAPPED`` hashes only the fields that
    some mapping reads; unmapped noise in the source no longer forces updates.
    Both include the complete mapping configuration.
    """

    FULL = "full"
    MAPPED = "mapped"


def _record_payload(
    record: Record,
    mappings: Sequence[FieldMapping],
    policy: FingerprintPolicy,
) -> list[list[object]]:
    if policy is FingerprintPolicy.FULL:
        return [[name, value] for name, value in record.pairs()]
    sources = dict.fromkeys(mapping.source for mapping in mappings)
    return [[name, record.get(name)] for name in sources]


def fingerprint(
    record: Record,
    mappings: Sequence[FieldMapping],
    policy: FingerprintPolicy = FingerprintPolicy.FULL,
) -> str:
    payload = {
        "record": _record_payload(record, mappings, policy),
        "mappings": [mapping.as_config() for mapping in mappings],
    }
    serialized = json.dumps(payload, default=str, ensure_ascii=False, separators=(",", ":"))
    return hashlib.md5(serialized.encode("utf-8"), usedforsecurity=False).hexdigest()


@dataclass(frozen=True, slots=True)
class Fingerprinter:
    mappings: tuple[FieldMapping, ...]
    policy: FingerprintPolicy = FingerprintPolicy.FULL

    def __call__(self, record: Record) -> str:
        return fingerprint(record, self.mappings, self.policy)
