"""Per-record outcomes returned by the reconciliation engine."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from uuid import UUID


class Outcome(StrEnum):
    CREATED = "created"
    UPDATED = "updated"
    SKIPPED = "skipped"


class ErrorKind(StrEnum):
    VALIDATION = "validation"
    ACCESS = "access"
    VALUE = "value"
    STORE = "store"


@dataclass(frozen=True, slots=True, kw_only=True)
class Ok:
    outcome: Outcome
    entity_id: UUID | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class Err:
    kind: ErrorKind
    message: str
    entity_id: UUID | None = None


type RecordResult = Ok | Err
