"""Settings shared by the reconciliation engine and its callers."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class UpdatePolicy(StrEnum):
    """What to do with records whose entity already exists.

    ``SKIP`` stops before loading anything. ``UPDATE`` replaces the mapped
    targets of the loaded entity. ``REPLACE`` also resets every unmapped field
    to the configured defaults.
    """

    SKIP = "skip"
    UPDATE = "update"
    REPLACE = "replace"


@dataclass(frozen=True, slots=True, kw_only=True)
class ProcessorSettings:
    entity_type: str
    label: str | None = None
    update_policy: UpdatePolicy = UpdatePolicy.SKIP
    force_update: bool = False
    authorize: bool = True
    owner_id: str | None = None

    @property
    def entity_label(self) -> str:
        return self.label or self.entity_type
