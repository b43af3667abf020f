"""Per-entity import bookkeeping."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID


@dataclass(eq=False, kw_only=True)
class ItemMetadata:
    """Source, import time and fingerprint recorded whenever an entity is saved."""

    entity_id: UUID
    source_id: str
    entity_type: str
    imported_at: datetime
    fingerprint: str
