"""Per-source scheduling state owned by the scheduler, not by the import core."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import TYPE_CHECKING

from .progress import OperationKind

if TYPE_CHECKING:
    from datetime import datetime


@dataclass(eq=False, kw_only=True)
class ScheduleState:
    source_id: str
    import_period: int | None = None
    expire_period: int | None = None
    next_import_at: datetime | None = None
    next_expire_at: datetime | None = None
    reschedule: bool = False

    def sync_periods(self, *, import_period: int | None, expire_period: int | None) -> bool:
        """Adopt configured periods; a change marks the source for rescheduling."""

        if (self.import_period, self.expire_period) == (import_period, expire_period):
            return False
        self.import_period = import_period
        self.expire_period = expire_period
        self.reschedule = True
        return True

    def apply_reschedule(self, now: datetime) -> None:
        if not self.reschedule:
            return
        self.next_import_at = now if self.import_period is not None else None
        self.next_expire_at = now if self.expire_period is not None else None
        self.reschedule = False

    def period_for(self, kind: OperationKind) -> int | None:
        if kind is OperationKind.IMPORT:
            return self.import_period
        if kind is OperationKind.EXPIRE:
            return self.expire_period
        return None

    def is_due(self, kind: OperationKind, now: datetime) -> bool:
        if self.period_for(kind) is None:
            return False
        next_run = self.next_import_at if kind is OperationKind.IMPORT else self.next_expire_at
        return next_run is None or next_run <= now

    def completed(self, kind: OperationKind, now: datetime) -> None:
        period = self.period_for(kind)
        next_run = now + timedelta(seconds=period) if period is not None else None
        if kind is OperationKind.IMPORT:
            self.next_import_at = next_run
        elif kind is OperationKind.EXPIRE:
            self.next_expire_at = next_run
