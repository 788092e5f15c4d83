from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from .model import NewPunch, Punch, ScopeKey


class DuplicateOrdinalError(Exception):
    """Raised by ``insert`` when (scope, work_date, ordinal) is already taken.

    Storage-level signal for two racing submissions; the punch service turns it
    into a retryable domain error.
    """


class PunchRepository(Protocol):
    def find_for_day(self, scope: ScopeKey, work_date: date) -> Sequence[Punch]:
        """Punches of one local day, ordinal ascending."""
        raise NotImplementedError

    def find_last_for_day(self, scope: ScopeKey, work_date: date) -> Optional[Punch]:
        """The highest-ordinal punch of one local day."""
        raise NotImplementedError

    def find_for_range(self, scope: ScopeKey, start: datetime, end: datetime) -> Sequence[Punch]:
        """Punches with start <= occurred_at <= end, by occurred_at then ordinal."""
        raise NotImplementedError

    def get_by_id(self, scope: ScopeKey, punch_id: str) -> Optional[Punch]:
        raise NotImplementedError

    def insert(self, punch: NewPunch) -> Punch:
        raise NotImplementedError

    def list_all_for_backfill(self) -> Sequence[Punch]:
        """Every stored punch, occurred_at ascending."""
        raise NotImplementedError

    def update_ordinals(self, changes: Sequence[tuple[str, date, int]]) -> int:
        """Apply (punch_id, work_date, ordinal) updates atomically; returns rows changed."""
        raise NotImplementedError
