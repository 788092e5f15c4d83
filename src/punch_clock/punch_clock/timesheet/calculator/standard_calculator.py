from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional, Sequence

from ...core.enums import PunchType
from ...punches.model import DaySummary
from ...punches.sequencer import next_type
from .base import DayCalculator, TimedPunch


def _first(day: Sequence[TimedPunch], punch_type: PunchType) -> Optional[TimedPunch]:
    return next((p for p in day if p.punch_type == punch_type), None)


def _last(day: Sequence[TimedPunch], punch_type: PunchType) -> Optional[TimedPunch]:
    return next((p for p in reversed(day) if p.punch_type == punch_type), None)


def _whole_seconds(start: datetime, end: datetime) -> int:
    return (end - start) // timedelta(seconds=1)


class StandardDayCalculator(DayCalculator):
    """Standard rule: (last OUT or now) - first IN - (first BREAK_END - first BREAK_START), not below 0.

    Tolerates days that break the sequencing rules: duplicates past the first
    (or last, for OUT) occurrence are ignored instead of raising.
    """

    def summarize(self, day: Sequence[TimedPunch], *, now: datetime, daily_target_seconds: int) -> DaySummary:
        in_entry = _first(day, PunchType.IN)
        out_entry = _last(day, PunchType.OUT)
        break_start = _first(day, PunchType.BREAK_START)
        break_end = _first(day, PunchType.BREAK_END)

        break_seconds = 0
        if break_start and break_end:
            break_seconds = max(0, _whole_seconds(break_start.occurred_at, break_end.occurred_at))

        worked_seconds = 0
        if in_entry:
            end = out_entry.occurred_at if out_entry else now
            worked_seconds = max(0, _whole_seconds(in_entry.occurred_at, end) - break_seconds)

        last = day[-1] if day else None
        is_complete = last is not None and last.punch_type == PunchType.OUT
        if last is None:
            expected: Optional[PunchType] = PunchType.IN
        elif is_complete:
            expected = None
        else:
            expected = next_type(last.punch_type)

        target = int(daily_target_seconds)
        return DaySummary(
            worked_seconds=worked_seconds,
            break_seconds=break_seconds,
            balance_seconds=worked_seconds - target,
            daily_target_seconds=target,
            is_complete=is_complete,
            next_expected=expected,
        )
