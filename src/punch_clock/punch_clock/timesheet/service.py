from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..common.datetime_utils import as_utc, get_zone, now_utc
from ..core.enums import PunchType
from ..organizations.service import WorkPolicyService
from ..punches.day_window import day_end, local_date, period_window
from ..punches.model import Punch, ScopeKey
from ..punches.repository import PunchRepository
from .calculator.base import DayCalculator
from .calculator.standard_calculator import StandardDayCalculator


@dataclass(frozen=True)
class TimesheetReport:
    rows: list[dict]
    summary: dict


def format_seconds(seconds: int) -> str:
    """Signed HH:MM, e.g. 08:00 or -05:30."""
    minutes = abs(int(seconds)) // 60
    sign = "-" if seconds < 0 and minutes else ""
    return f"{sign}{minutes // 60:02d}:{minutes % 60:02d}"


class TimesheetService:
    """Per-day timesheet over a period: groups punches by local day and accounts each day."""

    def __init__(
        self,
        punches: PunchRepository,
        policies: WorkPolicyService,
        *,
        calculator: Optional[DayCalculator] = None,
    ):
        self._punches = punches
        self._policies = policies
        self._calculator = calculator or StandardDayCalculator()

    def build_timesheet(
        self,
        scope: ScopeKey,
        *,
        start: date,
        end: date,
        now: Optional[datetime] = None,
    ) -> TimesheetReport:
        now = as_utc(now or now_utc())
        policy = self._policies.policy_for(scope.org_id)
        tz = get_zone(policy.timezone)
        window = period_window(start, end, policy.timezone)

        by_day: dict[date, list[Punch]] = defaultdict(list)
        for p in self._punches.find_for_range(scope, window.start, window.end):
            if window.contains(p.occurred_at):
                by_day[local_date(p.occurred_at, policy.timezone)].append(p)

        rows: list[dict] = []
        total_worked = 0
        total_break = 0
        total_balance = 0

        for work_date in sorted(by_day):
            day = sorted(by_day[work_date], key=lambda p: p.ordinal)
            # An open past day is accounted up to its own end, not up to today.
            as_of = min(now, day_end(work_date, policy.timezone))
            s = self._calculator.summarize(day, now=as_of, daily_target_seconds=policy.daily_target_seconds)

            times = {}
            for p in day:
                times.setdefault(p.punch_type, p.occurred_at.astimezone(tz).strftime("%H:%M"))

            rows.append(
                {
                    "work_date": work_date.strftime("%Y-%m-%d"),
                    "check_in": times.get(PunchType.IN, "-"),
                    "break_start": times.get(PunchType.BREAK_START, "-"),
                    "break_end": times.get(PunchType.BREAK_END, "-"),
                    "check_out": times.get(PunchType.OUT, "-"),
                    "punches": len(day),
                    "worked_hours": format_seconds(s.worked_seconds),
                    "break_hours": format_seconds(s.break_seconds),
                    "balance": format_seconds(s.balance_seconds),
                    "status": "complete" if s.is_complete else "open",
                }
            )
            total_worked += s.worked_seconds
            total_break += s.break_seconds
            total_balance += s.balance_seconds

        summary = {
            "from": start.strftime("%Y-%m-%d"),
            "to": end.strftime("%Y-%m-%d"),
            "days_worked": len(rows),
            "worked_seconds": total_worked,
            "break_seconds": total_break,
            "balance_seconds": total_balance,
            "total_hours": format_seconds(total_worked),
            "total_balance": format_seconds(total_balance),
        }
        return TimesheetReport(rows=rows, summary=summary)
