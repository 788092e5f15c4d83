from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import PunchType


@dataclass(frozen=True)
class ScopeKey:
    """Phạm vi dữ liệu: một nhân viên trong một tổ chức."""

    org_id: str
    worker_id: str


@dataclass(frozen=True)
class GeoFix:
    """Vị trí GPS kèm độ chính xác (mét) tại thời điểm chấm công."""

    latitude: float
    longitude: float
    accuracy_m: float


@dataclass(frozen=True)
class Punch:
    """Thực thể miền (domain): Một lần chấm công."""

    punch_id: str
    scope: ScopeKey
    punch_type: PunchType
    ordinal: int
    occurred_at: datetime
    location: GeoFix
    evidence_ref: Optional[str] = None

    @property
    def has_evidence(self) -> bool:
        return self.evidence_ref is not None


@dataclass(frozen=True)
class NewPunch:
    """Dữ liệu cần lưu cho một lần chấm công vừa được chấp nhận."""

    scope: ScopeKey
    work_date: date
    punch_type: PunchType
    ordinal: int
    occurred_at: datetime
    location: GeoFix
    evidence_ref: Optional[str] = None


@dataclass(frozen=True)
class DaySummary:
    """Read-model: tổng hợp thời gian làm việc/nghỉ của một ngày (không lưu CSDL)."""

    worked_seconds: int
    break_seconds: int
    balance_seconds: int
    daily_target_seconds: int
    is_complete: bool
    next_expected: Optional[PunchType]


@dataclass(frozen=True)
class DayWindow:
    """Khoảng thời gian UTC đóng [start, end] của một ngày địa phương; end=None khi ngày còn mở."""

    day: date
    start: datetime
    end: Optional[datetime]

    def contains(self, instant: datetime) -> bool:
        if instant < self.start:
            return False
        return self.end is None or instant <= self.end


@dataclass(frozen=True)
class PeriodWindow:
    first_day: date
    last_day: date
    start: datetime
    end: datetime

    def contains(self, instant: datetime) -> bool:
        return self.start <= instant <= self.end


@dataclass(frozen=True)
class TodayView:
    window: DayWindow
    punches: list[Punch]
    last_punch: Optional[Punch]
    summary: DaySummary

    @property
    def next_expected(self) -> Optional[PunchType]:
        return self.summary.next_expected

    @property
    def is_complete(self) -> bool:
        return self.summary.is_complete


@dataclass(frozen=True)
class PeriodView:
    window: PeriodWindow
    punches: list[Punch]


@dataclass(frozen=True)
class DayEvidenceView:
    window: DayWindow
    punches: list[Punch]


@dataclass(frozen=True)
class SubmittedPunch:
    """Kết quả chấp nhận: bản ghi mới và tổng hợp của cả ngày sau khi lưu."""

    punch: Punch
    today: TodayView
