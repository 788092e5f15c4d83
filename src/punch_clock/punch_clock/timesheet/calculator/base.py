from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Protocol, Sequence

from ...core.enums import PunchType
from ...punches.model import DaySummary


class TimedPunch(Protocol):
    punch_type: PunchType
    occurred_at: datetime


class DayCalculator(ABC):
    """Calculator interface (Strategy Pattern for day accounting)."""

    @abstractmethod
    def summarize(self, day: Sequence[TimedPunch], *, now: datetime, daily_target_seconds: int) -> DaySummary:
        raise NotImplementedError
