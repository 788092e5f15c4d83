from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Organization:
    """Thực thể miền (domain): Tổ chức và chính sách giờ làm."""

    org_id: str
    name: str
    timezone: Optional[str] = None
    daily_target_seconds: Optional[int] = None


@dataclass(frozen=True)
class WorkPolicy:
    """Chính sách áp dụng khi tính ngày công: múi giờ và số giây mục tiêu mỗi ngày."""

    timezone: str
    daily_target_seconds: int
