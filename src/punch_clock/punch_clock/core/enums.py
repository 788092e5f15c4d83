from __future__ import annotations

from enum import Enum


class PunchType(str, Enum):
    """Loại chấm công trong ngày, theo đúng thứ tự bắt buộc."""

    IN = "IN"
    BREAK_START = "BREAK_START"
    BREAK_END = "BREAK_END"
    OUT = "OUT"


PUNCH_SEQUENCE: tuple[PunchType, ...] = (
    PunchType.IN,
    PunchType.BREAK_START,
    PunchType.BREAK_END,
    PunchType.OUT,
)


class AuditAction(str, Enum):
    """Hành động được ghi vào nhật ký kiểm toán."""

    PUNCH_CREATED = "PUNCH_CREATED"
