"""Punch sequencing rules.

A day is a prefix of IN -> BREAK_START -> BREAK_END -> OUT with ordinals 1..n.
Everything here is a pure function of its arguments so a timed-out submission
can be re-validated against the same stored day and get the same answer.
"""

from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.constants import MAX_PUNCHES_PER_DAY
from ..core.enums import PUNCH_SEQUENCE, PunchType
from ..core.exceptions import LimitExceeded, MalformedDayData, SequenceComplete, UnexpectedType


class SequencedPunch(Protocol):
    punch_type: PunchType
    ordinal: int


_NEXT_TYPE = {
    PunchType.IN: PunchType.BREAK_START,
    PunchType.BREAK_START: PunchType.BREAK_END,
    PunchType.BREAK_END: PunchType.OUT,
}


def next_type(last: Optional[PunchType]) -> PunchType:
    if last is None:
        return PunchType.IN
    if last == PunchType.OUT:
        raise SequenceComplete()
    return _NEXT_TYPE[last]


def find_malformation(day: Sequence[SequencedPunch]) -> Optional[str]:
    """Describe why ``day`` breaks the prefix invariant, or None when it is well formed."""

    if len(day) > MAX_PUNCHES_PER_DAY:
        return f"{len(day)} punches stored"
    for position, punch in enumerate(day, start=1):
        if punch.ordinal != position:
            return f"ordinal {punch.ordinal} at position {position}"
        if punch.punch_type != PUNCH_SEQUENCE[position - 1]:
            return f"{punch.punch_type.value} at position {position}"
    return None


def propose_next(day: Sequence[SequencedPunch], submitted: PunchType) -> int:
    """Validate ``submitted`` against the day's punches (ordinal ascending) and return its ordinal.

    Raises LimitExceeded, SequenceComplete, MalformedDayData or UnexpectedType.
    """

    if len(day) >= MAX_PUNCHES_PER_DAY:
        raise LimitExceeded(MAX_PUNCHES_PER_DAY)

    last = day[-1].punch_type if day else None
    expected = next_type(last)

    problem = find_malformation(day)
    if problem:
        raise MalformedDayData(problem)

    if submitted != expected:
        raise UnexpectedType(expected, submitted)

    return len(day) + 1
