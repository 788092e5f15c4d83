"""Recompute ordinals from stored timestamps.

Used to repair rows written before ordinals were assigned at acceptance time:
punches are regrouped per (organization, worker, local day) and renumbered
1..n in occurred_at order.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from datetime import date
from typing import Callable, Sequence

from ..core.constants import MAX_PUNCHES_PER_DAY
from ..organizations.service import WorkPolicyService
from .day_window import local_date
from .model import Punch
from .repository import PunchRepository

logger = logging.getLogger(__name__)


def plan_ordinals(punches: Sequence[Punch], timezone_for: Callable[[str], str]) -> "OrderedDict[tuple[str, str, date], list[tuple[str, int]]]":
    """Group punches by (org, worker, local day) and number each group by occurred_at."""

    groups: "OrderedDict[tuple[str, str, date], list[Punch]]" = OrderedDict()
    for p in sorted(punches, key=lambda p: (p.occurred_at, p.ordinal)):
        key = (p.scope.org_id, p.scope.worker_id, local_date(p.occurred_at, timezone_for(p.scope.org_id)))
        groups.setdefault(key, []).append(p)

    plan: "OrderedDict[tuple[str, str, date], list[tuple[str, int]]]" = OrderedDict()
    for key, items in groups.items():
        plan[key] = [(p.punch_id, position) for position, p in enumerate(items, start=1)]
    return plan


def backfill_ordinals(punches: PunchRepository, policies: WorkPolicyService) -> int:
    timezones: dict[str, str] = {}

    def timezone_for(org_id: str) -> str:
        if org_id not in timezones:
            timezones[org_id] = policies.policy_for(org_id).timezone
        return timezones[org_id]

    plan = plan_ordinals(punches.list_all_for_backfill(), timezone_for)

    changes: list[tuple[str, date, int]] = []
    for (org_id, worker_id, work_date), items in plan.items():
        changes.extend((punch_id, work_date, ordinal) for punch_id, ordinal in items)
        logger.info("%s:%s:%s -> %s punches renumbered", org_id, worker_id, work_date, len(items))
        if len(items) > MAX_PUNCHES_PER_DAY:
            logger.warning("%s:%s:%s has %s punches", org_id, worker_id, work_date, len(items))

    updated = punches.update_ordinals(changes)
    logger.info("Ordinal backfill done (%s rows)", updated)
    return updated
