from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Optional, Sequence

from ..core.enums import PunchType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import (
    db_cursor,
    fetchall,
    fetchone,
    from_db_datetime,
    is_duplicate_key,
    to_db_datetime,
)
from .model import GeoFix, NewPunch, Punch, ScopeKey
from .repository import DuplicateOrdinalError, PunchRepository

_COLUMNS = """
    punch_id, org_id, worker_id, punch_type, ordinal, occurred_at,
    latitude, longitude, accuracy_m, evidence_ref
"""

_PARK_ORDINAL_SQL = "UPDATE punches SET ordinal = -1 - ordinal WHERE punch_id=%s AND ordinal >= 0"


def _to_punch(r: dict) -> Punch:
    return Punch(
        punch_id=str(r["punch_id"]),
        scope=ScopeKey(org_id=str(r["org_id"]), worker_id=str(r["worker_id"])),
        punch_type=PunchType(r["punch_type"]),
        ordinal=int(r["ordinal"]),
        occurred_at=from_db_datetime(r["occurred_at"]),
        location=GeoFix(
            latitude=float(r["latitude"]),
            longitude=float(r["longitude"]),
            accuracy_m=float(r["accuracy_m"]),
        ),
        evidence_ref=r.get("evidence_ref") or None,
    )


class MySQLPunchRepository(PunchRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def find_for_day(self, scope: ScopeKey, work_date: date) -> Sequence[Punch]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM punches
                WHERE org_id=%s AND worker_id=%s AND work_date=%s
                ORDER BY ordinal ASC, occurred_at ASC
                """,
                (scope.org_id, scope.worker_id, work_date),
            )
            return [_to_punch(r) for r in fetchall(cur)]

    def find_last_for_day(self, scope: ScopeKey, work_date: date) -> Optional[Punch]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM punches
                WHERE org_id=%s AND worker_id=%s AND work_date=%s
                ORDER BY ordinal DESC
                LIMIT 1
                """,
                (scope.org_id, scope.worker_id, work_date),
            )
            r = fetchone(cur)
            return _to_punch(r) if r else None

    def find_for_range(self, scope: ScopeKey, start: datetime, end: datetime) -> Sequence[Punch]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM punches
                WHERE org_id=%s AND worker_id=%s AND occurred_at BETWEEN %s AND %s
                ORDER BY occurred_at ASC, ordinal ASC
                """,
                (scope.org_id, scope.worker_id, to_db_datetime(start), to_db_datetime(end)),
            )
            return [_to_punch(r) for r in fetchall(cur)]

    def get_by_id(self, scope: ScopeKey, punch_id: str) -> Optional[Punch]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM punches
                WHERE punch_id=%s AND org_id=%s AND worker_id=%s
                """,
                (punch_id, scope.org_id, scope.worker_id),
            )
            r = fetchone(cur)
            return _to_punch(r) if r else None

    def insert(self, punch: NewPunch) -> Punch:
        punch_id = str(uuid.uuid4())
        occurred_at = to_db_datetime(punch.occurred_at)
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO punches (
                        punch_id, org_id, worker_id, work_date, punch_type, ordinal, occurred_at,
                        latitude, longitude, accuracy_m, evidence_ref
                    )
                    VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                    """,
                    (
                        punch_id,
                        punch.scope.org_id,
                        punch.scope.worker_id,
                        punch.work_date,
                        punch.punch_type.value,
                        int(punch.ordinal),
                        occurred_at,
                        punch.location.latitude,
                        punch.location.longitude,
                        punch.location.accuracy_m,
                        punch.evidence_ref,
                    ),
                )
        except Exception as exc:
            if is_duplicate_key(exc):
                raise DuplicateOrdinalError(
                    f"ordinal {punch.ordinal} already taken for {punch.scope.worker_id} on {punch.work_date}"
                ) from exc
            raise

        return Punch(
            punch_id=punch_id,
            scope=punch.scope,
            punch_type=punch.punch_type,
            ordinal=int(punch.ordinal),
            occurred_at=from_db_datetime(occurred_at),
            location=punch.location,
            evidence_ref=punch.evidence_ref,
        )

    def list_all_for_backfill(self) -> Sequence[Punch]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM punches
                ORDER BY occurred_at ASC, ordinal ASC
                """
            )
            return [_to_punch(r) for r in fetchall(cur)]

    def update_ordinals(self, changes: Sequence[tuple[str, date, int]]) -> int:
        if not changes:
            return 0
        with db_cursor(self._conn_factory) as (_, cur):
            # Park each touched row on -1 - ordinal: still unique within its old day,
            # never positive, and inside the SMALLINT range for ordinals 0..32767.
            for punch_id, _, _ in changes:
                cur.execute(_PARK_ORDINAL_SQL, (punch_id,))
            changed = 0
            for punch_id, work_date, ordinal in changes:
                cur.execute(
                    "UPDATE punches SET ordinal=%s, work_date=%s WHERE punch_id=%s",
                    (int(ordinal), work_date, punch_id),
                )
                changed += cur.rowcount
            return changed
