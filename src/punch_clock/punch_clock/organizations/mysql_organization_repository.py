from __future__ import annotations

from typing import Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import Organization
from .repository import OrganizationRepository


class MySQLOrganizationRepository(OrganizationRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, org_id: str) -> Optional[Organization]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT org_id, name, timezone, daily_target_seconds
                FROM organizations
                WHERE org_id=%s
                """,
                (org_id,),
            )
            r = fetchone(cur)
            if not r:
                return None
            target = r.get("daily_target_seconds")
            return Organization(
                org_id=str(r["org_id"]),
                name=r["name"],
                timezone=r.get("timezone") or None,
                daily_target_seconds=int(target) if target is not None else None,
            )
