from __future__ import annotations

import json

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor
from .model import PunchAuditRecord
from .sink import AuditSink


class MySQLAuditSink(AuditSink):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def emit(self, record: PunchAuditRecord) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO audit_logs (org_id, actor_id, action, entity, entity_id, metadata)
                VALUES (%s, %s, %s, %s, %s, %s)
                """,
                (
                    record.scope.org_id,
                    record.scope.worker_id,
                    record.action.value,
                    "Punch",
                    record.punch_id,
                    json.dumps(record.metadata()),
                ),
            )
