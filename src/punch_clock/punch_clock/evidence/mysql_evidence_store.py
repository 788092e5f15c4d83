from __future__ import annotations

import uuid
from typing import Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from ..punches.model import ScopeKey
from .model import EvidencePhoto
from .repository import EvidenceStore


class MySQLEvidenceStore(EvidenceStore):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def save(self, scope: ScopeKey, *, mime_type: str, payload: bytes) -> str:
        evidence_ref = str(uuid.uuid4())
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO punch_evidence (evidence_ref, org_id, worker_id, mime_type, payload)
                VALUES (%s, %s, %s, %s, %s)
                """,
                (evidence_ref, scope.org_id, scope.worker_id, mime_type, payload),
            )
        return evidence_ref

    def load(self, scope: ScopeKey, evidence_ref: str) -> Optional[EvidencePhoto]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT evidence_ref, mime_type, payload
                FROM punch_evidence
                WHERE evidence_ref=%s AND org_id=%s AND worker_id=%s
                """,
                (evidence_ref, scope.org_id, scope.worker_id),
            )
            r = fetchone(cur)
            if not r:
                return None
            return EvidencePhoto(
                evidence_ref=str(r["evidence_ref"]),
                mime_type=r["mime_type"],
                payload=bytes(r["payload"]),
            )

    def discard(self, scope: ScopeKey, evidence_ref: str) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM punch_evidence WHERE evidence_ref=%s AND org_id=%s AND worker_id=%s",
                (evidence_ref, scope.org_id, scope.worker_id),
            )
