from __future__ import annotations

from typing import Protocol

from .model import PunchAuditRecord


class AuditSink(Protocol):
    def emit(self, record: PunchAuditRecord) -> None:
        raise NotImplementedError
