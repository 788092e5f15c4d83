from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from ..core.enums import AuditAction, PunchType
from ..punches.model import GeoFix, Punch, ScopeKey


@dataclass(frozen=True)
class PunchAuditRecord:
    """Bản ghi kiểm toán phát ra cho mỗi lần chấm công được chấp nhận."""

    scope: ScopeKey
    punch_id: str
    punch_type: PunchType
    ordinal: int
    occurred_at: datetime
    location: GeoFix
    has_evidence: bool
    action: AuditAction = AuditAction.PUNCH_CREATED

    @classmethod
    def for_punch(cls, punch: Punch) -> "PunchAuditRecord":
        return cls(
            scope=punch.scope,
            punch_id=punch.punch_id,
            punch_type=punch.punch_type,
            ordinal=punch.ordinal,
            occurred_at=punch.occurred_at,
            location=punch.location,
            has_evidence=punch.has_evidence,
        )

    def metadata(self) -> dict:
        return {
            "type": self.punch_type.value,
            "ordinal": self.ordinal,
            "occurredAt": self.occurred_at.isoformat(),
            "gps": {
                "lat": self.location.latitude,
                "lng": self.location.longitude,
                "accuracyM": self.location.accuracy_m,
            },
            "hasEvidence": self.has_evidence,
        }
