from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, timezone
from typing import Optional

import pytest

from src.punch_clock.punch_clock.core.enums import PunchType
from src.punch_clock.punch_clock.evidence.model import EvidencePhoto
from src.punch_clock.punch_clock.organizations.model import Organization
from src.punch_clock.punch_clock.organizations.service import WorkPolicyService
from src.punch_clock.punch_clock.punches.model import GeoFix, NewPunch, Punch, ScopeKey
from src.punch_clock.punch_clock.punches.repository import DuplicateOrdinalError
from src.punch_clock.punch_clock.punches.service import PunchService
from src.punch_clock.punch_clock.timesheet.service import TimesheetService

SCOPE = ScopeKey(org_id="org-1", worker_id="worker-1")
HERE = GeoFix(latitude=-9.6498, longitude=-35.7089, accuracy_m=12.0)


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def new_punch(
    punch_type: PunchType,
    ordinal: int,
    occurred_at: datetime,
    *,
    scope: ScopeKey = SCOPE,
    work_date: Optional[date] = None,
    evidence_ref: Optional[str] = None,
) -> NewPunch:
    return NewPunch(
        scope=scope,
        work_date=work_date or occurred_at.date(),
        punch_type=punch_type,
        ordinal=ordinal,
        occurred_at=occurred_at,
        location=HERE,
        evidence_ref=evidence_ref,
    )


class InMemoryPunches:
    def __init__(self):
        self._rows: list[tuple[Punch, date]] = []
        self._id = 0
        # stored right before the next insert, to play the other side of a race
        self.racer: Optional[NewPunch] = None

    def add(self, punch: NewPunch) -> Punch:
        self._id += 1
        stored = Punch(
            punch_id=f"p{self._id}",
            scope=punch.scope,
            punch_type=punch.punch_type,
            ordinal=punch.ordinal,
            occurred_at=punch.occurred_at,
            location=punch.location,
            evidence_ref=punch.evidence_ref,
        )
        self._rows.append((stored, punch.work_date))
        return stored

    def find_for_day(self, scope: ScopeKey, work_date: date):
        rows = [p for p, d in self._rows if p.scope == scope and d == work_date]
        return sorted(rows, key=lambda p: (p.ordinal, p.occurred_at))

    def find_last_for_day(self, scope: ScopeKey, work_date: date):
        rows = self.find_for_day(scope, work_date)
        return rows[-1] if rows else None

    def find_for_range(self, scope: ScopeKey, start: datetime, end: datetime):
        rows = [p for p, _ in self._rows if p.scope == scope and start <= p.occurred_at <= end]
        return sorted(rows, key=lambda p: (p.occurred_at, p.ordinal))

    def get_by_id(self, scope: ScopeKey, punch_id: str):
        for p, _ in self._rows:
            if p.punch_id == punch_id and p.scope == scope:
                return p
        return None

    def insert(self, punch: NewPunch) -> Punch:
        if self.racer is not None:
            racer, self.racer = self.racer, None
            self.insert(racer)
        for p, d in self._rows:
            if p.scope == punch.scope and d == punch.work_date and p.ordinal == punch.ordinal:
                raise DuplicateOrdinalError("duplicate")
        return self.add(punch)

    def list_all_for_backfill(self):
        return sorted((p for p, _ in self._rows), key=lambda p: (p.occurred_at, p.ordinal))

    def update_ordinals(self, changes):
        by_id = {punch_id: (work_date, ordinal) for punch_id, work_date, ordinal in changes}
        changed = 0
        for i, (p, _) in enumerate(self._rows):
            if p.punch_id in by_id:
                work_date, ordinal = by_id[p.punch_id]
                self._rows[i] = (replace(p, ordinal=ordinal), work_date)
                changed += 1
        return changed

    def work_date_of(self, punch_id: str) -> date:
        return next(d for p, d in self._rows if p.punch_id == punch_id)


class InMemoryOrganizations:
    def __init__(self, *orgs: Organization):
        self._orgs = {o.org_id: o for o in orgs}

    def get_by_id(self, org_id: str):
        return self._orgs.get(org_id)


class InMemoryEvidence:
    def __init__(self):
        self._photos: dict[str, tuple[ScopeKey, EvidencePhoto]] = {}
        self._saved = 0

    def save(self, scope: ScopeKey, *, mime_type: str, payload: bytes) -> str:
        self._saved += 1
        ref = f"ev{self._saved}"
        self._photos[ref] = (scope, EvidencePhoto(evidence_ref=ref, mime_type=mime_type, payload=payload))
        return ref

    def load(self, scope: ScopeKey, evidence_ref: str):
        item = self._photos.get(evidence_ref)
        if not item or item[0] != scope:
            return None
        return item[1]

    def discard(self, scope: ScopeKey, evidence_ref: str) -> None:
        item = self._photos.get(evidence_ref)
        if item and item[0] == scope:
            del self._photos[evidence_ref]


class RecordingAudit:
    def __init__(self):
        self.records = []

    def emit(self, record) -> None:
        self.records.append(record)


class FailingAudit:
    def emit(self, record) -> None:
        raise RuntimeError("audit store down")


@pytest.fixture
def punches_repo():
    return InMemoryPunches()


@pytest.fixture
def organizations():
    return InMemoryOrganizations(
        Organization(org_id="org-1", name="UTC Org", timezone="UTC", daily_target_seconds=28800),
        Organization(org_id="org-br", name="Recife", timezone="America/Recife", daily_target_seconds=None),
    )


@pytest.fixture
def policies(organizations):
    return WorkPolicyService(organizations, default_timezone="UTC", default_daily_target_seconds=28800)


@pytest.fixture
def evidence():
    return InMemoryEvidence()


@pytest.fixture
def audit():
    return RecordingAudit()


@pytest.fixture
def punch_service(punches_repo, policies, evidence, audit):
    return PunchService(punches_repo, policies, evidence, audit)


@pytest.fixture
def timesheet_service(punches_repo, policies):
    return TimesheetService(punches_repo, policies)
