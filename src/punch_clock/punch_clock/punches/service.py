from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Sequence

from ..audit.model import PunchAuditRecord
from ..audit.sink import AuditSink
from ..common.datetime_utils import as_utc, get_zone, now_utc
from ..core.enums import PunchType
from ..core.exceptions import (
    NotFoundError,
    PunchRejected,
    SequenceComplete,
    StateChanged,
    ValidationError,
)
from ..evidence.model import EvidencePhoto
from ..evidence.repository import EvidenceStore
from ..organizations.model import WorkPolicy
from ..organizations.service import WorkPolicyService
from ..timesheet.calculator.base import DayCalculator
from ..timesheet.calculator.standard_calculator import StandardDayCalculator
from .day_window import day_window, local_date, period_window, today_window
from .model import (
    DayEvidenceView,
    GeoFix,
    NewPunch,
    PeriodView,
    Punch,
    ScopeKey,
    SubmittedPunch,
    TodayView,
)
from .repository import DuplicateOrdinalError, PunchRepository
from .sequencer import find_malformation, next_type, propose_next

logger = logging.getLogger(__name__)

PUNCH_LABELS = {
    PunchType.IN: "Entrada",
    PunchType.BREAK_START: "Saída almoço",
    PunchType.BREAK_END: "Volta almoço",
    PunchType.OUT: "Saída",
}


@dataclass(frozen=True)
class PhotoUpload:
    mime_type: str
    payload: bytes


def _truncate_to_millis(value: datetime) -> datetime:
    return value.replace(microsecond=(value.microsecond // 1000) * 1000)


class PunchService:
    def __init__(
        self,
        punches: PunchRepository,
        policies: WorkPolicyService,
        evidence: EvidenceStore,
        audit: AuditSink,
        *,
        calculator: Optional[DayCalculator] = None,
    ):
        self._punches = punches
        self._policies = policies
        self._evidence = evidence
        self._audit = audit
        self._calculator = calculator or StandardDayCalculator()

    def submit(
        self,
        scope: ScopeKey,
        punch_type: PunchType,
        *,
        location: GeoFix,
        photo: Optional[PhotoUpload] = None,
        now: Optional[datetime] = None,
    ) -> SubmittedPunch:
        """Accept the next punch of the worker's current day, or raise a PunchRejected subclass."""

        now = _truncate_to_millis(as_utc(now or now_utc()))
        policy = self._policies.policy_for(scope.org_id)
        work_date = local_date(now, policy.timezone)

        day = list(self._punches.find_for_day(scope, work_date))
        try:
            ordinal = propose_next(day, punch_type)
        except PunchRejected as e:
            logger.info(
                "Punch rejected: %s worker=%s org=%s day=%s submitted=%s",
                e.code,
                scope.worker_id,
                scope.org_id,
                work_date,
                punch_type.value,
            )
            raise

        if day and day[-1].occurred_at >= now:
            raise ValidationError("Punch time must be after the previous punch of the day")

        evidence_ref = None
        if photo is not None:
            evidence_ref = self._evidence.save(scope, mime_type=photo.mime_type, payload=photo.payload)

        try:
            punch = self._punches.insert(
                NewPunch(
                    scope=scope,
                    work_date=work_date,
                    punch_type=punch_type,
                    ordinal=ordinal,
                    occurred_at=now,
                    location=location,
                    evidence_ref=evidence_ref,
                )
            )
        except DuplicateOrdinalError:
            logger.warning(
                "Concurrent punch for worker=%s org=%s day=%s ordinal=%s",
                scope.worker_id,
                scope.org_id,
                work_date,
                ordinal,
            )
            self._discard_evidence(scope, evidence_ref)
            raise StateChanged(self._expected_after_race(scope, work_date), punch_type)
        except Exception:
            self._discard_evidence(scope, evidence_ref)
            raise

        logger.info(
            "Punch accepted: id=%s worker=%s org=%s type=%s ordinal=%s",
            punch.punch_id,
            scope.worker_id,
            scope.org_id,
            punch.punch_type.value,
            punch.ordinal,
        )
        self._emit_audit(punch)

        today = self._build_today(today_window(now, policy.timezone), [*day, punch], now=now, policy=policy)
        return SubmittedPunch(punch=punch, today=today)

    def get_today(self, scope: ScopeKey, *, now: Optional[datetime] = None) -> TodayView:
        now = as_utc(now or now_utc())
        policy = self._policies.policy_for(scope.org_id)
        window = today_window(now, policy.timezone)
        day = list(self._punches.find_for_day(scope, window.day))
        return self._build_today(window, day, now=now, policy=policy)

    def list_period(self, scope: ScopeKey, first_day: date, last_day: date) -> PeriodView:
        policy = self._policies.policy_for(scope.org_id)
        window = period_window(first_day, last_day, policy.timezone)
        rows = self._punches.find_for_range(scope, window.start, window.end)
        punches = sorted(
            (p for p in rows if window.contains(p.occurred_at)),
            key=lambda p: (p.occurred_at, p.ordinal),
        )
        return PeriodView(window=window, punches=punches)

    def get_day_with_evidence(self, scope: ScopeKey, day: date) -> DayEvidenceView:
        policy = self._policies.policy_for(scope.org_id)
        punches = sorted(self._punches.find_for_day(scope, day), key=lambda p: p.ordinal)
        return DayEvidenceView(window=day_window(day, policy.timezone), punches=punches)

    def get_evidence(self, scope: ScopeKey, punch_id: str) -> EvidencePhoto:
        punch = self._punches.get_by_id(scope, punch_id)
        if not punch:
            raise NotFoundError("Punch not found")
        if not punch.evidence_ref:
            raise NotFoundError("This punch has no photo")

        photo = self._evidence.load(scope, punch.evidence_ref)
        if not photo:
            raise NotFoundError("Photo not found")
        return photo

    def to_ui(self, punch: Punch, tz_name: str) -> dict:
        local = punch.occurred_at.astimezone(get_zone(tz_name))
        return {
            "id": punch.punch_id,
            "type": punch.punch_type.value,
            "label": PUNCH_LABELS.get(punch.punch_type, punch.punch_type.value),
            "ordinal": punch.ordinal,
            "occurredAt": punch.occurred_at.isoformat(),
            "localTime": local.strftime("%H:%M:%S"),
        }

    def _build_today(self, window, day: Sequence[Punch], *, now: datetime, policy: WorkPolicy) -> TodayView:
        problem = find_malformation(day)
        if problem:
            logger.warning("Malformed punch day %s for %s: %s", window.day, day[0].scope.worker_id, problem)

        summary = self._calculator.summarize(day, now=now, daily_target_seconds=policy.daily_target_seconds)
        return TodayView(
            window=window,
            punches=list(day),
            last_punch=day[-1] if day else None,
            summary=summary,
        )

    def _expected_after_race(self, scope: ScopeKey, work_date: date) -> Optional[PunchType]:
        last = self._punches.find_last_for_day(scope, work_date)
        try:
            return next_type(last.punch_type if last else None)
        except SequenceComplete:
            return None

    def _emit_audit(self, punch: Punch) -> None:
        try:
            self._audit.emit(PunchAuditRecord.for_punch(punch))
        except Exception:
            logger.exception("Audit sink failed for punch %s", punch.punch_id)

    def _discard_evidence(self, scope: ScopeKey, evidence_ref: Optional[str]) -> None:
        if evidence_ref is None:
            return
        try:
            self._evidence.discard(scope, evidence_ref)
        except Exception:
            logger.exception("Could not discard unreferenced evidence %s for worker=%s", evidence_ref, scope.worker_id)
