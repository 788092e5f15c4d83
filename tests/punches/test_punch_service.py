from __future__ import annotations

from datetime import date

import pytest
from conftest import HERE, SCOPE, FailingAudit, new_punch, utc

from src.punch_clock.punch_clock.core.enums import AuditAction, PunchType
from src.punch_clock.punch_clock.core.exceptions import (
    LimitExceeded,
    MalformedDayData,
    NotFoundError,
    SequenceComplete,
    StateChanged,
    UnexpectedType,
    ValidationError,
)
from src.punch_clock.punch_clock.punches.model import ScopeKey
from src.punch_clock.punch_clock.punches.service import PhotoUpload, PunchService

DAY = [
    (PunchType.IN, utc(2026, 2, 10, 8)),
    (PunchType.BREAK_START, utc(2026, 2, 10, 12)),
    (PunchType.BREAK_END, utc(2026, 2, 10, 13)),
    (PunchType.OUT, utc(2026, 2, 10, 17)),
]


def punch_full_day(service, scope=SCOPE):
    return [service.submit(scope, t, location=HERE, now=at) for t, at in DAY]


def test_full_day_gets_ordinals_one_to_four(punch_service):
    results = punch_full_day(punch_service)

    assert [r.punch.ordinal for r in results] == [1, 2, 3, 4]
    assert [r.punch.punch_type for r in results] == [t for t, _ in DAY]

    today = results[-1].today
    assert today.is_complete is True
    assert today.next_expected is None
    assert today.summary.worked_seconds == 8 * 3600
    assert today.summary.break_seconds == 3600
    assert today.summary.balance_seconds == 0
    assert today.last_punch == results[-1].punch


def test_fifth_punch_is_over_the_limit(punch_service):
    punch_full_day(punch_service)

    with pytest.raises(LimitExceeded):
        punch_service.submit(SCOPE, PunchType.IN, location=HERE, now=utc(2026, 2, 10, 18))


def test_short_day_closed_by_out(punch_service, punches_repo):
    punches_repo.add(new_punch(PunchType.IN, 1, utc(2026, 2, 10, 8)))
    punches_repo.add(new_punch(PunchType.OUT, 2, utc(2026, 2, 10, 12)))

    with pytest.raises(SequenceComplete):
        punch_service.submit(SCOPE, PunchType.IN, location=HERE, now=utc(2026, 2, 10, 13))


def test_wrong_type_reports_what_was_expected(punch_service):
    punch_service.submit(SCOPE, PunchType.IN, location=HERE, now=utc(2026, 2, 10, 8))

    with pytest.raises(UnexpectedType) as exc:
        punch_service.submit(SCOPE, PunchType.OUT, location=HERE, now=utc(2026, 2, 10, 9))
    assert exc.value.expected == PunchType.BREAK_START
    assert exc.value.submitted == PunchType.OUT


def test_first_punch_of_the_day_must_be_in(punch_service, punches_repo):
    with pytest.raises(UnexpectedType) as exc:
        punch_service.submit(SCOPE, PunchType.BREAK_START, location=HERE, now=utc(2026, 2, 10, 8))
    assert exc.value.expected == PunchType.IN
    assert punches_repo.find_for_day(SCOPE, date(2026, 2, 10)) == []


def test_rejected_punch_stores_nothing(punch_service, punches_repo, evidence, audit):
    punch_service.submit(SCOPE, PunchType.IN, location=HERE, now=utc(2026, 2, 10, 8))

    with pytest.raises(UnexpectedType):
        punch_service.submit(
            SCOPE,
            PunchType.IN,
            location=HERE,
            photo=PhotoUpload(mime_type="image/png", payload=b"png"),
            now=utc(2026, 2, 10, 9),
        )
    assert len(punches_repo.find_for_day(SCOPE, date(2026, 2, 10))) == 1
    assert evidence.load(SCOPE, "ev1") is None
    assert len(audit.records) == 1


def test_losing_a_race_raises_state_changed(punch_service, punches_repo):
    punches_repo.racer = new_punch(PunchType.IN, 1, utc(2026, 2, 10, 7, 59, 59))

    with pytest.raises(StateChanged) as exc:
        punch_service.submit(SCOPE, PunchType.IN, location=HERE, now=utc(2026, 2, 10, 8))

    assert isinstance(exc.value, UnexpectedType)
    assert exc.value.retryable is True
    assert exc.value.expected == PunchType.BREAK_START
    assert [p.punch_type for p in punches_repo.find_for_day(SCOPE, date(2026, 2, 10))] == [PunchType.IN]


def test_punch_must_be_after_the_previous_one(punch_service):
    punch_service.submit(SCOPE, PunchType.IN, location=HERE, now=utc(2026, 2, 10, 8))

    with pytest.raises(ValidationError):
        punch_service.submit(SCOPE, PunchType.BREAK_START, location=HERE, now=utc(2026, 2, 10, 8))


def test_accepted_punch_is_truncated_to_milliseconds(punch_service):
    result = punch_service.submit(SCOPE, PunchType.IN, location=HERE, now=utc(2026, 2, 10, 8, 0, 0, 123456))

    assert result.punch.occurred_at == utc(2026, 2, 10, 8, 0, 0, 123000)


def test_audit_record_for_accepted_punch(punch_service, audit):
    result = punch_service.submit(
        SCOPE,
        PunchType.IN,
        location=HERE,
        photo=PhotoUpload(mime_type="image/png", payload=b"png"),
        now=utc(2026, 2, 10, 8),
    )

    [record] = audit.records
    assert record.action == AuditAction.PUNCH_CREATED
    assert record.scope == SCOPE
    assert record.punch_id == result.punch.punch_id
    assert record.punch_type == PunchType.IN
    assert record.ordinal == 1
    assert record.has_evidence is True
    assert record.metadata()["gps"] == {"lat": HERE.latitude, "lng": HERE.longitude, "accuracyM": HERE.accuracy_m}


def test_audit_failure_does_not_lose_the_punch(punches_repo, policies, evidence):
    service = PunchService(punches_repo, policies, evidence, FailingAudit())

    result = service.submit(SCOPE, PunchType.IN, location=HERE, now=utc(2026, 2, 10, 8))

    assert result.punch.ordinal == 1
    assert punches_repo.get_by_id(SCOPE, result.punch.punch_id) == result.punch


def test_punch_belongs_to_the_local_day(punch_service, punches_repo):
    scope = ScopeKey(org_id="org-br", worker_id="worker-9")

    # 22:30 on the 10th in Recife
    result = punch_service.submit(scope, PunchType.IN, location=HERE, now=utc(2026, 2, 11, 1, 30))

    assert punches_repo.work_date_of(result.punch.punch_id) == date(2026, 2, 10)
    assert result.today.window.day == date(2026, 2, 10)
    assert result.today.window.start == utc(2026, 2, 10, 3)


def test_get_today_counts_open_day_up_to_now(punch_service):
    punch_service.submit(SCOPE, PunchType.IN, location=HERE, now=utc(2026, 2, 10, 8))

    view = punch_service.get_today(SCOPE, now=utc(2026, 2, 10, 10))

    assert view.summary.worked_seconds == 2 * 3600
    assert view.next_expected == PunchType.BREAK_START
    assert view.is_complete is False


def test_get_today_of_empty_day(punch_service):
    view = punch_service.get_today(SCOPE, now=utc(2026, 2, 10, 10))

    assert view.punches == []
    assert view.last_punch is None
    assert view.next_expected == PunchType.IN
    assert view.summary.balance_seconds == -28800


def test_malformed_day_is_still_readable_but_blocks_punching(punch_service, punches_repo):
    punches_repo.add(new_punch(PunchType.IN, 1, utc(2026, 2, 10, 8)))
    punches_repo.add(new_punch(PunchType.IN, 2, utc(2026, 2, 10, 9)))

    view = punch_service.get_today(SCOPE, now=utc(2026, 2, 10, 10))
    assert len(view.punches) == 2

    with pytest.raises(MalformedDayData):
        punch_service.submit(SCOPE, PunchType.BREAK_START, location=HERE, now=utc(2026, 2, 10, 10))


def test_list_period_is_ordered_and_bounded(punch_service, punches_repo):
    punches_repo.add(new_punch(PunchType.IN, 1, utc(2026, 2, 11, 8)))
    punches_repo.add(new_punch(PunchType.IN, 1, utc(2026, 2, 10, 8)))
    punches_repo.add(new_punch(PunchType.OUT, 2, utc(2026, 2, 10, 17)))
    punches_repo.add(new_punch(PunchType.IN, 1, utc(2026, 2, 12, 0)))
    punches_repo.add(new_punch(PunchType.IN, 1, utc(2026, 2, 10, 9), scope=ScopeKey("org-1", "someone-else")))

    view = punch_service.list_period(SCOPE, date(2026, 2, 10), date(2026, 2, 11))

    assert [p.occurred_at for p in view.punches] == [
        utc(2026, 2, 10, 8),
        utc(2026, 2, 10, 17),
        utc(2026, 2, 11, 8),
    ]


def test_list_period_rejects_reversed_range(punch_service):
    with pytest.raises(ValidationError):
        punch_service.list_period(SCOPE, date(2026, 2, 11), date(2026, 2, 10))


def test_day_with_evidence(punch_service):
    punch_service.submit(
        SCOPE,
        PunchType.IN,
        location=HERE,
        photo=PhotoUpload(mime_type="image/png", payload=b"png"),
        now=utc(2026, 2, 10, 8),
    )
    punch_service.submit(SCOPE, PunchType.BREAK_START, location=HERE, now=utc(2026, 2, 10, 12))

    view = punch_service.get_day_with_evidence(SCOPE, date(2026, 2, 10))

    assert [p.has_evidence for p in view.punches] == [True, False]
    assert view.window.end == utc(2026, 2, 10, 23, 59, 59, 999000)


def test_evidence_is_scoped_to_the_worker(punch_service):
    result = punch_service.submit(
        SCOPE,
        PunchType.IN,
        location=HERE,
        photo=PhotoUpload(mime_type="image/png", payload=b"png-bytes"),
        now=utc(2026, 2, 10, 8),
    )

    photo = punch_service.get_evidence(SCOPE, result.punch.punch_id)
    assert photo.payload == b"png-bytes"
    assert photo.mime_type == "image/png"

    with pytest.raises(NotFoundError):
        punch_service.get_evidence(ScopeKey("org-1", "worker-2"), result.punch.punch_id)


def test_evidence_of_punch_without_photo(punch_service):
    result = punch_service.submit(SCOPE, PunchType.IN, location=HERE, now=utc(2026, 2, 10, 8))

    with pytest.raises(NotFoundError):
        punch_service.get_evidence(SCOPE, result.punch.punch_id)
    with pytest.raises(NotFoundError):
        punch_service.get_evidence(SCOPE, "missing")


def test_to_ui_uses_local_time_and_label(punch_service):
    result = punch_service.submit(SCOPE, PunchType.IN, location=HERE, now=utc(2026, 2, 10, 11, 5, 30))

    item = punch_service.to_ui(result.punch, "America/Maceio")

    assert item["label"] == "Entrada"
    assert item["localTime"] == "08:05:30"
    assert item["ordinal"] == 1
    assert item["type"] == "IN"


def test_lost_race_drops_the_uploaded_photo(punch_service, punches_repo, evidence):
    punches_repo.racer = new_punch(PunchType.IN, 1, utc(2026, 2, 10, 7, 59, 59))

    with pytest.raises(StateChanged):
        punch_service.submit(
            SCOPE,
            PunchType.IN,
            location=HERE,
            photo=PhotoUpload(mime_type="image/png", payload=b"png"),
            now=utc(2026, 2, 10, 8),
        )

    assert evidence.load(SCOPE, "ev1") is None


class BrokenInsert:
    def __init__(self, inner):
        self._inner = inner

    def __getattr__(self, name):
        return getattr(self._inner, name)

    def insert(self, punch):
        raise ConnectionError("database went away")


def test_failed_insert_drops_the_photo_and_propagates(punches_repo, policies, evidence, audit):
    service = PunchService(BrokenInsert(punches_repo), policies, evidence, audit)

    with pytest.raises(ConnectionError):
        service.submit(
            SCOPE,
            PunchType.IN,
            location=HERE,
            photo=PhotoUpload(mime_type="image/png", payload=b"png"),
            now=utc(2026, 2, 10, 8),
        )

    assert evidence.load(SCOPE, "ev1") is None
    assert audit.records == []


def test_race_is_reported_even_if_the_photo_cannot_be_dropped(punches_repo, policies, evidence, audit, monkeypatch):
    def refuse(scope, evidence_ref):
        raise RuntimeError("evidence store down")

    monkeypatch.setattr(evidence, "discard", refuse)
    service = PunchService(punches_repo, policies, evidence, audit)
    punches_repo.racer = new_punch(PunchType.IN, 1, utc(2026, 2, 10, 7, 59, 59))

    with pytest.raises(StateChanged):
        service.submit(
            SCOPE,
            PunchType.IN,
            location=HERE,
            photo=PhotoUpload(mime_type="image/png", payload=b"png"),
            now=utc(2026, 2, 10, 8),
        )
