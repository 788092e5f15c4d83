from __future__ import annotations

import csv
import io
import logging
from functools import wraps

from flask import Flask, current_app, jsonify, request, session
from werkzeug.exceptions import HTTPException

from ..common.datetime_utils import parse_iso_date
from ..common.validators import decode_photo, require_accuracy, require_coordinate, require_punch_type
from ..core.constants import DEFAULT_MAX_PHOTO_BYTES
from ..core.exceptions import AuthorizationError, NotFoundError, PunchRejected, ValidationError
from .model import DaySummary, GeoFix, Punch, ScopeKey
from .service import PhotoUpload

logger = logging.getLogger(__name__)


def _summary_json(s: DaySummary) -> dict:
    return {
        "workedSeconds": s.worked_seconds,
        "breakSeconds": s.break_seconds,
        "balanceSeconds": s.balance_seconds,
        "dailyTargetSeconds": s.daily_target_seconds,
    }


def _punch_json(p: Punch) -> dict:
    return {
        "id": p.punch_id,
        "type": p.punch_type.value,
        "ordinal": p.ordinal,
        "occurredAt": p.occurred_at.isoformat(),
    }


def _today_json(view) -> dict:
    return {
        "date": view.window.day.strftime("%Y-%m-%d"),
        "dayStart": view.window.start.isoformat(),
        "entries": [_punch_json(p) for p in view.punches],
        "lastEntry": _punch_json(view.last_punch) if view.last_punch else None,
        "nextExpected": view.next_expected.value if view.next_expected else None,
        "isComplete": view.is_complete,
        "summary": _summary_json(view.summary),
    }


def register(app: Flask, container) -> None:
    def scope_required(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            org_id = session.get("org_id")
            worker_id = session.get("worker_id")
            if not org_id or not worker_id:
                raise AuthorizationError("Not signed in")
            return view(ScopeKey(org_id=str(org_id), worker_id=str(worker_id)), *args, **kwargs)

        return wrapper

    @app.errorhandler(ValidationError)
    def _validation_error(e: ValidationError):
        return jsonify({"success": False, "message": str(e)}), 400

    @app.errorhandler(AuthorizationError)
    def _authorization_error(e: AuthorizationError):
        return jsonify({"success": False, "message": str(e)}), 401

    @app.errorhandler(NotFoundError)
    def _not_found(e: NotFoundError):
        return jsonify({"success": False, "message": str(e)}), 404

    @app.errorhandler(PunchRejected)
    def _punch_rejected(e: PunchRejected):
        expected = getattr(e, "expected", None)
        return (
            jsonify(
                {
                    "success": False,
                    "code": e.code,
                    "message": str(e),
                    "retryable": e.retryable,
                    "expected": expected.value if expected else None,
                }
            ),
            409,
        )

    def _parse_period():
        from_s = request.args.get("from")
        to_s = request.args.get("to")
        if not from_s or not to_s:
            raise ValidationError("Missing from/to parameters (YYYY-MM-DD)")
        return parse_iso_date(from_s), parse_iso_date(to_s)

    @app.route("/api/punches", methods=["POST"], endpoint="submit_punch")
    @scope_required
    def submit_punch(scope: ScopeKey):
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            raise ValidationError("JSON body required")

        punch_type = require_punch_type(data.get("type"))
        location = GeoFix(
            latitude=require_coordinate(data.get("latitude"), "latitude", limit=90),
            longitude=require_coordinate(data.get("longitude"), "longitude", limit=180),
            accuracy_m=require_accuracy(data.get("accuracyM")),
        )
        payload = decode_photo(
            data.get("photoBase64"),
            data.get("photoMime"),
            max_bytes=int(current_app.config.get("MAX_PHOTO_BYTES", DEFAULT_MAX_PHOTO_BYTES)),
        )

        result = container.punch_service.submit(
            scope,
            punch_type,
            location=location,
            photo=PhotoUpload(mime_type=data["photoMime"].strip().lower(), payload=payload),
        )
        return (
            jsonify(
                {
                    "success": True,
                    "entry": _punch_json(result.punch),
                    "today": _today_json(result.today),
                }
            ),
            201,
        )

    @app.route("/api/punches/today", methods=["GET"], endpoint="punches_today")
    @scope_required
    def punches_today(scope: ScopeKey):
        return jsonify(_today_json(container.punch_service.get_today(scope)))

    @app.route("/api/punches", methods=["GET"], endpoint="punches_period")
    @scope_required
    def punches_period(scope: ScopeKey):
        first_day, last_day = _parse_period()
        view = container.punch_service.list_period(scope, first_day, last_day)
        return jsonify(
            {
                "from": first_day.strftime("%Y-%m-%d"),
                "to": last_day.strftime("%Y-%m-%d"),
                "items": [_punch_json(p) for p in view.punches],
            }
        )

    @app.route("/api/punches/<day>", methods=["GET"], endpoint="punches_day")
    @scope_required
    def punches_day(scope: ScopeKey, day: str):
        work_date = parse_iso_date(day)
        view = container.punch_service.get_day_with_evidence(scope, work_date)
        tz_name = container.work_policy_service.policy_for(scope.org_id).timezone

        items = []
        for p in view.punches:
            item = container.punch_service.to_ui(p, tz_name)
            item.update(
                {
                    "latitude": p.location.latitude,
                    "longitude": p.location.longitude,
                    "accuracyM": p.location.accuracy_m,
                    "hasPhoto": p.has_evidence,
                    "photoId": p.punch_id if p.has_evidence else None,
                }
            )
            items.append(item)
        return jsonify({"date": work_date.strftime("%Y-%m-%d"), "items": items})

    @app.route("/api/punches/<punch_id>/photo", methods=["GET"], endpoint="punch_photo")
    @scope_required
    def punch_photo(scope: ScopeKey, punch_id: str):
        photo = container.punch_service.get_evidence(scope, punch_id)
        return app.response_class(photo.payload, mimetype=photo.mime_type or "image/jpeg")

    @app.route("/api/timesheet", methods=["GET"], endpoint="timesheet")
    @scope_required
    def timesheet(scope: ScopeKey):
        start, end = _parse_period()
        data = container.timesheet_service.build_timesheet(scope, start=start, end=end)

        if request.args.get("format") == "csv":
            filename = f"timesheet_{start.strftime('%Y%m%d')}_{end.strftime('%Y%m%d')}.csv"
            return _write_timesheet_csv(data=data, filename=filename)
        return jsonify({"rows": data.rows, "summary": data.summary})

    def _write_timesheet_csv(*, data, filename: str):
        out = io.StringIO()
        writer = csv.DictWriter(
            out,
            fieldnames=[
                "work_date",
                "check_in",
                "break_start",
                "break_end",
                "check_out",
                "punches",
                "worked_hours",
                "break_hours",
                "balance",
                "status",
            ],
        )
        writer.writeheader()
        for row in data.rows:
            writer.writerow(row)

        csv_bytes = out.getvalue().encode("utf-8-sig")
        return app.response_class(
            csv_bytes,
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )

    @app.errorhandler(Exception)
    def _unexpected(e: Exception):
        if isinstance(e, HTTPException):
            return e
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        return jsonify({"success": False, "message": "Internal server error"}), 500
