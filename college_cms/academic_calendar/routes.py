from datetime import date, datetime, time, timedelta
from flask import request, current_app
from flask_login import login_required, current_user

from . import calendar_bp
from .. import cache, limiter
from ..api_utils import api_success, api_error
from ..decorators import role_required, ALL_ROLES
from . import services

SELF_SCOPED_ROLES = ("student", "lecturer")


def _parse_bound(raw, end_of_day=False):
    """
    Parse an ISO date or datetime query value.
    A bare date means the start of that day, or its last second when ``end_of_day``.
    """
    value = (raw or "").strip()
    if not value:
        return None
    if len(value) == 10:
        day = date.fromisoformat(value)
        return datetime.combine(day, time(23, 59, 59) if end_of_day else time.min)
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return services.to_naive_utc(datetime.fromisoformat(value))


def _semester_dict(s):
    return {
        "id": s.semester_id,
        "name": s.name,
        "startDate": s.start_date.isoformat(),
        "endDate": s.end_date.isoformat(),
    }


def _calendar_row_dict(e):
    return {
        "id": e.event_id,
        "semesterId": e.semester_id_fk,
        "title": e.title,
        "description": e.description,
        "startDate": e.start_date.isoformat(),
        "endDate": e.end_date.isoformat(),
        "eventType": e.event_type,
        "location": e.location,
        "isRecurring": bool(e.is_recurring),
        "recurringPattern": e.recurring_pattern,
    }


def _events_rate_limit():
    return current_app.config.get("CALENDAR_EVENTS_RATE_LIMIT", "60 per minute")


@calendar_bp.route("/events", methods=["GET"])
@login_required
@role_required(*ALL_ROLES)
@limiter.limit(_events_rate_limit)
@cache.cached(timeout=60, key_prefix=lambda: f"cal_events_{getattr(current_user, 'user_id', 'anon')}_{request.full_path}")
def events_for_range():
    try:
        start = _parse_bound(request.args.get("start"))
        end = _parse_bound(request.args.get("end"), end_of_day=True)
    except ValueError:
        return api_error("invalid_range", "start and end must be ISO-8601 dates or datetimes", 400)
    if start is None or end is None:
        return api_error("invalid_range", "start and end are required", 400)
    if start > end:
        return api_error("invalid_range", "start must not be after end", 400)
    max_days = current_app.config.get("CALENDAR_MAX_RANGE_DAYS", 400)
    if max_days and (end - start) > timedelta(days=max_days):
        return api_error("invalid_range", f"Range may span at most {max_days} days", 400, maxDays=max_days)

    role = (getattr(current_user, "role", "") or "").strip().lower()
    user_id = None
    if (request.args.get("mine") or "").strip() == "1":
        user_id = current_user.user_id
    elif (request.args.get("user_id") or "").strip():
        try:
            user_id = int(request.args.get("user_id"))
        except ValueError:
            return api_error("invalid_user", "user_id must be an integer", 400)

    # Students and lecturers only look at their own timetable
    if role in SELF_SCOPED_ROLES and user_id is not None and user_id != current_user.user_id:
        return api_error("forbidden", "You can only view your own calendar.", 403)

    events = services.get_events_for_range(start, end, user_id)
    return api_success(
        {"items": [e.to_dict() for e in events]},
        {"start": start.isoformat(), "end": end.isoformat(), "userId": user_id, "count": len(events)},
    )


@calendar_bp.route("/semesters", methods=["GET"])
@login_required
@role_required(*ALL_ROLES)
@cache.cached(timeout=120)
def semesters():
    rows = services.get_all_semesters()
    return api_success({"items": [_semester_dict(s) for s in rows]})


@calendar_bp.route("/semesters/current", methods=["GET"])
@login_required
@role_required(*ALL_ROLES)
def current_semester():
    s = services.get_current_semester()
    if not s:
        return api_error("not_found", "No semester is in session today.", 404)
    return api_success(_semester_dict(s))


@calendar_bp.route("/semesters/<int:semester_id>", methods=["GET"])
@login_required
@role_required(*ALL_ROLES)
def semester_detail(semester_id):
    s = services.get_semester_by_id(semester_id)
    if not s:
        return api_error("not_found", "Semester not found.", 404)
    return api_success(_semester_dict(s))


@calendar_bp.route("/semesters/<int:semester_id>/events", methods=["GET"])
@login_required
@role_required(*ALL_ROLES)
def semester_events(semester_id):
    rows = services.get_semester_events(semester_id)
    return api_success({"items": [_calendar_row_dict(e) for e in rows]})


@calendar_bp.route("/semesters/<int:semester_id>/key-dates", methods=["GET"])
@login_required
@role_required(*ALL_ROLES)
def key_dates(semester_id):
    rows = services.get_key_academic_dates(semester_id)
    return api_success({"items": [_calendar_row_dict(e) for e in rows]})
