from dataclasses import replace
from datetime import date, datetime, timedelta, timezone
from typing import Optional
from flask import current_app
from sqlalchemy import select, or_, and_

from .. import db
from ..models import AcademicCalendarEvent, Course, Enrollment, Semester, Staff, Student, TimetableEntry
from . import recurrence
from .events import (
    AdminEvent,
    LecturerScope,
    SemesterSpan,
    StudentScope,
    TimetableOccurrence,
    Unscoped,
    UserScope,
    series_key,
)

KEY_DATE_TYPES = ("exam", "registration", "holiday")

# occurrence id = series key of the parent * factor + epoch seconds of the occurrence
OCCURRENCE_ID_FACTOR = 10 ** 10
_EPOCH = datetime(1970, 1, 1)


def to_naive_utc(value):
    """Datetimes are compared naive-in-UTC throughout the calendar."""
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def occurrence_id(parent_id, occurrence_start):
    seconds = int((occurrence_start - _EPOCH) // timedelta(seconds=1))
    return series_key(parent_id) * OCCURRENCE_ID_FACTOR + seconds


def _within(value, start, end):
    return start <= value <= end


# ==========================================
# SEMESTERS
# ==========================================

def get_all_semesters():
    """All semesters, newest first."""
    return db.session.execute(
        select(Semester).order_by(Semester.start_date.desc())
    ).scalars().all()


def get_current_semester(today=None):
    """The semester whose span contains ``today`` (defaults to the current date), or None."""
    today = today or date.today()
    return db.session.execute(
        select(Semester)
        .filter(Semester.start_date <= today, Semester.end_date >= today)
        .order_by(Semester.start_date.desc())
    ).scalars().first()


def get_semester_by_id(semester_id):
    return db.session.get(Semester, semester_id)


def get_semester_events(semester_id):
    return db.session.execute(
        select(AcademicCalendarEvent)
        .filter_by(semester_id_fk=semester_id)
        .order_by(AcademicCalendarEvent.start_date.asc())
    ).scalars().all()


def get_key_academic_dates(semester_id):
    """Exams, registration windows and holidays of one semester."""
    return db.session.execute(
        select(AcademicCalendarEvent)
        .filter(
            AcademicCalendarEvent.semester_id_fk == semester_id,
            AcademicCalendarEvent.event_type.in_(KEY_DATE_TYPES),
        )
        .order_by(AcademicCalendarEvent.start_date.asc())
    ).scalars().all()


def resolve_semesters(start, end):
    """
    Semesters whose span intersects [start, end].
    Three cases: the span starts inside the range, ends inside it, or contains it.
    """
    start_day, end_day = start.date(), end.date()
    return db.session.execute(
        select(Semester)
        .filter(or_(
            Semester.start_date.between(start_day, end_day),
            Semester.end_date.between(start_day, end_day),
            and_(Semester.start_date <= start_day, Semester.end_date >= end_day),
        ))
        .order_by(Semester.start_date.asc(), Semester.semester_id.asc())
    ).scalars().all()


# ==========================================
# TIMETABLE
# ==========================================

def resolve_user_scope(user_id):
    """Decide once whether ``user_id`` is a student, a lecturer or neither."""
    if user_id is None:
        return Unscoped()

    student = db.session.execute(select(Student).filter_by(user_id_fk=user_id)).scalars().first()
    if student:
        return StudentScope(student.student_id)

    lecturer = db.session.execute(select(Staff).filter_by(user_id_fk=user_id)).scalars().first()
    if lecturer:
        return LecturerScope(lecturer.staff_id)

    return Unscoped(user_id=user_id)


def get_timetable_events(semester_id, user_id=None, scope: Optional[UserScope] = None):
    """
    One weekly course event per timetable entry of the semester.

    Students only see courses they are enrolled in for that semester,
    lecturers only the courses assigned to them.
    """
    if scope is None:
        scope = resolve_user_scope(user_id)

    query = (
        select(TimetableEntry, Course, Semester)
        .join(Course, Course.course_id == TimetableEntry.course_id_fk)
        .join(Semester, Semester.semester_id == TimetableEntry.semester_id_fk)
        .filter(TimetableEntry.semester_id_fk == semester_id)
    )

    if isinstance(scope, StudentScope):
        query = query.join(Enrollment, and_(
            Enrollment.course_id_fk == TimetableEntry.course_id_fk,
            Enrollment.semester_id_fk == TimetableEntry.semester_id_fk,
        )).filter(Enrollment.student_id_fk == scope.student_id)
    elif isinstance(scope, LecturerScope):
        query = query.filter(Course.lecturer_id_fk == scope.staff_id)
    elif isinstance(scope, Unscoped):
        if scope.user_id is not None:
            policy = current_app.config.get("CALENDAR_UNSCOPED_USER_POLICY", "all")
            current_app.logger.info(
                "User %s is neither student nor staff; applying '%s' timetable policy", scope.user_id, policy
            )
            if policy == "none":
                return []
    else:
        raise TypeError(f"Unknown user scope: {scope!r}")

    rows = db.session.execute(query.order_by(TimetableEntry.timetable_id.asc())).all()

    events = []
    for entry, course, semester in rows:
        if entry.end_time < entry.start_time:
            current_app.logger.warning(
                "Skipping timetable entry %s: ends at %s before it starts at %s",
                entry.timetable_id, entry.end_time, entry.start_time,
            )
            continue
        events.append(TimetableOccurrence(entry, course, semester).to_calendar_event())
    return events


# ==========================================
# EXPANSION & AGGREGATION
# ==========================================

def expand_recurring_events(events, start, end):
    """
    Materialize recurring events inside [start, end].

    Non-recurring events are kept only when they start inside the window.
    Every occurrence keeps the parent's duration and gets its own id.
    A rule that fails to parse or expand degrades its event to a single
    instance. Each rule yields at most CALENDAR_MAX_OCCURRENCES occurrences.
    """
    expanded = []
    limit = current_app.config.get("CALENDAR_MAX_OCCURRENCES", recurrence.DEFAULT_MAX_OCCURRENCES)

    for event in events:
        if not (event.is_recurring and (event.recurring_pattern or "").strip()):
            if _within(event.start, start, end):
                expanded.append(event)
            continue

        try:
            spec = recurrence.parse(event.recurring_pattern, event.start)
            occurrences = recurrence.occurrences_between(spec, start, end, limit=limit)
        except recurrence.RecurrenceRuleError as e:
            current_app.logger.warning("Error expanding recurrence rule of %s event %s: %s", event.source, event.id, e)
            if _within(event.start, start, end):
                expanded.append(event)
            continue

        duration = event.end - event.start
        for occurrence in occurrences:
            expanded.append(replace(
                event,
                id=occurrence_id(event.id, occurrence),
                start=occurrence,
                end=occurrence + duration,
            ))

    return expanded


def get_events_for_range(start_date, end_date, user_id=None):
    """
    Every calendar event overlapping [start_date, end_date], sorted by start.

    Merges administrative calendar entries, the timetable (scoped to
    ``user_id`` when given) and the semesters themselves, then expands
    recurrence rules into concrete occurrences.
    """
    start, end = to_naive_utc(start_date), to_naive_utc(end_date)

    semesters = resolve_semesters(start, end)
    if not semesters:
        return []

    semester_ids = [s.semester_id for s in semesters]
    rows = db.session.execute(
        select(AcademicCalendarEvent)
        .filter(AcademicCalendarEvent.semester_id_fk.in_(semester_ids))
        .order_by(AcademicCalendarEvent.start_date.asc())
    ).scalars().all()
    admin_events = [AdminEvent(r).to_calendar_event() for r in rows]

    scope = resolve_user_scope(user_id)
    timetable_events = []
    for semester in semesters:
        timetable_events.extend(get_timetable_events(semester.semester_id, scope=scope))

    semester_events = [
        SemesterSpan(s, start, end, is_first=(i == 0)).to_calendar_event()
        for i, s in enumerate(semesters)
    ]

    all_events = []
    for event in admin_events + timetable_events + semester_events:
        if event.end < event.start:
            current_app.logger.warning("Dropping %s event %s: ends before it starts", event.source, event.id)
            continue
        all_events.append(event)

    expanded = expand_recurring_events(all_events, start, end)

    in_range = [e for e in expanded if _within(e.start, start, end) or _within(e.end, start, end)]
    return sorted(in_range, key=lambda e: (e.start, e.id))
