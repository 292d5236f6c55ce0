"""
Calendar event shapes.

Three sources feed the academic calendar: administrative calendar entries,
weekly timetable slots and the semesters themselves. Each source projects
itself onto the one CalendarEvent shape returned to callers.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time
from typing import Any, Dict, Optional, Union

from ..models import AcademicCalendarEvent, Course, Semester, TimetableEntry
from . import recurrence

SEMESTER_DAY_END = time(23, 59, 59)

# Calendar rows keep their stored id. Timetable and semester rows are negative,
# with the source in the last digit, so no two sources share an id.
SOURCE_DIGITS = {"calendar": 0, "timetable": 1, "semester": 2}


def row_event_id(source: str, row_id: int) -> int:
    if source == "calendar":
        return row_id
    return -(row_id * 10 + SOURCE_DIGITS[source])


def series_key(event_id: int) -> int:
    """Positive key unique per source row: row id * 10 + source digit."""
    return event_id * 10 if event_id > 0 else -event_id


@dataclass(frozen=True)
class CalendarEvent:
    id: int
    title: str
    start: datetime
    end: datetime
    type: str
    description: Optional[str] = None
    course_code: Optional[str] = None
    location: Optional[str] = None
    is_recurring: bool = False
    recurring_pattern: Optional[str] = None
    # calendar | timetable | semester
    source: str = "calendar"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "type": self.type,
            "courseCode": self.course_code,
            "location": self.location,
            "isRecurring": self.is_recurring,
            "recurringPattern": self.recurring_pattern,
            "source": self.source,
        }


@dataclass(frozen=True)
class AdminEvent:
    row: AcademicCalendarEvent

    def to_calendar_event(self) -> CalendarEvent:
        r = self.row
        return CalendarEvent(
            id=row_event_id("calendar", r.event_id),
            title=r.title,
            description=r.description,
            start=r.start_date,
            end=r.end_date,
            type=(r.event_type or "other").strip().lower(),
            location=r.location,
            is_recurring=bool(r.is_recurring),
            recurring_pattern=r.recurring_pattern,
            source="calendar",
        )


@dataclass(frozen=True)
class TimetableOccurrence:
    """
    The first-week meeting of a timetable slot.

    Anchored on the semester start date; the weekly rule (bounded by the
    semester end) lets the expander regenerate every later week.
    """

    entry: TimetableEntry
    course: Course
    semester: Semester

    def to_calendar_event(self) -> CalendarEvent:
        anchor = self.semester.start_date
        until = datetime.combine(self.semester.end_date, SEMESTER_DAY_END)
        return CalendarEvent(
            id=row_event_id("timetable", self.entry.timetable_id),
            title=self.course.name,
            description=self.course.description,
            start=datetime.combine(anchor, self.entry.start_time),
            end=datetime.combine(anchor, self.entry.end_time),
            type="course",
            course_code=self.course.code,
            location=self.entry.room,
            is_recurring=True,
            recurring_pattern=recurrence.weekly_rule(self.entry.day_of_week, until=until),
            source="timetable",
        )


@dataclass(frozen=True)
class SemesterSpan:
    """
    A semester rendered as a background band, clipped to the requested window.
    """

    semester: Semester
    window_start: datetime
    window_end: datetime
    is_first: bool = False

    def to_calendar_event(self) -> CalendarEvent:
        s = self.semester
        span_start = datetime.combine(s.start_date, time.min)
        span_end = datetime.combine(s.end_date, SEMESTER_DAY_END)
        return CalendarEvent(
            id=row_event_id("semester", s.semester_id),
            title=f"{s.name} Semester",
            description="Semester period" if self.is_first else None,
            start=max(span_start, self.window_start),
            end=min(span_end, self.window_end),
            type="semester",
            is_recurring=False,
            source="semester",
        )


# ==========================================
# WHO IS ASKING
# ==========================================

@dataclass(frozen=True)
class StudentScope:
    student_id: int


@dataclass(frozen=True)
class LecturerScope:
    staff_id: int


@dataclass(frozen=True)
class Unscoped:
    # set when a user id was given but matched neither a student nor a staff record
    user_id: Optional[int] = None


UserScope = Union[StudentScope, LecturerScope, Unscoped]
