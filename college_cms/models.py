from datetime import datetime, timezone
from . import db

def utc_now():
    return datetime.now(timezone.utc)

from flask_login import UserMixin

# ==========================================
# USERS & STAFF
# ==========================================

class User(UserMixin, db.Model):
    __tablename__ = "users"
    user_id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False)
    password_hash = db.Column(db.String(256))
    role = db.Column(db.String(32), default="student")  # admin, registrar, hod, bursar, lecturer, student
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=utc_now)

    def get_id(self):
        return str(self.user_id)


class Department(db.Model):
    __tablename__ = "departments"
    department_id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False, unique=True)


class Staff(db.Model):
    __tablename__ = "staff"
    staff_id = db.Column(db.Integer, primary_key=True)
    user_id_fk = db.Column(db.Integer, db.ForeignKey("users.user_id"), nullable=False, unique=True)
    department_id_fk = db.Column(db.Integer, db.ForeignKey("departments.department_id"))
    first_name = db.Column(db.String(100), nullable=False)
    last_name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(255))
    position = db.Column(db.String(100))  # Lecturer, HOD, Registrar...


# ==========================================
# ACADEMIC STRUCTURE
# ==========================================

class Program(db.Model):
    __tablename__ = "programs"
    program_id = db.Column(db.Integer, primary_key=True)
    department_id_fk = db.Column(db.Integer, db.ForeignKey("departments.department_id"))
    name = db.Column(db.String(255), nullable=False)
    code = db.Column(db.String(50))
    duration_semesters = db.Column(db.Integer, default=8)


class Semester(db.Model):
    __tablename__ = "semesters"
    semester_id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False, unique=True)
    start_date = db.Column(db.Date, nullable=False)
    end_date = db.Column(db.Date, nullable=False)


class Course(db.Model):
    __tablename__ = "courses"
    course_id = db.Column(db.Integer, primary_key=True)
    program_id_fk = db.Column(db.Integer, db.ForeignKey("programs.program_id"))
    semester_id_fk = db.Column(db.Integer, db.ForeignKey("semesters.semester_id"), nullable=False)
    lecturer_id_fk = db.Column(db.Integer, db.ForeignKey("staff.staff_id"))
    name = db.Column(db.String(255), nullable=False)
    code = db.Column(db.String(50), nullable=False)
    credits = db.Column(db.Float)
    description = db.Column(db.Text)


class Student(db.Model):
    __tablename__ = "students"
    student_id = db.Column(db.Integer, primary_key=True)
    user_id_fk = db.Column(db.Integer, db.ForeignKey("users.user_id"), nullable=False, unique=True)
    program_id_fk = db.Column(db.Integer, db.ForeignKey("programs.program_id"))
    current_semester_id_fk = db.Column(db.Integer, db.ForeignKey("semesters.semester_id"))
    first_name = db.Column(db.String(100), nullable=False)
    last_name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(255))
    registration_number = db.Column(db.String(100), unique=True)


class Enrollment(db.Model):
    __tablename__ = "enrollments"
    enrollment_id = db.Column(db.Integer, primary_key=True)
    student_id_fk = db.Column(db.Integer, db.ForeignKey("students.student_id"), nullable=False)
    course_id_fk = db.Column(db.Integer, db.ForeignKey("courses.course_id"), nullable=False)
    semester_id_fk = db.Column(db.Integer, db.ForeignKey("semesters.semester_id"), nullable=False)
    enrollment_date = db.Column(db.Date)

    __table_args__ = (
        db.UniqueConstraint("student_id_fk", "course_id_fk", "semester_id_fk", name="uq_enrollment_student_course_semester"),
    )


# ==========================================
# TIMETABLE & CALENDAR
# ==========================================

class TimetableEntry(db.Model):
    __tablename__ = "timetables"
    timetable_id = db.Column(db.Integer, primary_key=True)
    semester_id_fk = db.Column(db.Integer, db.ForeignKey("semesters.semester_id"), nullable=False)
    course_id_fk = db.Column(db.Integer, db.ForeignKey("courses.course_id"), nullable=False)
    lecturer_id_fk = db.Column(db.Integer, db.ForeignKey("staff.staff_id"), nullable=False)
    day_of_week = db.Column(db.String(20), nullable=False)  # Monday, Tuesday... (MO/Mon accepted)
    start_time = db.Column(db.Time, nullable=False)
    end_time = db.Column(db.Time, nullable=False)
    room = db.Column(db.String(50))

    __table_args__ = (
        db.UniqueConstraint("semester_id_fk", "course_id_fk", "day_of_week", "start_time", name="uq_timetable_semester_course_day_time"),
    )


class AcademicCalendarEvent(db.Model):
    __tablename__ = "academic_calendar_events"
    event_id = db.Column(db.Integer, primary_key=True)
    semester_id_fk = db.Column(db.Integer, db.ForeignKey("semesters.semester_id", ondelete="CASCADE"), nullable=False)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text)
    start_date = db.Column(db.DateTime, nullable=False)
    end_date = db.Column(db.DateTime, nullable=False)
    event_type = db.Column(db.String(50), nullable=False)  # exam, registration, holiday, break, other
    location = db.Column(db.String(255))
    is_recurring = db.Column(db.Boolean, default=False)
    recurring_pattern = db.Column(db.Text)  # e.g. RRULE:FREQ=WEEKLY;INTERVAL=1;BYDAY=MO
    created_at = db.Column(db.DateTime, default=utc_now)
    created_by_fk = db.Column(db.Integer, db.ForeignKey("staff.staff_id", ondelete="SET NULL"))

    __table_args__ = (
        db.Index("ix_calendar_events_semester_start", "semester_id_fk", "start_date"),
    )
