from datetime import date, datetime, time
from types import SimpleNamespace

import pytest

from college_cms import create_app, db
from college_cms.models import (
    AcademicCalendarEvent,
    Course,
    Department,
    Enrollment,
    Program,
    Semester,
    Staff,
    Student,
    TimetableEntry,
    User,
)


@pytest.fixture
def app():
    app = create_app({
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
        "CACHE_TYPE": "NullCache",
        "RATELIMIT_ENABLED": False,
    })
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def login(client):
    """Log a user in by writing Flask-Login's session key directly."""
    def _login(user):
        with client.session_transaction() as sess:
            sess["_user_id"] = str(user.user_id)
            sess["_fresh"] = True
    return _login


def _user(email, role):
    u = User(email=email, password_hash="x", role=role)
    db.session.add(u)
    db.session.flush()
    return u


@pytest.fixture
def campus(app):
    """
    Spring 2025 runs Mon 6 Jan - Fri 2 May 2025.

    CS101 (Dr. Ada) meets Mondays 09:00-11:00, MA201 (Dr. Alan) Wednesdays 14:00-15:30.
    Jane is enrolled in CS101 only. A midterm exam sits on Wed 5 Mar.
    """
    dept = Department(name="Computing")
    db.session.add(dept)
    db.session.flush()
    program = Program(department_id_fk=dept.department_id, name="BSc Computer Science", code="BSCS")
    db.session.add(program)

    spring = Semester(name="Spring 2025", start_date=date(2025, 1, 6), end_date=date(2025, 5, 2))
    fall = Semester(name="Fall 2025", start_date=date(2025, 8, 25), end_date=date(2025, 12, 12))
    db.session.add_all([spring, fall])
    db.session.flush()

    admin = _user("admin@college.test", "admin")
    ada_user = _user("ada@college.test", "lecturer")
    alan_user = _user("alan@college.test", "lecturer")
    jane_user = _user("jane@college.test", "student")
    registrar = _user("registrar@college.test", "registrar")

    ada = Staff(user_id_fk=ada_user.user_id, department_id_fk=dept.department_id, first_name="Ada", last_name="Lovelace", position="Lecturer")
    alan = Staff(user_id_fk=alan_user.user_id, department_id_fk=dept.department_id, first_name="Alan", last_name="Turing", position="Lecturer")
    db.session.add_all([ada, alan])
    db.session.flush()

    cs101 = Course(program_id_fk=program.program_id, semester_id_fk=spring.semester_id, lecturer_id_fk=ada.staff_id,
                   name="Intro to Programming", code="CS101", credits=3)
    ma201 = Course(program_id_fk=program.program_id, semester_id_fk=spring.semester_id, lecturer_id_fk=alan.staff_id,
                   name="Linear Algebra", code="MA201", credits=3)
    db.session.add_all([cs101, ma201])
    db.session.flush()

    jane = Student(user_id_fk=jane_user.user_id, program_id_fk=program.program_id, current_semester_id_fk=spring.semester_id,
                   first_name="Jane", last_name="Doe", registration_number="REG-001")
    db.session.add(jane)
    db.session.flush()
    db.session.add(Enrollment(student_id_fk=jane.student_id, course_id_fk=cs101.course_id, semester_id_fk=spring.semester_id))

    cs_slot = TimetableEntry(semester_id_fk=spring.semester_id, course_id_fk=cs101.course_id, lecturer_id_fk=ada.staff_id,
                             day_of_week="Monday", start_time=time(9, 0), end_time=time(11, 0), room="LT-1")
    ma_slot = TimetableEntry(semester_id_fk=spring.semester_id, course_id_fk=ma201.course_id, lecturer_id_fk=alan.staff_id,
                             day_of_week="WED", start_time=time(14, 0), end_time=time(15, 30), room="LT-2")
    db.session.add_all([cs_slot, ma_slot])

    midterm = AcademicCalendarEvent(semester_id_fk=spring.semester_id, title="Midterm Exams", event_type="exam",
                                    start_date=datetime(2025, 3, 5, 10, 0), end_date=datetime(2025, 3, 5, 12, 0),
                                    location="Main Hall", created_by_fk=ada.staff_id)
    fall_registration = AcademicCalendarEvent(semester_id_fk=fall.semester_id, title="Fall Registration", event_type="registration",
                                              start_date=datetime(2025, 8, 18, 8, 0), end_date=datetime(2025, 8, 22, 17, 0))
    db.session.add_all([midterm, fall_registration])
    db.session.commit()

    return SimpleNamespace(
        spring=spring, fall=fall,
        admin=admin, registrar=registrar,
        ada=ada, alan=alan, ada_user=ada_user, alan_user=alan_user,
        jane=jane, jane_user=jane_user,
        cs101=cs101, ma201=ma201, cs_slot=cs_slot, ma_slot=ma_slot,
        midterm=midterm, fall_registration=fall_registration,
    )
