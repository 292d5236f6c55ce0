from datetime import date, timedelta

from college_cms import create_app, db
from college_cms.models import Semester, User


def test_events_requires_login(client, campus):
    resp = client.get("/calendar/events?start=2025-03-03&end=2025-03-09")
    assert resp.status_code == 401
    assert resp.get_json()["error"]["code"] == "unauthorized"


def test_unknown_role_is_forbidden(client, login, campus):
    visitor = User(email="visitor@college.test", password_hash="x", role="visitor")
    db.session.add(visitor)
    db.session.commit()
    login(visitor)

    resp = client.get("/calendar/events?start=2025-03-03&end=2025-03-09")
    assert resp.status_code == 403


def test_events_for_week(client, login, campus):
    login(campus.admin)
    resp = client.get("/calendar/events?start=2025-03-03&end=2025-03-09")
    assert resp.status_code == 200

    body = resp.get_json()
    assert body["success"] is True
    items = body["data"]["items"]
    assert body["meta"]["count"] == len(items) == 4
    assert body["meta"]["end"] == "2025-03-09T23:59:59"
    assert [i["type"] for i in items] == ["semester", "course", "exam", "course"]
    assert items[1]["courseCode"] == "CS101"
    assert items[1]["start"] == "2025-03-03T09:00:00"
    assert items[0]["description"] == "Semester period"


def test_events_accept_utc_datetimes(client, login, campus):
    login(campus.admin)
    resp = client.get("/calendar/events?start=2025-03-03T00:00:00Z&end=2025-03-03T23:59:59Z")
    assert resp.status_code == 200
    assert [i["type"] for i in resp.get_json()["data"]["items"]] == ["semester", "course"]


def test_invalid_ranges(client, login, campus):
    login(campus.admin)
    for qs in (
        "",
        "start=2025-03-03",
        "start=yesterday&end=2025-03-09",
        "start=2025-03-09&end=2025-03-03",
        "start=2024-01-01&end=2025-12-31",
    ):
        resp = client.get(f"/calendar/events?{qs}")
        assert resp.status_code == 400, qs
        assert resp.get_json()["error"]["code"] == "invalid_range"

    too_long = client.get("/calendar/events?start=2024-01-01&end=2025-12-31").get_json()
    assert too_long["error"]["details"] == {"maxDays": 400}


def test_invalid_user_id(client, login, campus):
    login(campus.admin)
    resp = client.get("/calendar/events?start=2025-03-03&end=2025-03-09&user_id=abc")
    assert resp.status_code == 400
    assert resp.get_json()["error"]["code"] == "invalid_user"


def test_student_sees_own_timetable(client, login, campus):
    login(campus.jane_user)
    resp = client.get("/calendar/events?start=2025-03-03&end=2025-03-09&mine=1")
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["meta"]["userId"] == campus.jane_user.user_id
    codes = [i["courseCode"] for i in body["data"]["items"] if i["type"] == "course"]
    assert codes == ["CS101"]


def test_student_cannot_read_someone_else(client, login, campus):
    login(campus.jane_user)
    resp = client.get(f"/calendar/events?start=2025-03-03&end=2025-03-09&user_id={campus.alan_user.user_id}")
    assert resp.status_code == 403


def test_admin_can_read_lecturer_timetable(client, login, campus):
    login(campus.admin)
    resp = client.get(f"/calendar/events?start=2025-03-03&end=2025-03-09&user_id={campus.alan_user.user_id}")
    codes = [i["courseCode"] for i in resp.get_json()["data"]["items"] if i["type"] == "course"]
    assert codes == ["MA201"]


def test_semester_endpoints(client, login, campus):
    login(campus.registrar)

    listing = client.get("/calendar/semesters").get_json()["data"]["items"]
    assert [s["name"] for s in listing] == ["Fall 2025", "Spring 2025"]

    detail = client.get(f"/calendar/semesters/{campus.spring.semester_id}").get_json()["data"]
    assert detail == {"id": campus.spring.semester_id, "name": "Spring 2025",
                      "startDate": "2025-01-06", "endDate": "2025-05-02"}

    missing = client.get("/calendar/semesters/9999")
    assert missing.status_code == 404
    assert missing.get_json()["error"]["code"] == "not_found"

    events = client.get(f"/calendar/semesters/{campus.spring.semester_id}/events").get_json()["data"]["items"]
    assert [e["title"] for e in events] == ["Midterm Exams"]

    key = client.get(f"/calendar/semesters/{campus.fall.semester_id}/key-dates").get_json()["data"]["items"]
    assert [(e["title"], e["eventType"]) for e in key] == [("Fall Registration", "registration")]


def test_current_semester(client, login, campus):
    login(campus.admin)
    resp = client.get("/calendar/semesters/current")
    today = date.today()
    if not any(s.start_date <= today <= s.end_date for s in (campus.spring, campus.fall)):
        assert resp.status_code == 404

    db.session.add(Semester(name="Now", start_date=today - timedelta(days=10), end_date=today + timedelta(days=10)))
    db.session.commit()
    resp = client.get("/calendar/semesters/current")
    assert resp.status_code == 200
    assert resp.get_json()["data"]["name"] == "Now"


def test_events_rate_limited():
    app = create_app({
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
        "CACHE_TYPE": "NullCache",
        "RATELIMIT_ENABLED": True,
        "RATELIMIT_STORAGE_URI": "memory://",
        "CALENDAR_EVENTS_RATE_LIMIT": "2 per minute",
    })
    with app.app_context():
        db.create_all()
        user = User(email="busy@college.test", password_hash="x", role="admin")
        db.session.add(user)
        db.session.commit()

        client = app.test_client()
        with client.session_transaction() as sess:
            sess["_user_id"] = str(user.user_id)
            sess["rlid"] = "fixed"

        codes = [client.get("/calendar/events?start=2025-03-03&end=2025-03-09").status_code for _ in range(3)]
        assert codes == [200, 200, 429]

        db.session.remove()
        db.drop_all()
