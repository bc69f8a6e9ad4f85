import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from examplanner.models.schedule import ExamRoomAllocation, ExamSession, Schedule
from examplanner.services.scheduler import Allocation, GeneratedSession
from examplanner.services.schedules import persist_schedule


def seed(client, *, student_count=30, capacities=(30,), teacher_days=(0, 1, 2, 3, 4)):
    department = client.post("/api/departments/", json={"name": "Bilgisayar Mühendisliği"}).json()
    rooms = [
        client.post("/api/rooms/", json={"name": f"D-{index + 1:02d}", "capacity": capacity}).json()
        for index, capacity in enumerate(capacities)
    ]
    teacher = client.post("/api/teachers/", json={"name": "Ayşe Yılmaz", "available_days": list(teacher_days)}).json()
    course = client.post(
        "/api/courses/",
        json={"code": "BM101", "name": "Programlama", "department_id": department["id"], "class_level": 1},
    ).json()
    request = client.post(
        "/api/exam-requests/",
        json={"course_id": course["id"], "teacher_id": teacher["id"], "student_count": student_count},
    ).json()
    return {"department": department, "rooms": rooms, "teacher": teacher, "course": course, "request": request}


def count_rows(db, model):
    return db.execute(select(func.count()).select_from(model)).scalar_one()


def test_generate_persists_schedule(client, db):
    data = seed(client, student_count=50, capacities=(30, 40))

    response = client.post("/api/schedules/generate", json={"name": "Fall", "days": [0, 1], "slots": ["09:00", "13:00"]})

    assert response.status_code == 200
    body = response.json()
    assert body["name"] == "Fall"
    assert body["days"] == [0, 1]
    assert body["slots"] == ["09:00", "13:00"]
    assert len(body["exam_sessions"]) == 1

    session = body["exam_sessions"][0]
    assert session["course_id"] == data["course"]["id"]
    assert session["day_of_week"] == 0
    assert session["start_time"] == "09:00"
    assert session["end_time"] == "10:00"
    assert session["course"]["code"] == "BM101"
    assert session["teacher"]["name"] == "Ayşe Yılmaz"
    assert [(item["room"]["name"], item["assigned_students"]) for item in session["allocations"]] == [
        ("D-02", 40),
        ("D-01", 10),
    ]

    assert count_rows(db, Schedule) == 1
    assert count_rows(db, ExamSession) == 1
    assert count_rows(db, ExamRoomAllocation) == 2

    latest = client.get("/api/schedules/latest")
    assert latest.status_code == 200
    assert latest.json()["id"] == body["id"]

    by_id = client.get(f"/api/schedules/{body['id']}")
    assert by_id.status_code == 200
    assert by_id.json()["exam_sessions"] == body["exam_sessions"]


def test_latest_schedule_missing(client):
    response = client.get("/api/schedules/latest")
    assert response.status_code == 404
    assert "message" in response.json()


def test_unknown_schedule_returns_not_found(client):
    response = client.get("/api/schedules/does-not-exist")
    assert response.status_code == 404
    assert response.json() == {"message": "Schedule with id does-not-exist not found", "details": {}}


def test_capacity_failure_persists_nothing(client, db):
    seed(client, student_count=120, capacities=(30, 40))

    response = client.post("/api/schedules/generate", json={"name": "Fall", "days": [0], "slots": ["09:00"]})

    assert response.status_code == 400
    body = response.json()
    assert body["details"]["kind"] == "capacity"
    assert body["details"]["total_capacity"] == 70
    assert "BM101" in body["message"]
    assert count_rows(db, Schedule) == 0
    assert client.get("/api/schedules/latest").status_code == 404


def test_placement_failure_persists_nothing(client, db):
    seed(client, teacher_days=(5,))

    response = client.post("/api/schedules/generate", json={"name": "Fall", "days": [0, 1], "slots": ["09:00"]})

    assert response.status_code == 400
    assert response.json()["details"] == {"kind": "placement", "course_code": "BM101", "course_name": "Programlama"}
    assert count_rows(db, Schedule) == 0
    assert count_rows(db, ExamSession) == 0


def test_generate_reports_slot_errors(client):
    seed(client)

    misaligned = client.post("/api/schedules/generate", json={"name": "Fall", "days": [0], "slots": ["9:30"]})
    assert misaligned.status_code == 400
    assert misaligned.json()["details"] == {"kind": "alignment", "slot": "9:30"}

    malformed = client.post("/api/schedules/generate", json={"name": "Fall", "days": [0], "slots": ["25:00"]})
    assert malformed.status_code == 400
    assert malformed.json()["details"]["kind"] == "format"

    no_days = client.post("/api/schedules/generate", json={"name": "Fall", "days": [], "slots": ["09:00"]})
    assert no_days.status_code == 400
    assert no_days.json()["details"]["kind"] == "input_shape"


def test_generate_without_requests(client):
    client.post("/api/rooms/", json={"name": "D-01", "capacity": 30})

    response = client.post("/api/schedules/generate", json={"name": "Fall", "days": [0], "slots": ["09:00"]})

    assert response.status_code == 400
    assert response.json()["details"]["kind"] == "input_shape"


def test_generate_validates_payload(client):
    response = client.post("/api/schedules/generate", json={"name": "Fall", "days": [7], "slots": ["09:00"]})
    assert response.status_code == 422


def test_room_used_by_schedule_cannot_be_deleted(client):
    data = seed(client)
    assert client.post("/api/schedules/generate", json={"name": "Fall", "days": [0], "slots": ["09:00"]}).status_code == 200

    response = client.delete(f"/api/rooms/{data['rooms'][0]['id']}")
    assert response.status_code == 409


def test_department_and_room_pdfs(client):
    data = seed(client)
    schedule = client.post("/api/schedules/generate", json={"name": "Fall", "days": [0, 2], "slots": ["09:00"]}).json()

    department_pdf = client.get(f"/api/schedules/{schedule['id']}/pdf/department/{data['department']['id']}")
    assert department_pdf.status_code == 200
    assert department_pdf.headers["content-type"] == "application/pdf"
    assert department_pdf.content.startswith(b"%PDF")
    disposition = department_pdf.headers["content-disposition"]
    assert disposition.startswith('attachment; filename="department-Bilgisayar-Muhendisligi-schedule.pdf"')
    assert "filename*=UTF-8''" in disposition

    room_pdf = client.get(f"/api/schedules/{schedule['id']}/pdf/room/{data['rooms'][0]['id']}")
    assert room_pdf.status_code == 200
    assert room_pdf.content.startswith(b"%PDF")
    assert 'filename="room-D-01-schedule.pdf"' in room_pdf.headers["content-disposition"]


def test_pdf_for_unknown_entities(client):
    data = seed(client)
    schedule = client.post("/api/schedules/generate", json={"name": "Fall", "days": [0], "slots": ["09:00"]}).json()

    assert client.get(f"/api/schedules/{schedule['id']}/pdf/room/missing").status_code == 404
    assert client.get(f"/api/schedules/missing/pdf/room/{data['rooms'][0]['id']}").status_code == 404
    assert client.get(f"/api/schedules/{schedule['id']}/pdf/department/missing").status_code == 404


def make_generated_session(course_id, room_id, *, day=0, start=540):
    return GeneratedSession(
        course_id=course_id,
        teacher_id="t1",
        day_of_week=day,
        slot_index=0,
        start_minute_of_day=start,
        end_minute_of_day=start + 60,
        duration_minutes=60,
        allocations=(Allocation(room_id=room_id, assigned_students=20),),
    )


def test_persist_rolls_back_when_a_later_row_fails(db_session_factory, db):
    sessions = [
        make_generated_session("course-1", "room-1"),
        make_generated_session("course-2", None, start=600),
    ]

    writer = db_session_factory()
    try:
        with pytest.raises(IntegrityError):
            persist_schedule(writer, name="Fall", days=[0], slots=["09:00", "10:00"], sessions=sessions)
    finally:
        writer.close()

    assert count_rows(db, Schedule) == 0
    assert count_rows(db, ExamSession) == 0
    assert count_rows(db, ExamRoomAllocation) == 0


def test_persist_writes_sessions_in_commit_order(db):
    sessions = [
        make_generated_session("course-2", "room-1", start=600),
        make_generated_session("course-1", "room-1"),
    ]

    schedule = persist_schedule(db, name="Fall", days=[0], slots=["09:00", "10:00"], sessions=sessions)

    stored = db.execute(
        select(ExamSession).where(ExamSession.schedule_id == schedule.id).order_by(ExamSession.position)
    ).scalars()
    assert [item.course_id for item in stored] == ["course-2", "course-1"]
    assert count_rows(db, ExamRoomAllocation) == 2


def test_generate_accepts_repeated_days_and_slots(client):
    seed(client)

    response = client.post(
        "/api/schedules/generate",
        json={"name": "Fall", "days": [1] * 8, "slots": ["09:00"] * 25},
    )

    assert response.status_code == 200
    assert response.json()["exam_sessions"][0]["day_of_week"] == 1
