def create_department(client, name="Computer Engineering"):
    response = client.post("/api/departments/", json={"name": name})
    assert response.status_code == 201
    return response.json()


def create_course(client, department_id, code="CS101", name="Programming I"):
    response = client.post(
        "/api/courses/",
        json={"code": code, "name": name, "department_id": department_id, "class_level": 1},
    )
    assert response.status_code == 201
    return response.json()


def create_teacher(client, name="Ada Lovelace", days=(0, 1, 2, 3, 4)):
    response = client.post("/api/teachers/", json={"name": name, "available_days": list(days)})
    assert response.status_code == 201
    return response.json()


def test_department_crud(client):
    created = create_department(client)
    assert created["name"] == "Computer Engineering"

    duplicate = client.post("/api/departments/", json={"name": "Computer Engineering"})
    assert duplicate.status_code == 409

    renamed = client.put(f"/api/departments/{created['id']}", json={"name": "Software Engineering"})
    assert renamed.status_code == 200
    assert renamed.json()["name"] == "Software Engineering"

    listing = client.get("/api/departments/")
    assert [item["name"] for item in listing.json()] == ["Software Engineering"]

    deleted = client.delete(f"/api/departments/{created['id']}")
    assert deleted.status_code == 200
    assert client.get("/api/departments/").json() == []

    missing = client.delete(f"/api/departments/{created['id']}")
    assert missing.status_code == 404


def test_department_with_courses_cannot_be_deleted(client):
    department = create_department(client)
    create_course(client, department["id"])

    response = client.delete(f"/api/departments/{department['id']}")
    assert response.status_code == 409


def test_room_crud_and_validation(client):
    created = client.post("/api/rooms/", json={"name": "A-101", "capacity": 40})
    assert created.status_code == 201
    room = created.json()

    assert client.post("/api/rooms/", json={"name": "A-101", "capacity": 10}).status_code == 409
    assert client.post("/api/rooms/", json={"name": "A-102", "capacity": 0}).status_code == 422

    updated = client.put(f"/api/rooms/{room['id']}", json={"capacity": 55})
    assert updated.status_code == 200
    assert updated.json() == {"id": room["id"], "name": "A-101", "capacity": 55}

    client.post("/api/rooms/", json={"name": "A-001", "capacity": 20})
    names = [item["name"] for item in client.get("/api/rooms/").json()]
    assert names == ["A-001", "A-101"]


def test_teacher_availability_is_normalized(client):
    teacher = create_teacher(client, days=(4, 0, 4, 2))
    assert teacher["available_days"] == [0, 2, 4]

    updated = client.put(f"/api/teachers/{teacher['id']}", json={"name": "Ada L.", "available_days": [6]})
    assert updated.status_code == 200
    assert updated.json()["available_days"] == [6]

    listing = client.get("/api/teachers/").json()
    assert listing == [{"id": teacher["id"], "name": "Ada L.", "available_days": [6]}]


def test_teacher_rejects_invalid_day(client):
    response = client.post("/api/teachers/", json={"name": "Grace", "available_days": [7]})
    assert response.status_code == 422


def test_course_requires_existing_department(client):
    response = client.post(
        "/api/courses/",
        json={"code": "CS101", "name": "Programming I", "department_id": "missing", "class_level": 1},
    )
    assert response.status_code == 400


def test_courses_are_listed_by_department_then_code(client):
    math = create_department(client, "Mathematics")
    physics = create_department(client, "Physics")
    create_course(client, physics["id"], code="PHY101", name="Mechanics")
    create_course(client, math["id"], code="MAT201", name="Linear Algebra")
    create_course(client, math["id"], code="MAT101", name="Calculus")

    listing = client.get("/api/courses/").json()
    assert [item["code"] for item in listing] == ["MAT101", "MAT201", "PHY101"]
    assert listing[0]["department"]["name"] == "Mathematics"

    duplicate = client.post(
        "/api/courses/",
        json={"code": "MAT101", "name": "Other", "department_id": math["id"], "class_level": 2},
    )
    assert duplicate.status_code == 409


def test_exam_request_lifecycle(client):
    department = create_department(client)
    course = create_course(client, department["id"])
    teacher = create_teacher(client)

    created = client.post(
        "/api/exam-requests/",
        json={"course_id": course["id"], "teacher_id": teacher["id"], "student_count": 80},
    )
    assert created.status_code == 201
    body = created.json()
    assert body["duration_minutes"] == 60
    assert body["course"]["code"] == "CS101"
    assert body["course"]["department"]["name"] == "Computer Engineering"
    assert body["teacher"] == {"id": teacher["id"], "name": "Ada Lovelace"}

    assert client.delete(f"/api/teachers/{teacher['id']}").status_code == 409
    assert client.delete(f"/api/courses/{course['id']}").status_code == 409

    updated = client.put(
        f"/api/exam-requests/{body['id']}",
        json={
            "course_id": course["id"],
            "teacher_id": teacher["id"],
            "student_count": 90,
            "duration_minutes": 120,
        },
    )
    assert updated.status_code == 200
    assert updated.json()["student_count"] == 90
    assert updated.json()["duration_minutes"] == 120

    assert client.delete(f"/api/exam-requests/{body['id']}").status_code == 200
    assert client.get("/api/exam-requests/").json() == []
    assert client.delete(f"/api/teachers/{teacher['id']}").status_code == 200


def test_exam_request_rejects_unknown_references(client):
    department = create_department(client)
    course = create_course(client, department["id"])
    teacher = create_teacher(client)

    unknown_course = client.post(
        "/api/exam-requests/",
        json={"course_id": "missing", "teacher_id": teacher["id"], "student_count": 10},
    )
    assert unknown_course.status_code == 400

    unknown_teacher = client.post(
        "/api/exam-requests/",
        json={"course_id": course["id"], "teacher_id": "missing", "student_count": 10},
    )
    assert unknown_teacher.status_code == 400

    zero_students = client.post(
        "/api/exam-requests/",
        json={"course_id": course["id"], "teacher_id": teacher["id"], "student_count": 0},
    )
    assert zero_students.status_code == 422
