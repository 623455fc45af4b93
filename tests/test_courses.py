from __future__ import annotations

from conftest import auth, make_user


def _create_course(client, teacher_id: int, title: str = "Biology 101") -> dict:
    response = client.post(
        "/api/courses",
        json={"title": title, "description": "Cells and systems"},
        headers=auth(teacher_id),
    )
    assert response.status_code == 201
    return response.json()


def test_requests_without_known_user_are_rejected(client) -> None:
    assert client.get("/api/courses").status_code == 401
    assert client.get("/api/courses", headers=auth(999)).status_code == 401


def test_duplicate_email_is_rejected(client) -> None:
    make_user(client, "Ms Rivera", "teacher")

    response = client.post("/api/users", json={"name": "Other", "email": "ms.rivera@school.test", "role": "student"})

    assert response.status_code == 400


def test_teacher_creates_course_with_generated_code(client) -> None:
    teacher = make_user(client, "Ms Rivera", "teacher")

    course = _create_course(client, teacher)

    assert course["teacher_id"] == teacher
    assert len(course["code"]) == 6
    assert course["code"] == course["code"].upper()
    assert course["student_ids"] == []

    listed = client.get("/api/courses", headers=auth(teacher)).json()
    assert [item["id"] for item in listed] == [course["id"]]


def test_students_cannot_create_courses(client) -> None:
    student = make_user(client, "Sam Lee", "student")

    response = client.post("/api/courses", json={"title": "X", "description": "Y"}, headers=auth(student))

    assert response.status_code == 403


def test_student_joins_by_code_and_sees_course(client) -> None:
    teacher = make_user(client, "Ms Rivera", "teacher")
    student = make_user(client, "Sam Lee", "student")
    course = _create_course(client, teacher)

    joined = client.post("/api/courses/join", json={"code": course["code"].lower()}, headers=auth(student))
    assert joined.status_code == 200
    assert joined.json()["student_ids"] == [student]

    again = client.post("/api/courses/join", json={"code": course["code"]}, headers=auth(student))
    assert again.status_code == 400

    missing = client.post("/api/courses/join", json={"code": "NOPE00"}, headers=auth(student))
    assert missing.status_code == 404

    listed = client.get("/api/courses", headers=auth(student)).json()
    assert [item["id"] for item in listed] == [course["id"]]
    assert client.get(f"/api/courses/{course['id']}", headers=auth(student)).status_code == 200


def test_outsider_cannot_view_course(client) -> None:
    teacher = make_user(client, "Ms Rivera", "teacher")
    outsider = make_user(client, "Pat Kim", "student")
    course = _create_course(client, teacher)

    assert client.get(f"/api/courses/{course['id']}", headers=auth(outsider)).status_code == 403
    assert client.get("/api/courses/12345", headers=auth(outsider)).status_code == 404


def test_enroll_and_unenroll(client) -> None:
    teacher = make_user(client, "Ms Rivera", "teacher")
    student = make_user(client, "Sam Lee", "student")
    course = _create_course(client, teacher)

    enrolled = client.put(f"/api/courses/{course['id']}/enroll", headers=auth(student))
    assert enrolled.status_code == 200
    assert enrolled.json()["student_ids"] == [student]
    assert client.put(f"/api/courses/{course['id']}/enroll", headers=auth(student)).status_code == 400

    left = client.put(f"/api/courses/{course['id']}/unenroll", headers=auth(student))
    assert left.status_code == 200
    assert left.json()["student_ids"] == []
    assert client.put(f"/api/courses/{course['id']}/unenroll", headers=auth(student)).status_code == 400

    assert client.put(f"/api/courses/{course['id']}/enroll", headers=auth(teacher)).status_code == 403


def test_only_owner_updates_and_deletes(client) -> None:
    owner = make_user(client, "Ms Rivera", "teacher")
    other = make_user(client, "Mr Okafor", "teacher")
    course = _create_course(client, owner)

    forbidden = client.put(f"/api/courses/{course['id']}", json={"title": "Hijacked"}, headers=auth(other))
    assert forbidden.status_code == 403

    updated = client.put(f"/api/courses/{course['id']}", json={"title": "Biology 102"}, headers=auth(owner))
    assert updated.status_code == 200
    assert updated.json()["title"] == "Biology 102"
    assert updated.json()["description"] == "Cells and systems"

    assert client.delete(f"/api/courses/{course['id']}", headers=auth(other)).status_code == 403
    removed = client.delete(f"/api/courses/{course['id']}", headers=auth(owner))
    assert removed.status_code == 200
    assert removed.json() == {"msg": "Course removed"}
    assert client.get(f"/api/courses/{course['id']}", headers=auth(owner)).status_code == 404
