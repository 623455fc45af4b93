from __future__ import annotations

from conftest import auth, make_user

from teachassist.ai.openai_grader import Completion, MockGradingModel, OpenAIRequestError
from teachassist.main import app
from teachassist.routers.ai import grading_model_dependency

ASSIGNMENT = {
    "title": "Persuasive Essay",
    "description": "Argue for or against school uniforms.",
    "due_date": "2026-11-01T23:59:00",
    "total_points": 20,
    "rubric": [
        {"criteria": "Clarity", "weight": 10},
        {"criteria": "Evidence", "weight": 10},
    ],
}


class _FailingModel:
    def __init__(self, status_code: int) -> None:
        self.status_code = status_code

    def complete(self, prompt, temperature, request_id) -> Completion:
        raise OpenAIRequestError(status_code=self.status_code, body="upstream trouble", message="OpenAI request failed")


class _FailOnceModel:
    def __init__(self) -> None:
        self.calls = 0
        self._mock = MockGradingModel()

    def complete(self, prompt, temperature, request_id) -> Completion:
        self.calls += 1
        if self.calls == 1:
            raise OpenAIRequestError(status_code=500, body="boom", message="OpenAI request failed")
        return self._mock.complete(prompt, temperature, request_id)


def _setup(client, students: int = 1, **overrides) -> dict:
    teacher = make_user(client, "Ms Rivera", "teacher")
    course = client.post(
        "/api/courses", json={"title": "English 9", "description": "Reading and writing"}, headers=auth(teacher)
    ).json()
    assignment = client.post(
        f"/api/courses/{course['id']}/assignments", json=dict(ASSIGNMENT, **overrides), headers=auth(teacher)
    ).json()

    submission_ids = []
    for idx in range(students):
        student = make_user(client, f"Student {idx}", "student")
        client.put(f"/api/courses/{course['id']}/enroll", headers=auth(student))
        submission = client.post(
            f"/api/assignments/{assignment['id']}/submissions",
            json={"content": f"Essay number {idx} about uniforms."},
            headers=auth(student),
        ).json()
        submission_ids.append(submission["id"])

    return {"teacher": teacher, "assignment_id": assignment["id"], "submission_ids": submission_ids}


def test_grade_submission_stores_interpreted_result(client) -> None:
    ctx = _setup(client)
    submission_id = ctx["submission_ids"][0]

    response = client.post(f"/api/ai/grade-submission/{submission_id}", headers=auth(ctx["teacher"]))

    assert response.status_code == 200
    body = response.json()
    assert body["ai_grading_result"].startswith("Grade: 16 out of 20")
    submission = body["submission"]
    assert submission["grade"] == 16
    assert submission["status"] == "GRADED"
    assert submission["graded_by"] == "ai"
    assert submission["manual_review_needed"] is False
    assert [(item["criteria"], item["score"]) for item in submission["rubric_grades"]] == [
        ("Clarity", 8),
        ("Evidence", 8),
    ]

    stored = client.get(f"/api/submissions/{submission_id}", headers=auth(ctx["teacher"])).json()
    assert stored["grade"] == 16


def test_grade_submission_requires_course_teacher(client) -> None:
    ctx = _setup(client)
    submission_id = ctx["submission_ids"][0]
    other_teacher = make_user(client, "Mr Okafor", "teacher")
    student = make_user(client, "Pat Kim", "student")

    assert client.post(f"/api/ai/grade-submission/{submission_id}", headers=auth(other_teacher)).status_code == 403
    assert client.post(f"/api/ai/grade-submission/{submission_id}", headers=auth(student)).status_code == 403
    assert client.post("/api/ai/grade-submission/9999", headers=auth(ctx["teacher"])).status_code == 404


def test_grade_submission_rejected_when_ai_grading_disabled(client) -> None:
    ctx = _setup(client, ai_grading_enabled=False)

    response = client.post(f"/api/ai/grade-submission/{ctx['submission_ids'][0]}", headers=auth(ctx["teacher"]))

    assert response.status_code == 400


def test_openai_failure_maps_to_bad_gateway(client) -> None:
    ctx = _setup(client)
    submission_id = ctx["submission_ids"][0]
    app.dependency_overrides[grading_model_dependency] = lambda: _FailingModel(500)

    response = client.post(f"/api/ai/grade-submission/{submission_id}", headers=auth(ctx["teacher"]))

    assert response.status_code == 502
    detail = response.json()["detail"]
    assert detail["openai_status"] == 500
    assert detail["openai_error"] == "upstream trouble"
    assert detail["request_id"]

    stored = client.get(f"/api/submissions/{submission_id}", headers=auth(ctx["teacher"])).json()
    assert stored["status"] == "SUBMITTED"


def test_openai_timeout_maps_to_gateway_timeout(client) -> None:
    ctx = _setup(client)
    app.dependency_overrides[grading_model_dependency] = lambda: _FailingModel(504)

    response = client.post(f"/api/ai/grade-submission/{ctx['submission_ids'][0]}", headers=auth(ctx["teacher"]))

    assert response.status_code == 504


def test_missing_openai_key_is_service_unavailable(client, monkeypatch) -> None:
    ctx = _setup(client)
    monkeypatch.delenv("OPENAI_MOCK", raising=False)
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)

    response = client.post(f"/api/ai/grade-submission/{ctx['submission_ids'][0]}", headers=auth(ctx["teacher"]))

    assert response.status_code == 503


def test_bulk_grade_grades_every_ungraded_submission(client) -> None:
    ctx = _setup(client, students=2)

    response = client.post(f"/api/ai/bulk-grade/{ctx['assignment_id']}", headers=auth(ctx["teacher"]))

    assert response.status_code == 200
    assert response.json() == {
        "msg": "Started bulk grading 2 submissions. This may take some time.",
        "submission_count": 2,
    }
    listed = client.get(f"/api/assignments/{ctx['assignment_id']}/submissions", headers=auth(ctx["teacher"])).json()
    assert [item["status"] for item in listed] == ["GRADED", "GRADED"]
    assert all(item["grade"] == 16 for item in listed)

    again = client.post(f"/api/ai/bulk-grade/{ctx['assignment_id']}", headers=auth(ctx["teacher"]))
    assert again.json() == {"msg": "No ungraded submissions found", "submission_count": 0}


def test_bulk_grade_continues_after_a_failed_submission(client) -> None:
    ctx = _setup(client, students=2)
    model = _FailOnceModel()
    app.dependency_overrides[grading_model_dependency] = lambda: model

    client.post(f"/api/ai/bulk-grade/{ctx['assignment_id']}", headers=auth(ctx["teacher"]))

    listed = client.get(f"/api/assignments/{ctx['assignment_id']}/submissions", headers=auth(ctx["teacher"])).json()
    assert model.calls == 2
    assert [item["status"] for item in listed] == ["SUBMITTED", "GRADED"]


def test_feedback_uses_current_grade(client) -> None:
    ctx = _setup(client)
    submission_id = ctx["submission_ids"][0]
    client.put(
        f"/api/submissions/{submission_id}/grade",
        json={"grade": 17, "feedback": "Solid argument."},
        headers=auth(ctx["teacher"]),
    )

    response = client.post(f"/api/ai/feedback/{submission_id}", headers=auth(ctx["teacher"]))

    assert response.status_code == 200
    body = response.json()
    assert body["original_feedback"] == "Solid argument."
    assert body["personalized_feedback"]


def test_interpret_endpoint(client) -> None:
    teacher = make_user(client, "Ms Rivera", "teacher")
    student = make_user(client, "Sam Lee", "student")
    payload = {
        "rubric": [{"criteria": "Clarity", "weight": 100}],
        "total_points": 100,
        "raw_text": "Clarity: 8 points. The argument is clear.",
    }

    response = client.post("/api/ai/interpret", json=payload, headers=auth(teacher))

    assert response.status_code == 200
    body = response.json()
    assert body["rubric_grades"][0]["score"] == 8
    assert "The argument is clear." in body["rubric_grades"][0]["feedback"]
    assert body["manual_review_needed"] is False
    assert client.post("/api/ai/interpret", json=payload, headers=auth(student)).status_code == 403
