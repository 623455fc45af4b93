"""AI grading and feedback endpoints."""

from __future__ import annotations

import logging
import uuid

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from sqlmodel import Session, select

from teachassist.ai.openai_grader import GradingModel, OpenAIRequestError, get_grading_model
from teachassist.ai.prompts import build_feedback_prompt
from teachassist.auth import get_current_user, require_role
from teachassist.db import get_session
from teachassist.grading.base import RubricCriterion
from teachassist.grading.interpreter import interpret_grading_response
from teachassist.models import Assignment, Submission, SubmissionStatus, User, UserRole
from teachassist.pipeline.grade import (
    assignment_context,
    bulk_grade_submissions,
    grade_submission_with_ai,
    load_rubric_grades,
)
from teachassist.routers.assignments import get_assignment_or_404
from teachassist.routers.courses import ensure_course_teacher, get_course_or_404
from teachassist.routers.submissions import get_submission_or_404, submission_read
from teachassist.schemas import (
    AIGradeResponse,
    BulkGradeResponse,
    FeedbackResponse,
    InterpretRequest,
    InterpretResponse,
)
from teachassist.settings import settings

router = APIRouter(prefix="/ai", tags=["ai"])
logger = logging.getLogger(__name__)


def grading_model_dependency() -> GradingModel:
    try:
        return get_grading_model()
    except RuntimeError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc


def _openai_http_error(exc: OpenAIRequestError, request_id: str) -> HTTPException:
    status_code = 504 if exc.status_code == 504 else 502
    return HTTPException(
        status_code=status_code,
        detail={
            "msg": "OpenAI request failed",
            "request_id": request_id,
            "openai_status": exc.status_code,
            "openai_error": exc.body[:2000],
        },
    )


def _teacher_assignment(session: Session, assignment_id: int, user: User, detail: str) -> Assignment:
    assignment = get_assignment_or_404(session, assignment_id)
    ensure_course_teacher(get_course_or_404(session, assignment.course_id), user, detail=detail)
    return assignment


@router.post("/grade-submission/{submission_id}", response_model=AIGradeResponse)
def grade_submission(
    submission_id: int,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
    model: GradingModel = Depends(grading_model_dependency),
) -> AIGradeResponse:
    require_role(user, UserRole.TEACHER, UserRole.ADMIN, detail="Not authorized to use AI grading")
    submission = get_submission_or_404(session, submission_id)
    assignment = _teacher_assignment(session, submission.assignment_id, user, detail="Not authorized to grade this submission")
    if not assignment.ai_grading_enabled:
        raise HTTPException(status_code=400, detail="AI grading is disabled for this assignment")

    request_id = str(uuid.uuid4())
    try:
        _, completion = grade_submission_with_ai(session, submission, assignment, model, request_id=request_id)
    except OpenAIRequestError as exc:
        logger.warning(
            "ai/grade openai failure",
            extra={"request_id": request_id, "stage": "call_openai", "submission_id": submission_id, "status_code": exc.status_code},
        )
        raise _openai_http_error(exc, request_id) from exc

    return AIGradeResponse(submission=submission_read(submission), ai_grading_result=completion.text)


@router.post("/bulk-grade/{assignment_id}", response_model=BulkGradeResponse)
def bulk_grade(
    assignment_id: int,
    background_tasks: BackgroundTasks,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
    model: GradingModel = Depends(grading_model_dependency),
) -> BulkGradeResponse:
    require_role(user, UserRole.TEACHER, UserRole.ADMIN, detail="Not authorized to use AI grading")
    assignment = _teacher_assignment(session, assignment_id, user, detail="Not authorized to grade for this assignment")
    if not assignment.ai_grading_enabled:
        raise HTTPException(status_code=400, detail="AI grading is disabled for this assignment")

    submission_ids = [
        submission.id
        for submission in session.exec(
            select(Submission)
            .where(Submission.assignment_id == assignment_id, Submission.status == SubmissionStatus.SUBMITTED)
            .order_by(Submission.created_at, Submission.id)
        ).all()
    ]
    if not submission_ids:
        return BulkGradeResponse(msg="No ungraded submissions found", submission_count=0)

    background_tasks.add_task(bulk_grade_submissions, assignment_id, submission_ids, model, settings.bulk_grade_delay_seconds)
    return BulkGradeResponse(
        msg=f"Started bulk grading {len(submission_ids)} submissions. This may take some time.",
        submission_count=len(submission_ids),
    )


@router.post("/feedback/{submission_id}", response_model=FeedbackResponse)
def personalized_feedback(
    submission_id: int,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
    model: GradingModel = Depends(grading_model_dependency),
) -> FeedbackResponse:
    require_role(user, UserRole.TEACHER, UserRole.ADMIN, detail="Not authorized to generate AI feedback")
    submission = get_submission_or_404(session, submission_id)
    assignment = _teacher_assignment(
        session, submission.assignment_id, user, detail="Not authorized to provide feedback for this submission"
    )
    student = session.get(User, submission.student_id)

    prompt = build_feedback_prompt(
        assignment_context(assignment),
        student_name=student.name if student else "Student",
        content=submission.content,
        grade=submission.grade,
        feedback=submission.feedback,
        rubric_grades=load_rubric_grades(submission),
    )
    request_id = str(uuid.uuid4())
    try:
        completion = model.complete(prompt, temperature=settings.grading_temperature, request_id=request_id)
    except OpenAIRequestError as exc:
        raise _openai_http_error(exc, request_id) from exc

    return FeedbackResponse(original_feedback=submission.feedback, personalized_feedback=completion.text)


@router.post("/interpret", response_model=InterpretResponse)
def interpret(payload: InterpretRequest, user: User = Depends(get_current_user)) -> InterpretResponse:
    require_role(user, UserRole.TEACHER, UserRole.ADMIN, detail="Not authorized to use AI grading")
    rubric = [RubricCriterion.from_dict(item.model_dump()) for item in payload.rubric]
    result = interpret_grading_response(rubric, payload.total_points, payload.raw_text)
    return InterpretResponse.from_result(result)
