"""Submission endpoints and manual grading."""

from __future__ import annotations

import json

from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session, select

from teachassist.auth import get_current_user, require_role
from teachassist.db import get_session
from teachassist.models import Course, GradedBy, Submission, SubmissionStatus, User, UserRole, utcnow
from teachassist.routers.assignments import get_assignment_or_404
from teachassist.routers.courses import ensure_course_teacher, get_course_or_404, is_enrolled
from teachassist.schemas import ManualGrade, RubricGradeRead, SubmissionCreate, SubmissionRead

router = APIRouter(tags=["submissions"])


def submission_read(submission: Submission) -> SubmissionRead:
    return SubmissionRead(
        id=submission.id,
        assignment_id=submission.assignment_id,
        student_id=submission.student_id,
        content=submission.content,
        status=submission.status,
        grade=submission.grade,
        feedback=submission.feedback,
        graded_by=submission.graded_by,
        graded_at=submission.graded_at,
        rubric_grades=[RubricGradeRead(**item) for item in json.loads(submission.rubric_grades_json or "[]")],
        manual_review_needed=submission.manual_review_needed,
        created_at=submission.created_at,
    )


def get_submission_or_404(session: Session, submission_id: int) -> Submission:
    submission = session.get(Submission, submission_id)
    if not submission:
        raise HTTPException(status_code=404, detail="Submission not found")
    return submission


def submission_course(session: Session, submission: Submission) -> Course:
    assignment = get_assignment_or_404(session, submission.assignment_id)
    return get_course_or_404(session, assignment.course_id)


@router.post(
    "/assignments/{assignment_id}/submissions",
    response_model=SubmissionRead,
    status_code=status.HTTP_201_CREATED,
)
def create_submission(
    assignment_id: int,
    payload: SubmissionCreate,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
) -> SubmissionRead:
    require_role(user, UserRole.STUDENT, detail="Only students can submit work")
    assignment = get_assignment_or_404(session, assignment_id)
    if not is_enrolled(session, assignment.course_id, user.id):
        raise HTTPException(status_code=403, detail="You are not enrolled in this course")

    existing = session.exec(
        select(Submission).where(Submission.assignment_id == assignment_id, Submission.student_id == user.id)
    ).first()
    if existing:
        raise HTTPException(status_code=400, detail="You have already submitted this assignment")

    submission = Submission(assignment_id=assignment_id, student_id=user.id, content=payload.content)
    session.add(submission)
    session.commit()
    session.refresh(submission)
    return submission_read(submission)


@router.get("/assignments/{assignment_id}/submissions", response_model=list[SubmissionRead])
def list_submissions(
    assignment_id: int,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
) -> list[SubmissionRead]:
    assignment = get_assignment_or_404(session, assignment_id)
    ensure_course_teacher(
        get_course_or_404(session, assignment.course_id), user, detail="Not authorized to view these submissions"
    )
    submissions = session.exec(
        select(Submission).where(Submission.assignment_id == assignment_id).order_by(Submission.created_at, Submission.id)
    ).all()
    return [submission_read(submission) for submission in submissions]


@router.get("/submissions/{submission_id}", response_model=SubmissionRead)
def get_submission(
    submission_id: int,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
) -> SubmissionRead:
    submission = get_submission_or_404(session, submission_id)
    if submission.student_id != user.id:
        ensure_course_teacher(submission_course(session, submission), user, detail="Not authorized to view this submission")
    return submission_read(submission)


@router.put("/submissions/{submission_id}/grade", response_model=SubmissionRead)
def grade_manually(
    submission_id: int,
    payload: ManualGrade,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
) -> SubmissionRead:
    submission = get_submission_or_404(session, submission_id)
    ensure_course_teacher(submission_course(session, submission), user, detail="Not authorized to grade this submission")

    submission.grade = payload.grade
    submission.feedback = payload.feedback
    submission.rubric_grades_json = json.dumps([item.model_dump() for item in payload.rubric_grades])
    submission.manual_review_needed = False
    submission.graded_by = GradedBy.TEACHER
    submission.graded_at = utcnow()
    submission.status = SubmissionStatus.GRADED
    session.add(submission)
    session.commit()
    session.refresh(submission)
    return submission_read(submission)
