"""Assignment endpoints, nested under courses where they are created."""

from __future__ import annotations

import json

from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session, delete, select

from teachassist.auth import get_current_user
from teachassist.db import get_session
from teachassist.models import Assignment, Submission, User, UserRole
from teachassist.routers.courses import ensure_course_teacher, get_course_or_404, is_enrolled
from teachassist.schemas import AssignmentCreate, AssignmentRead, AssignmentUpdate, RubricCriterionIn

router = APIRouter(tags=["assignments"])


def assignment_read(assignment: Assignment) -> AssignmentRead:
    return AssignmentRead(
        id=assignment.id,
        course_id=assignment.course_id,
        title=assignment.title,
        description=assignment.description,
        due_date=assignment.due_date,
        total_points=assignment.total_points,
        rubric=[RubricCriterionIn(**item) for item in json.loads(assignment.rubric_json or "[]")],
        ai_grading_enabled=assignment.ai_grading_enabled,
        created_at=assignment.created_at,
    )


def get_assignment_or_404(session: Session, assignment_id: int) -> Assignment:
    assignment = session.get(Assignment, assignment_id)
    if not assignment:
        raise HTTPException(status_code=404, detail="Assignment not found")
    return assignment


def ensure_can_view_course(session: Session, course_id: int, user: User) -> None:
    course = get_course_or_404(session, course_id)
    if course.teacher_id == user.id or user.role == UserRole.ADMIN:
        return
    if not is_enrolled(session, course_id, user.id):
        raise HTTPException(status_code=403, detail="Not authorized to view this course")


@router.post("/courses/{course_id}/assignments", response_model=AssignmentRead, status_code=status.HTTP_201_CREATED)
def create_assignment(
    course_id: int,
    payload: AssignmentCreate,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
) -> AssignmentRead:
    course = get_course_or_404(session, course_id)
    ensure_course_teacher(course, user, detail="Not authorized to add assignments to this course")

    assignment = Assignment(
        course_id=course_id,
        title=payload.title,
        description=payload.description,
        due_date=payload.due_date,
        total_points=payload.total_points,
        rubric_json=json.dumps([item.model_dump() for item in payload.rubric]),
        ai_grading_enabled=payload.ai_grading_enabled,
    )
    session.add(assignment)
    session.commit()
    session.refresh(assignment)
    return assignment_read(assignment)


@router.get("/courses/{course_id}/assignments", response_model=list[AssignmentRead])
def list_assignments(
    course_id: int,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
) -> list[AssignmentRead]:
    ensure_can_view_course(session, course_id, user)
    assignments = session.exec(
        select(Assignment).where(Assignment.course_id == course_id).order_by(Assignment.due_date, Assignment.id)
    ).all()
    return [assignment_read(assignment) for assignment in assignments]


@router.get("/assignments/{assignment_id}", response_model=AssignmentRead)
def get_assignment(
    assignment_id: int,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
) -> AssignmentRead:
    assignment = get_assignment_or_404(session, assignment_id)
    ensure_can_view_course(session, assignment.course_id, user)
    return assignment_read(assignment)


@router.put("/assignments/{assignment_id}", response_model=AssignmentRead)
def update_assignment(
    assignment_id: int,
    payload: AssignmentUpdate,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
) -> AssignmentRead:
    assignment = get_assignment_or_404(session, assignment_id)
    ensure_course_teacher(get_course_or_404(session, assignment.course_id), user, detail="Not authorized to update this assignment")

    updates = payload.model_dump(exclude_unset=True)
    rubric = updates.pop("rubric", None)
    if rubric is not None:
        assignment.rubric_json = json.dumps(rubric)
    for key, value in updates.items():
        if value is not None:
            setattr(assignment, key, value)

    session.add(assignment)
    session.commit()
    session.refresh(assignment)
    return assignment_read(assignment)


@router.delete("/assignments/{assignment_id}")
def delete_assignment(
    assignment_id: int,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
) -> dict[str, str]:
    assignment = get_assignment_or_404(session, assignment_id)
    ensure_course_teacher(get_course_or_404(session, assignment.course_id), user, detail="Not authorized to delete this assignment")

    session.exec(delete(Submission).where(Submission.assignment_id == assignment_id))
    session.delete(assignment)
    session.commit()
    return {"msg": "Assignment removed"}
