"""Course management and enrolment endpoints."""

from __future__ import annotations

import logging
import secrets
import string

from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session, delete, select

from teachassist.auth import get_current_user, require_role
from teachassist.db import get_session
from teachassist.models import Course, CourseEnrollment, User, UserRole
from teachassist.schemas import CourseCreate, CourseJoin, CourseRead, CourseUpdate

router = APIRouter(prefix="/courses", tags=["courses"])
logger = logging.getLogger(__name__)

_CODE_ALPHABET = string.ascii_uppercase + string.digits
_CODE_LENGTH = 6
_CODE_ATTEMPTS = 5


def generate_course_code(session: Session) -> str:
    for _ in range(_CODE_ATTEMPTS):
        code = "".join(secrets.choice(_CODE_ALPHABET) for _ in range(_CODE_LENGTH))
        if not session.exec(select(Course).where(Course.code == code)).first():
            return code
    raise HTTPException(status_code=500, detail="Unable to generate a unique course code. Please try again.")


def enrolled_student_ids(session: Session, course_id: int) -> list[int]:
    rows = session.exec(select(CourseEnrollment).where(CourseEnrollment.course_id == course_id)).all()
    return [row.student_id for row in rows]


def is_enrolled(session: Session, course_id: int, student_id: int) -> bool:
    return session.get(CourseEnrollment, (course_id, student_id)) is not None


def get_course_or_404(session: Session, course_id: int) -> Course:
    course = session.get(Course, course_id)
    if not course:
        raise HTTPException(status_code=404, detail="Course not found")
    return course


def ensure_course_teacher(course: Course, user: User, detail: str) -> None:
    if course.teacher_id != user.id and user.role != UserRole.ADMIN:
        raise HTTPException(status_code=403, detail=detail)


def course_read(session: Session, course: Course) -> CourseRead:
    return CourseRead(
        id=course.id,
        title=course.title,
        description=course.description,
        teacher_id=course.teacher_id,
        code=course.code,
        image_url=course.image_url,
        created_at=course.created_at,
        student_ids=enrolled_student_ids(session, course.id),
    )


@router.get("", response_model=list[CourseRead])
def list_courses(user: User = Depends(get_current_user), session: Session = Depends(get_session)) -> list[CourseRead]:
    if user.role == UserRole.STUDENT:
        statement = (
            select(Course)
            .join(CourseEnrollment, CourseEnrollment.course_id == Course.id)
            .where(CourseEnrollment.student_id == user.id)
        )
    else:
        statement = select(Course).where(Course.teacher_id == user.id)
    courses = session.exec(statement.order_by(Course.created_at.desc(), Course.id.desc())).all()
    return [course_read(session, course) for course in courses]


@router.post("", response_model=CourseRead, status_code=status.HTTP_201_CREATED)
def create_course(
    payload: CourseCreate,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
) -> CourseRead:
    require_role(user, UserRole.TEACHER, detail="Only teachers can create courses")

    course = Course(
        title=payload.title,
        description=payload.description,
        image_url=payload.image_url,
        teacher_id=user.id,
        code=generate_course_code(session),
    )
    session.add(course)
    session.commit()
    session.refresh(course)
    logger.info("course created", extra={"course_id": course.id, "teacher_id": user.id})
    return course_read(session, course)


@router.post("/join", response_model=CourseRead)
def join_course(
    payload: CourseJoin,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
) -> CourseRead:
    require_role(user, UserRole.STUDENT, detail="Only students can join courses")

    course = session.exec(select(Course).where(Course.code == payload.code.strip().upper())).first()
    if not course:
        raise HTTPException(status_code=404, detail="Invalid course code. Please check and try again.")
    if is_enrolled(session, course.id, user.id):
        raise HTTPException(status_code=400, detail="You are already enrolled in this course")

    session.add(CourseEnrollment(course_id=course.id, student_id=user.id))
    session.commit()
    return course_read(session, course)


@router.get("/{course_id}", response_model=CourseRead)
def get_course(
    course_id: int,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
) -> CourseRead:
    course = get_course_or_404(session, course_id)
    if course.teacher_id != user.id and user.role != UserRole.ADMIN and not is_enrolled(session, course_id, user.id):
        raise HTTPException(status_code=403, detail="Not authorized to view this course")
    return course_read(session, course)


@router.put("/{course_id}", response_model=CourseRead)
def update_course(
    course_id: int,
    payload: CourseUpdate,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
) -> CourseRead:
    course = get_course_or_404(session, course_id)
    ensure_course_teacher(course, user, detail="Not authorized to update this course")

    if payload.title:
        course.title = payload.title
    if payload.description:
        course.description = payload.description
    if payload.image_url:
        course.image_url = payload.image_url

    session.add(course)
    session.commit()
    session.refresh(course)
    return course_read(session, course)


@router.delete("/{course_id}")
def delete_course(
    course_id: int,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
) -> dict[str, str]:
    course = get_course_or_404(session, course_id)
    ensure_course_teacher(course, user, detail="Not authorized to delete this course")

    session.exec(delete(CourseEnrollment).where(CourseEnrollment.course_id == course_id))
    session.delete(course)
    session.commit()
    return {"msg": "Course removed"}


@router.put("/{course_id}/enroll", response_model=CourseRead)
def enroll(
    course_id: int,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
) -> CourseRead:
    require_role(user, UserRole.STUDENT, detail="Only students can enroll in courses")
    course = get_course_or_404(session, course_id)
    if is_enrolled(session, course_id, user.id):
        raise HTTPException(status_code=400, detail="User already enrolled in this course")

    session.add(CourseEnrollment(course_id=course_id, student_id=user.id))
    session.commit()
    return course_read(session, course)


@router.put("/{course_id}/unenroll", response_model=CourseRead)
def unenroll(
    course_id: int,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
) -> CourseRead:
    require_role(user, UserRole.STUDENT, detail="Only students can unenroll from courses")
    course = get_course_or_404(session, course_id)
    enrollment = session.get(CourseEnrollment, (course_id, user.id))
    if not enrollment:
        raise HTTPException(status_code=400, detail="User not enrolled in this course")

    session.delete(enrollment)
    session.commit()
    return course_read(session, course)
