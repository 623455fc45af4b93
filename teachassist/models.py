"""SQLModel ORM models for TeachAssist."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from sqlmodel import Field, SQLModel


def utcnow() -> datetime:
    """Return timezone-aware UTC now timestamp."""
    return datetime.now(timezone.utc)


class UserRole(str, Enum):
    TEACHER = "teacher"
    STUDENT = "student"
    ADMIN = "admin"


class SubmissionStatus(str, Enum):
    SUBMITTED = "SUBMITTED"
    GRADED = "GRADED"


class GradedBy(str, Enum):
    AI = "ai"
    TEACHER = "teacher"


class User(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    email: str = Field(index=True, unique=True)
    role: UserRole = Field(default=UserRole.STUDENT)
    created_at: datetime = Field(default_factory=utcnow)


class Course(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    title: str
    description: str
    teacher_id: int = Field(foreign_key="user.id", index=True)
    code: str = Field(index=True, unique=True)
    image_url: str = ""
    created_at: datetime = Field(default_factory=utcnow)


class CourseEnrollment(SQLModel, table=True):
    course_id: int = Field(foreign_key="course.id", primary_key=True)
    student_id: int = Field(foreign_key="user.id", primary_key=True)
    created_at: datetime = Field(default_factory=utcnow)


class Assignment(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    course_id: int = Field(foreign_key="course.id", index=True)
    title: str
    description: str
    due_date: datetime
    total_points: float
    rubric_json: str = "[]"
    ai_grading_enabled: bool = True
    created_at: datetime = Field(default_factory=utcnow)


class Submission(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    assignment_id: int = Field(foreign_key="assignment.id", index=True)
    student_id: int = Field(foreign_key="user.id", index=True)
    content: str
    status: SubmissionStatus = Field(default=SubmissionStatus.SUBMITTED)
    grade: Optional[float] = None
    feedback: Optional[str] = None
    graded_by: Optional[GradedBy] = None
    graded_at: Optional[datetime] = None
    rubric_grades_json: str = "[]"
    manual_review_needed: bool = False
    created_at: datetime = Field(default_factory=utcnow)
