"""Request and response schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from teachassist.grading.base import GradingResult
from teachassist.models import GradedBy, SubmissionStatus, UserRole


class UserCreate(BaseModel):
    name: str = Field(min_length=1)
    email: str = Field(min_length=3)
    role: UserRole = UserRole.STUDENT


class UserRead(BaseModel):
    id: int
    name: str
    email: str
    role: UserRole
    created_at: datetime


class CourseCreate(BaseModel):
    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    image_url: str = ""


class CourseUpdate(BaseModel):
    title: str | None = None
    description: str | None = None
    image_url: str | None = None


class CourseJoin(BaseModel):
    code: str = Field(min_length=1)


class CourseRead(BaseModel):
    id: int
    title: str
    description: str
    teacher_id: int
    code: str
    image_url: str
    created_at: datetime
    student_ids: list[int] = Field(default_factory=list)


class RubricCriterionIn(BaseModel):
    criteria: str = Field(min_length=1)
    weight: float = Field(ge=0)
    description: str | None = None


class AssignmentCreate(BaseModel):
    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    due_date: datetime
    total_points: float = Field(gt=0)
    rubric: list[RubricCriterionIn] = Field(default_factory=list)
    ai_grading_enabled: bool = True


class AssignmentUpdate(BaseModel):
    title: str | None = None
    description: str | None = None
    due_date: datetime | None = None
    total_points: float | None = Field(default=None, gt=0)
    rubric: list[RubricCriterionIn] | None = None
    ai_grading_enabled: bool | None = None


class AssignmentRead(BaseModel):
    id: int
    course_id: int
    title: str
    description: str
    due_date: datetime
    total_points: float
    rubric: list[RubricCriterionIn]
    ai_grading_enabled: bool
    created_at: datetime


class SubmissionCreate(BaseModel):
    content: str = Field(min_length=1)


class RubricGradeRead(BaseModel):
    criteria: str
    score: float
    feedback: str


class ManualGrade(BaseModel):
    grade: float = Field(ge=0)
    feedback: str = ""
    rubric_grades: list[RubricGradeRead] = Field(default_factory=list)


class SubmissionRead(BaseModel):
    id: int
    assignment_id: int
    student_id: int
    content: str
    status: SubmissionStatus
    grade: float | None
    feedback: str | None
    graded_by: GradedBy | None
    graded_at: datetime | None
    rubric_grades: list[RubricGradeRead] = Field(default_factory=list)
    manual_review_needed: bool
    created_at: datetime


class AIGradeResponse(BaseModel):
    submission: SubmissionRead
    ai_grading_result: str


class BulkGradeResponse(BaseModel):
    msg: str
    submission_count: int


class FeedbackResponse(BaseModel):
    original_feedback: str | None
    personalized_feedback: str


class InterpretRequest(BaseModel):
    rubric: list[RubricCriterionIn] = Field(default_factory=list)
    total_points: float = Field(gt=0)
    raw_text: str = Field(min_length=1)


class InterpretResponse(BaseModel):
    overall_grade: float
    rubric_grades: list[RubricGradeRead]
    manual_review_needed: bool
    feedback: str

    @classmethod
    def from_result(cls, result: GradingResult) -> "InterpretResponse":
        return cls(
            overall_grade=result.overall_grade,
            rubric_grades=[RubricGradeRead(**grade.to_dict()) for grade in result.rubric_grades],
            manual_review_needed=result.manual_review_needed,
            feedback=result.feedback,
        )

