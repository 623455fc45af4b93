"""AI grading of stored submissions."""

from __future__ import annotations

import json
import logging
import time
import uuid
from collections.abc import Sequence
from dataclasses import dataclass, field

from sqlmodel import Session

from teachassist import db
from teachassist.ai.openai_grader import Completion, GradingModel
from teachassist.ai.prompts import AssignmentContext, build_bulk_grading_prompt, build_grading_prompt
from teachassist.grading.base import CriterionGrade, GradingResult, RubricCriterion
from teachassist.grading.interpreter import interpret_grading_response
from teachassist.models import Assignment, GradedBy, Submission, SubmissionStatus, utcnow
from teachassist.settings import settings

logger = logging.getLogger(__name__)


def load_rubric(assignment: Assignment) -> list[RubricCriterion]:
    return [RubricCriterion.from_dict(item) for item in json.loads(assignment.rubric_json or "[]")]


def load_rubric_grades(submission: Submission) -> list[CriterionGrade]:
    return [CriterionGrade(**item) for item in json.loads(submission.rubric_grades_json or "[]")]


def assignment_context(assignment: Assignment) -> AssignmentContext:
    return AssignmentContext(
        title=assignment.title,
        description=assignment.description,
        total_points=assignment.total_points,
        rubric=load_rubric(assignment),
    )


def apply_grading_result(submission: Submission, result: GradingResult) -> None:
    submission.grade = result.overall_grade
    submission.feedback = result.feedback
    submission.rubric_grades_json = json.dumps([grade.to_dict() for grade in result.rubric_grades])
    submission.manual_review_needed = result.manual_review_needed
    submission.graded_by = GradedBy.AI
    submission.graded_at = utcnow()
    submission.status = SubmissionStatus.GRADED


def grade_submission_with_ai(
    session: Session,
    submission: Submission,
    assignment: Assignment,
    model: GradingModel,
    *,
    bulk: bool = False,
    request_id: str | None = None,
) -> tuple[GradingResult, Completion]:
    """Ask the model to grade one submission and store the interpreted result."""
    request_id = request_id or str(uuid.uuid4())
    context = assignment_context(assignment)
    if bulk:
        prompt = build_bulk_grading_prompt(context, submission.content)
        temperature = settings.bulk_grading_temperature
    else:
        prompt = build_grading_prompt(context, submission.content)
        temperature = settings.grading_temperature

    started = time.perf_counter()
    completion = model.complete(prompt, temperature=temperature, request_id=request_id)
    result = interpret_grading_response(context.rubric, context.total_points, completion.text)

    apply_grading_result(submission, result)
    session.add(submission)
    session.commit()
    session.refresh(submission)

    logger.info(
        "ai/grade completed",
        extra={
            "request_id": request_id,
            "stage": "save_grade",
            "submission_id": submission.id,
            "model": completion.model,
            "grade": result.overall_grade,
            "manual_review_needed": result.manual_review_needed,
            "openai_ms": int((time.perf_counter() - started) * 1000),
        },
    )
    return result, completion


@dataclass
class BulkGradeReport:
    graded: list[int] = field(default_factory=list)
    failed: list[int] = field(default_factory=list)


def bulk_grade_submissions(
    assignment_id: int,
    submission_ids: Sequence[int],
    model: GradingModel,
    delay_seconds: float | None = None,
) -> BulkGradeReport:
    """Grade submissions one at a time, pausing between model calls.

    Runs outside the request, so it opens its own session. A failing
    submission is logged and skipped; the rest of the batch still runs.
    """
    delay = settings.bulk_grade_delay_seconds if delay_seconds is None else delay_seconds
    request_id = str(uuid.uuid4())
    report = BulkGradeReport()

    with Session(db.engine) as session:
        assignment = session.get(Assignment, assignment_id)
        if not assignment:
            logger.error("ai/bulk-grade assignment vanished", extra={"request_id": request_id, "assignment_id": assignment_id})
            return report

        for idx, submission_id in enumerate(submission_ids):
            if idx and delay > 0:
                time.sleep(delay)
            submission = session.get(Submission, submission_id)
            if not submission:
                continue
            try:
                grade_submission_with_ai(session, submission, assignment, model, bulk=True, request_id=request_id)
                report.graded.append(submission_id)
            except Exception:
                session.rollback()
                report.failed.append(submission_id)
                logger.exception(
                    "ai/bulk-grade submission failed",
                    extra={"request_id": request_id, "stage": "bulk_grade", "submission_id": submission_id},
                )

    logger.info(
        "ai/bulk-grade finished",
        extra={
            "request_id": request_id,
            "assignment_id": assignment_id,
            "graded": len(report.graded),
            "failed": len(report.failed),
        },
    )
    return report
