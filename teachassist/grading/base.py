"""Grading result types shared by the interpreter, pipeline and routers."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any

MANUAL_REVIEW_NOTICE = (
    "The AI grading system couldn't determine a grade from the response. "
    "Please review the submission manually.\n\n"
)


@dataclass(frozen=True)
class RubricCriterion:
    name: str
    weight: float
    description: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RubricCriterion":
        return cls(
            name=str(data.get("criteria") or data.get("name") or ""),
            weight=float(data.get("weight", 0)),
            description=data.get("description"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"criteria": self.name, "weight": self.weight, "description": self.description}


@dataclass(frozen=True)
class CriterionGrade:
    criteria: str
    score: float
    feedback: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class GradingResult:
    """Structured outcome of interpreting one grading response.

    ``feedback`` is the full response text, prefixed with
    :data:`MANUAL_REVIEW_NOTICE` when ``manual_review_needed`` is set.
    """

    overall_grade: float
    rubric_grades: list[CriterionGrade] = field(default_factory=list)
    manual_review_needed: bool = False
    feedback: str = ""
