"""Prompt construction for AI grading and personalised feedback."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from teachassist.grading.base import CriterionGrade, RubricCriterion


@dataclass(frozen=True)
class AssignmentContext:
    title: str
    description: str
    total_points: float
    rubric: Sequence[RubricCriterion]


@dataclass(frozen=True)
class ChatPrompt:
    system: str
    user: str


# Checked in order; the first keyword hit decides the assignment type.
_ASSIGNMENT_TYPES: list[tuple[str, tuple[str, ...], list[str]]] = [
    (
        "essay",
        ("essay", "research", "paper"),
        [
            "Clear thesis statement and argument structure",
            "Quality of supporting evidence and citations",
            "Logical flow and organization",
            "Grammar, spelling, and writing style",
            "Depth of analysis and critical thinking",
        ],
    ),
    (
        "assessment",
        ("quiz", "test", "exam"),
        [
            "Accuracy of answers against standard solutions",
            "Completeness of responses",
            "Proper showing of work/steps where applicable",
            "Understanding of key concepts",
            "No partial credit for completely wrong answers",
        ],
    ),
    (
        "coding",
        ("programming", "code", "algorithm"),
        [
            "Code correctness and functionality",
            "Algorithm efficiency and approach",
            "Code organization and readability",
            "Implementation of required features",
            "Documentation and comments",
        ],
    ),
    (
        "presentation",
        ("presentation", "slide", "speech"),
        [
            "Organization and flow of content",
            "Visual design and clarity",
            "Coverage of required topics",
            "Quality of supporting materials",
            "Communication effectiveness",
        ],
    ),
    (
        "lab",
        ("lab", "experiment", "practical"),
        [
            "Following of proper procedures",
            "Accuracy of observations and data collection",
            "Analysis and interpretation of results",
            "Understanding of underlying concepts",
            "Conclusions drawn from the experiment",
        ],
    ),
    (
        "reflection",
        ("reflection", "journal", "diary"),
        [
            "Depth of personal insight",
            "Connection to course concepts",
            "Critical thinking about experiences",
            "Growth in understanding",
            "Quality of writing and expression",
        ],
    ),
    (
        "discussion",
        ("discussion", "debate", "forum"),
        [
            "Engagement with the topic",
            "Quality of original contributions",
            "Response to others' ideas",
            "Use of evidence and reasoning",
            "Clarity and focus of communication",
        ],
    ),
    (
        "project",
        ("project", "portfolio", "capstone"),
        [
            "Achievement of project goals",
            "Quality of implementation/execution",
            "Creativity and originality",
            "Technical proficiency shown",
            "Documentation and presentation",
        ],
    ),
    (
        "review",
        ("review", "summary", "critique"),
        [
            "Comprehensive coverage of the source material",
            "Critical analysis rather than just summary",
            "Supported opinions and judgments",
            "Logical organization of critique",
            "Insight beyond surface-level observations",
        ],
    ),
    (
        "analysis",
        ("analysis", "case study", "evaluation"),
        [
            "Depth of analytical thinking",
            "Application of relevant concepts/theories",
            "Evidence-based reasoning",
            "Consideration of multiple perspectives",
            "Logical conclusions from analysis",
        ],
    ),
]

_EXPECTATION_LABELS = {
    "essay": "essay/research assignment",
    "assessment": "quiz/test",
    "coding": "programming assignment",
    "presentation": "presentation assignment",
    "lab": "lab/practical assignment",
    "reflection": "reflection assignment",
    "discussion": "discussion assignment",
    "project": "project assignment",
    "review": "review/critique assignment",
    "analysis": "analysis assignment",
}


def detect_assignment_type(title: str) -> str:
    lowered = title.lower()
    for name, keywords, _ in _ASSIGNMENT_TYPES:
        if any(keyword in lowered for keyword in keywords):
            return name
    return "general"


def assignment_expectations(title: str) -> str:
    assignment_type = detect_assignment_type(title)
    for name, _, points in _ASSIGNMENT_TYPES:
        if name == assignment_type:
            lines = [f"For this {_EXPECTATION_LABELS[name]}, evaluate:"]
            lines.extend(f"- {point}" for point in points)
            return "\n".join(lines)
    return ""


def performance_level(grade: float | None, total_points: float) -> str:
    if grade is None or total_points <= 0:
        return "average"
    percent = grade / total_points * 100
    if percent >= 90:
        return "excellent"
    if percent >= 80:
        return "good"
    if percent >= 70:
        return "satisfactory"
    if percent < 60:
        return "needs improvement"
    return "average"


def format_points(value: float) -> str:
    return f"{value:g}"


def format_rubric(rubric: Sequence[RubricCriterion]) -> str:
    return "\n".join(
        f"- {criterion.name} ({format_points(criterion.weight)} points): {criterion.description or ''}"
        for criterion in rubric
    )


def build_grading_prompt(assignment: AssignmentContext, content: str) -> ChatPrompt:
    total = format_points(assignment.total_points)
    user = "\n".join(
        [
            f'I have a student submission for an assignment titled "{assignment.title}". This is a detailed grading task.',
            "",
            "ASSIGNMENT DETAILS:",
            f"TITLE: {assignment.title}",
            f"DESCRIPTION: {assignment.description}",
            f"TOTAL POINTS: {total}",
            "",
            "RUBRIC:",
            format_rubric(assignment.rubric),
            "",
            "STUDENT SUBMISSION:",
            content,
            "",
            "Please provide:",
            f"1. A grade out of {total} points that accurately reflects the submission quality relative to THIS specific assignment",
            "2. Detailed feedback for the student on THIS specific assignment",
            "3. Scores for each rubric criteria WITH specific feedback for each",
            "",
            "For grading:",
            f'- The grade MUST be appropriate for the SPECIFIC assignment title "{assignment.title}"',
            f"- State the final grade as \"Grade: X out of {total}\"",
            "- Do NOT give scores of exactly 85/100 as a default",
            "- Be critical and fair in your assessment based on the ACTUAL submission content",
        ]
    )
    system = (
        "You are an experienced teaching assistant specialized in analyzing and grading student submissions "
        "for the specific assignment being reviewed. Your feedback must be tailored to the particular assignment "
        "title and requirements. Provide accurate, fair assessments that truly reflect the quality of work submitted. "
        "Avoid defaulting to standard scores (like 85/100)."
    )
    return ChatPrompt(system=system, user=user)


def build_bulk_grading_prompt(assignment: AssignmentContext, content: str) -> ChatPrompt:
    total = format_points(assignment.total_points)
    user = "\n".join(
        [
            f'I have a student submission for an assignment titled "{assignment.title}" that needs accurate and fair assessment.',
            "",
            "ASSIGNMENT DETAILS:",
            f"TITLE: {assignment.title}",
            f"DESCRIPTION: {assignment.description}",
            f"TOTAL POINTS: {total}",
            "",
            assignment_expectations(assignment.title),
            "",
            "RUBRIC:",
            format_rubric(assignment.rubric),
            "",
            "STUDENT SUBMISSION:",
            content,
            "",
            "REQUIREMENTS FOR GRADING:",
            "1. Analyze the submission based on the SPECIFIC content submitted, NOT based on generic patterns",
            "2. Start by identifying major flaws or incorrect answers - if present, the grade must reflect this",
            "3. Strictly avoid default or \"safe\" scoring patterns (especially 85/100 or similar generic scores)",
            "4. If the submission is poor quality, grade it accordingly (can be below 60%)",
            "5. If the submission is completely incorrect or off-topic, assign a very low score (0-40%)",
            "6. If the submission is exceptional, it can receive a high score (90-100%)",
            f'7. Provide a final grade as "Grade: X out of {total}"',
            "8. In the rubric scoring, ensure each criteria score aligns with actual content quality",
            "9. Provide detailed, specific feedback that references actual content from the submission",
        ]
    )
    system = "\n".join(
        [
            f'You are an advanced educational assessment AI specializing in critical evaluation of student work for "{assignment.title}" assignments.',
            "",
            "Your primary responsibilities:",
            "1. Thoroughly analyze submission content against assignment requirements",
            "2. Detect incorrect answers, plagiarism, or off-topic responses",
            "3. Provide detailed, evidence-based justification for all scores",
            "4. NEVER default to generic scoring patterns (especially avoid 85/100)",
            "5. Allocate scores based on actual content quality, not generosity",
            "6. Be appropriately critical of low-quality or incorrect work",
            "7. Specifically reference actual submission content in your feedback",
        ]
    )
    return ChatPrompt(system=system, user=user)


def format_rubric_feedback(rubric_grades: Sequence[CriterionGrade]) -> str:
    if not rubric_grades:
        return ""
    lines = ["Rubric Assessment:"]
    lines.extend(f"- {grade.criteria}: {format_points(grade.score)} points - {grade.feedback}" for grade in rubric_grades)
    return "\n".join(lines)


def build_feedback_prompt(
    assignment: AssignmentContext,
    student_name: str,
    content: str,
    grade: float | None,
    feedback: str | None,
    rubric_grades: Sequence[CriterionGrade],
) -> ChatPrompt:
    assignment_type = detect_assignment_type(assignment.title)
    level = performance_level(grade, assignment.total_points)
    grade_text = format_points(grade) if grade is not None else "ungraded"
    user = "\n".join(
        [
            f"I need to provide detailed, personalized feedback to a student named {student_name} on their "
            f'{assignment_type} submission for "{assignment.title}".',
            "",
            "ASSIGNMENT DETAILS:",
            f"TITLE: {assignment.title}",
            f"DESCRIPTION: {assignment.description}",
            "",
            "STUDENT SUBMISSION:",
            content,
            "",
            f"CURRENT GRADE: {grade_text} out of {format_points(assignment.total_points)} ({level} performance)",
            "",
            "CURRENT FEEDBACK:",
            feedback or "",
            "",
            "RUBRIC FEEDBACK:",
            format_rubric_feedback(rubric_grades),
            "",
            "Please generate improved, personalized feedback that:",
            f"1. Addresses the student by name ({student_name})",
            "2. Provides specific comments on actual content from their submission",
            "3. Highlights 2-3 specific strengths with concrete examples from their work",
            "4. Identifies 2-3 areas for improvement with specific reference to their work",
            "5. Offers actionable, tailored suggestions to help them improve on this specific assignment type",
            "6. Ends with an encouraging note appropriate to their performance level",
            "",
            f"Match the tone to the student's performance level ({level}).",
        ]
    )
    system = (
        f"You are an expert educator specializing in providing detailed, constructive feedback for {assignment_type} assignments. "
        "Address specific content from the student's work, balance encouragement with honest critique, "
        "and give concrete examples of how to improve. Avoid generic feedback and empty praise."
    )
    return ChatPrompt(system=system, user=user)
