"""Heuristic interpreter for free-form AI grading responses."""

from __future__ import annotations

import re
from collections.abc import Sequence

from teachassist.grading.base import MANUAL_REVIEW_NOTICE, CriterionGrade, GradingResult, RubricCriterion

_NUMBER = r"(\d+\.?\d*)"
_PERCENT_PATTERN = re.compile(_NUMBER + "%")
_FIRST_NUMBER_PATTERN = re.compile(_NUMBER)
_SCORE = r"(?P<score>\d+\.?\d*)"
_SENTENCE_BREAK = re.compile(r"(?<=[.!?])\s+")
_PARAGRAPH_BREAK = re.compile(r"\n\s*\n")


def _format_points(total_points: float) -> str:
    value = float(total_points)
    if value.is_integer():
        return str(int(value))
    return str(value)


def _overall_grade_patterns(total_points: float) -> list[str]:
    total = re.escape(_format_points(total_points))
    return [
        rf"grade:?\s*{_NUMBER}",
        rf"{_NUMBER}\s*(?:out of|/)\s*{total}",
        rf"score:?\s*{_NUMBER}",
        rf"points:?\s*{_NUMBER}",
        rf"total:?\s*{_NUMBER}",
        rf"overall:?\s*{_NUMBER}",
    ]


def _criterion_patterns(name: str) -> list[str]:
    # Names are interpolated as-is, so they act as patterns themselves and may
    # carry their own groups; the score is read from the named group.
    return [
        rf"{name}[^:]*:?\s*{_SCORE}\s*(?:points|point|pts|pt)?",
        rf"{name}[^:]*:?\s*(?:score|points|grade)?\s*:?\s*{_SCORE}",
        rf"for\s+(?:the\s+)?{name}[^:]*:?\s*{_SCORE}",
    ]


def _search(pattern: str, text: str) -> re.Match[str] | None:
    try:
        return re.search(pattern, text, re.IGNORECASE)
    except re.error:
        # A criterion name that is not a valid pattern simply never matches.
        return None


def split_paragraphs(text: str) -> list[list[str]]:
    """Split text into paragraphs, each a list of sentences."""
    paragraphs: list[list[str]] = []
    for block in _PARAGRAPH_BREAK.split(text):
        sentences: list[str] = []
        for line in block.splitlines():
            sentences.extend(part.strip() for part in _SENTENCE_BREAK.split(line) if part.strip())
        if sentences:
            paragraphs.append(sentences)
    return paragraphs


def _mentions(sentence: str, name: str) -> bool:
    return name.lower() in sentence.lower()


def extract_overall_grade(raw_text: str, total_points: float) -> float | None:
    for pattern in _overall_grade_patterns(total_points):
        match = _search(pattern, raw_text)
        if match:
            return float(match.group(1))

    percent_match = _PERCENT_PATTERN.search(raw_text)
    if percent_match:
        return float(percent_match.group(1)) / 100 * float(total_points)
    return None


def extract_criterion_score(name: str, raw_text: str, sentences: Sequence[str]) -> float | None:
    for pattern in _criterion_patterns(name):
        match = _search(pattern, raw_text)
        if match:
            return float(match.group("score"))

    relevant = [sentence for sentence in sentences if _mentions(sentence, name)]
    if not relevant:
        return None
    number_match = _FIRST_NUMBER_PATTERN.search(" ".join(relevant))
    if number_match:
        return float(number_match.group(1))
    return None


def associate_feedback(rubric: Sequence[RubricCriterion], paragraphs: Sequence[Sequence[str]]) -> list[list[str]]:
    """Return, per criterion, the sentences that belong to it.

    A sentence mentioning one or more criteria belongs to each of them. A
    sentence mentioning none continues the last mentioning sentence of the
    same paragraph, which goes beyond attributing only sentences that name
    the criterion.
    """
    attributed: list[list[str]] = [[] for _ in rubric]
    for paragraph in paragraphs:
        current: list[int] = []
        for sentence in paragraph:
            mentioned = [idx for idx, criterion in enumerate(rubric) if _mentions(sentence, criterion.name)]
            if mentioned:
                current = mentioned
            for idx in current:
                attributed[idx].append(sentence)
    return attributed


def _reconcile(scored: Sequence[tuple[RubricCriterion, CriterionGrade]], total_points: float) -> float | None:
    total_weight = sum(criterion.weight for criterion, _ in scored)
    if total_weight <= 0:
        return None
    weighted_score = sum(grade.score for _, grade in scored)
    return weighted_score / total_weight * float(total_points)


def interpret_grading_response(
    rubric: Sequence[RubricCriterion],
    total_points: float,
    raw_text: str,
) -> GradingResult:
    """Recover a structured grade from free-form grading text.

    The overall grade comes from the first matching label pattern, in a fixed
    priority order, then from a percentage. Each rubric criterion gets a score
    from its own patterns or from the first number in sentences naming it.
    When no overall grade is found it is rebuilt from the criterion scores,
    divided by the weights of the criteria that actually scored. Failing all
    of that the grade is 0 and the result is flagged for manual review.

    Never raises for any text; the same inputs always give an equal result.
    """
    paragraphs = split_paragraphs(raw_text)
    sentences = [sentence for paragraph in paragraphs for sentence in paragraph]
    attributed = associate_feedback(rubric, paragraphs)

    scored: list[tuple[RubricCriterion, CriterionGrade]] = []
    for criterion, criterion_sentences in zip(rubric, attributed, strict=True):
        score = extract_criterion_score(criterion.name, raw_text, sentences)
        if score is None:
            continue
        scored.append(
            (criterion, CriterionGrade(criteria=criterion.name, score=score, feedback=" ".join(criterion_sentences)))
        )

    overall_grade = extract_overall_grade(raw_text, total_points)
    if overall_grade is None and scored:
        overall_grade = _reconcile(scored, total_points)

    if overall_grade is None:
        return GradingResult(
            overall_grade=0.0,
            rubric_grades=[grade for _, grade in scored],
            manual_review_needed=True,
            feedback=MANUAL_REVIEW_NOTICE + raw_text,
        )

    return GradingResult(
        overall_grade=overall_grade,
        rubric_grades=[grade for _, grade in scored],
        manual_review_needed=False,
        feedback=raw_text,
    )
