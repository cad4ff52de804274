"""
Display projection of a resolved restaurant: grade badge, score and
violation history.

Grades outside A/B/C are never shown verbatim; every surface that renders a
grade goes through display_grade().
"""
import re
from datetime import datetime
from typing import List, Optional

from rat.grouper import DESCRIPTION_DELIMITER, INSPECTION_DATE_FORMAT
from rat.models import AggregatedInspection, InspectionView, MatchCandidate, ViolationView

VALID_GRADES = ("A", "B", "C")
NOT_AVAILABLE = "N/A"

GRADE_COLORS = {
    "A": "green",
    "B": "yellow",
    "C": "red",
}
NEUTRAL_COLOR = "gray"

_DETAIL_SEPARATOR_RE = re.compile(r"[.;]")


def display_grade(grade: Optional[str]) -> str:
    raw = (grade or "").upper()
    return raw if raw in VALID_GRADES else NOT_AVAILABLE


def grade_color(grade: Optional[str]) -> str:
    return GRADE_COLORS.get(display_grade(grade), NEUTRAL_COLOR)


def display_score(demerit: Optional[int]) -> Optional[int]:
    """Invert a demerit score so higher is better; None when outside [0, 100]."""
    if demerit is None or not 0 <= demerit <= 100:
        return None
    return 100 - demerit


def severity_hue(score: Optional[int]) -> float:
    """
    Hue (0.0 red to 0.33 green) for a display score.

    Scores are rounded to whole points and clamped into [0, 100]; a missing
    score counts as 0.
      0-27   -> 0.0
      28-86  -> 0.0 to 0.15, linear
      87-100 -> 0.15 to 0.33, linear
    """
    points = int(round(score)) if score is not None else 0
    clamped = max(0, min(points, 100))
    if clamped <= 27:
        return 0.0
    if clamped <= 86:
        return 0.15 * (clamped - 28) / 58
    return 0.15 + 0.18 * (clamped - 87) / 13


def format_inspection_date(raw: str) -> str:
    """Format "2024-03-04T00:00:00.000" as "Mar 4, 2024"; unparsable dates pass through."""
    try:
        date = datetime.strptime(raw, INSPECTION_DATE_FORMAT)
    except ValueError:
        return raw
    return f"{date:%b} {date.day}, {date.year}"


def split_violation_details(description: str) -> List[str]:
    """Break an aggregated description into one line per sentence or clause."""
    details = []
    for part in description.split(DESCRIPTION_DELIMITER):
        details.extend(p.strip() for p in _DETAIL_SEPARATOR_RE.split(part))
    return [d for d in details if d]


def project_inspection(inspection: AggregatedInspection) -> ViolationView:
    score = display_score(inspection.score)
    return ViolationView(
        date=inspection.inspection_date,
        formatted_date=format_inspection_date(inspection.inspection_date),
        details=split_violation_details(inspection.description),
        critical_flag=inspection.critical_flag,
        display_score=score,
        severity_hue=severity_hue(score),
    )


def project(candidate: MatchCandidate) -> InspectionView:
    """
    Build the grade badge and violation history for a resolved restaurant.

    Args:
        candidate (MatchCandidate): Output of the resolver.

    Returns:
        InspectionView: Normalized grade, its color class and one entry per visit, newest first.
    """
    return InspectionView(
        camis=candidate.camis,
        name=candidate.name,
        display_grade=display_grade(candidate.grade),
        color_class=grade_color(candidate.grade),
        violations=[project_inspection(i) for i in candidate.inspections],
    )
