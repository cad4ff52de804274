from typing import List, Optional

from rat.models import InspectionRow


def most_recent_graded(rows: List[InspectionRow]) -> Optional[InspectionRow]:
    """Graded row with the greatest grade_date; a missing grade_date sorts oldest."""
    graded = [r for r in rows if r.grade is not None]
    if not graded:
        return None
    # max() keeps the first of equal keys
    return max(graded, key=lambda r: r.grade_date or "")


def most_recent_row(rows: List[InspectionRow]) -> Optional[InspectionRow]:
    if not rows:
        return None
    return max(rows, key=lambda r: r.grade_date or "")


def match_name_building(rows: List[InspectionRow], zipcode: Optional[str]) -> Optional[InspectionRow]:
    """
    Resolve a name+building query result.

    Prefers rows in the searched postal code that carry a grade; when there
    are none, falls back to the whole result set. Within the chosen set the
    most recently graded row wins.
    """
    in_zip = [r for r in rows if r.zipcode == zipcode and r.grade is not None]
    return most_recent_graded(in_zip or rows)
