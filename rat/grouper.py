from datetime import datetime
from typing import Dict, List, Optional

from rat.models import UNKNOWN_DATE, AggregatedInspection, InspectionRow

DESCRIPTION_DELIMITER = " ||| "
INSPECTION_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S.%f"


def parse_score(score: Optional[str]) -> Optional[int]:
    """Parse a string-encoded demerit score; None when it is absent or not an integer."""
    if score is None:
        return None
    try:
        return int(str(score).strip())
    except ValueError:
        return None


def is_parsable_date(value: str) -> bool:
    try:
        datetime.strptime(value, INSPECTION_DATE_FORMAT)
        return True
    except ValueError:
        return False


def group_inspections(rows: List[InspectionRow]) -> List[AggregatedInspection]:
    """
    Collapse violation rows into one record per inspection date.

    Within a visit, descriptions are joined with " ||| ", the visit is
    critical if any row is, and the score is the highest parseable demerit.

    Args:
        rows (List[InspectionRow]): Rows of a single restaurant.

    Returns:
        List[AggregatedInspection]: Newest visit first. Visits whose date does
        not parse (including "Unknown Date") come last, in first-seen order.
    """
    buckets: Dict[str, List[InspectionRow]] = {}
    for row in rows:
        buckets.setdefault(row.inspection_date or UNKNOWN_DATE, []).append(row)

    aggregates = []
    for date, group in buckets.items():
        descriptions = [r.violation_description for r in group if r.violation_description is not None]
        scores = [s for s in (parse_score(r.score) for r in group) if s is not None]
        critical = any(r.critical_flag == "Critical" for r in group)
        aggregates.append(
            AggregatedInspection(
                inspection_date=date,
                description=DESCRIPTION_DELIMITER.join(descriptions),
                critical_flag="Critical" if critical else "Not Critical",
                score=max(scores) if scores else None,
                row_count=len(group),
            )
        )

    dated = [a for a in aggregates if is_parsable_date(a.inspection_date)]
    undated = [a for a in aggregates if not is_parsable_date(a.inspection_date)]
    dated.sort(key=lambda a: a.inspection_date, reverse=True)
    return dated + undated
