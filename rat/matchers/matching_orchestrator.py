# rat/matchers/matching_orchestrator.py

from typing import List, Optional
from rat.grouper import group_inspections
from rat.models import FeedQuery, InspectionRow, MatchCandidate, Stage
from rat.matchers.address_matcher import match_name_building, most_recent_row
from rat.matchers.token_matcher import best_token_match


def build_candidate(chosen: InspectionRow, rows: List[InspectionRow], stage: Stage) -> MatchCandidate:
    """
    Assemble the resolved restaurant from the chosen row.

    Rows sharing the chosen row's camis are that restaurant's history; their
    grouping becomes the violation timeline.
    """
    own_rows = [r for r in rows if r.camis == chosen.camis]
    return MatchCandidate(
        camis=chosen.camis,
        name=chosen.dba,
        stage=stage,
        latest=chosen,
        rows=own_rows,
        inspections=group_inspections(own_rows),
    )


def resolve_stage(
    query: FeedQuery,
    rows: List[InspectionRow],
    name: str,
    zipcode: Optional[str] = None,
) -> Optional[MatchCandidate]:
    """
    Select the restaurant a cascade stage's rows describe.

    Args:
        query (FeedQuery): The query that produced `rows`; its stage picks the policy.
        rows (List[InspectionRow]): Decoded feed rows, in feed order.
        name (str): Name the lookup started from, used for token scoring.
        zipcode (Optional[str]): Postal code from the places directory, if known.

    Returns:
        Optional[MatchCandidate]: The match, or None when this stage has no
        usable result and the cascade should move on.
    """
    if not rows:
        return None

    if query.stage is Stage.CAMIS:
        # every row belongs to the same restaurant
        chosen = most_recent_row(rows)
        return MatchCandidate(
            camis=chosen.camis,
            name=chosen.dba,
            stage=query.stage,
            latest=chosen,
            rows=list(rows),
            inspections=group_inspections(rows),
        )

    if query.stage is Stage.NAME_BUILDING:
        chosen = match_name_building(rows, zipcode)
    elif query.stage is Stage.BUILDING_ONLY:
        chosen = best_token_match(name, rows)
    else:
        chosen = best_token_match(name, rows, require_overlap=True)

    if chosen is None:
        return None
    return build_candidate(chosen, rows, query.stage)
