from typing import List, Optional

from rat.models import InspectionRow
from rat.tokenizer import tokenize


def best_token_match(
    name: str,
    rows: List[InspectionRow],
    require_overlap: bool = False,
) -> Optional[InspectionRow]:
    """
    Pick the graded row whose DBA shares the most tokens with `name`.

    The score is the size of the token intersection, not a normalized
    similarity. On equal scores the row the feed returned first wins. That
    tie-break follows feed order rather than any notion of a better match,
    but it is deterministic.

    Args:
        name (str): Name the user searched for or tapped.
        rows (List[InspectionRow]): Candidate rows in feed order.
        require_overlap (bool): Reject rows sharing no token with `name`.

    Returns:
        Optional[InspectionRow]: Best row, or None if no row carries a grade.
    """
    query_tokens = tokenize(name)
    best = None
    best_score = -1
    for row in rows:
        if row.grade is None:
            continue
        score = len(tokenize(row.dba or "") & query_tokens)
        if require_overlap and score == 0:
            continue
        # strict comparison keeps the first row on ties
        if score > best_score:
            best, best_score = row, score
    return best
