import re
import unicodedata
from typing import Set

# Anything that is not a Unicode letter or digit separates tokens.
_SEPARATOR_RE = re.compile(r"[\W_]+")


def tokenize(text: str) -> Set[str]:
    """
    Normalize a restaurant name into a comparable token set.

    Args:
        text (str): Free-text name, e.g. "Joe's Pizza".

    Returns:
        Set[str]: Uppercased tokens, e.g. {"JOE", "S", "PIZZA"}.
    """
    # composed form, so "Café" typed with a combining accent still yields CAFÉ
    cleaned = unicodedata.normalize("NFC", text or "").upper().replace("’", "'")
    return {token for token in _SEPARATOR_RE.split(cleaned) if token}
