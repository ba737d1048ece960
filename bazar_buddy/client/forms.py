"""Input helpers shared by the CLI prompts and the store."""

import re
from typing import Optional, Sequence

from ..core.exceptions import ListValidationError
from ..models.schemas import ItemCreate

_QUANTITY_RE = re.compile(r"^\d*\.?\d*$")


def parse_quantity_input(text: str) -> Optional[float]:
    """Accept only digits with at most one decimal point.

    Returns None for anything else (and for empty or lone-dot input), so the
    caller keeps its previous value.
    """
    text = text.strip()
    if not _QUANTITY_RE.match(text) or text in ("", "."):
        return None
    return float(text)


def validate_new_list(title: str, items: Sequence[ItemCreate]) -> None:
    """Reject a list that has no title or no items."""
    if not title or not title.strip():
        raise ListValidationError("Please enter a list title")
    if not items:
        raise ListValidationError("Please add at least one item to your list")
