"""
Text utilities for part numbers and quantities typed or pasted by users.

Used by the bulk paste parser and by row edits.
"""

import re
import unicodedata
from typing import Any, Optional

_SKU_DISALLOWED = re.compile(r"[^A-Z0-9\-_]")
_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def normalize_sku(raw: Optional[str]) -> str:
    """
    Normalize a part number for catalog matching.

    Uppercases, drops accent marks, then strips everything outside
    A-Z, 0-9, '-' and '_':
    - "abc-123 " → "ABC-123"
    - "PN#44/B" → "PN44B"
    - "fíltro_9" → "FILTRO_9"

    Args:
        raw: Part number as typed (may be None)

    Returns:
        Normalized part number, possibly empty
    """
    if not raw:
        return ""

    # NFD separates base chars from accents so "Í" keeps its "I"
    decomposed = unicodedata.normalize("NFD", raw.strip().upper())
    ascii_sku = "".join(
        c for c in decomposed
        if unicodedata.category(c) != "Mn"
    )

    return _SKU_DISALLOWED.sub("", ascii_sku)


def parse_leading_int(raw: Any) -> Optional[int]:
    """
    Read the integer at the start of a field.

    "10" → 10, " 10 " → 10, "5pcs" → 5, "2.5" → 2, "abc" → None.
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        return int(raw) if raw == raw and abs(raw) != float("inf") else None

    match = _LEADING_INT.match(str(raw))
    if not match:
        return None
    return int(match.group(1))


def coerce_quantity(raw: Any) -> int:
    """Quantity from a direct edit: non-numeric or below 1 becomes 1."""
    value = parse_leading_int(raw)
    if value is None or value < 1:
        return 1
    return value
