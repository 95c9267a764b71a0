"""
normalize.coerce - Boolean, status and numeric coercion of CSV cells.
"""

from __future__ import annotations

import re
from typing import Any, Optional

from normalize.text import normalize_text

APPROVED_TOKEN = "aprobada"

_INT_RE   = re.compile(r"^[-+]?\d+")
_FLOAT_RE = re.compile(r"^[-+]?(?:\d+(?:\.\d*)?|\.\d+)")


def coerce_bool(value: Any) -> bool:
    """'true' (any case) → True; everything else → False."""
    if not isinstance(value, str):
        return False
    return normalize_text(value).lower() == "true"


def coerce_status(value: Any) -> bool:
    """Inspection status: 'Aprobada' → True; 'Rechazada', 'No Aplica', … → False."""
    if not isinstance(value, str):
        return False
    return normalize_text(value).lower() == APPROVED_TOKEN


def coerce_int(value: Any) -> Optional[int]:
    """
    Leading integer of a cell ('12 km' → 12, '7.9' → 7), or None.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if not isinstance(value, str):
        return None
    m = _INT_RE.match(value.strip())
    return int(m.group(0)) if m else None


def coerce_float(value: Any) -> Optional[float]:
    """
    Leading decimal of a cell, accepting a decimal comma ('3,5' → 3.5).
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if not isinstance(value, str):
        return None
    text = value.strip()
    if "," in text and "." not in text:
        text = text.replace(",", ".")
    m = _FLOAT_RE.match(text)
    return float(m.group(0)) if m else None
