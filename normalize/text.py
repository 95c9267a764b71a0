"""
normalize.text - Whitespace normalization.
"""

from __future__ import annotations

import re
from typing import Any, Optional

_WS = re.compile(r"\s+")


def normalize_text(value: Any) -> Any:
    """
    Collapse every whitespace run to a single space and trim the ends.
    Non-string input is returned unchanged.
    """
    if not isinstance(value, str):
        return value
    return _WS.sub(" ", value).strip()


def blank_to_none(value: Any) -> Optional[str]:
    """Normalized text, or None when the value is missing or blank."""
    if value is None:
        return None
    text = normalize_text(value if isinstance(value, str) else str(value))
    return text or None
