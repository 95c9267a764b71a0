"""
normalize.dates - Lenient date parsing for spreadsheet exports.

Accepted:  YYYY-MM-DD, DD-MM-YYYY, DD/MM/YYYY
           optionally followed by ", HH:MM" (the time is discarded)
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Optional

logger = logging.getLogger(__name__)


def parse_flexible_date(raw: Any) -> Optional[date]:
    """
    Parse a date in any accepted layout.  Returns None for empty or
    unparseable input; never raises.

    >>> parse_flexible_date("24-06-2025, 09:21")
    datetime.date(2025, 6, 24)
    """
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    if not isinstance(raw, str) or not raw.strip():
        return None

    text = raw.split(",")[0].strip()
    if "/" in text:
        parts = text.split("/")
    elif "-" in text:
        parts = text.split("-")
    else:
        return None

    if len(parts) != 3 or not all(p.strip().isdigit() for p in parts):
        logger.debug("Unrecognised date %r", raw)
        return None

    if len(parts[0].strip()) == 4:
        year, month, day = (int(p) for p in parts)
    else:
        day, month, year = (int(p) for p in parts)

    try:
        return date(year, month, day)
    except (ValueError, OverflowError):
        logger.warning("Invalid date %r", raw)
        return None
