"""
normalize.rut - Chilean RUT (Rol Único Tributario) validation.

Format:  [body]-[check]
         body  = 7-8 digits, optionally grouped with '.' (12.345.678)
         check = 0-9 or K, computed with the modulo-11 algorithm.

The hyphen is mandatory in the input; dots are optional.  Validated
values are returned upper-cased, with or without dots on request.
"""

from __future__ import annotations

import re
from typing import Any, NamedTuple, Optional

_RUT_RE   = re.compile(r"^(\d{1,3}(?:\.\d{3}){0,2}|\d{7,8})-[0-9K]$", re.IGNORECASE)
_CLEAN_RE = re.compile(r"^\d{7,8}[0-9K]$")


class RutResult(NamedTuple):
    valid: bool
    value: Optional[str]


INVALID = RutResult(False, None)


def compute_check_digit(body: str) -> str:
    """
    Modulo-11 check symbol for a string of digits.

    Weights 2..7 are applied cyclically starting from the least
    significant digit; a result of 11 maps to '0' and 10 to 'K'.
    """
    total = 0
    weight = 2
    for ch in reversed(body):
        total += int(ch) * weight
        weight = 2 if weight == 7 else weight + 1
    expected = 11 - (total % 11)
    if expected == 11:
        return "0"
    if expected == 10:
        return "K"
    return str(expected)


def _group(body: str) -> str:
    """'12345678' → '12.345.678'"""
    head = len(body) % 3 or 3
    groups = [body[:head]] + [body[i:i + 3] for i in range(head, len(body), 3)]
    return ".".join(groups)


def validate_rut(raw: Any, with_dots: bool = False) -> RutResult:
    """
    Validate a RUT and return it formatted.

    >>> validate_rut("12.345.678-5")
    RutResult(valid=True, value='12345678-5')
    >>> validate_rut("12345678-5", with_dots=True)
    RutResult(valid=True, value='12.345.678-5')
    >>> validate_rut("12345678-0")
    RutResult(valid=False, value=None)
    """
    if not isinstance(raw, str):
        return INVALID
    if not _RUT_RE.match(raw):
        return INVALID

    cleaned = raw.replace(".", "").replace("-", "").upper()
    if not _CLEAN_RE.match(cleaned):
        return INVALID

    body, check = cleaned[:-1], cleaned[-1]
    if compute_check_digit(body) != check:
        return INVALID

    formatted = _group(body) if with_dots else body
    return RutResult(True, f"{formatted}-{check}")


def format_rut(raw: Any, with_dots: bool = True) -> Optional[str]:
    """Formatted RUT or None when invalid."""
    return validate_rut(raw, with_dots).value
