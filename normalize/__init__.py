"""
normalize - Field normalization and identifier validation.

Public API:
    normalize_text / blank_to_none     → whitespace cleanup
    validate_rut / format_rut          → checksum-validated national IDs
    parse_flexible_date                → DD-MM-YYYY, DD/MM/YYYY, YYYY-MM-DD
    coerce_bool / coerce_status        → literal boolean coercion
    coerce_int / coerce_float          → lenient numeric parsing
"""

from normalize.text import normalize_text, blank_to_none              # noqa: F401
from normalize.rut import (                                           # noqa: F401
    RutResult,
    compute_check_digit,
    validate_rut,
    format_rut,
)
from normalize.dates import parse_flexible_date                       # noqa: F401
from normalize.coerce import (                                        # noqa: F401
    coerce_bool,
    coerce_status,
    coerce_int,
    coerce_float,
)
