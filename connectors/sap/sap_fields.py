"""ABAP field conventions.

SAP hands every value back as text: amounts with a trailing minus sign,
document numbers zero-padded to their domain width, booleans as "X" or blank.
These helpers turn such values into plain Python values without ever
producing None or NaN.

Examples:
    to_float("1250.50")     → 1250.5
    to_float("75.00-")      → -75.0
    to_float(None)          → 0.0
    strip_leading_zeros("0000004711") → "4711"
    strip_leading_zeros("0000000000") → "0"
    aging_bucket(45)        → "31-60 Days"
"""

import math
import re
from typing import Any


# Identifier made only of zeros collapses to this value
ZERO_ID_FALLBACK = "0"

DEFAULT_CURRENCY = "EUR"

# Bucket label for anything not overdue
CURRENT_BUCKET = "Current"

# (exclusive lower bound in days, label), checked top-down
AGING_BUCKETS = (
    (90, "90+ Days"),
    (60, "61-90 Days"),
    (30, "31-60 Days"),
    (0, "1-30 Days"),
)

_FLOAT_PREFIX = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?")
_INT_PREFIX = re.compile(r"^[+-]?\d+")


def to_str(value: Any, default: str = "") -> str:
    """Text content of a field; missing or structured values give the default."""
    if value is None or isinstance(value, (dict, list)):
        return default
    if isinstance(value, bool):
        return "X" if value else ""
    text = str(value)
    return text if text != "" else default


def _numeric_text(value: Any) -> str:
    text = str(value).strip().replace(",", "")
    # ABAP renders negatives as "123.45-"
    if text.endswith("-") and not text.startswith(("-", "+")):
        text = "-" + text[:-1].strip()
    return text


def to_float(value: Any, default: float = 0.0) -> float:
    """Coerce to float the way a lenient number parser would.

    Leading numeric prefixes are honoured ("12.5 EUR" → 12.5); anything that
    yields no finite number returns the default.
    """
    if value is None or isinstance(value, (dict, list)):
        return default
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        result = float(value)
    else:
        match = _FLOAT_PREFIX.match(_numeric_text(value))
        if not match:
            return default
        result = float(match.group(0))
    if math.isnan(result) or math.isinf(result):
        return default
    return result


def to_int(value: Any, default: int = 0) -> int:
    """Coerce to int using the leading integer digits ("45.7" → 45)."""
    if value is None or isinstance(value, (dict, list, bool)):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else default
    match = _INT_PREFIX.match(_numeric_text(value))
    if not match:
        return default
    return int(match.group(0))


def strip_leading_zeros(value: Any) -> str:
    """Remove SAP's zero padding from a document/material/customer number.

    A missing value stays empty; a value made only of zeros becomes "0".
    """
    text = to_str(value).strip()
    if not text:
        return ""
    return text.lstrip("0") or ZERO_ID_FALLBACK


def is_success(value: Any) -> bool:
    """SAP success flag: "X" or a real boolean True. Anything else is failure."""
    if value is True:
        return True
    return isinstance(value, str) and value.strip() == "X"


def aging_bucket(days_overdue: int) -> str:
    """Receivables bucket label for a days-overdue count."""
    for lower_bound, label in AGING_BUCKETS:
        if days_overdue > lower_bound:
            return label
    return CURRENT_BUCKET
