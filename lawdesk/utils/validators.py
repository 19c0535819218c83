import re
from datetime import datetime
from typing import Any

from lawdesk.utils.coerce import to_datetime

_INT_RE = re.compile(r"^-?\d+$")

CREATABLE_STATUSES = ("active", "trialing")

def clean_str(val: Any, max_len: int = 255) -> str | None:
    """
    Collapse whitespace, trim, enforce max length. Returns None if empty after cleaning.
    """
    if not isinstance(val, str):
        return None
    s = re.sub(r"\s+", " ", val).strip()
    if not s:
        return None
    return s[:max_len]

def parse_numeric_id(val: Any) -> int | None:
    """Accept ints or integer strings; reject bools, floats with fractions and blanks."""
    if isinstance(val, bool):
        return None
    if isinstance(val, int):
        return val
    if isinstance(val, float) and val.is_integer():
        return int(val)
    s = clean_str(val)
    if s and _INT_RE.match(s):
        return int(s)
    return None

def parse_positive_id(val: Any) -> int | None:
    n = parse_numeric_id(val)
    return n if n is not None and n > 0 else None

def parse_subscription_status(val: Any) -> str | None:
    s = clean_str(val)
    if s and s.lower() in CREATABLE_STATUSES:
        return s.lower()
    return None

def parse_start_date(val: Any) -> datetime | None:
    return to_datetime(val)
