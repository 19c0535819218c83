from datetime import date, datetime, time, timezone
from decimal import Decimal, InvalidOperation
from typing import Any

_TRUE_WORDS = {"1", "true", "t", "yes", "y", "sim", "ativo", "on"}
_FALSE_WORDS = {"0", "false", "f", "no", "n", "nao", "não", "inativo", "off"}

def utcnow() -> datetime:
    return datetime.now(timezone.utc)

def to_datetime(value: Any) -> datetime | None:
    """
    Coerce a stored/provided value into an aware UTC datetime.
    Naive values are taken as UTC; anything unparseable becomes None.
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime.combine(value, time.min)
    elif isinstance(value, str):
        s = value.strip()
        if not s:
            return None
        if s.endswith(("Z", "z")):
            s = s[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(s)
        except ValueError:
            return None
    else:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)

def to_iso(value: datetime | None) -> str | None:
    value = to_datetime(value)
    if value is None:
        return None
    return value.isoformat()

def to_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value == value and value not in (float("inf"), float("-inf")) else None
    if isinstance(value, str) and value.strip():
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None

def to_bool(value: Any) -> bool | None:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        s = value.strip().lower()
        if s in _TRUE_WORDS:
            return True
        if s in _FALSE_WORDS:
            return False
    return None

def is_positive_amount(value: Any) -> bool:
    if value is None or isinstance(value, bool):
        return False
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return False
    return amount.is_finite() and amount > 0
