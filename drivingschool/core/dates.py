import re
from datetime import date
from typing import Tuple

SALARY_MONTH_RE = re.compile(r"^\d{4}-\d{2}$")


def month_bounds(year: int, month: int) -> Tuple[date, date]:
    """[first day of month, first day of next month)."""
    start = date(year, month, 1)
    if month == 12:
        return start, date(year + 1, 1, 1)
    return start, date(year, month + 1, 1)


def parse_month(value: str) -> Tuple[date, date]:
    """Bounds of a YYYY-MM month string. Raises ValueError when malformed."""
    if not SALARY_MONTH_RE.match(value or ""):
        raise ValueError(f"invalid month: {value!r}")
    year, month = int(value[:4]), int(value[5:])
    if not 1 <= month <= 12:
        raise ValueError(f"invalid month: {value!r}")
    return month_bounds(year, month)
