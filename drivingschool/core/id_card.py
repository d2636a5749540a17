"""Mainland resident id card (18 digits, ISO 7064 MOD 11-2 check character)."""

import re
from datetime import date
from typing import Optional, Tuple

_ID_CARD_RE = re.compile(r"^\d{17}[\dXx]$")
_WEIGHTS = (7, 9, 10, 5, 8, 4, 2, 1, 6, 3, 7, 9, 10, 5, 8, 4, 2)
_CHECK_CODES = "10X98765432"


def validate_id_card(id_card: str) -> bool:
    if not _ID_CARD_RE.match(id_card or ""):
        return False
    total = sum(int(ch) * w for ch, w in zip(id_card[:17], _WEIGHTS))
    return id_card[17].upper() == _CHECK_CODES[total % 11]


def extract_birth_info(id_card: str, today: Optional[date] = None) -> Tuple[Optional[date], Optional[int]]:
    """Birth date and age in full years; (None, None) when the date digits are invalid."""
    today = today or date.today()
    try:
        birth = date(int(id_card[6:10]), int(id_card[10:12]), int(id_card[12:14]))
    except ValueError:
        return None, None
    age = today.year - birth.year
    if (today.month, today.day) < (birth.month, birth.day):
        age -= 1
    return birth, age
