"""
Date normalization for statement lines.

Bank statements in the region are day-first (DD/MM/YYYY) unless the first
part is a four digit year. Calendar overflow such as 30/02/2024 is accepted
as-is; only the day/month/year ranges are checked.
"""

import re
from typing import Optional

SEPARATORS = ("/", "-", ".")

_LEADING_DIGITS = re.compile(r"^\s*(\d+)")


def _leading_int(part: str) -> Optional[int]:
    match = _LEADING_DIGITS.match(part)
    return int(match.group(1)) if match else None


def parse_date(raw: str) -> Optional[str]:
    """Normalize a statement date to ISO ``YYYY-MM-DD``.

    Returns None when no separator yields a valid day/month/year triple.
    """
    if not raw:
        return None

    text = str(raw).strip()

    for sep in SEPARATORS:
        parts = text.split(sep)
        if len(parts) != 3:
            continue

        numbers = [_leading_int(p) for p in parts]
        if any(n is None for n in numbers):
            continue

        if len(parts[0].strip()) == 4:
            year, month, day = numbers
        else:
            day, month, year = numbers

        if year < 100:
            year += 2000

        if 1 <= day <= 31 and 1 <= month <= 12 and year >= 2000:
            return f"{year:04d}-{month:02d}-{day:02d}"

    return None


def format_date(iso_date: str, sep: str = "/", year_first: bool = False) -> str:
    """Render an ISO date the way a statement would print it."""
    year, month, day = iso_date.split("-")
    if year_first:
        return sep.join((year, month, day))
    return sep.join((day, month, year))
