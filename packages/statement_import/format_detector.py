"""Decides whether statement text is delimited (CSV) or free-form PDF text."""

import re
from collections import Counter
from pathlib import Path
from typing import List, Optional

from .dates import parse_date
from .errors import UnsupportedFormatError
from .models import StatementFormat

SUPPORTED_EXTENSIONS = (".csv", ".pdf")
DELIMITERS = (",", "\t", ";")
SAMPLE_LINES = 20

# "45,000" or "1,234.56" are numbers, not two fields
_THOUSANDS_COMMA = re.compile(r"(?<=\d),(?=\d{3}(?!\d))")


def _sample(text: str) -> List[str]:
    lines = [line.strip() for line in (text or "").splitlines() if line.strip()]
    return lines[:SAMPLE_LINES]


def _count(line: str, delimiter: str) -> int:
    if delimiter == ",":
        line = _THOUSANDS_COMMA.sub("", line)
    return line.count(delimiter)


def _has_tabular_shape(lines: List[str], delimiter: str) -> bool:
    header = [c.strip().strip('"').lower() for c in lines[0].split(delimiter)]
    if any("date" in cell for cell in header):
        return True

    for line in lines:
        first_cell = line.split(delimiter)[0].strip().strip('"')
        if parse_date(first_cell) and " " not in first_cell:
            return True
    return False


def detect_delimiter(text: str) -> Optional[str]:
    """Delimiter with a consistent per-line count, or None."""
    lines = _sample(text)
    if not lines:
        return None

    for delimiter in DELIMITERS:
        counts = Counter(_count(line, delimiter) for line in lines)
        modal, frequency = counts.most_common(1)[0]
        if modal >= 1 and frequency * 2 > len(lines):
            if _has_tabular_shape(lines, delimiter):
                return delimiter
    return None


def detect_format(text: str) -> StatementFormat:
    """CSV when lines share a delimiter count and look tabular; else freeform."""
    if detect_delimiter(text) is not None:
        return StatementFormat.CSV
    return StatementFormat.FREEFORM


def supported_extension(file_name: str) -> str:
    """Lower-cased extension of an accepted statement file.

    Raises:
        UnsupportedFormatError: anything other than .csv or .pdf
    """
    extension = Path(file_name or "").suffix.lower()
    if extension not in SUPPORTED_EXTENSIONS:
        raise UnsupportedFormatError("Only PDF and CSV files are supported")
    return extension
