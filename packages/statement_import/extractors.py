"""
Raw line extraction: CSV reader and free-text scanner.

Both extractors are single-pass generators over the statement text. Lines
that cannot start a transaction are not errors; they are recorded in
``extractor.skipped`` with the reason they were dropped.
"""

import csv
import io
import re
from typing import Dict, Iterator, List, Optional

import pandas as pd
import structlog

from .dates import parse_date
from .models import RawLine, SkippedLine, SkipReason, StatementFormat

logger = structlog.get_logger()

CHUNK_ROWS = 500

# Header aliases -> column role
COLUMN_ALIASES = {
    "date": [
        "date",
        "transaction date",
        "txn date",
        "value date",
        "posting date",
        "trans date",
    ],
    "description": [
        "description",
        "transactions",
        "transaction",
        "particulars",
        "details",
        "narration",
        "transaction details",
        "remarks",
        "memo",
    ],
    "debit": [
        "debit",
        "debit amount",
        "withdrawal",
        "dr",
        "money out",
        "paid out",
        "outflow",
    ],
    "credit": [
        "credit",
        "credit amount",
        "deposit",
        "cr",
        "money in",
        "paid in",
        "inflow",
    ],
    "amount": ["amount", "transaction amount", "txn amount", "value"],
    "balance": ["balance", "closing balance", "running balance"],
    "type": ["type", "transaction type", "txn type", "dr/cr"],
}
_ROLE_BY_ALIAS = {
    alias: role for role, aliases in COLUMN_ALIASES.items() for alias in aliases
}
_AMOUNT_ROLES = ("debit", "credit", "amount", "type")

NUMERIC_CELL = re.compile(
    r"^\(?[-+]?(?:(?:USD|LBP|EUR|GBP|INR)\s*)?[₹$€£¥]?\s*\d[\d,]*(?:\.\d+)?\)?$",
    re.IGNORECASE,
)
DIRECTION_MARKERS = {"CR", "DR"}

# Tried in order; the date must not run into further digits
LEADING_DATE_PATTERNS = [
    re.compile(r"^(\d{2}/\d{2}/\d{4})(?!\d)"),  # DD/MM/YYYY
    re.compile(r"^(\d{2}-\d{2}-\d{4})(?!\d)"),  # DD-MM-YYYY
    re.compile(r"^(\d{2}\.\d{2}\.\d{4})(?!\d)"),  # DD.MM.YYYY
    re.compile(r"^(\d{4}-\d{2}-\d{2})(?!\d)"),  # YYYY-MM-DD
]


class LineExtractor:
    """Shared bookkeeping for the two extractor variants."""

    def __init__(self):
        self.skipped: List[SkippedLine] = []

    def _skip(self, line_number: int, reason: SkipReason, text: str = "") -> None:
        self.skipped.append(SkippedLine(line_number, reason, text[:200]))

    def extract(self, text: str) -> Iterator[RawLine]:
        raise NotImplementedError


class FreeformLineExtractor(LineExtractor):
    """Scans PDF-extracted text for lines that begin with a date."""

    def extract(self, text: str) -> Iterator[RawLine]:
        for index, line in enumerate((text or "").splitlines()):
            line = line.strip()
            if not line:
                continue

            line_number = index + 1
            match = None
            for pattern in LEADING_DATE_PATTERNS:
                match = pattern.match(line)
                if match:
                    break

            if not match:
                self._skip(line_number, SkipReason.NO_LEADING_DATE, line)
                continue

            remainder = line[match.end() :].strip()
            if not remainder or "description" in remainder.lower():
                self._skip(line_number, SkipReason.HEADER_OR_EMPTY, line)
                continue

            yield RawLine(
                date_text=match.group(1),
                remainder=remainder,
                line_number=line_number,
            )


class CsvLineExtractor(LineExtractor):
    """Reads delimited statements; first column (or header "date") is the date."""

    def __init__(self, delimiter: str = ","):
        super().__init__()
        self.delimiter = delimiter
        self.roles: Optional[List[Optional[str]]] = None

    def _read_chunks(self, text: str, quoting: int = csv.QUOTE_MINIMAL):
        width = max(
            (line.count(self.delimiter) + 1 for line in text.splitlines()), default=1
        )
        try:
            reader = pd.read_csv(
                io.StringIO(text),
                sep=self.delimiter,
                header=None,
                names=list(range(width)),
                index_col=False,
                dtype=str,
                keep_default_na=False,
                skip_blank_lines=False,
                skipinitialspace=True,
                quoting=quoting,
                engine="python",
                chunksize=CHUNK_ROWS,
            )
            for chunk in reader:
                yield chunk.fillna("")
        except pd.errors.EmptyDataError:
            return

    def _rows(self, text: str, quoting: int = csv.QUOTE_MINIMAL):
        for chunk in self._read_chunks(text, quoting):
            for idx, row in chunk.iterrows():
                cells = [str(c).strip() for c in row.tolist()]
                if quoting == csv.QUOTE_NONE:
                    cells = [c.strip('"').strip() for c in cells]
                yield int(idx) + 1, cells

    def extract(self, text: str) -> Iterator[RawLine]:
        if not text or not text.strip():
            return

        done = 0
        try:
            for line_number, cells in self._rows(text):
                done = line_number
                raw = self._line_from_cells(cells, line_number)
                if raw is not None:
                    yield raw
            return
        except pd.errors.ParserError as e:
            logger.warning("csv_quoting_broken", after_line=done, error=str(e))

        # An unbalanced quote: read the remaining rows with quotes as plain text
        for line_number, cells in self._rows(text, quoting=csv.QUOTE_NONE):
            if line_number <= done:
                continue
            raw = self._line_from_cells(cells, line_number)
            if raw is not None:
                yield raw

    def _line_from_cells(self, cells: List[str], line_number: int) -> Optional[RawLine]:
        if not any(cells):
            return None
        return self._row_to_line(cells, line_number)

    def _date_index(self) -> int:
        if self.roles and "date" in self.roles:
            return self.roles.index("date")
        return 0

    def _row_to_line(self, cells: List[str], line_number: int) -> Optional[RawLine]:
        date_idx = self._date_index()
        date_text = cells[date_idx] if date_idx < len(cells) else ""
        row_text = self.delimiter.join(cells)

        if parse_date(date_text) is None:
            header_roles = _header_roles(cells)
            if "date" in header_roles:
                if self.roles is None:
                    self.roles = header_roles
                    logger.debug("csv_header_detected", roles=header_roles)
                self._skip(line_number, SkipReason.HEADER_OR_EMPTY, row_text)
            else:
                self._skip(line_number, SkipReason.INVALID_DATE, row_text)
            return None

        others = [(i, cell) for i, cell in enumerate(cells) if i != date_idx]
        if self.roles:
            description, remainder, columns = self._split_by_roles(others)
        else:
            description, remainder, columns = _split_by_content(others)

        if not description and not remainder:
            self._skip(line_number, SkipReason.HEADER_OR_EMPTY, row_text)
            return None

        return RawLine(
            date_text=date_text,
            remainder=remainder,
            line_number=line_number,
            description=description,
            columns=columns,
        )

    def _split_by_roles(self, cells):
        text_parts, amount_parts = [], []
        columns: Dict[str, str] = {}

        for i, cell in cells:
            role = self.roles[i] if i < len(self.roles) else None
            if role in _AMOUNT_ROLES:
                columns[role] = cell
                if cell:
                    amount_parts.append(cell)
            elif role == "balance":
                columns[role] = cell
            elif cell:
                text_parts.append(cell)

        return " ".join(text_parts), " ".join(amount_parts), columns or None


def _split_by_content(cells):
    text_parts, amount_parts = [], []
    for _, cell in cells:
        if not cell:
            continue
        if NUMERIC_CELL.match(cell) or cell.upper() in DIRECTION_MARKERS:
            amount_parts.append(cell)
        else:
            text_parts.append(cell)
    return " ".join(text_parts), " ".join(amount_parts), None


def _header_roles(cells: List[str]) -> List[Optional[str]]:
    return [_ROLE_BY_ALIAS.get(cell.strip().strip('"').lower()) for cell in cells]


def extractor_for(fmt: StatementFormat, delimiter: str = ",") -> LineExtractor:
    if fmt == StatementFormat.CSV:
        return CsvLineExtractor(delimiter)
    return FreeformLineExtractor()
