"""
Amount and debit/credit classification.

The default heuristic is deliberately simple: the first numeric token on the
line is the amount, and a line is a credit when it carries a standalone "CR"
marker or more than one numeric token. Layouts with dedicated money-out /
money-in columns get their own classifier below.
"""

import math
import re
from typing import List, Optional, Tuple

from .models import AmountResult, Direction, RawLine

AMOUNT_PATTERN = re.compile(r"\d[\d,]*(?:\.\d+)?")
CREDIT_MARKER = re.compile(r"\bcr\b", re.IGNORECASE)

# MONEY_OUT MONEY_IN BALANCE, where an empty slot is printed as "-"
_TRAILING_COLUMNS = re.compile(
    r"([\d,]+\.\d{2}|-)\s+([\d,]+\.\d{2}|-)\s+([\d,]+\.\d{2})\s*$"
)


def parse_money(value: Optional[str]) -> Optional[float]:
    """Parse "1,100.00" style cells; "-" and blanks are empty slots."""
    if value is None:
        return None
    cleaned = str(value).strip().replace(",", "")
    if not cleaned or cleaned == "-":
        return None
    try:
        number = float(cleaned)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def _tokenize(text: str) -> List[Tuple[int, float]]:
    tokens = []
    for match in AMOUNT_PATTERN.finditer(text or ""):
        number = parse_money(match.group(0))
        if number is not None and number > 0:
            tokens.append((match.start(), number))
    return tokens


def extract_amounts(text: str) -> List[float]:
    """All positive numeric tokens in the text, comma thousands aware."""
    return [number for _, number in _tokenize(text)]


class AmountClassifier:
    """Default first-token amount / CR-marker direction heuristic."""

    def amount_text(self, raw: RawLine) -> str:
        return raw.remainder

    def classify(self, raw: RawLine) -> Optional[AmountResult]:
        text = self.amount_text(raw)
        tokens = _tokenize(text)
        if not tokens:
            return None

        numbers = [number for _, number in tokens]
        is_credit = bool(CREDIT_MARKER.search(text)) or len(numbers) >= 2

        return AmountResult(
            amount=numbers[0],
            direction=Direction.CREDIT if is_credit else Direction.DEBIT,
            tokens=numbers,
            first_token_start=tokens[0][0],
        )


class DebitCreditColumnsClassifier(AmountClassifier):
    """For statements with separate money-out and money-in columns.

    Uses the role-tagged cells of a CSV row when its header named them, or a
    trailing ``out in balance`` triple in free text. Anything else falls back
    to the default heuristic.
    """

    def classify(self, raw: RawLine) -> Optional[AmountResult]:
        columns = raw.columns or {}
        if "debit" in columns or "credit" in columns:
            return self._from_slots(columns.get("debit"), columns.get("credit"), 0)

        match = _TRAILING_COLUMNS.search(raw.remainder)
        if match:
            return self._from_slots(match.group(1), match.group(2), match.start())

        return super().classify(raw)

    @staticmethod
    def _from_slots(
        money_out: Optional[str], money_in: Optional[str], start: int
    ) -> Optional[AmountResult]:
        out_value = parse_money(money_out)
        in_value = parse_money(money_in)

        if in_value is not None and in_value > 0:
            return AmountResult(in_value, Direction.CREDIT, [in_value], start)
        if out_value is not None and out_value != 0:
            # Some exports print debits as negative numbers
            amount = abs(out_value)
            return AmountResult(amount, Direction.DEBIT, [amount], start)
        return None
