"""
Statement Parser - turns statement text into reviewable candidate transactions.

Pipeline: format detection -> raw line extraction -> per line
{date normalization, amount/direction classification, merchant resolution}
-> assembly. Pure and synchronous; output keeps input line order.
"""

import re
from pathlib import Path
from typing import Iterable, List, Optional

import structlog

from .amounts import AmountClassifier, DebitCreditColumnsClassifier
from .assembler import assemble, new_batch_token
from .dates import parse_date
from .extractors import extractor_for
from .format_detector import detect_delimiter, detect_format
from .merchant_resolver import MerchantResolver
from .models import (
    KnownMerchant,
    MerchantMapping,
    ParsedTransaction,
    ParseResult,
    RawLine,
    SkippedLine,
    SkipReason,
    StatementFormat,
)

logger = structlog.get_logger()

PREVIEW_CHARS = 500

_BALANCE_ROW = re.compile(r"\b(opening|closing)\s+balance\b", re.IGNORECASE)


class StatementParser:
    """
    Parses CSV or PDF-extracted statement text.

    Args:
        resolver: Merchant resolver built from the user's mapping snapshot
        classifier: Amount/direction strategy for this bank layout. When not
            given, CSV rows whose header names debit/credit columns use the
            column classifier and everything else the default heuristic.
        preview_chars: Length of the raw text preview returned with results
    """

    def __init__(
        self,
        resolver: Optional[MerchantResolver] = None,
        classifier: Optional[AmountClassifier] = None,
        preview_chars: int = PREVIEW_CHARS,
    ):
        self.resolver = resolver or MerchantResolver()
        self.classifier = classifier
        self.preview_chars = preview_chars
        self._default_classifier = AmountClassifier()
        self._columns_classifier = DebitCreditColumnsClassifier()

    def _choose_format(self, text: str, file_name: Optional[str]):
        if file_name and Path(file_name).suffix.lower() == ".csv":
            return StatementFormat.CSV, detect_delimiter(text) or ","
        fmt = detect_format(text)
        return fmt, detect_delimiter(text) or ","

    def _classifier_for(self, raw: RawLine) -> AmountClassifier:
        if self.classifier is not None:
            return self.classifier
        if raw.columns and ("debit" in raw.columns or "credit" in raw.columns):
            return self._columns_classifier
        return self._default_classifier

    def parse(self, text: str, file_name: Optional[str] = None) -> ParseResult:
        """Parse statement text. Never raises on odd input; see ``skipped``."""
        text = text or ""
        fmt, delimiter = self._choose_format(text, file_name)
        extractor = extractor_for(fmt, delimiter)
        batch_token = new_batch_token()

        transactions: List[ParsedTransaction] = []
        skipped: List[SkippedLine] = []

        for raw in extractor.extract(text):
            txn = self._parse_line(raw, len(transactions), batch_token, skipped)
            if txn is not None:
                transactions.append(txn)

        skipped.extend(extractor.skipped)
        skipped.sort(key=lambda s: s.line_number)

        result = ParseResult(
            transactions=transactions,
            skipped=skipped,
            format=fmt,
            raw_text_preview=text[: self.preview_chars],
        )
        logger.info(
            "statement_parsed",
            format=fmt.value,
            total=result.total_count,
            matched=result.matched_count,
            skipped=len(skipped),
        )
        return result

    def _parse_line(
        self,
        raw: RawLine,
        index: int,
        batch_token: str,
        skipped: List[SkippedLine],
    ) -> Optional[ParsedTransaction]:
        line_text = f"{raw.date_text} {raw.remainder}".strip()

        date = parse_date(raw.date_text)
        if date is None:
            skipped.append(SkippedLine(raw.line_number, SkipReason.INVALID_DATE, line_text))
            return None

        if _BALANCE_ROW.search(raw.description or raw.remainder):
            skipped.append(SkippedLine(raw.line_number, SkipReason.BALANCE_ROW, line_text))
            return None

        amount = self._classifier_for(raw).classify(raw)
        if amount is None:
            skipped.append(SkippedLine(raw.line_number, SkipReason.NO_AMOUNT, line_text))
            return None

        if raw.description is not None:
            description = raw.description
        elif amount.first_token_start > 0:
            description = raw.remainder[: amount.first_token_start]
        else:
            description = raw.remainder
        description = " ".join(description.split())

        if not description:
            skipped.append(
                SkippedLine(raw.line_number, SkipReason.EMPTY_DESCRIPTION, line_text)
            )
            return None

        match = self.resolver.resolve(description)
        return assemble(index, raw, date, amount, description, match, batch_token)


def parse_statement(
    text: str,
    file_name: Optional[str] = None,
    mappings: Iterable[MerchantMapping] = (),
    catalogue: Optional[Iterable[KnownMerchant]] = None,
    classifier: Optional[AmountClassifier] = None,
) -> ParseResult:
    """
    Convenience function to parse a statement.

    Args:
        text: CSV content or text extracted from a PDF statement
        file_name: Original file name, used to route ``.csv`` uploads
        mappings: The user's merchant mappings (highest priority)
        catalogue: Known merchant catalogue (defaults to the built-in one)
        classifier: Optional bank-specific amount/direction strategy

    Returns:
        ParseResult with candidates, skipped lines and a raw text preview
    """
    parser = StatementParser(
        resolver=MerchantResolver(mappings, catalogue),
        classifier=classifier,
    )
    return parser.parse(text, file_name=file_name)
