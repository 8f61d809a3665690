"""
Statement Import

Bank statement ingestion: format detection, line extraction, date and
amount parsing, merchant resolution and partial-failure tolerant commit.
"""

__version__ = "0.1.0"

from .amounts import AmountClassifier, DebitCreditColumnsClassifier
from .committer import ImportCommitter
from .format_detector import detect_format
from .merchant_resolver import MerchantResolver
from .models import (
    Direction,
    ImportCandidate,
    KnownMerchant,
    MerchantMapping,
    ParsedTransaction,
    ParseResult,
    SkipReason,
    StatementFormat,
)
from .parser import StatementParser, parse_statement

__all__ = [
    "AmountClassifier",
    "DebitCreditColumnsClassifier",
    "Direction",
    "ImportCandidate",
    "ImportCommitter",
    "KnownMerchant",
    "MerchantMapping",
    "MerchantResolver",
    "ParsedTransaction",
    "ParseResult",
    "SkipReason",
    "StatementFormat",
    "StatementParser",
    "detect_format",
    "parse_statement",
]
