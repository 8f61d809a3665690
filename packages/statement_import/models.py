"""
Records produced and consumed by the statement import pipeline.

ParsedTransaction is the unit a human reviews before commit; it carries a
small state machine (draft -> reviewed -> committed | discarded).
ImportBatch tracks one file-upload-to-commit run.
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from .errors import InvalidTransitionError


class StatementFormat(str, Enum):
    CSV = "csv"
    FREEFORM = "freeform"


class Direction(str, Enum):
    DEBIT = "debit"
    CREDIT = "credit"


class SkipReason(str, Enum):
    """Why the extractor or parser dropped a line."""

    NO_LEADING_DATE = "no_leading_date"
    HEADER_OR_EMPTY = "header_or_empty"
    INVALID_DATE = "invalid_date"
    NO_AMOUNT = "no_amount"
    EMPTY_DESCRIPTION = "empty_description"
    BALANCE_ROW = "balance_row"


class TransactionState(str, Enum):
    DRAFT = "draft"
    REVIEWED = "reviewed"
    COMMITTED = "committed"
    DISCARDED = "discarded"


class ImportStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class RawLine:
    """One transaction candidate as cut out of the source text."""

    date_text: str
    remainder: str
    line_number: int
    # Only set by the CSV reader, which already knows its text cells
    description: Optional[str] = None
    columns: Optional[Dict[str, str]] = None


@dataclass
class SkippedLine:
    line_number: int
    reason: SkipReason
    text: str = ""


@dataclass
class MerchantMapping:
    """User-curated rule: description substring -> merchant and category."""

    pattern: str
    display_name: str
    category_id: Optional[str] = None
    subcategory_id: Optional[str] = None
    account_id: Optional[str] = None
    use_count: int = 1
    id: Optional[str] = None

    def __post_init__(self):
        self.pattern = normalize_pattern(self.pattern)
        self.display_name = self.display_name.strip()

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "MerchantMapping":
        """Build from a ``merchant_mappings`` table row."""
        return cls(
            pattern=record["merchant_pattern"],
            display_name=record["merchant_name"],
            category_id=record.get("category_id"),
            subcategory_id=record.get("subcategory_id"),
            account_id=record.get("account_id"),
            use_count=record.get("use_count") or 1,
            id=record.get("id"),
        )

    def to_record(self, user_id: str) -> Dict[str, Any]:
        return {
            "user_id": user_id,
            "merchant_pattern": self.pattern,
            "merchant_name": self.display_name,
            "category_id": self.category_id,
            "subcategory_id": self.subcategory_id,
            "account_id": self.account_id,
        }


@dataclass(frozen=True)
class KnownMerchant:
    pattern: str
    display_name: str
    suggested_category_label: str
    suggested_subcategory_label: Optional[str] = None


@dataclass
class MerchantMatch:
    merchant_name: str
    matched: bool
    category_id: Optional[str] = None
    subcategory_id: Optional[str] = None
    account_id: Optional[str] = None
    pattern: Optional[str] = None
    suggested_category: Optional[str] = None


@dataclass
class AmountResult:
    amount: float
    direction: Direction
    tokens: List[float]
    first_token_start: int = 0


@dataclass
class ImportCandidate:
    """A reviewed transaction the user asked to write to the ledger."""

    date: str
    amount: float
    description: str
    account_id: str
    category_id: Optional[str] = None
    subcategory_id: Optional[str] = None
    save_merchant_mapping: bool = False
    merchant_pattern: Optional[str] = None
    merchant_name: Optional[str] = None
    matched: bool = False
    fingerprint: Optional[str] = None


_REVIEWABLE_FIELDS = {
    "category_id",
    "subcategory_id",
    "account_id",
    "amount",
    "merchant_name",
    "selected",
}


@dataclass
class ParsedTransaction:
    """Candidate transaction awaiting human review."""

    id: str
    date: str
    description: str
    amount: float
    direction: Direction
    fingerprint: str
    line_number: int
    merchant_name: Optional[str] = None
    merchant_pattern: Optional[str] = None
    suggested_category: Optional[str] = None
    category_id: Optional[str] = None
    subcategory_id: Optional[str] = None
    account_id: Optional[str] = None
    matched: bool = False
    selected: bool = True
    duplicate: bool = False
    state: TransactionState = TransactionState.DRAFT

    def review(self, **changes: Any) -> "ParsedTransaction":
        """Apply human edits. Moves draft -> reviewed."""
        if self.state not in (TransactionState.DRAFT, TransactionState.REVIEWED):
            raise InvalidTransitionError(
                f"Cannot review transaction {self.id} in state {self.state.value}"
            )
        unknown = set(changes) - _REVIEWABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields not editable during review: {sorted(unknown)}")
        if "amount" in changes and not changes["amount"] > 0:
            raise ValueError("amount must be positive")

        for name, value in changes.items():
            setattr(self, name, value)
        self.state = TransactionState.REVIEWED
        return self

    def discard(self) -> "ParsedTransaction":
        if self.state == TransactionState.COMMITTED:
            raise InvalidTransitionError(f"Transaction {self.id} is already committed")
        self.selected = False
        self.state = TransactionState.DISCARDED
        return self

    def mark_committed(self) -> "ParsedTransaction":
        if self.state not in (TransactionState.DRAFT, TransactionState.REVIEWED):
            raise InvalidTransitionError(
                f"Cannot commit transaction {self.id} in state {self.state.value}"
            )
        if not self.selected:
            raise InvalidTransitionError(f"Transaction {self.id} is not selected")
        self.state = TransactionState.COMMITTED
        return self

    def to_candidate(
        self, account_id: Optional[str] = None, save_merchant_mapping: bool = False
    ) -> ImportCandidate:
        account = self.account_id or account_id
        if not account:
            raise ValueError(f"Transaction {self.id} has no account")
        return ImportCandidate(
            date=self.date,
            amount=self.amount,
            description=self.description,
            account_id=account,
            category_id=self.category_id,
            subcategory_id=self.subcategory_id,
            save_merchant_mapping=save_merchant_mapping,
            merchant_pattern=self.merchant_pattern,
            merchant_name=self.merchant_name,
            matched=self.matched,
            fingerprint=self.fingerprint,
        )

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["direction"] = self.direction.value
        data["state"] = self.state.value
        return data


@dataclass
class ImportBatch:
    """One file-upload-to-commit run, recorded for audit."""

    file_name: str
    transactions_count: int = 0
    status: ImportStatus = ImportStatus.PENDING
    imported_at: Optional[datetime] = None

    _NEXT = {
        ImportStatus.PENDING: {ImportStatus.PROCESSING},
        ImportStatus.PROCESSING: {ImportStatus.COMPLETED, ImportStatus.FAILED},
        ImportStatus.COMPLETED: set(),
        ImportStatus.FAILED: set(),
    }

    def _move(self, status: ImportStatus) -> None:
        if status not in self._NEXT[self.status]:
            raise InvalidTransitionError(
                f"Import batch cannot go from {self.status.value} to {status.value}"
            )
        self.status = status

    def start(self) -> None:
        self._move(ImportStatus.PROCESSING)

    def complete(self, transactions_count: int) -> None:
        self._move(ImportStatus.COMPLETED)
        self.transactions_count = transactions_count
        self.imported_at = datetime.now(timezone.utc)

    def fail(self) -> None:
        self._move(ImportStatus.FAILED)
        self.imported_at = datetime.now(timezone.utc)

    def to_record(self, user_id: str) -> Dict[str, Any]:
        record = {
            "user_id": user_id,
            "file_name": self.file_name or "Unknown",
            "transactions_count": self.transactions_count,
            "status": self.status.value,
        }
        if self.imported_at:
            record["imported_at"] = self.imported_at.isoformat()
        return record


@dataclass
class RowError:
    index: int
    description: str
    message: str


@dataclass
class CommitResult:
    imported_count: int = 0
    mappings_saved: int = 0
    errors: List[RowError] = field(default_factory=list)
    cancelled: bool = False
    inserted: List[int] = field(default_factory=list)


@dataclass
class ParseResult:
    transactions: List[ParsedTransaction]
    skipped: List[SkippedLine]
    format: StatementFormat
    raw_text_preview: str = ""

    @property
    def total_count(self) -> int:
        return len(self.transactions)

    @property
    def matched_count(self) -> int:
        return sum(1 for t in self.transactions if t.matched)

    @property
    def unmatched_count(self) -> int:
        return self.total_count - self.matched_count


def normalize_pattern(pattern: str) -> str:
    """Mapping patterns are stored upper-cased and trimmed."""
    return (pattern or "").strip().upper()
