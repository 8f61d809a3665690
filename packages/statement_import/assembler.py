"""Builds candidate transactions from the per-line parsing results."""

import uuid
from typing import Iterable, List, Set

from .fingerprint import generate_fingerprint
from .models import AmountResult, MerchantMatch, ParsedTransaction, RawLine


def new_batch_token() -> str:
    return uuid.uuid4().hex[:12]


def is_reversal(description: str) -> bool:
    return description.strip().lower().startswith("reversal")


def assemble(
    index: int,
    raw: RawLine,
    date: str,
    amount: AmountResult,
    description: str,
    match: MerchantMatch,
    batch_token: str,
) -> ParsedTransaction:
    """Create a draft candidate. Reversals start deselected."""
    return ParsedTransaction(
        id=f"txn-{batch_token}-{index}",
        date=date,
        description=description,
        amount=amount.amount,
        direction=amount.direction,
        fingerprint=generate_fingerprint(date, amount.amount, description),
        line_number=raw.line_number,
        merchant_name=match.merchant_name,
        merchant_pattern=match.pattern,
        suggested_category=match.suggested_category,
        category_id=match.category_id,
        subcategory_id=match.subcategory_id,
        account_id=match.account_id,
        matched=match.matched,
        selected=not is_reversal(description),
    )


def mark_duplicates(
    transactions: Iterable[ParsedTransaction], existing: Set[str]
) -> List[ParsedTransaction]:
    """Flag and deselect candidates whose fingerprint is already stored."""
    flagged = []
    for txn in transactions:
        if txn.fingerprint in existing:
            txn.duplicate = True
            txn.selected = False
            flagged.append(txn)
    return flagged
