import re
from typing import Dict, Iterable, Optional, Union

from .catalogue import DEFAULT_CATALOGUE
from .models import KnownMerchant, MerchantMapping, MerchantMatch, normalize_pattern

MAX_MERCHANT_NAME = 50

NOISE_PATTERNS = [
    re.compile(r"\b\d{4}\*+\d{4}\b"),  # Card masks like 1234****5678
    re.compile(r"\bPOS\b", re.IGNORECASE),
    re.compile(r"\bPURCHASE\b", re.IGNORECASE),
    re.compile(r"\bCARD\b", re.IGNORECASE),
    re.compile(r"\bDEBIT\b", re.IGNORECASE),
    re.compile(r"\bCREDIT\b", re.IGNORECASE),
    re.compile(r"\bATM\b", re.IGNORECASE),
    re.compile(r"\bTRANSFER\b", re.IGNORECASE),
    re.compile(r"\b\d{2}:\d{2}:\d{2}\b"),  # Times
    re.compile(r"\s+"),
]


def normalize_description(description: str) -> str:
    return re.sub(r"\s+", " ", description or "").strip().upper()


def extract_merchant_name(description: str) -> str:
    """Best-effort merchant name when no pattern matches."""
    cleaned = description or ""
    for pattern in NOISE_PATTERNS:
        cleaned = pattern.sub(" ", cleaned)
    cleaned = re.sub(r"\s+", " ", cleaned).strip()
    return cleaned[:MAX_MERCHANT_NAME]


class MerchantResolver:
    """
    Matches descriptions against the user's mappings, then the catalogue.

    Patterns are substring keys. When several match, the first in table
    order wins: user mappings in the order given, then catalogue entries
    whose pattern the user has not mapped.
    """

    def __init__(
        self,
        mappings: Iterable[MerchantMapping] = (),
        catalogue: Optional[Iterable[KnownMerchant]] = None,
    ):
        self.table: Dict[str, Union[MerchantMapping, KnownMerchant]] = {}

        for mapping in mappings:
            self.table.setdefault(normalize_pattern(mapping.pattern), mapping)

        # Catalogue never overrides a user pattern
        for known in DEFAULT_CATALOGUE if catalogue is None else catalogue:
            self.table.setdefault(normalize_pattern(known.pattern), known)

    def find(self, description: str) -> Optional[str]:
        normalized = normalize_description(description)
        for pattern in self.table:
            if pattern and pattern in normalized:
                return pattern
        return None

    def resolve(self, description: str) -> MerchantMatch:
        pattern = self.find(description)
        if pattern is None:
            return MerchantMatch(
                merchant_name=extract_merchant_name(description), matched=False
            )

        entry = self.table[pattern]
        if isinstance(entry, MerchantMapping):
            return MerchantMatch(
                merchant_name=entry.display_name,
                matched=True,
                category_id=entry.category_id,
                subcategory_id=entry.subcategory_id,
                account_id=entry.account_id,
                pattern=pattern,
            )

        return MerchantMatch(
            merchant_name=entry.display_name,
            matched=True,
            pattern=pattern,
            suggested_category=entry.suggested_category_label,
        )


def resolve_merchant(description: str, resolver: MerchantResolver) -> MerchantMatch:
    return resolver.resolve(description)
