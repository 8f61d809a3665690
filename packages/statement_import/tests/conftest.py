from collections import Counter
from typing import Any, Dict, Iterable, List, Set

import pytest

from packages.statement_import.models import ImportBatch, MerchantMapping
from packages.statement_import.repository import StatementRepository


class FakeRepository(StatementRepository):
    """In-memory repository; descriptions listed in fail_descriptions fail to insert.

    fail_upsert and fail_increment name merchant patterns whose mapping upsert
    or use-count bump raises.
    """

    def __init__(
        self,
        fail_descriptions: Iterable[str] = (),
        fail_batch: bool = False,
        fail_upsert: Iterable[str] = (),
        fail_increment: Iterable[str] = (),
    ):
        self.fail_descriptions = set(fail_descriptions)
        self.fail_batch = fail_batch
        self.fail_upsert = set(fail_upsert)
        self.fail_increment = set(fail_increment)
        self.transactions: List[Dict[str, Any]] = []
        self.mappings: Dict[str, MerchantMapping] = {}
        self.upserts: List[MerchantMapping] = []
        self.batches: List[Dict[str, Any]] = []
        self.use_counts: Counter = Counter()

    def list_merchant_mappings(self, user_id: str) -> List[MerchantMapping]:
        return sorted(self.mappings.values(), key=lambda m: -m.use_count)

    def upsert_merchant_mapping(self, user_id: str, mapping: MerchantMapping) -> MerchantMapping:
        if mapping.pattern in self.fail_upsert:
            raise RuntimeError("merchant_mappings unavailable")
        self.upserts.append(mapping)
        self.mappings[mapping.pattern] = mapping
        return mapping

    def delete_merchant_mapping(self, user_id: str, mapping_id: str) -> None:
        self.mappings = {p: m for p, m in self.mappings.items() if m.id != mapping_id}

    def increment_merchant_use_count(self, user_id: str, pattern: str) -> None:
        if pattern in self.fail_increment:
            raise RuntimeError("rpc increment_merchant_use_count failed")
        self.use_counts[pattern] += 1

    def insert_transaction(self, user_id: str, row: Dict[str, Any]) -> Dict[str, Any]:
        if row["description"] in self.fail_descriptions:
            raise RuntimeError("violates check constraint")
        stored = {"id": f"row-{len(self.transactions)}", "user_id": user_id, **row}
        self.transactions.append(stored)
        return stored

    def record_import_batch(self, user_id: str, batch: ImportBatch) -> None:
        if self.fail_batch:
            raise RuntimeError("statement_imports unavailable")
        self.batches.append(batch.to_record(user_id))

    def existing_fingerprints(self, user_id: str, fingerprints: Iterable[str]) -> Set[str]:
        stored = {t["fingerprint"] for t in self.transactions}
        return {fp for fp in fingerprints if fp in stored}


@pytest.fixture
def repository():
    return FakeRepository()


@pytest.fixture
def make_repository():
    return FakeRepository


@pytest.fixture
def freeform_statement():
    return "\n".join(
        [
            "BANK OF BEIRUT - ACCOUNT STATEMENT",
            "Date Description Amount",
            "",
            "01/02/2024 SPINNEYS HAZMIEH 45,000",
            "03/02/2024 LOCAL BAKERY 12.50",
            "05/02/2024 SALARY PAYMENT 1,500.00 CR",
            "06/02/2024 PENDING AUTHORISATION",
            "07/02/2024 REVERSAL CARREFOUR 12.00",
        ]
    )
