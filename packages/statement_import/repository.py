"""
Storage boundary for the import pipeline.

The pipeline only needs a handful of reads and writes; they are expressed
as ``StatementRepository`` so the committer can be exercised without a
database. ``SupabaseStatementRepository`` is the production implementation
(Row-Level Security applies when the client carries the user's JWT).
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Set

from supabase import Client

from .models import ImportBatch, MerchantMapping

FINGERPRINT_QUERY_CHUNK = 200


class StatementRepository(ABC):
    @abstractmethod
    def list_merchant_mappings(self, user_id: str) -> List[MerchantMapping]:
        """User's mappings, most used first."""

    @abstractmethod
    def upsert_merchant_mapping(
        self, user_id: str, mapping: MerchantMapping
    ) -> MerchantMapping:
        """Insert or update keyed on (user, pattern)."""

    @abstractmethod
    def delete_merchant_mapping(self, user_id: str, mapping_id: str) -> None:
        ...

    @abstractmethod
    def increment_merchant_use_count(self, user_id: str, pattern: str) -> None:
        ...

    @abstractmethod
    def insert_transaction(self, user_id: str, row: Dict[str, Any]) -> Dict[str, Any]:
        """Insert one ledger transaction; raises on failure."""

    @abstractmethod
    def record_import_batch(self, user_id: str, batch: ImportBatch) -> None:
        ...

    @abstractmethod
    def existing_fingerprints(self, user_id: str, fingerprints: Iterable[str]) -> Set[str]:
        """Subset of ``fingerprints`` already stored for the user."""


class SupabaseStatementRepository(StatementRepository):
    def __init__(self, client: Client):
        self.client = client

    def list_merchant_mappings(self, user_id: str) -> List[MerchantMapping]:
        result = (
            self.client.table("merchant_mappings")
            .select("*")
            .eq("user_id", user_id)
            .order("use_count", desc=True)
            .execute()
        )
        return [MerchantMapping.from_record(r) for r in result.data or []]

    def upsert_merchant_mapping(
        self, user_id: str, mapping: MerchantMapping
    ) -> MerchantMapping:
        result = (
            self.client.table("merchant_mappings")
            .upsert(mapping.to_record(user_id), on_conflict="user_id,merchant_pattern")
            .execute()
        )
        if result.data:
            return MerchantMapping.from_record(result.data[0])
        return mapping

    def delete_merchant_mapping(self, user_id: str, mapping_id: str) -> None:
        (
            self.client.table("merchant_mappings")
            .delete()
            .eq("id", mapping_id)
            .eq("user_id", user_id)
            .execute()
        )

    def increment_merchant_use_count(self, user_id: str, pattern: str) -> None:
        self.client.rpc(
            "increment_merchant_use_count",
            {"p_user_id": user_id, "p_pattern": pattern},
        ).execute()

    def insert_transaction(self, user_id: str, row: Dict[str, Any]) -> Dict[str, Any]:
        result = (
            self.client.table("transactions")
            .insert({"user_id": user_id, **row})
            .execute()
        )
        if not result.data:
            raise RuntimeError("Insert returned no row")
        return result.data[0]

    def record_import_batch(self, user_id: str, batch: ImportBatch) -> None:
        self.client.table("statement_imports").insert(batch.to_record(user_id)).execute()

    def existing_fingerprints(self, user_id: str, fingerprints: Iterable[str]) -> Set[str]:
        wanted = list(dict.fromkeys(fingerprints))
        found: Set[str] = set()

        for i in range(0, len(wanted), FINGERPRINT_QUERY_CHUNK):
            chunk = wanted[i : i + FINGERPRINT_QUERY_CHUNK]
            result = (
                self.client.table("transactions")
                .select("fingerprint")
                .eq("user_id", user_id)
                .in_("fingerprint", chunk)
                .execute()
            )
            found.update(r["fingerprint"] for r in result.data or [])
        return found
