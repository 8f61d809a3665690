"""
Import Committer - writes reviewed candidates to the ledger.

Rows are inserted one at a time and a failing row never aborts the batch:
the import is best-effort, not atomic. Merchant mappings the user asked to
remember are upserted afterwards, the run is recorded as an ImportBatch and
the use count of every matched pattern is bumped once.
"""

from typing import Callable, Dict, Iterable, List, Optional, Sequence

import structlog

from .fingerprint import generate_fingerprint
from .models import (
    CommitResult,
    ImportBatch,
    ImportCandidate,
    MerchantMapping,
    ParsedTransaction,
    RowError,
    normalize_pattern,
)
from .repository import StatementRepository

logger = structlog.get_logger()


class ImportCommitter:
    """
    Commits a list of import candidates for one user.

    Args:
        repository: Storage boundary
        user_id: Owner of the rows being written
        should_cancel: Polled between rows; returning True stops the loop.
            Rows already written are kept.
    """

    def __init__(
        self,
        repository: StatementRepository,
        user_id: str,
        should_cancel: Optional[Callable[[], bool]] = None,
    ):
        self.repository = repository
        self.user_id = user_id
        self.should_cancel = should_cancel or (lambda: False)

    def commit(
        self, candidates: Sequence[ImportCandidate], file_name: str
    ) -> CommitResult:
        result = CommitResult()
        batch = ImportBatch(file_name=file_name or "Unknown")
        batch.start()
        log = logger.bind(user_id=self.user_id, file_name=batch.file_name)

        mappings_to_save: List[MerchantMapping] = []
        processed = 0

        for index, candidate in enumerate(candidates):
            if self.should_cancel():
                result.cancelled = True
                log.warning("import_cancelled", processed=index, total=len(candidates))
                break
            processed = index + 1

            try:
                self.repository.insert_transaction(self.user_id, self._row(candidate))
            except Exception as e:
                log.warning(
                    "row_insert_failed",
                    index=index,
                    description=candidate.description,
                    error=str(e),
                )
                result.errors.append(RowError(index, candidate.description, str(e)))
                continue

            result.imported_count += 1
            result.inserted.append(index)

            if (
                candidate.save_merchant_mapping
                and candidate.merchant_pattern
                and candidate.merchant_name
            ):
                mappings_to_save.append(
                    MerchantMapping(
                        pattern=candidate.merchant_pattern,
                        display_name=candidate.merchant_name,
                        category_id=candidate.category_id,
                        subcategory_id=candidate.subcategory_id,
                        account_id=candidate.account_id,
                    )
                )

        result.mappings_saved = self._save_mappings(mappings_to_save, log)

        batch.complete(result.imported_count)
        try:
            self.repository.record_import_batch(self.user_id, batch)
        except Exception as e:
            log.error("import_batch_record_failed", error=str(e))

        self._increment_use_counts(candidates[:processed], log)

        log.info(
            "import_committed",
            imported=result.imported_count,
            failed=len(result.errors),
            mappings_saved=result.mappings_saved,
            cancelled=result.cancelled,
        )
        return result

    def commit_reviewed(
        self,
        transactions: Iterable[ParsedTransaction],
        file_name: str,
        account_id: Optional[str] = None,
    ) -> CommitResult:
        """Commit reviewed candidates. Deselected ones are discarded, never written."""
        selected = []
        for txn in transactions:
            if txn.selected:
                selected.append(txn)
            else:
                txn.discard()

        result = self.commit([t.to_candidate(account_id) for t in selected], file_name)
        for index in result.inserted:
            selected[index].mark_committed()
        return result

    @staticmethod
    def _row(candidate: ImportCandidate) -> Dict:
        amount = abs(candidate.amount)
        return {
            "date": candidate.date,
            "amount": amount,
            "description": candidate.description or "",
            "account_id": candidate.account_id,
            "category_id": candidate.category_id or None,
            "subcategory_id": candidate.subcategory_id or None,
            "fingerprint": candidate.fingerprint
            or generate_fingerprint(candidate.date, amount, candidate.description),
            "is_draft": False,
            "is_imported": True,
        }

    def _save_mappings(self, mappings: List[MerchantMapping], log) -> int:
        # Last write wins for a pattern confirmed twice in one batch
        unique: Dict[str, MerchantMapping] = {}
        for mapping in mappings:
            unique[mapping.pattern] = mapping

        saved = 0
        for mapping in unique.values():
            try:
                self.repository.upsert_merchant_mapping(self.user_id, mapping)
                saved += 1
            except Exception as e:
                log.warning("mapping_upsert_failed", pattern=mapping.pattern, error=str(e))
        return saved

    def _increment_use_counts(self, candidates: Sequence[ImportCandidate], log) -> None:
        patterns = dict.fromkeys(
            normalize_pattern(c.merchant_pattern)
            for c in candidates
            if c.matched and c.merchant_pattern
        )
        for pattern in patterns:
            try:
                self.repository.increment_merchant_use_count(self.user_id, pattern)
            except Exception as e:
                log.warning("use_count_increment_failed", pattern=pattern, error=str(e))
