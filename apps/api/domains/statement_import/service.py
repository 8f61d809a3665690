"""Statement import service: upload validation, parsing and commit.

Wires the pure ``packages.statement_import`` pipeline to the request: the
uploaded bytes become text (CSV decode or pdfplumber), the user's merchant
mappings are loaded once as a snapshot, candidates already stored are
flagged as duplicates, and reviewed rows are committed best-effort.
"""

import structlog

from apps.api.core.config import Settings
from apps.api.core.errors import (
    BadRequestError,
    NoTransactionsError,
    PayloadTooLargeError,
)
from apps.api.domains.statement_import.schemas import CommitRequest
from packages.statement_import.assembler import mark_duplicates
from packages.statement_import.catalogue import load_catalogue
from packages.statement_import.committer import ImportCommitter
from packages.statement_import.errors import ExtractionError, UnsupportedFormatError
from packages.statement_import.format_detector import supported_extension
from packages.statement_import.merchant_resolver import MerchantResolver
from packages.statement_import.models import CommitResult, ParseResult
from packages.statement_import.parser import StatementParser
from packages.statement_import.pdf_text import extract_pdf_text
from packages.statement_import.repository import StatementRepository

logger = structlog.get_logger()


def decode_text(content: bytes) -> str:
    """Statement CSVs are UTF-8 (often with a BOM) or a legacy 8-bit charset."""
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError:
        return content.decode("latin-1")


class StatementImportService:
    def __init__(self, repository: StatementRepository, user_id: str, settings: Settings):
        self.repository = repository
        self.user_id = user_id
        self.settings = settings

    def check_upload(self, file_name: str, size: int) -> str:
        """Return the lower-cased extension, or raise 400/413."""
        try:
            extension = supported_extension(file_name)
        except UnsupportedFormatError as e:
            raise BadRequestError(str(e)) from e
        if size > self.settings.MAX_UPLOAD_BYTES:
            limit_mb = self.settings.MAX_UPLOAD_BYTES // (1024 * 1024)
            raise PayloadTooLargeError(f"File too large (max {limit_mb}MB)")
        return extension

    def extract_text(self, extension: str, content: bytes) -> str:
        if extension == ".csv":
            return decode_text(content)
        try:
            return extract_pdf_text(content, min_chars=self.settings.MIN_EXTRACTED_TEXT_CHARS)
        except ExtractionError as e:
            raise BadRequestError(str(e), details=e.details) from e

    def parse_upload(self, file_name: str, content: bytes) -> ParseResult:
        extension = self.check_upload(file_name, len(content))
        text = self.extract_text(extension, content)

        mappings = self.repository.list_merchant_mappings(self.user_id)
        resolver = MerchantResolver(
            mappings, load_catalogue(self.settings.KNOWN_MERCHANTS_FILE or None)
        )
        parser = StatementParser(
            resolver=resolver, preview_chars=self.settings.RAW_TEXT_PREVIEW_CHARS
        )
        result = parser.parse(text, file_name=file_name)

        if not result.transactions:
            logger.info("statement_empty", file_name=file_name, skipped=len(result.skipped))
            raise NoTransactionsError(result.raw_text_preview)

        existing = self._existing_fingerprints(result)
        duplicates = mark_duplicates(result.transactions, existing)

        logger.info(
            "statement_upload_parsed",
            file_name=file_name,
            total=result.total_count,
            duplicates=len(duplicates),
        )
        return result

    def _existing_fingerprints(self, result: ParseResult) -> set:
        # Duplicate flagging is advisory; a failed lookup offers every row
        try:
            return self.repository.existing_fingerprints(
                self.user_id, [t.fingerprint for t in result.transactions]
            )
        except Exception as e:
            logger.warning("duplicate_lookup_failed", error=str(e))
            return set()

    def commit(self, request: CommitRequest) -> CommitResult:
        committer = ImportCommitter(self.repository, self.user_id)
        return committer.commit(
            [item.to_candidate() for item in request.transactions], request.file_name
        )
