"""Pydantic schemas for the statement import domain."""

from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from packages.statement_import.models import (
    CommitResult,
    ImportCandidate,
    ParsedTransaction,
    ParseResult,
)


class ParsedTransactionOut(BaseModel):
    """A candidate transaction shown to the user for review."""

    id: str
    date: str
    description: str
    amount: float
    type: Literal["debit", "credit"]
    merchant_name: Optional[str] = None
    merchant_pattern: Optional[str] = None
    suggested_category: Optional[str] = None
    category_id: Optional[str] = None
    subcategory_id: Optional[str] = None
    account_id: Optional[str] = None
    matched: bool = False
    selected: bool = True
    duplicate: bool = False
    fingerprint: str
    line_number: int

    @classmethod
    def from_parsed(cls, txn: ParsedTransaction) -> "ParsedTransactionOut":
        return cls(
            id=txn.id,
            date=txn.date,
            description=txn.description,
            amount=txn.amount,
            type=txn.direction.value,
            merchant_name=txn.merchant_name,
            merchant_pattern=txn.merchant_pattern,
            suggested_category=txn.suggested_category,
            category_id=txn.category_id,
            subcategory_id=txn.subcategory_id,
            account_id=txn.account_id,
            matched=txn.matched,
            selected=txn.selected,
            duplicate=txn.duplicate,
            fingerprint=txn.fingerprint,
            line_number=txn.line_number,
        )


class ParseResponse(BaseModel):
    transactions: list[ParsedTransactionOut]
    matchedCount: int
    unmatchedCount: int
    totalCount: int
    skippedCount: int
    duplicateCount: int = 0
    rawTextPreview: str = ""
    format: str

    @classmethod
    def from_result(cls, result: ParseResult) -> "ParseResponse":
        return cls(
            transactions=[ParsedTransactionOut.from_parsed(t) for t in result.transactions],
            matchedCount=result.matched_count,
            unmatchedCount=result.unmatched_count,
            totalCount=result.total_count,
            skippedCount=len(result.skipped),
            duplicateCount=sum(1 for t in result.transactions if t.duplicate),
            rawTextPreview=result.raw_text_preview,
            format=result.format.value,
        )


class CommitItem(BaseModel):
    """One reviewed transaction the user chose to import."""

    date: str = Field(..., pattern=r"^\d{4}-(0[1-9]|1[0-2])-(0[1-9]|[12]\d|3[01])$")
    amount: float = Field(..., gt=0)
    description: str = ""
    account_id: str = Field(..., min_length=1)
    category_id: Optional[str] = None
    subcategory_id: Optional[str] = None
    save_merchant_mapping: bool = False
    merchant_pattern: Optional[str] = None
    merchant_name: Optional[str] = None
    matched: bool = False
    fingerprint: Optional[str] = None

    @field_validator("merchant_pattern")
    @classmethod
    def normalize_pattern(cls, v: Optional[str]) -> Optional[str]:
        return v.strip().upper() if v else v

    def to_candidate(self) -> ImportCandidate:
        return ImportCandidate(
            date=self.date[:10],
            amount=self.amount,
            description=self.description,
            account_id=self.account_id,
            category_id=self.category_id,
            subcategory_id=self.subcategory_id,
            save_merchant_mapping=self.save_merchant_mapping,
            merchant_pattern=self.merchant_pattern,
            merchant_name=self.merchant_name,
            matched=self.matched,
            fingerprint=self.fingerprint,
        )


class CommitRequest(BaseModel):
    transactions: list[CommitItem] = Field(..., min_length=1)
    file_name: str = "Unknown"


class RowErrorOut(BaseModel):
    index: int
    description: str
    message: str


class CommitResponse(BaseModel):
    success: bool = True
    imported_count: int
    merchant_mappings_saved: int
    errors: list[RowErrorOut] = Field(default_factory=list)

    @classmethod
    def from_result(cls, result: CommitResult) -> "CommitResponse":
        return cls(
            imported_count=result.imported_count,
            merchant_mappings_saved=result.mappings_saved,
            errors=[
                RowErrorOut(index=e.index, description=e.description, message=e.message)
                for e in result.errors
            ],
        )
