"""Pydantic schemas for the merchant mappings domain."""

from typing import Optional

from pydantic import BaseModel, Field

from packages.statement_import.models import MerchantMapping


class MerchantMappingIn(BaseModel):
    merchant_pattern: str = Field(..., min_length=1)
    merchant_name: str = Field(..., min_length=1)
    category_id: Optional[str] = None
    subcategory_id: Optional[str] = None
    account_id: Optional[str] = None

    def to_mapping(self) -> MerchantMapping:
        return MerchantMapping(
            pattern=self.merchant_pattern,
            display_name=self.merchant_name,
            category_id=self.category_id or None,
            subcategory_id=self.subcategory_id or None,
            account_id=self.account_id or None,
        )


class MerchantMappingOut(BaseModel):
    id: Optional[str] = None
    merchant_pattern: str
    merchant_name: str
    category_id: Optional[str] = None
    subcategory_id: Optional[str] = None
    account_id: Optional[str] = None
    use_count: int = 1

    @classmethod
    def from_mapping(cls, mapping: MerchantMapping) -> "MerchantMappingOut":
        return cls(
            id=mapping.id,
            merchant_pattern=mapping.pattern,
            merchant_name=mapping.display_name,
            category_id=mapping.category_id,
            subcategory_id=mapping.subcategory_id,
            account_id=mapping.account_id,
            use_count=mapping.use_count,
        )
