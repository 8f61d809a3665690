"""Merchant mappings router: the user's remembered description -> merchant rules."""

import structlog
from fastapi import APIRouter, Depends, Query

from apps.api.core.auth import get_current_user_id, get_repository
from apps.api.core.errors import BadRequestError
from apps.api.domains.merchant_mappings.schemas import (
    MerchantMappingIn,
    MerchantMappingOut,
)
from packages.statement_import.repository import StatementRepository

router = APIRouter(prefix="/merchant-mappings", tags=["merchant-mappings"])
logger = structlog.get_logger()


@router.get("", response_model=list[MerchantMappingOut])
async def list_merchant_mappings(
    user_id: str = Depends(get_current_user_id),
    repository: StatementRepository = Depends(get_repository),
):
    """All of the user's mappings, most used first."""
    mappings = repository.list_merchant_mappings(user_id)
    return [MerchantMappingOut.from_mapping(m) for m in mappings]


@router.post("", response_model=MerchantMappingOut)
async def save_merchant_mapping(
    body: MerchantMappingIn,
    user_id: str = Depends(get_current_user_id),
    repository: StatementRepository = Depends(get_repository),
):
    """Create a mapping, or update the one with the same pattern."""
    mapping = body.to_mapping()
    if not mapping.pattern or not mapping.display_name:
        raise BadRequestError("merchant_pattern and merchant_name are required")

    saved = repository.upsert_merchant_mapping(user_id, mapping)
    logger.info("merchant_mapping_saved", user_id=user_id, pattern=saved.pattern)
    return MerchantMappingOut.from_mapping(saved)


@router.delete("")
async def delete_merchant_mapping(
    id: str = Query(default=""),
    user_id: str = Depends(get_current_user_id),
    repository: StatementRepository = Depends(get_repository),
):
    if not id:
        raise BadRequestError("id is required")

    repository.delete_merchant_mapping(user_id, id)
    logger.info("merchant_mapping_deleted", user_id=user_id, mapping_id=id)
    return {"success": True}
