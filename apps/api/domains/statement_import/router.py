"""Statement import router: parse an uploaded statement, import reviewed rows."""

import structlog
from fastapi import APIRouter, Depends, File, UploadFile

from apps.api.core.auth import get_current_user_id, get_repository
from apps.api.core.config import Settings, get_settings
from apps.api.domains.statement_import.schemas import (
    CommitRequest,
    CommitResponse,
    ParseResponse,
)
from apps.api.domains.statement_import.service import StatementImportService
from packages.statement_import.repository import StatementRepository

router = APIRouter(prefix="/statement-import", tags=["statement-import"])
logger = structlog.get_logger()


def get_service(
    user_id: str = Depends(get_current_user_id),
    repository: StatementRepository = Depends(get_repository),
    settings: Settings = Depends(get_settings),
) -> StatementImportService:
    return StatementImportService(repository, user_id, settings)


@router.post("/parse", response_model=ParseResponse)
async def parse_statement_upload(
    file: UploadFile = File(...),
    service: StatementImportService = Depends(get_service),
):
    """Parse a CSV or PDF statement into candidates for review.

    Nothing is written. Candidates whose fingerprint is already stored come
    back flagged ``duplicate`` and deselected.
    """
    content = await file.read()
    result = service.parse_upload(file.filename or "", content)
    return ParseResponse.from_result(result)


@router.post("/import", response_model=CommitResponse)
async def import_transactions(
    request: CommitRequest,
    service: StatementImportService = Depends(get_service),
):
    """Insert the reviewed transactions one by one.

    A failing row is reported in ``errors`` and does not stop the others.
    """
    result = service.commit(request)
    return CommitResponse.from_result(result)
