"""Operation history API routes."""

from typing import Optional

from fastapi import APIRouter, Query

from vault.schemas.history import HistoryResponse
from vault.services.history_service import HistoryService
from vault.types import OperationType

router = APIRouter(prefix="/history", tags=["History"])


@router.get("", response_model=HistoryResponse)
async def list_history(
    limit: int = Query(50, ge=1, le=500),
    operation_type: Optional[OperationType] = Query(None)
):
    history_service = HistoryService()
    return HistoryResponse(entries=history_service.list_recent(limit, operation_type))
