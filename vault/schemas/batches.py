"""Pydantic schemas for batch endpoints."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from vault.types import BatchStatus, ItemStatus, OperationType


class BatchDownloadRequest(BaseModel):
    """Request model for batch download."""
    channel_id: str = Field(..., min_length=1)
    file_ids: List[int] = Field(..., min_length=1)


class BatchItemResponse(BaseModel):
    item_id: int
    file_id: Optional[int] = None
    filename: str
    status: ItemStatus
    error: Optional[str] = None


class BatchResponse(BaseModel):
    """Response model for one batch."""
    batch_id: int
    operation_type: OperationType
    status: BatchStatus
    total_files: int
    completed_files: int
    channel_id: str
    created_at: str
    completed_at: Optional[str] = None
    items: List[BatchItemResponse] = []


class ListBatchesResponse(BaseModel):
    batches: List[BatchResponse]


class BatchEventsResponse(BaseModel):
    batch_id: int
    events: List[Dict[str, Any]]
