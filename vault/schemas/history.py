"""Pydantic schemas for operation history."""

from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field

from vault.types import BatchStatus, DownloadStrategy, FileKind


class UploadDetails(BaseModel):
    operation_type: Literal["upload"] = "upload"
    filename: str
    size: int
    kind: FileKind
    part_count: int
    share_id: str
    channel_id: str


class DownloadDetails(BaseModel):
    operation_type: Literal["download"] = "download"
    filename: str
    size: int
    strategy: DownloadStrategy
    channel_id: str


class BatchUploadDetails(BaseModel):
    operation_type: Literal["batch_upload"] = "batch_upload"
    total_files: int
    completed_files: int
    failed_files: int
    status: BatchStatus
    channel_id: str


class BatchDownloadDetails(BaseModel):
    operation_type: Literal["batch_download"] = "batch_download"
    total_files: int
    completed_files: int
    failed_files: int
    status: BatchStatus
    channel_id: str


OperationDetails = Annotated[
    Union[UploadDetails, DownloadDetails, BatchUploadDetails, BatchDownloadDetails],
    Field(discriminator="operation_type"),
]


class HistoryEntry(BaseModel):
    """One recorded operation."""
    operation_id: int
    file_id: Optional[int] = None
    batch_id: Optional[int] = None
    timestamp: str
    details: OperationDetails


class HistoryResponse(BaseModel):
    """Response model for history listing."""
    entries: List[HistoryEntry]
