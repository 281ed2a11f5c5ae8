"""Pydantic schemas for API requests and responses."""

from vault.schemas.batches import (
    BatchDownloadRequest,
    BatchEventsResponse,
    BatchItemResponse,
    BatchResponse,
    ListBatchesResponse
)
from vault.schemas.common import ErrorResponse
from vault.schemas.files import (
    DeleteFileResponse,
    DownloadByNameRequest,
    FileMetadataResponse,
    ListAttachmentsResponse,
    ListFilesResponse,
    RemoteAttachmentResponse,
    SharedFileResponse,
    UploadFileResponse,
    VisibilityRequest,
    VisibilityResponse
)
from vault.schemas.history import HistoryEntry, HistoryResponse
from vault.schemas.settings import SettingsResponse, SettingsUpdateRequest

__all__ = [
    "BatchDownloadRequest",
    "BatchEventsResponse",
    "BatchItemResponse",
    "BatchResponse",
    "ListBatchesResponse",
    "ErrorResponse",
    "DeleteFileResponse",
    "DownloadByNameRequest",
    "FileMetadataResponse",
    "ListAttachmentsResponse",
    "ListFilesResponse",
    "RemoteAttachmentResponse",
    "SharedFileResponse",
    "UploadFileResponse",
    "VisibilityRequest",
    "VisibilityResponse",
    "HistoryEntry",
    "HistoryResponse",
    "SettingsResponse",
    "SettingsUpdateRequest",
]
