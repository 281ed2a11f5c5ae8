"""Pydantic schemas for file endpoints."""

from typing import List, Optional

from pydantic import BaseModel, Field

from vault.types import FileKind


class UploadFileResponse(BaseModel):
    """Response model for file upload."""
    file_id: int
    share_id: str
    filename: str
    kind: FileKind
    size: int
    part_count: int


class FileMetadataResponse(BaseModel):
    """Response model for file metadata."""
    file_id: int
    share_id: str
    filename: str
    size: int
    mime_type: str
    kind: FileKind
    upload_complete: bool
    is_public: bool
    created_at: str


class ListFilesResponse(BaseModel):
    """Response model for file listing."""
    files: List[FileMetadataResponse]


class DownloadByNameRequest(BaseModel):
    """Request model for filename-only download."""
    channel_id: str = Field(..., min_length=1)
    filename: str = Field(..., min_length=1)
    chunked: bool = False


class VisibilityRequest(BaseModel):
    """Request model for changing a file's share visibility."""
    is_public: bool


class VisibilityResponse(BaseModel):
    file_id: int
    share_id: str
    is_public: bool


class DeleteFileResponse(BaseModel):
    file_id: int
    deleted: bool


class RemoteAttachmentResponse(BaseModel):
    message_id: str
    attachment_id: str
    filename: str
    size: int
    content_type: Optional[str] = None
    part_of: Optional[str] = None
    part_number: Optional[int] = None


class ListAttachmentsResponse(BaseModel):
    """Response model for the remote channel listing."""
    attachments: List[RemoteAttachmentResponse]


class SharedFileResponse(BaseModel):
    """Public metadata of a shared file."""
    share_id: str
    filename: str
    size: int
    mime_type: str
    kind: FileKind
    created_at: str
