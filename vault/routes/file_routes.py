"""File operation API routes."""

from io import BytesIO
from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from fastapi.responses import Response

from vault import service_locator
from vault.auth import get_channel_token
from vault.exceptions import NotFoundError
from vault.schemas.files import (
    DeleteFileResponse,
    DownloadByNameRequest,
    UploadFileResponse,
    VisibilityRequest,
    VisibilityResponse
)
from vault.services.transfer_service import DownloadResult

router = APIRouter(prefix="/files", tags=["Files"])


def file_response(result: DownloadResult) -> Response:
    """Wrap downloaded bytes in an attachment response."""
    return Response(
        content=result.data,
        media_type=result.mime_type,
        headers={
            "Content-Disposition": f"attachment; filename*=UTF-8''{quote(result.filename)}",
            "X-Download-Strategy": result.strategy.value,
        }
    )


@router.post("", response_model=UploadFileResponse, status_code=status.HTTP_201_CREATED)
async def upload_file(
    file: UploadFile = File(...),
    channel_id: str = Form(...),
    channel_name: Optional[str] = Form(None),
    token: str = Depends(get_channel_token)
):
    """
    Upload a file to a remote channel.

    Parameters:
        - file: File to upload (multipart/form-data)
        - channel_id: Remote channel identifier
        - channel_name: Optional display name for a channel seen for the first time
        - X-Channel-Token header (required)

    Returns:
        - file_id, share_id, filename, kind, size, part_count

    Raises:
        - 401: Missing or rejected credential
        - 403: Credential lacks rights on the channel
        - 413: File too large
        - 429: Rate limited by the remote service
        - 502/503: Remote failure or unreachable
    """
    transfer_service = service_locator.get_transfer_service()
    settings = service_locator.get_settings_registry().current()

    file_content = await file.read()

    result = await transfer_service.upload_file(
        data=BytesIO(file_content),
        size=len(file_content),
        filename=file.filename,
        mime_type=file.content_type,
        remote_channel_id=channel_id,
        token=token,
        settings=settings,
        channel_name=channel_name,
    )

    return UploadFileResponse(
        file_id=result.file_id,
        share_id=result.share_id,
        filename=result.filename,
        kind=result.kind,
        size=result.size,
        part_count=result.part_count,
    )


@router.get("/{file_id}/download")
async def download_file(file_id: int, token: str = Depends(get_channel_token)):
    """
    Download a stored file, from its ledger parts or by scanning the channel.

    Raises:
        - 404: File or one of its parts not found
        - 409: Upload never completed
    """
    transfer_service = service_locator.get_transfer_service()
    settings = service_locator.get_settings_registry().current()

    result = await transfer_service.download_file(file_id, token, settings)
    return file_response(result)


@router.post("/download-by-name")
async def download_by_name(request: DownloadByNameRequest, token: str = Depends(get_channel_token)):
    """
    Download a file by its name alone, without local records.

    Raises:
        - 404: Not in the recent message listing (SCAN_WINDOW_EXCEEDED when parts
               may have scrolled out of the listing window)
    """
    transfer_service = service_locator.get_transfer_service()
    settings = service_locator.get_settings_registry().current()

    result = await transfer_service.download_by_name(
        remote_channel_id=request.channel_id,
        token=token,
        filename=request.filename,
        chunked=request.chunked,
        settings=settings,
    )
    return file_response(result)


@router.patch("/{file_id}/visibility", response_model=VisibilityResponse)
async def set_visibility(file_id: int, request: VisibilityRequest):
    ledger = service_locator.get_transfer_service().ledger
    if not ledger.set_visibility(file_id, request.is_public):
        raise NotFoundError(f"File {file_id} not found")

    logical = ledger.get_file(file_id)
    return VisibilityResponse(file_id=file_id, share_id=logical.share_id, is_public=logical.is_public)


@router.delete("/{file_id}", response_model=DeleteFileResponse)
async def delete_file(file_id: int):
    """
    Forget a file locally. Remote messages are left untouched.
    """
    ledger = service_locator.get_transfer_service().ledger
    if not ledger.delete_file(file_id):
        raise NotFoundError(f"File {file_id} not found")
    return DeleteFileResponse(file_id=file_id, deleted=True)
