"""Public share link API routes."""

from fastapi import APIRouter, Depends

from vault import service_locator
from vault.auth import get_channel_token
from vault.exceptions import NotFoundError, PermissionDeniedError
from vault.routes.file_routes import file_response
from vault.schemas.files import SharedFileResponse

router = APIRouter(prefix="/shared", tags=["Shared"])


@router.get("/{share_id}", response_model=SharedFileResponse)
async def get_shared_file(share_id: str):
    """
    Public metadata of a shared file.

    Raises:
        - 403: File exists but is not public
        - 404: Unknown share id
    """
    ledger = service_locator.get_transfer_service().ledger
    logical = ledger.get_file_by_share_id(share_id)
    if logical is None:
        raise NotFoundError(f"Shared file {share_id} not found")
    if not logical.is_public:
        raise PermissionDeniedError("File is not shared publicly")

    return SharedFileResponse(
        share_id=logical.share_id,
        filename=logical.filename,
        size=logical.size_bytes,
        mime_type=logical.mime_type,
        kind=logical.kind,
        created_at=logical.created_at.isoformat(),
    )


@router.get("/{share_id}/download")
async def download_shared_file(share_id: str, token: str = Depends(get_channel_token)):
    transfer_service = service_locator.get_transfer_service()
    settings = service_locator.get_settings_registry().current()

    result = await transfer_service.download_shared(share_id, token, settings)
    return file_response(result)
