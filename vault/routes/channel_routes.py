"""Channel listing API routes."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from common.chunking import parse_part_number
from common.constants import MESSAGE_LIST_MAX, PART_SUFFIX
from vault import service_locator
from vault.auth import get_channel_token
from vault.schemas.files import (
    FileMetadataResponse,
    ListAttachmentsResponse,
    ListFilesResponse,
    RemoteAttachmentResponse
)

router = APIRouter(prefix="/channels", tags=["Channels"])


@router.get("/{channel_id}/files", response_model=ListFilesResponse)
async def list_channel_files(channel_id: str, limit: int = Query(100, ge=1, le=1000)):
    """
    List files recorded locally for a remote channel, newest first.
    """
    ledger = service_locator.get_transfer_service().ledger
    files = ledger.list_files_by_channel(channel_id, limit)

    return ListFilesResponse(
        files=[
            FileMetadataResponse(
                file_id=f.file_id,
                share_id=f.share_id,
                filename=f.filename,
                size=f.size_bytes,
                mime_type=f.mime_type,
                kind=f.kind,
                upload_complete=f.upload_complete,
                is_public=f.is_public,
                created_at=f.created_at.isoformat(),
            )
            for f in files
        ]
    )


@router.get("/{channel_id}/attachments", response_model=ListAttachmentsResponse)
async def list_remote_attachments(
    channel_id: str,
    limit: Optional[int] = Query(None, ge=1, le=MESSAGE_LIST_MAX),
    token: str = Depends(get_channel_token)
):
    """
    List attachments in the channel's recent messages, newest first.

    Attachments named '{base}.partN' are reported with their base name and
    part number.
    """
    client = service_locator.get_discord_client()
    settings = service_locator.get_settings_registry().current()

    messages = await client.list_recent_messages(channel_id, token, limit or settings.message_list_limit)

    attachments = []
    for message in messages:
        for attachment in message.attachments:
            part_of, part_number = None, None
            marker = attachment.filename.rfind(PART_SUFFIX)
            if marker > 0:
                base = attachment.filename[:marker]
                part_number = parse_part_number(base, attachment.filename)
                part_of = base if part_number is not None else None

            attachments.append(
                RemoteAttachmentResponse(
                    message_id=message.message_id,
                    attachment_id=attachment.attachment_id,
                    filename=attachment.filename,
                    size=attachment.size,
                    content_type=attachment.content_type,
                    part_of=part_of,
                    part_number=part_number,
                )
            )

    return ListAttachmentsResponse(attachments=attachments)
