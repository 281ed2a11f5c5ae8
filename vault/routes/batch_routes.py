"""Batch operation API routes."""

import zipfile
from io import BytesIO
from typing import List, Tuple

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, HTTPException, Query, UploadFile, status
from fastapi.responses import Response

from vault import service_locator
from vault.auth import get_channel_token
from vault.repositories.batch_repository import BatchJob
from vault.schemas.batches import (
    BatchDownloadRequest,
    BatchEventsResponse,
    BatchItemResponse,
    BatchResponse,
    ListBatchesResponse
)
from vault.services.batch_service import BatchUploadFile
from vault.types import OperationType

router = APIRouter(prefix="/batches", tags=["Batches"])


def to_batch_response(batch: BatchJob) -> BatchResponse:
    return BatchResponse(
        batch_id=batch.batch_id,
        operation_type=batch.operation_type,
        status=batch.status,
        total_files=batch.total_files,
        completed_files=batch.completed_files,
        channel_id=batch.remote_channel_id,
        created_at=batch.created_at.isoformat(),
        completed_at=batch.completed_at.isoformat() if batch.completed_at else None,
        items=[
            BatchItemResponse(
                item_id=item.item_id,
                file_id=item.file_id,
                filename=item.filename,
                status=item.status,
                error=item.error,
            )
            for item in batch.items
        ],
    )


def build_zip(files: List[Tuple[str, bytes]]) -> bytes:
    """Pack downloaded files into a zip, suffixing repeated names."""
    buffer = BytesIO()
    seen = {}
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as archive:
        for filename, data in files:
            count = seen.get(filename, 0)
            seen[filename] = count + 1
            arcname = filename if count == 0 else f"{filename} ({count})"
            archive.writestr(arcname, data)
    return buffer.getvalue()


@router.post("/upload", response_model=BatchResponse, status_code=status.HTTP_202_ACCEPTED)
async def batch_upload(
    background_tasks: BackgroundTasks,
    files: List[UploadFile] = File(...),
    channel_id: str = Form(...),
    token: str = Depends(get_channel_token)
):
    """
    Upload several files sequentially in the background.

    Returns the batch immediately; poll GET /batches/{batch_id} or
    GET /batches/{batch_id}/events for progress.
    """
    if not files:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="At least one file is required for a batch upload"
        )

    batch_service = service_locator.get_batch_service()
    settings = service_locator.get_settings_registry().current()

    uploads = [
        BatchUploadFile(filename=f.filename, data=await f.read(), mime_type=f.content_type)
        for f in files
    ]

    batch = batch_service.create_batch(OperationType.BATCH_UPLOAD, len(uploads), channel_id)
    background_tasks.add_task(batch_service.run_upload_batch, batch.batch_id, uploads, token, settings)

    return to_batch_response(batch)


@router.post("/download")
async def batch_download(request: BatchDownloadRequest, token: str = Depends(get_channel_token)):
    """
    Download several files and return the successful ones as a zip archive.
    The batch id and final status are returned in X-Batch-ID and X-Batch-Status.
    """
    batch_service = service_locator.get_batch_service()
    settings = service_locator.get_settings_registry().current()

    batch = batch_service.create_batch(OperationType.BATCH_DOWNLOAD, len(request.file_ids), request.channel_id)
    downloaded = await batch_service.run_download_batch(batch.batch_id, request.file_ids, token, settings)
    finished = batch_service.get_batch(batch.batch_id)

    return Response(
        content=build_zip(downloaded),
        media_type="application/zip",
        headers={
            "Content-Disposition": f'attachment; filename="batch-{batch.batch_id}.zip"',
            "X-Batch-ID": str(batch.batch_id),
            "X-Batch-Status": finished.status.value,
        }
    )


@router.get("", response_model=ListBatchesResponse)
async def list_batches(limit: int = Query(10, ge=1, le=100)):
    batch_service = service_locator.get_batch_service()
    return ListBatchesResponse(batches=[to_batch_response(b) for b in batch_service.list_batches(limit)])


@router.get("/{batch_id}", response_model=BatchResponse)
async def get_batch(batch_id: int):
    batch_service = service_locator.get_batch_service()
    return to_batch_response(batch_service.get_batch(batch_id))


@router.get("/{batch_id}/events", response_model=BatchEventsResponse)
async def get_batch_events(batch_id: int, since: int = Query(0, ge=0)):
    """
    Buffered progress events of a batch, oldest first.
    """
    batch_service = service_locator.get_batch_service()
    batch_service.get_batch(batch_id)

    events = service_locator.get_event_bus().events_for(batch_id, since=since)
    return BatchEventsResponse(batch_id=batch_id, events=[event.to_dict() for event in events])
