"""Batch runner for multi-file uploads and downloads."""

import asyncio
from dataclasses import dataclass
from io import BytesIO
from typing import List, Optional, Sequence, Tuple

from common.logging_config import get_logger
from vault.events import BATCH_COMPLETE, BATCH_ERROR, BATCH_ITEM_DONE, BATCH_PROGRESS, EventBus
from vault.exceptions import NotFoundError
from vault.repositories.batch_repository import BatchJob, BatchRepository
from vault.services.transfer_service import TransferService
from vault.settings import TransferSettings
from vault.types import ItemStatus, OperationType

logger = get_logger(__name__)


@dataclass
class BatchUploadFile:
    filename: str
    data: bytes
    mime_type: Optional[str] = None


class BatchService:
    """
    Runs the files of a batch one after another. A failing file marks only
    its own item failed; the batch continues with the next file.
    """

    def __init__(self, transfer_service: TransferService, events: EventBus, history=None):
        self.transfer_service = transfer_service
        self.events = events
        self.history = history
        self.batch_repo = BatchRepository()

    def create_batch(self, operation_type: OperationType, total: int, remote_channel_id: str) -> BatchJob:
        return self.batch_repo.create_batch(operation_type, total, remote_channel_id)

    def get_batch(self, batch_id: int) -> BatchJob:
        batch = self.batch_repo.get_batch(batch_id, with_items=True)
        if batch is None:
            raise NotFoundError(f"Batch {batch_id} not found")
        return batch

    def list_batches(self, limit: int = 10) -> List[BatchJob]:
        return self.batch_repo.list_batches(limit)

    async def run_upload_batch(
        self,
        batch_id: int,
        files: Sequence[BatchUploadFile],
        token: str,
        settings: TransferSettings
    ) -> BatchJob:
        batch = self.get_batch(batch_id)
        total = len(files)
        completed = 0
        logger.info(f"Batch {batch_id} upload started with {total} files")

        try:
            for index, upload in enumerate(files, start=1):
                self.events.publish(
                    BATCH_PROGRESS, batch_id, filename=upload.filename, index=index, total=total,
                    completed=completed
                )
                item = self.batch_repo.create_item(batch_id, upload.filename)
                self.batch_repo.refresh_status(batch_id)

                try:
                    result = await self.transfer_service.upload_file(
                        data=BytesIO(upload.data),
                        size=len(upload.data),
                        filename=upload.filename,
                        mime_type=upload.mime_type,
                        remote_channel_id=batch.remote_channel_id,
                        token=token,
                        settings=settings,
                    )
                except Exception as e:
                    logger.error(f"Batch {batch_id} item {upload.filename} failed: {e}", exc_info=True)
                    self.batch_repo.update_item(item.item_id, ItemStatus.FAILED, error=str(e))
                    self.events.publish(
                        BATCH_ERROR, batch_id, filename=upload.filename, index=index, error=str(e)
                    )
                else:
                    self.batch_repo.update_item(item.item_id, ItemStatus.COMPLETED, file_id=result.file_id)

                completed = self._item_done(batch_id, upload.filename, index, total)
        except (Exception, asyncio.CancelledError):
            self._abort(batch_id)
            raise

        return self._finish(batch_id)

    async def run_download_batch(
        self,
        batch_id: int,
        file_ids: Sequence[int],
        token: str,
        settings: TransferSettings
    ) -> List[Tuple[str, bytes]]:
        """
        Download each file of a batch.

        Returns:
            (filename, data) for every file that succeeded, in request order
        """
        self.get_batch(batch_id)
        total = len(file_ids)
        downloaded: List[Tuple[str, bytes]] = []
        completed = 0
        logger.info(f"Batch {batch_id} download started with {total} files")

        try:
            for index, file_id in enumerate(file_ids, start=1):
                logical = self.transfer_service.ledger.get_file(file_id)
                label = logical.filename if logical else f"file-{file_id}"

                self.events.publish(
                    BATCH_PROGRESS, batch_id, filename=label, index=index, total=total, completed=completed
                )
                item = self.batch_repo.create_item(batch_id, label, file_id=file_id if logical else None)
                self.batch_repo.refresh_status(batch_id)

                try:
                    result = await self.transfer_service.download_file(file_id, token, settings)
                except Exception as e:
                    logger.error(f"Batch {batch_id} item {label} failed: {e}", exc_info=True)
                    self.batch_repo.update_item(item.item_id, ItemStatus.FAILED, error=str(e))
                    self.events.publish(BATCH_ERROR, batch_id, filename=label, index=index, error=str(e))
                else:
                    self.batch_repo.update_item(item.item_id, ItemStatus.COMPLETED)
                    downloaded.append((result.filename, result.data))

                completed = self._item_done(batch_id, label, index, total)
        except (Exception, asyncio.CancelledError):
            self._abort(batch_id)
            raise

        self._finish(batch_id)
        return downloaded

    def _item_done(self, batch_id: int, filename: str, index: int, total: int) -> int:
        """Persist the derived status after one item and report the running count."""
        batch = self.batch_repo.refresh_status(batch_id)
        self.events.publish(
            BATCH_ITEM_DONE,
            batch_id,
            filename=filename,
            index=index,
            total=total,
            completed=batch.completed_files,
        )
        return batch.completed_files

    def _finish(self, batch_id: int) -> BatchJob:
        batch = self.batch_repo.get_batch(batch_id, with_items=True)
        failed = sum(1 for item in batch.items if item.status == ItemStatus.FAILED)

        self.events.publish(
            BATCH_COMPLETE,
            batch_id,
            status=batch.status.value,
            completed=batch.completed_files,
            failed=failed,
            total=batch.total_files,
        )
        logger.info(
            f"Batch {batch_id} finished status={batch.status.value} "
            f"completed={batch.completed_files}/{batch.total_files}"
        )

        if self.history is not None:
            self.history.record_batch(batch)
        return batch

    def _abort(self, batch_id: int) -> None:
        self.batch_repo.mark_failed(batch_id)
        self.events.publish(BATCH_COMPLETE, batch_id, status="failed")
