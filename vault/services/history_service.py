"""Operation history service."""

from typing import List, Optional

from common.logging_config import get_logger
from vault.repositories.batch_repository import BatchJob
from vault.repositories.file_repository import LogicalFile
from vault.repositories.history_repository import HistoryRepository
from vault.schemas.history import (
    BatchDownloadDetails,
    BatchUploadDetails,
    DownloadDetails,
    HistoryEntry,
    UploadDetails,
)
from vault.types import ItemStatus, OperationType

logger = get_logger(__name__)


class HistoryService:
    def __init__(self):
        self.history_repo = HistoryRepository()

    def record_upload(self, logical: LogicalFile, part_count: int, remote_channel_id: str) -> int:
        details = UploadDetails(
            filename=logical.filename,
            size=logical.size_bytes,
            kind=logical.kind,
            part_count=part_count,
            share_id=logical.share_id,
            channel_id=remote_channel_id,
        )
        return self._record(OperationType.UPLOAD, details, file_id=logical.file_id)

    def record_download(self, result, remote_channel_id: str) -> int:
        details = DownloadDetails(
            filename=result.filename,
            size=len(result.data),
            strategy=result.strategy,
            channel_id=remote_channel_id,
        )
        return self._record(OperationType.DOWNLOAD, details, file_id=result.file_id)

    def record_batch(self, batch: BatchJob) -> int:
        failed = sum(1 for item in batch.items if item.status == ItemStatus.FAILED)
        details_cls = (
            BatchUploadDetails
            if batch.operation_type == OperationType.BATCH_UPLOAD
            else BatchDownloadDetails
        )
        details = details_cls(
            total_files=batch.total_files,
            completed_files=batch.completed_files,
            failed_files=failed,
            status=batch.status,
            channel_id=batch.remote_channel_id,
        )
        return self._record(batch.operation_type, details, batch_id=batch.batch_id)

    def list_recent(self, limit: int = 50, operation_type: Optional[OperationType] = None) -> List[HistoryEntry]:
        return [
            HistoryEntry(
                operation_id=record.operation_id,
                file_id=record.file_id,
                batch_id=record.batch_id,
                timestamp=record.timestamp.isoformat(),
                details=record.details,
            )
            for record in self.history_repo.list_recent(limit, operation_type)
        ]

    def _record(self, operation_type: OperationType, details, file_id=None, batch_id=None) -> int:
        operation_id = self.history_repo.create_record(
            operation_type,
            details.model_dump(mode="json"),
            file_id=file_id,
            batch_id=batch_id,
        )
        logger.debug(f"Recorded {operation_type.value} operation {operation_id}")
        return operation_id
