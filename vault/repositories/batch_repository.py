"""Batch job repository for database operations."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from common.logging_config import get_logger
from vault.database import get_db_connection
from vault.types import BatchStatus, ItemStatus, OperationType, derive_batch_status
from vault.utils import get_current_timestamp

logger = get_logger(__name__)

TERMINAL_BATCH_STATUSES = (
    BatchStatus.COMPLETED,
    BatchStatus.COMPLETED_WITH_ERRORS,
    BatchStatus.FAILED,
)


@dataclass
class BatchItem:
    item_id: int
    batch_id: int
    file_id: Optional[int]
    filename: str
    status: ItemStatus
    error: Optional[str] = None


@dataclass
class BatchJob:
    batch_id: int
    operation_type: OperationType
    status: BatchStatus
    total_files: int
    completed_files: int
    remote_channel_id: str
    created_at: datetime
    completed_at: Optional[datetime] = None
    items: List[BatchItem] = field(default_factory=list)


def _row_to_batch(row) -> BatchJob:
    return BatchJob(
        batch_id=row["batch_id"],
        operation_type=OperationType(row["operation_type"]),
        status=BatchStatus(row["status"]),
        total_files=row["total_files"],
        completed_files=row["completed_files"],
        remote_channel_id=row["remote_channel_id"],
        created_at=datetime.fromisoformat(row["created_at"]),
        completed_at=datetime.fromisoformat(row["completed_at"]) if row["completed_at"] else None,
    )


def _row_to_item(row) -> BatchItem:
    return BatchItem(
        item_id=row["item_id"],
        batch_id=row["batch_id"],
        file_id=row["file_id"],
        filename=row["filename"],
        status=ItemStatus(row["status"]),
        error=row["error"],
    )


class BatchRepository:
    @staticmethod
    def create_batch(operation_type: OperationType, total_files: int, remote_channel_id: str) -> BatchJob:
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO batch_jobs (operation_type, status, total_files, completed_files, remote_channel_id, created_at)
                VALUES (?, ?, ?, 0, ?, ?)
                """,
                (
                    OperationType(operation_type).value,
                    BatchStatus.PENDING.value,
                    total_files,
                    remote_channel_id,
                    get_current_timestamp(),
                )
            )
            conn.commit()
            batch_id = cursor.lastrowid

        logger.info(f"Created batch {batch_id} ({OperationType(operation_type).value}, {total_files} files)")
        return BatchRepository.get_batch(batch_id)

    @staticmethod
    def get_batch(batch_id: int, with_items: bool = False) -> Optional[BatchJob]:
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM batch_jobs WHERE batch_id = ?", (batch_id,))
            row = cursor.fetchone()
            if row is None:
                return None

            batch = _row_to_batch(row)
            if with_items:
                cursor.execute(
                    "SELECT * FROM batch_items WHERE batch_id = ? ORDER BY item_id",
                    (batch_id,)
                )
                batch.items = [_row_to_item(item_row) for item_row in cursor.fetchall()]
            return batch

    @staticmethod
    def list_batches(limit: int = 10) -> List[BatchJob]:
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT * FROM batch_jobs ORDER BY batch_id DESC LIMIT ?",
                (limit,)
            )
            return [_row_to_batch(row) for row in cursor.fetchall()]

    @staticmethod
    def create_item(batch_id: int, filename: str, file_id: Optional[int] = None) -> BatchItem:
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO batch_items (batch_id, file_id, filename, status)
                VALUES (?, ?, ?, ?)
                """,
                (batch_id, file_id, filename, ItemStatus.IN_PROGRESS.value)
            )
            conn.commit()
            item_id = cursor.lastrowid

        return BatchItem(
            item_id=item_id,
            batch_id=batch_id,
            file_id=file_id,
            filename=filename,
            status=ItemStatus.IN_PROGRESS,
        )

    @staticmethod
    def update_item(
        item_id: int,
        status: ItemStatus,
        file_id: Optional[int] = None,
        error: Optional[str] = None
    ) -> None:
        with get_db_connection() as conn:
            conn.execute(
                """
                UPDATE batch_items
                SET status = ?, file_id = COALESCE(?, file_id), error = ?
                WHERE item_id = ?
                """,
                (ItemStatus(status).value, file_id, error, item_id)
            )
            conn.commit()

    @staticmethod
    def refresh_status(batch_id: int) -> BatchJob:
        """
        Recompute completed_files and the derived status from the batch's items.
        """
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT total_files FROM batch_jobs WHERE batch_id = ?", (batch_id,))
            total = cursor.fetchone()["total_files"]

            cursor.execute("SELECT status FROM batch_items WHERE batch_id = ?", (batch_id,))
            statuses = [ItemStatus(row["status"]) for row in cursor.fetchall()]

            status = derive_batch_status(total, statuses)
            completed = sum(1 for s in statuses if s == ItemStatus.COMPLETED)
            completed_at = get_current_timestamp() if status in TERMINAL_BATCH_STATUSES else None

            cursor.execute(
                """
                UPDATE batch_jobs
                SET status = ?, completed_files = ?, completed_at = ?
                WHERE batch_id = ?
                """,
                (status.value, completed, completed_at, batch_id)
            )
            conn.commit()

        return BatchRepository.get_batch(batch_id)

    @staticmethod
    def mark_failed(batch_id: int) -> None:
        with get_db_connection() as conn:
            conn.execute(
                "UPDATE batch_jobs SET status = ?, completed_at = ? WHERE batch_id = ?",
                (BatchStatus.FAILED.value, get_current_timestamp(), batch_id)
            )
            conn.commit()

        logger.warning(f"Batch {batch_id} marked failed")
