"""File repository for database operations."""

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from common.logging_config import get_logger
from vault.database import get_db_connection
from vault.types import FileKind
from vault.utils import generate_share_id, get_current_timestamp

logger = get_logger(__name__)

FILE_COLUMNS = """
    file_id, share_id, filename, original_filename, size_bytes, mime_type, kind,
    upload_complete, remote_message_id, is_public, channel_id, created_at
"""


@dataclass
class LogicalFile:
    file_id: int
    share_id: str
    filename: str
    original_filename: str
    size_bytes: int
    mime_type: str
    kind: FileKind
    upload_complete: bool
    remote_message_id: Optional[str]
    is_public: bool
    channel_id: int
    created_at: datetime

    @property
    def is_chunked(self) -> bool:
        return self.kind == FileKind.CHUNKED


def _row_to_file(row) -> LogicalFile:
    return LogicalFile(
        file_id=row["file_id"],
        share_id=row["share_id"],
        filename=row["filename"],
        original_filename=row["original_filename"],
        size_bytes=row["size_bytes"],
        mime_type=row["mime_type"],
        kind=FileKind(row["kind"]),
        upload_complete=bool(row["upload_complete"]),
        remote_message_id=row["remote_message_id"],
        is_public=bool(row["is_public"]),
        channel_id=row["channel_id"],
        created_at=datetime.fromisoformat(row["created_at"]),
    )


class FileRepository:
    @staticmethod
    def create_file(
        filename: str,
        original_filename: str,
        size_bytes: int,
        mime_type: str,
        kind: FileKind,
        channel_id: int,
        is_public: bool = False
    ) -> LogicalFile:
        """
        Insert a file row in the incomplete state with a fresh share id.
        """
        try:
            with get_db_connection() as conn:
                cursor = conn.cursor()
                cursor.execute(
                    """
                    INSERT INTO files (share_id, filename, original_filename, size_bytes, mime_type,
                                       kind, upload_complete, remote_message_id, is_public, channel_id, created_at)
                    VALUES (?, ?, ?, ?, ?, ?, 0, NULL, ?, ?, ?)
                    """,
                    (
                        generate_share_id(),
                        filename,
                        original_filename,
                        size_bytes,
                        mime_type,
                        FileKind(kind).value,
                        int(is_public),
                        channel_id,
                        get_current_timestamp(),
                    )
                )
                conn.commit()
                file_id = cursor.lastrowid

                cursor.execute(f"SELECT {FILE_COLUMNS} FROM files WHERE file_id = ?", (file_id,))
                created = _row_to_file(cursor.fetchone())
        except Exception as e:
            logger.error(f"Failed to create file row for {original_filename}: {e}", exc_info=True)
            raise

        logger.debug(f"Created file row [file_id={file_id}] kind={created.kind.value} size={size_bytes}")
        return created

    @staticmethod
    def get_by_id(file_id: int) -> Optional[LogicalFile]:
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(f"SELECT {FILE_COLUMNS} FROM files WHERE file_id = ?", (file_id,))
            row = cursor.fetchone()
            return _row_to_file(row) if row else None

    @staticmethod
    def get_by_share_id(share_id: str) -> Optional[LogicalFile]:
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(f"SELECT {FILE_COLUMNS} FROM files WHERE share_id = ?", (share_id,))
            row = cursor.fetchone()
            return _row_to_file(row) if row else None

    @staticmethod
    def mark_complete(file_id: int, remote_message_id: Optional[str] = None) -> None:
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                UPDATE files
                SET upload_complete = 1, remote_message_id = COALESCE(?, remote_message_id)
                WHERE file_id = ?
                """,
                (remote_message_id, file_id)
            )
            conn.commit()

        logger.info(f"File upload marked complete [file_id={file_id}]")

    @staticmethod
    def list_by_channel(channel_id: int, limit: int = 100) -> List[LogicalFile]:
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"""
                SELECT {FILE_COLUMNS} FROM files
                WHERE channel_id = ?
                ORDER BY created_at DESC, file_id DESC
                LIMIT ?
                """,
                (channel_id, limit)
            )
            return [_row_to_file(row) for row in cursor.fetchall()]

    @staticmethod
    def set_visibility(file_id: int, is_public: bool) -> bool:
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "UPDATE files SET is_public = ? WHERE file_id = ?",
                (int(is_public), file_id)
            )
            conn.commit()
            return cursor.rowcount > 0

    @staticmethod
    def delete_file(file_id: int) -> bool:
        """
        Delete a file row; its part rows go with it (ON DELETE CASCADE).
        """
        logger.debug(f"Deleting file [file_id={file_id}]")
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM files WHERE file_id = ?", (file_id,))
            conn.commit()
            deleted = cursor.rowcount > 0

        if deleted:
            logger.info(f"File deleted [file_id={file_id}]")
        return deleted
