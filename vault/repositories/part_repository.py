"""Part repository for database operations."""

from dataclasses import dataclass
from typing import List, Optional

from common.logging_config import get_logger
from vault.database import get_db_connection

logger = get_logger(__name__)


@dataclass
class Part:
    part_id: int
    file_id: int
    part_number: int
    size_bytes: int
    remote_message_id: Optional[str]
    upload_complete: bool


class PartRepository:
    @staticmethod
    def create_part(file_id: int, part_number: int, size_bytes: int) -> Part:
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO file_parts (file_id, part_number, size_bytes, remote_message_id, upload_complete)
                VALUES (?, ?, ?, NULL, 0)
                """,
                (file_id, part_number, size_bytes)
            )
            conn.commit()
            part_id = cursor.lastrowid

        logger.debug(f"Created part row [file_id={file_id}] part={part_number} size={size_bytes}")
        return Part(
            part_id=part_id,
            file_id=file_id,
            part_number=part_number,
            size_bytes=size_bytes,
            remote_message_id=None,
            upload_complete=False,
        )

    @staticmethod
    def mark_complete(part_id: int, remote_message_id: str) -> None:
        with get_db_connection() as conn:
            conn.execute(
                "UPDATE file_parts SET upload_complete = 1, remote_message_id = ? WHERE part_id = ?",
                (remote_message_id, part_id)
            )
            conn.commit()

    @staticmethod
    def get_parts_by_file(file_id: int) -> List[Part]:
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT part_id, file_id, part_number, size_bytes, remote_message_id, upload_complete
                FROM file_parts
                WHERE file_id = ?
                ORDER BY part_number
                """,
                (file_id,)
            )
            rows = cursor.fetchall()

            return [
                Part(
                    part_id=row["part_id"],
                    file_id=row["file_id"],
                    part_number=row["part_number"],
                    size_bytes=row["size_bytes"],
                    remote_message_id=row["remote_message_id"],
                    upload_complete=bool(row["upload_complete"]),
                )
                for row in rows
            ]
