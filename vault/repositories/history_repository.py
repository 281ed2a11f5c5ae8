"""Operation history repository for database operations."""

import json
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from common.logging_config import get_logger
from vault.database import get_db_connection
from vault.types import OperationType
from vault.utils import get_current_timestamp

logger = get_logger(__name__)


@dataclass
class HistoryRecord:
    operation_id: int
    operation_type: OperationType
    file_id: Optional[int]
    batch_id: Optional[int]
    timestamp: datetime
    details: Dict[str, Any]


class HistoryRepository:
    @staticmethod
    def create_record(
        operation_type: OperationType,
        details: Dict[str, Any],
        file_id: Optional[int] = None,
        batch_id: Optional[int] = None
    ) -> int:
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO operation_history (operation_type, file_id, batch_id, timestamp, details)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    OperationType(operation_type).value,
                    file_id,
                    batch_id,
                    get_current_timestamp(),
                    json.dumps(details),
                )
            )
            conn.commit()
            return cursor.lastrowid

    @staticmethod
    def list_recent(limit: int = 50, operation_type: Optional[OperationType] = None) -> List[HistoryRecord]:
        query = "SELECT * FROM operation_history"
        params: list = []
        if operation_type is not None:
            query += " WHERE operation_type = ?"
            params.append(OperationType(operation_type).value)
        query += " ORDER BY operation_id DESC LIMIT ?"
        params.append(limit)

        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(query, params)
            return [
                HistoryRecord(
                    operation_id=row["operation_id"],
                    operation_type=OperationType(row["operation_type"]),
                    file_id=row["file_id"],
                    batch_id=row["batch_id"],
                    timestamp=datetime.fromisoformat(row["timestamp"]),
                    details=json.loads(row["details"]),
                )
                for row in cursor.fetchall()
            ]
