"""Channel repository for database operations."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from common.logging_config import get_logger
from vault.database import get_db_connection
from vault.utils import get_current_timestamp

logger = get_logger(__name__)


@dataclass
class Channel:
    channel_id: int
    remote_channel_id: str
    name: Optional[str]
    created_at: datetime
    last_used: datetime


def _row_to_channel(row) -> Channel:
    return Channel(
        channel_id=row["channel_id"],
        remote_channel_id=row["remote_channel_id"],
        name=row["name"],
        created_at=datetime.fromisoformat(row["created_at"]),
        last_used=datetime.fromisoformat(row["last_used"]),
    )


class ChannelRepository:
    @staticmethod
    def get_by_remote_id(remote_channel_id: str) -> Optional[Channel]:
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT channel_id, remote_channel_id, name, created_at, last_used
                FROM channels WHERE remote_channel_id = ?
                """,
                (remote_channel_id,)
            )
            row = cursor.fetchone()
            return _row_to_channel(row) if row else None

    @staticmethod
    def get_by_id(channel_id: int) -> Optional[Channel]:
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT channel_id, remote_channel_id, name, created_at, last_used
                FROM channels WHERE channel_id = ?
                """,
                (channel_id,)
            )
            row = cursor.fetchone()
            return _row_to_channel(row) if row else None

    @staticmethod
    def create_channel(remote_channel_id: str, name: Optional[str] = None) -> Channel:
        now = get_current_timestamp()
        display_name = name or f"Channel {remote_channel_id}"

        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO channels (remote_channel_id, name, created_at, last_used)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(remote_channel_id) DO UPDATE SET last_used = excluded.last_used
                """,
                (remote_channel_id, display_name, now, now)
            )
            conn.commit()

            cursor.execute(
                """
                SELECT channel_id, remote_channel_id, name, created_at, last_used
                FROM channels WHERE remote_channel_id = ?
                """,
                (remote_channel_id,)
            )
            channel = _row_to_channel(cursor.fetchone())

        logger.info(f"Registered channel {remote_channel_id} [channel_id={channel.channel_id}]")
        return channel

    @staticmethod
    def touch_last_used(channel_id: int) -> None:
        with get_db_connection() as conn:
            conn.execute(
                "UPDATE channels SET last_used = ? WHERE channel_id = ?",
                (get_current_timestamp(), channel_id)
            )
            conn.commit()
