"""Database schema and connection management for SQLite."""

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

from vault import config


def init_database() -> None:
    """
    Initialize database and create tables if they don't exist.
    """
    db_path = Path(config.DATABASE_PATH)
    db_path.parent.mkdir(parents=True, exist_ok=True)

    with get_db_connection() as conn:
        cursor = conn.cursor()

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS channels (
                channel_id INTEGER PRIMARY KEY AUTOINCREMENT,
                remote_channel_id TEXT UNIQUE NOT NULL,
                name TEXT,
                created_at TEXT NOT NULL,
                last_used TEXT NOT NULL
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS files (
                file_id INTEGER PRIMARY KEY AUTOINCREMENT,
                share_id TEXT UNIQUE NOT NULL,
                filename TEXT NOT NULL,
                original_filename TEXT NOT NULL,
                size_bytes INTEGER NOT NULL,
                mime_type TEXT NOT NULL,
                kind TEXT NOT NULL CHECK(kind IN ('single', 'chunked')),
                upload_complete INTEGER NOT NULL DEFAULT 0,
                remote_message_id TEXT,
                is_public INTEGER NOT NULL DEFAULT 0,
                channel_id INTEGER NOT NULL,
                created_at TEXT NOT NULL,
                FOREIGN KEY(channel_id) REFERENCES channels(channel_id)
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS file_parts (
                part_id INTEGER PRIMARY KEY AUTOINCREMENT,
                file_id INTEGER NOT NULL,
                part_number INTEGER NOT NULL,
                size_bytes INTEGER NOT NULL,
                remote_message_id TEXT,
                upload_complete INTEGER NOT NULL DEFAULT 0,
                UNIQUE(file_id, part_number),
                FOREIGN KEY(file_id) REFERENCES files(file_id) ON DELETE CASCADE
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS batch_jobs (
                batch_id INTEGER PRIMARY KEY AUTOINCREMENT,
                operation_type TEXT NOT NULL,
                status TEXT NOT NULL DEFAULT 'pending',
                total_files INTEGER NOT NULL,
                completed_files INTEGER NOT NULL DEFAULT 0,
                remote_channel_id TEXT NOT NULL,
                created_at TEXT NOT NULL,
                completed_at TEXT
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS batch_items (
                item_id INTEGER PRIMARY KEY AUTOINCREMENT,
                batch_id INTEGER NOT NULL,
                file_id INTEGER,
                filename TEXT NOT NULL,
                status TEXT NOT NULL DEFAULT 'pending',
                error TEXT,
                FOREIGN KEY(batch_id) REFERENCES batch_jobs(batch_id) ON DELETE CASCADE
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS operation_history (
                operation_id INTEGER PRIMARY KEY AUTOINCREMENT,
                operation_type TEXT NOT NULL,
                file_id INTEGER,
                batch_id INTEGER,
                timestamp TEXT NOT NULL,
                details TEXT NOT NULL
            )
        """)

        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_files_channel ON files(channel_id, created_at)
        """)

        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_parts_file ON file_parts(file_id, part_number)
        """)

        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_batch_items_batch ON batch_items(batch_id)
        """)

        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_history_timestamp ON operation_history(timestamp)
        """)

        conn.commit()


@contextmanager
def get_db_connection() -> Generator[sqlite3.Connection, None, None]:
    """
    Context manager for database connections.
    """
    conn = sqlite3.connect(config.DATABASE_PATH)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    try:
        yield conn
    finally:
        conn.close()
