"""Utility helper functions for the vault service."""

import mimetypes
import uuid
from datetime import datetime, timezone


def generate_share_id() -> str:
    """
    Generate a random public share identifier.

    Returns:
        32-character hex token, unrelated to any numeric id
    """
    return uuid.uuid4().hex


def get_current_timestamp() -> str:
    """
    Get current UTC timestamp in ISO format.
    """
    return datetime.now(timezone.utc).isoformat()


def guess_mime_type(filename: str) -> str:
    """
    Guess a content type from a filename, falling back to octet-stream.
    """
    mime_type, _ = mimetypes.guess_type(filename)
    return mime_type or "application/octet-stream"
