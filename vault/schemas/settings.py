"""Pydantic schemas for transfer settings."""

from typing import Optional

from pydantic import BaseModel


class SettingsResponse(BaseModel):
    """Current transfer settings snapshot."""
    version: int
    chunk_size_bytes: int
    chunk_threshold_bytes: int
    max_file_size_bytes: int
    attachment_ceiling_bytes: int
    pacing_delay_seconds: float
    part_concurrency: int
    message_list_limit: int


class SettingsUpdateRequest(BaseModel):
    """Partial settings update; omitted fields keep their value."""
    chunk_size_bytes: Optional[int] = None
    chunk_threshold_bytes: Optional[int] = None
    max_file_size_bytes: Optional[int] = None
    pacing_delay_seconds: Optional[float] = None
    part_concurrency: Optional[int] = None
    message_list_limit: Optional[int] = None
