"""Schemas shared by every router."""

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """
    Body returned by the exception handlers in vault.main.

    code is the stable machine-readable name (NOT_FOUND, SCAN_WINDOW_EXCEEDED,
    REMOTE_UNAVAILABLE, ...); detail is the human-readable message.
    """
    detail: str
    code: str
