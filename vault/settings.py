"""Versioned transfer settings."""

import threading
from dataclasses import dataclass, replace
from typing import Optional

from common.constants import MESSAGE_LIST_MAX
from common.logging_config import get_logger
from vault import config
from vault.exceptions import InvalidSettingsError

logger = get_logger(__name__)


@dataclass(frozen=True)
class TransferSettings:
    """
    Immutable snapshot of the transfer tuning in effect for one operation.

    An operation receives the snapshot at call time, so a concurrent update
    never changes the parameters of a transfer already running.

    part_concurrency is the number of parts uploaded together in one window.
    With 1, no part is attempted after a failed one. With N > 1, the parts
    already started in the failing window still run to completion; no later
    window is scheduled.
    """
    version: int
    chunk_size_bytes: int
    chunk_threshold_bytes: int
    max_file_size_bytes: int
    attachment_ceiling_bytes: int
    pacing_delay_seconds: float
    part_concurrency: int
    message_list_limit: int


def validate_settings(settings: TransferSettings) -> None:
    """
    Raise InvalidSettingsError unless every transfer constraint holds.
    """
    if settings.chunk_size_bytes <= 0:
        raise InvalidSettingsError("chunk_size_bytes must be positive")
    if settings.chunk_size_bytes >= settings.attachment_ceiling_bytes:
        raise InvalidSettingsError(
            f"chunk_size_bytes must be below the attachment ceiling "
            f"({settings.attachment_ceiling_bytes} bytes)"
        )
    if settings.chunk_threshold_bytes < 0:
        raise InvalidSettingsError("chunk_threshold_bytes must not be negative")
    if settings.chunk_threshold_bytes >= settings.attachment_ceiling_bytes:
        raise InvalidSettingsError(
            f"chunk_threshold_bytes must be below the attachment ceiling "
            f"({settings.attachment_ceiling_bytes} bytes)"
        )
    if settings.max_file_size_bytes <= 0:
        raise InvalidSettingsError("max_file_size_bytes must be positive")
    if settings.pacing_delay_seconds < 0:
        raise InvalidSettingsError("pacing_delay_seconds must not be negative")
    if settings.part_concurrency < 1:
        raise InvalidSettingsError("part_concurrency must be at least 1")
    if not 1 <= settings.message_list_limit <= MESSAGE_LIST_MAX:
        raise InvalidSettingsError(f"message_list_limit must be between 1 and {MESSAGE_LIST_MAX}")


def load_transfer_settings() -> TransferSettings:
    """Build version 1 from the environment-backed config."""
    settings = TransferSettings(
        version=1,
        chunk_size_bytes=config.DEFAULT_CHUNK_SIZE,
        chunk_threshold_bytes=config.DEFAULT_CHUNK_THRESHOLD,
        max_file_size_bytes=config.DEFAULT_MAX_FILE_SIZE,
        attachment_ceiling_bytes=config.DEFAULT_ATTACHMENT_CEILING,
        pacing_delay_seconds=config.DEFAULT_PACING_DELAY,
        part_concurrency=config.DEFAULT_PART_CONCURRENCY,
        message_list_limit=config.DEFAULT_MESSAGE_LIST_LIMIT,
    )
    validate_settings(settings)
    return settings


class SettingsRegistry:
    """
    Holds the current TransferSettings and hands out new versions on update.
    """

    def __init__(self, initial: Optional[TransferSettings] = None):
        self._current = initial or load_transfer_settings()
        self._lock = threading.Lock()

    def current(self) -> TransferSettings:
        return self._current

    def update(self, **changes) -> TransferSettings:
        """
        Apply a partial update and publish it as the next version.

        Args:
            **changes: Field values to replace; None values are ignored

        Returns:
            The new settings snapshot

        Raises:
            InvalidSettingsError: If a field is unknown or a constraint fails
        """
        changes = {key: value for key, value in changes.items() if value is not None}
        unknown = (set(changes) - set(TransferSettings.__dataclass_fields__)) | ({"version"} & set(changes))
        if unknown:
            raise InvalidSettingsError(f"Unknown or read-only settings: {', '.join(sorted(unknown))}")

        with self._lock:
            candidate = replace(self._current, version=self._current.version + 1, **changes)
            validate_settings(candidate)
            self._current = candidate

        logger.info(f"Transfer settings updated to version {candidate.version}: {changes}")
        return candidate
