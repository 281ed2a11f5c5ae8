"""Command request data types for CLI."""

from dataclasses import dataclass
from typing import Literal


@dataclass(frozen=True)
class ChannelCommand:
    """Select the active channel and its credential."""

    channel_id: str
    token: str
    command: Literal["channel"] = "channel"


@dataclass(frozen=True)
class UploadCommand:
    """Upload local files."""

    file_list: tuple[str, ...]
    command: Literal["upload"] = "upload"


@dataclass(frozen=True)
class DownloadCommand:
    """Download a stored file by id."""

    file_id: int
    output_path: str | None = None
    command: Literal["download"] = "download"


@dataclass(frozen=True)
class FetchCommand:
    """Download by name from recent channel messages."""

    filename: str
    chunked: bool = False
    output_path: str | None = None
    command: Literal["fetch"] = "fetch"


@dataclass(frozen=True)
class ListCommand:
    """List files recorded for the active channel."""

    limit: int = 100
    command: Literal["list"] = "list"


@dataclass(frozen=True)
class RemoteCommand:
    """List attachments in recent channel messages."""

    limit: int | None = None
    command: Literal["remote"] = "remote"


@dataclass(frozen=True)
class ShareCommand:
    """Change whether a file is reachable through its share link."""

    file_id: int
    is_public: bool
    command: Literal["share"] = "share"


@dataclass(frozen=True)
class DeleteCommand:
    """Forget a file locally."""

    file_id: int
    command: Literal["delete"] = "delete"


@dataclass(frozen=True)
class BatchUploadCommand:
    """Upload files as one background batch."""

    file_list: tuple[str, ...]
    command: Literal["batch-upload"] = "batch-upload"


@dataclass(frozen=True)
class BatchStatusCommand:
    """Show one batch or the most recent ones."""

    batch_id: int | None = None
    command: Literal["batch-status"] = "batch-status"


@dataclass(frozen=True)
class SettingsCommand:
    """Show or change transfer settings."""

    changes: tuple[tuple[str, str], ...] = ()
    command: Literal["settings"] = "settings"


@dataclass(frozen=True)
class HistoryCommand:
    """Show recent operations."""

    limit: int = 20
    command: Literal["history"] = "history"


CommandRequest = (
    ChannelCommand
    | UploadCommand
    | DownloadCommand
    | FetchCommand
    | ListCommand
    | RemoteCommand
    | ShareCommand
    | DeleteCommand
    | BatchUploadCommand
    | BatchStatusCommand
    | SettingsCommand
    | HistoryCommand
)
