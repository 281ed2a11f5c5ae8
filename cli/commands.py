"""Command handler functions for CLI operations."""

from pathlib import Path
from typing import Optional

from common.logging_config import get_logger
from cli.config import Config
from cli.models import (
    BatchStatusCommand,
    BatchUploadCommand,
    ChannelCommand,
    DeleteCommand,
    DownloadCommand,
    FetchCommand,
    HistoryCommand,
    ListCommand,
    RemoteCommand,
    SettingsCommand,
    ShareCommand,
    UploadCommand,
)
from cli.vault_client import VaultClient

logger = get_logger(__name__)

FLOAT_SETTINGS = ("pacing_delay_seconds",)

DEFAULT_CONFIG_PATH = Path.home() / '.channelvault' / 'config.json'

_client: Optional[VaultClient] = None
_config_path: Path = DEFAULT_CONFIG_PATH


def set_config_path(config_path: Path) -> None:
    """Use another config file; takes effect for the next client created."""
    global _config_path
    _config_path = config_path
    close_client()


def close_client() -> None:
    """Close the shared client, if one was created."""
    global _client
    if _client is not None:
        _client.close()
        _client = None


def get_client() -> VaultClient:
    """
    Get or create global VaultClient instance.

    Returns:
        VaultClient instance
    """
    global _client
    if _client is None:
        logger.debug(f"Creating new VaultClient instance [config={_config_path}]")
        config = Config(_config_path)
        _client = VaultClient(config)
    return _client


def handle_channel(cmd: ChannelCommand, client: Optional[VaultClient] = None) -> str:
    if client is None:
        client = get_client()
    return client.set_channel(cmd.channel_id, cmd.token)


def handle_upload(cmd: UploadCommand, client: Optional[VaultClient] = None) -> str:
    """
    Handle 'upload' command.

    Args:
        cmd: UploadCommand with file_list
        client: Optional VaultClient for dependency injection (testing)

    Returns:
        Success or error message with upload results
    """
    logger.info(f"Executing upload command: {len(cmd.file_list)} files")
    if client is None:
        client = get_client()
    result = client.upload_files(list(cmd.file_list))
    logger.debug("Upload command completed")
    return result


def handle_download(cmd: DownloadCommand, client: Optional[VaultClient] = None) -> str:
    """
    Handle 'download' command.

    Args:
        cmd: DownloadCommand with file_id and optional output_path
        client: Optional VaultClient for dependency injection (testing)

    Returns:
        Success or error message with download results
    """
    logger.info(f"Executing download command: file_id={cmd.file_id} output_path={cmd.output_path}")
    if client is None:
        client = get_client()
    return client.download(cmd.file_id, cmd.output_path)


def handle_fetch(cmd: FetchCommand, client: Optional[VaultClient] = None) -> str:
    logger.info(f"Executing fetch command: filename={cmd.filename} chunked={cmd.chunked}")
    if client is None:
        client = get_client()
    return client.fetch_by_name(cmd.filename, cmd.chunked, cmd.output_path)


def handle_list(cmd: ListCommand, client: Optional[VaultClient] = None) -> str:
    if client is None:
        client = get_client()
    return client.list_files(cmd.limit)


def handle_remote(cmd: RemoteCommand, client: Optional[VaultClient] = None) -> str:
    if client is None:
        client = get_client()
    return client.list_remote(cmd.limit)


def handle_share(cmd: ShareCommand, client: Optional[VaultClient] = None) -> str:
    if client is None:
        client = get_client()
    return client.share(cmd.file_id, cmd.is_public)


def handle_delete(cmd: DeleteCommand, client: Optional[VaultClient] = None) -> str:
    if client is None:
        client = get_client()
    return client.delete(cmd.file_id)


def handle_batch_upload(cmd: BatchUploadCommand, client: Optional[VaultClient] = None) -> str:
    logger.info(f"Executing batch-upload command: {len(cmd.file_list)} files")
    if client is None:
        client = get_client()
    return client.batch_upload(list(cmd.file_list))


def handle_batch_status(cmd: BatchStatusCommand, client: Optional[VaultClient] = None) -> str:
    if client is None:
        client = get_client()
    return client.batch_status(cmd.batch_id)


def handle_settings(cmd: SettingsCommand, client: Optional[VaultClient] = None) -> str:
    """
    Handle 'settings' command.

    Values are sent as integers except for the pacing delay, which is a float.
    """
    changes = {}
    for key, value in cmd.changes:
        try:
            changes[key] = float(value) if key in FLOAT_SETTINGS else int(value)
        except ValueError:
            return f"Error: {key} must be a number, got '{value}'"

    if client is None:
        client = get_client()
    return client.settings(changes or None)


def handle_history(cmd: HistoryCommand, client: Optional[VaultClient] = None) -> str:
    if client is None:
        client = get_client()
    return client.history(cmd.limit)
