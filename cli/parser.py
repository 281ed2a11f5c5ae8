"""Command parser for CLI input."""

import shlex
from typing import Optional

from cli.models import (
    BatchStatusCommand,
    BatchUploadCommand,
    ChannelCommand,
    CommandRequest,
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


class ParseError(Exception):
    """Raised when command parsing fails."""

    pass


def parse_command(input_line: str) -> CommandRequest:
    """Parse user input into a CommandRequest object.

    Args:
        input_line: Raw user input from REPL

    Returns:
        CommandRequest object

    Raises:
        ParseError: If command syntax is invalid
    """
    if not input_line.strip():
        raise ParseError("Empty command")

    try:
        tokens = shlex.split(input_line)
    except ValueError as e:
        raise ParseError(f"Invalid syntax: {e}")

    if not tokens:
        raise ParseError("Empty command")

    command_name = tokens[0]
    args = tokens[1:]

    if command_name == "channel":
        return _parse_channel(args)
    elif command_name == "upload":
        return _parse_upload(args)
    elif command_name == "download":
        return _parse_download(args)
    elif command_name == "fetch":
        return _parse_fetch(args)
    elif command_name == "list":
        return ListCommand(limit=_optional_int(args, "list", "limit") or 100)
    elif command_name == "remote":
        return RemoteCommand(limit=_optional_int(args, "remote", "limit"))
    elif command_name == "share":
        return ShareCommand(file_id=_required_int(args, "share"), is_public=True)
    elif command_name == "unshare":
        return ShareCommand(file_id=_required_int(args, "unshare"), is_public=False)
    elif command_name == "delete":
        return DeleteCommand(file_id=_required_int(args, "delete"))
    elif command_name == "batch-upload":
        return _parse_batch_upload(args)
    elif command_name == "batch-status":
        return BatchStatusCommand(batch_id=_optional_int(args, "batch-status", "batch_id"))
    elif command_name == "settings":
        return _parse_settings(args)
    elif command_name == "history":
        return HistoryCommand(limit=_optional_int(args, "history", "limit") or 20)
    else:
        raise ParseError(f"Unknown command: {command_name}")


def _parse_channel(args: list[str]) -> ChannelCommand:
    """Parse 'channel <channel_id> <token>' command."""
    if len(args) != 2:
        raise ParseError("channel requires exactly 2 arguments: <channel_id> <token>")

    channel_id, token = args
    return ChannelCommand(channel_id=channel_id, token=token)


def _parse_upload(args: list[str]) -> UploadCommand:
    """Parse 'upload <file> [file ...]' command."""
    if not args:
        raise ParseError("upload requires at least one file")
    return UploadCommand(file_list=tuple(args))


def _parse_batch_upload(args: list[str]) -> BatchUploadCommand:
    """Parse 'batch-upload <file> [file ...]' command."""
    if not args:
        raise ParseError("batch-upload requires at least one file")
    return BatchUploadCommand(file_list=tuple(args))


def _parse_download(args: list[str]) -> DownloadCommand:
    """Parse 'download <file_id> [output_path]' command."""
    if not args or len(args) > 2:
        raise ParseError("download requires 1 or 2 arguments: <file_id> [output_path]")

    file_id = _to_int(args[0], "file_id")
    output_path = args[1] if len(args) > 1 else None
    return DownloadCommand(file_id=file_id, output_path=output_path)


def _parse_fetch(args: list[str]) -> FetchCommand:
    """Parse 'fetch <filename> [--chunked] [output_path]' command."""
    chunked = "--chunked" in args
    positional = [arg for arg in args if arg != "--chunked"]

    if not positional or len(positional) > 2:
        raise ParseError("fetch requires: <filename> [--chunked] [output_path]")

    output_path = positional[1] if len(positional) > 1 else None
    return FetchCommand(filename=positional[0], chunked=chunked, output_path=output_path)


def _parse_settings(args: list[str]) -> SettingsCommand:
    """Parse 'settings [key=value ...]' command."""
    changes = []
    for arg in args:
        key, sep, value = arg.partition("=")
        if not sep or not key or not value:
            raise ParseError(f"settings expects key=value pairs, got '{arg}'")
        changes.append((key, value))
    return SettingsCommand(changes=tuple(changes))


def _to_int(value: str, name: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise ParseError(f"{name} must be an integer, got '{value}'")


def _required_int(args: list[str], command: str) -> int:
    if len(args) != 1:
        raise ParseError(f"{command} requires exactly 1 argument: <file_id>")
    return _to_int(args[0], "file_id")


def _optional_int(args: list[str], command: str, name: str) -> Optional[int]:
    if not args:
        return None
    if len(args) > 1:
        raise ParseError(f"{command} accepts at most 1 argument: [{name}]")
    return _to_int(args[0], name)
