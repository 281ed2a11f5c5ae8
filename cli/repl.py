"""REPL with prompt_toolkit for user interaction."""

import os
import sys
from pathlib import Path
from typing import Optional

from prompt_toolkit import PromptSession
from prompt_toolkit.history import FileHistory, InMemoryHistory

from cli.commands import (
    close_client,
    handle_batch_status,
    handle_batch_upload,
    handle_channel,
    handle_delete,
    handle_download,
    handle_fetch,
    handle_history,
    handle_list,
    handle_remote,
    handle_settings,
    handle_share,
    handle_upload,
)
from cli.completer import VaultCompleter
from cli.constants import (
    HELP_TEXT,
    LOGO,
    PROMPT_TEXT,
    STYLE,
    WELCOME_HELP,
    WELCOME_TITLE,
)
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
from cli.parser import ParseError, parse_command
from common.logging_config import get_logger

logger = get_logger(__name__)

HISTORY_PATH = Path.home() / ".channelvault" / "history"

HANDLERS = {
    ChannelCommand: handle_channel,
    UploadCommand: handle_upload,
    DownloadCommand: handle_download,
    FetchCommand: handle_fetch,
    ListCommand: handle_list,
    RemoteCommand: handle_remote,
    ShareCommand: handle_share,
    DeleteCommand: handle_delete,
    BatchUploadCommand: handle_batch_upload,
    BatchStatusCommand: handle_batch_status,
    SettingsCommand: handle_settings,
    HistoryCommand: handle_history,
}


EXIT = object()


def clear_screen() -> None:
    """Clear the terminal screen (cross-platform)."""
    os.system("cls" if sys.platform == "win32" else "clear")


def show_welcome() -> None:
    """Display the ChannelVault logo and the short usage hint."""
    print(LOGO)
    print(WELCOME_TITLE)
    print(WELCOME_HELP)


def dispatch_command(cmd_obj) -> str:
    """Dispatch parsed command to appropriate handler."""
    handler = HANDLERS.get(type(cmd_obj))
    if handler is None:
        return f"Unknown command type: {type(cmd_obj)}"
    return handler(cmd_obj)


def run_line(line: str):
    """
    Execute one line of input.

    Returns:
        Text to print, None when there is nothing to print, or EXIT
    """
    stripped = line.strip()
    if not stripped:
        return None
    if stripped == "exit":
        return EXIT
    if stripped == "help":
        return HELP_TEXT
    if stripped == "clear":
        clear_screen()
        show_welcome()
        return None

    try:
        return dispatch_command(parse_command(stripped))
    except ParseError as e:
        return f"Error: {e}"


def _history(history_path: Optional[Path]):
    if history_path is None:
        return InMemoryHistory()
    try:
        history_path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.warning(f"Command history disabled, cannot create {history_path.parent}: {e}")
        return InMemoryHistory()
    return FileHistory(str(history_path))


def repl_loop(history_path: Optional[Path] = HISTORY_PATH) -> None:
    """Start interactive REPL with prompt_toolkit."""
    session: PromptSession = PromptSession(
        completer=VaultCompleter(), history=_history(history_path), style=STYLE
    )

    clear_screen()
    show_welcome()

    try:
        while True:
            try:
                output = run_line(session.prompt([("class:prompt", PROMPT_TEXT)]))
            except KeyboardInterrupt:
                continue
            except EOFError:
                print("\nGoodbye!")
                break

            if output is EXIT:
                print("Goodbye!")
                break
            if output is not None:
                print(output)
    finally:
        close_client()
