"""CLI constants and configuration."""

from prompt_toolkit.styles import Style

COMMANDS = [
    "channel", "upload", "download", "fetch", "list", "remote", "share", "unshare",
    "delete", "batch-upload", "batch-status", "settings", "history", "clear", "exit", "help",
]

# Commands whose arguments are local file paths
FILE_ARGUMENT_COMMANDS = ("upload", "batch-upload")

SETTING_KEYS = (
    "chunk_size_bytes",
    "chunk_threshold_bytes",
    "max_file_size_bytes",
    "attachment_ceiling_bytes",
    "pacing_delay_seconds",
    "part_concurrency",
    "message_list_limit",
)

STYLE = Style.from_dict(
    {
        "prompt": "#5865F2 bold",
        "command": "#0088ff bold",
    }
)

BLURPLE = "\033[38;2;88;101;242m"
GREEN = "\033[32m"
RESET = "\033[0m"

LOGO = f"""{BLURPLE}
  ___ _                       ___   __          _ _
 / __| |_  __ _ _ _  _ _  ___| \\ \\ / /_ _ _  _| | |_
| (__| ' \\/ _` | ' \\| ' \\/ -_) |\\ V / _` | || | |  _|
 \\___|_||_\\__,_|_||_|_||_\\___|_| \\_/\\__,_|\\_,_|_|\\__|
{RESET}"""

WELCOME_TITLE = "ChannelVault CLI - chunked file storage on Discord channels"
WELCOME_HELP = "Type 'help' for commands or 'exit' to quit.\n"

PROMPT_TEXT = "vault> "

HELP_TEXT = """Available commands:
  channel <channel_id> <token>             Select the channel and save its credential
  upload <file> [file ...]                 Upload files to the active channel
  download <file_id> [output_path]         Download a stored file
  fetch <filename> [--chunked] [output]    Download by name from recent channel messages
  list [limit]                             List files recorded for the active channel
  remote [limit]                           List attachments in recent channel messages
  share <file_id>                          Make a file public and print its share link
  unshare <file_id>                        Make a file private again
  delete <file_id>                         Forget a file locally (remote messages stay)
  batch-upload <file> [file ...]           Upload files as one background batch
  batch-status [batch_id]                  Show one batch, or the most recent batches
  settings [key=value ...]                 Show or change transfer settings
  history [limit]                          Show recent operations
  clear                                    Clear screen and redisplay welcome message
  help                                     Show this help
  exit                                     Exit REPL

Downloads go to the configured download_dir (default: downloads/).
Examples:
  channel 112233445566778899 "Bot abc.def.ghi"
  upload reports/q3.pdf video.mp4
  download 7
  fetch video.mp4 --chunked
  settings part_concurrency=2 pacing_delay_seconds=0.5
  batch-upload a.txt b.txt c.txt"""
