"""Project-wide constants (chunk sizes, remote platform limits, pacing)."""

MIB: int = 1024 * 1024

ATTACHMENT_CEILING_BYTES: int = 10 * MIB  # Discord per-message limit for regular accounts
CHUNK_SIZE_BYTES: int = 9 * MIB
CHUNK_THRESHOLD_BYTES: int = CHUNK_SIZE_BYTES
MAX_FILE_SIZE_BYTES: int = 2 * 1024 * MIB

PART_PACING_DELAY_SECONDS: float = 1.0
PART_CONCURRENCY: int = 1

MESSAGE_LIST_LIMIT: int = 100
MESSAGE_LIST_MAX: int = 100

PART_SUFFIX: str = ".part"

DISCORD_API_BASE: str = "https://discord.com/api/v10"
REMOTE_TIMEOUT_SECONDS: float = 60.0

CHANNEL_TOKEN_HEADER: str = "X-Channel-Token"
