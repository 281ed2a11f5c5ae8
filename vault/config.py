"""Configuration settings for the vault service."""

import os

from common.constants import (
    ATTACHMENT_CEILING_BYTES,
    CHUNK_SIZE_BYTES,
    CHUNK_THRESHOLD_BYTES,
    DISCORD_API_BASE,
    MAX_FILE_SIZE_BYTES,
    MESSAGE_LIST_LIMIT,
    PART_CONCURRENCY,
    PART_PACING_DELAY_SECONDS,
    REMOTE_TIMEOUT_SECONDS,
)


DATABASE_PATH = os.environ.get("VAULT_DATABASE_PATH", "./data/vault.db")

VAULT_HOST = os.environ.get("VAULT_HOST", "0.0.0.0")

VAULT_PORT = int(os.environ.get("VAULT_PORT", "8000"))

DISCORD_API_BASE_URL = os.environ.get("VAULT_DISCORD_API_BASE", DISCORD_API_BASE)

REMOTE_TIMEOUT = float(os.environ.get("VAULT_REMOTE_TIMEOUT", str(REMOTE_TIMEOUT_SECONDS)))

WORKSPACE_DIR = os.environ.get("VAULT_WORKSPACE_DIR") or None

# Seed values for version 1 of TransferSettings
DEFAULT_CHUNK_SIZE = int(os.environ.get("VAULT_CHUNK_SIZE_BYTES", str(CHUNK_SIZE_BYTES)))
DEFAULT_CHUNK_THRESHOLD = int(os.environ.get("VAULT_CHUNK_THRESHOLD_BYTES", str(CHUNK_THRESHOLD_BYTES)))
DEFAULT_MAX_FILE_SIZE = int(os.environ.get("VAULT_MAX_FILE_SIZE_BYTES", str(MAX_FILE_SIZE_BYTES)))
DEFAULT_ATTACHMENT_CEILING = int(os.environ.get("VAULT_ATTACHMENT_CEILING_BYTES", str(ATTACHMENT_CEILING_BYTES)))
DEFAULT_PACING_DELAY = float(os.environ.get("VAULT_PACING_DELAY_SECONDS", str(PART_PACING_DELAY_SECONDS)))
DEFAULT_PART_CONCURRENCY = int(os.environ.get("VAULT_PART_CONCURRENCY", str(PART_CONCURRENCY)))
DEFAULT_MESSAGE_LIST_LIMIT = int(os.environ.get("VAULT_MESSAGE_LIST_LIMIT", str(MESSAGE_LIST_LIMIT)))
