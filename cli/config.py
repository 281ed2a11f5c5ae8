"""Configuration management for the ChannelVault CLI."""

import json
import os
import tempfile
from pathlib import Path
from typing import NamedTuple, Optional

from common.logging_config import get_logger

logger = get_logger(__name__)

ENV_OVERRIDES = {
    "server_host": ("VAULT_SERVER_HOST", str),
    "server_port": ("VAULT_SERVER_PORT", int),
}


class RetryPolicy(NamedTuple):
    max_retries: int
    backoff: float


class Config:
    """
    CLI settings persisted as JSON, usually at ~/.channelvault/config.json.

    Unknown keys are preserved on save. A file that cannot be parsed is moved
    aside to config.json.bak and replaced by defaults on the next save.
    """

    DEFAULTS = {
        "server_host": "localhost",
        "server_port": 8000,
        "timeout": 30,
        "max_retries": 3,
        "retry_backoff_multiplier": 2,
        "download_dir": "downloads",
    }

    def __init__(self, config_path: Path):
        self.config_path = self._usable_path(config_path)
        self.data = dict(self.DEFAULTS)
        self._apply_env()

        stored = self._read()
        if stored is None:
            self.save()
        else:
            self.data.update(stored)

    @staticmethod
    def _usable_path(config_path: Path) -> Path:
        try:
            config_path.parent.mkdir(parents=True, exist_ok=True)
            return config_path
        except PermissionError:
            fallback = Path(tempfile.gettempdir()) / '.channelvault' / config_path.name
            logger.warning(f"Cannot create {config_path.parent}, using {fallback}")
            fallback.parent.mkdir(parents=True, exist_ok=True)
            return fallback

    def _apply_env(self) -> None:
        for key, (env_name, cast) in ENV_OVERRIDES.items():
            raw = os.environ.get(env_name)
            if raw is None:
                continue
            try:
                self.data[key] = cast(raw)
            except ValueError:
                logger.warning(f"Ignoring {env_name}={raw!r}: not a valid {cast.__name__}")

    def _read(self) -> Optional[dict]:
        """Stored settings, {} for a corrupt file, or None when no file exists yet."""
        if not self.config_path.exists():
            return None

        try:
            with open(self.config_path, 'r') as f:
                stored = json.load(f)
            if not isinstance(stored, dict):
                raise ValueError("top-level value is not an object")
            return stored
        except (ValueError, OSError) as e:
            backup = self.config_path.with_suffix('.json.bak')
            logger.warning(f"Config file {self.config_path} unreadable ({e}), moved to {backup}")
            try:
                os.replace(self.config_path, backup)
            except OSError as move_error:
                logger.warning(f"Could not move config file aside: {move_error}")
            return {}

    def save(self) -> None:
        """Write settings atomically next to the target file."""
        try:
            fd, tmp_name = tempfile.mkstemp(dir=self.config_path.parent, suffix='.tmp')
            with os.fdopen(fd, 'w') as f:
                json.dump(self.data, f, indent=2)
            os.replace(tmp_name, self.config_path)
        except OSError as e:
            logger.warning(f"Could not save config: {e}")

    @property
    def base_url(self) -> str:
        return f"http://{self.data['server_host']}:{self.data['server_port']}"

    @property
    def timeout(self) -> float:
        return self.data['timeout']

    @property
    def download_dir(self) -> Path:
        return Path(self.data['download_dir']).expanduser()

    @property
    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_retries=int(self.data['max_retries']),
            backoff=self.data['retry_backoff_multiplier'],
        )

    @property
    def channel(self) -> tuple[Optional[str], Optional[str]]:
        """Active (channel_id, channel_token); either may be None."""
        return self.data.get('channel_id'), self.data.get('channel_token')

    def set_channel(self, channel_id: str, token: str) -> None:
        # The credential is stored as typed and forwarded unmodified to the vault.
        self.data['channel_id'] = channel_id
        self.data['channel_token'] = token
        self.save()
