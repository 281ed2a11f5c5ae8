"""Shared pytest fixtures for all tests."""

import itertools
from collections import defaultdict

import pytest

from cli.config import Config
from common.types import RemoteAttachment, RemoteMessage
from vault import config as vault_config
from vault.database import init_database
from vault.exceptions import AuthError, NotFoundError
from vault.settings import TransferSettings


class FakeDiscordClient:
    """
    In-memory stand-in for DiscordClient.

    Messages are kept per channel, oldest first; listings return them newest
    first like the real API.
    """

    def __init__(self):
        self.channels = defaultdict(list)
        self.blobs = {}
        self.upload_calls = []
        self.fetch_calls = []
        self.fail_on = {}
        self._ids = itertools.count(1000)

    def add_message(self, channel_id, filename, data, content_type="application/octet-stream"):
        message_id = str(next(self._ids))
        url = f"https://cdn.example/{channel_id}/{message_id}/{filename}"
        self.blobs[url] = data
        message = RemoteMessage(
            message_id=message_id,
            attachments=[
                RemoteAttachment(
                    attachment_id=f"a{message_id}",
                    filename=filename,
                    url=url,
                    size=len(data),
                    content_type=content_type,
                )
            ],
        )
        self.channels[channel_id].append(message)
        return message

    def add_text_message(self, channel_id):
        message = RemoteMessage(message_id=str(next(self._ids)), attachments=[])
        self.channels[channel_id].append(message)
        return message

    async def upload_attachment(self, channel_id, token, data, filename, mime_type="application/octet-stream"):
        if not token:
            raise AuthError("Missing channel credential")
        self.upload_calls.append(filename)
        if filename in self.fail_on:
            raise self.fail_on[filename]
        return self.add_message(channel_id, filename, data, mime_type).message_id

    async def list_recent_messages(self, channel_id, token, limit):
        if not token:
            raise AuthError("Missing channel credential")
        limit = max(1, min(int(limit), 100))
        return list(reversed(self.channels[channel_id]))[:limit]

    async def get_message(self, channel_id, token, message_id):
        for message in self.channels[channel_id]:
            if message.message_id == message_id:
                return message
        raise NotFoundError(f"Remote resource not found: message {message_id}")

    async def fetch_bytes(self, url):
        self.fetch_calls.append(url)
        if url not in self.blobs:
            raise NotFoundError(f"Remote resource not found: {url}")
        return self.blobs[url]

    async def close(self):
        pass


@pytest.fixture
def temp_db(tmp_path, monkeypatch):
    """
    Point the vault at a fresh SQLite database for one test.

    Returns:
        Path to the database file
    """
    db_path = tmp_path / "vault.db"
    monkeypatch.setattr(vault_config, "DATABASE_PATH", str(db_path))
    init_database()
    return db_path


@pytest.fixture
def fake_discord():
    return FakeDiscordClient()


@pytest.fixture
def small_settings():
    """
    Settings with tiny chunks so multi-part files stay small in tests.
    """
    return TransferSettings(
        version=1,
        chunk_size_bytes=10,
        chunk_threshold_bytes=10,
        max_file_size_bytes=1000,
        attachment_ceiling_bytes=100,
        pacing_delay_seconds=0.0,
        part_concurrency=1,
        message_list_limit=100,
    )


@pytest.fixture
def temp_config_dir(tmp_path):
    """
    Create temporary config directory.

    Args:
        tmp_path: pytest tmp_path fixture

    Returns:
        Path to temporary .channelvault directory
    """
    config_dir = tmp_path / '.channelvault'
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def temp_config(temp_config_dir):
    """
    Create temporary config instance.

    Args:
        temp_config_dir: Temporary config directory fixture

    Returns:
        Config instance with temp config file
    """
    return Config(temp_config_dir / 'config.json')


@pytest.fixture
def channel_config(temp_config):
    """Config with an active channel selected."""
    temp_config.set_channel('c-100', 'Bot secret-token')
    return temp_config


@pytest.fixture
def sample_file(tmp_path):
    """
    Create a sample file for testing file uploads.

    Args:
        tmp_path: pytest tmp_path fixture

    Returns:
        Path to sample text file
    """
    file_path = tmp_path / 'test.txt'
    file_path.write_text('Sample content for testing')
    return file_path


@pytest.fixture
def multiple_sample_files(tmp_path):
    """
    Create multiple sample files for testing bulk operations.

    Args:
        tmp_path: pytest tmp_path fixture

    Returns:
        List of Paths to sample files
    """
    files = []
    for i in range(3):
        file_path = tmp_path / f'test{i}.txt'
        file_path.write_text(f'Sample content {i}')
        files.append(file_path)
    return files
