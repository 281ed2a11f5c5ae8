"""Tests for CLI progress display, size formatting and startup flags."""

import io
from unittest.mock import Mock

import pytest

from cli import commands
from cli.main import parse_args
from cli.utils import ProgressFileWrapper, TransferProgress, format_file_size


@pytest.mark.parametrize("size,expected", [
    (0, "0 B"),
    (None, "0 B"),
    (1023, "1023 B"),
    (1024, "1.00 KiB"),
    (1536, "1.50 KiB"),
    (9 * 1024 * 1024, "9.00 MiB"),
    (2 * 1024 ** 3, "2.00 GiB"),
])
def test_format_file_size(size, expected):
    assert format_file_size(size) == expected


def test_progress_with_known_total():
    out = io.StringIO()
    progress = TransferProgress("Downloading", "a.bin", total=2048, stream=out)

    progress.advance(1024)
    progress.advance(1024)
    progress.close()
    progress.close()

    text = out.getvalue()
    assert "1.00 KiB / 2.00 KiB" in text
    assert "100.0%" in text
    assert text.endswith("\n")
    assert text.count("\n") == 1


def test_progress_without_total():
    out = io.StringIO()
    progress = TransferProgress("Downloading", "a.bin", stream=out)
    progress.advance(10)
    assert out.getvalue() == "\rDownloading a.bin: 10 B"


def test_progress_file_wrapper_reads_whole_file(sample_file):
    out = io.StringIO()
    size = sample_file.stat().st_size

    with ProgressFileWrapper(str(sample_file), size, "test.txt", stream=out) as wrapper:
        body = b""
        while True:
            chunk = wrapper.read(8)
            if not chunk:
                break
            body += chunk

    assert body == sample_file.read_bytes()
    assert wrapper.progress.done == size
    assert "Uploading test.txt" in out.getvalue()


def test_parse_args():
    assert parse_args([]) == {'debug': False, 'config': None}

    options = parse_args(['--debug', '--config', '/tmp/vault.json'])
    assert options['debug'] is True
    assert str(options['config']) == '/tmp/vault.json'


@pytest.mark.parametrize("argv", [['--config'], ['--verbose']])
def test_parse_args_rejects_bad_flags(argv):
    with pytest.raises(SystemExit):
        parse_args(argv)


def test_set_config_path_rebuilds_client(tmp_path, monkeypatch):
    monkeypatch.setattr(commands, '_client', None)
    monkeypatch.setattr(commands, '_config_path', commands.DEFAULT_CONFIG_PATH)

    config_path = tmp_path / 'alt' / 'config.json'
    commands.set_config_path(config_path)
    client = commands.get_client()
    try:
        assert client.config.config_path == config_path
        assert commands.get_client() is client
    finally:
        client.close()


def test_close_client_releases_shared_client(monkeypatch):
    client = Mock()
    monkeypatch.setattr(commands, '_client', client)

    commands.close_client()

    client.close.assert_called_once()
    assert commands._client is None
