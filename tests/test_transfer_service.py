"""Tests for TransferService upload and download orchestration."""

from dataclasses import replace
from io import BytesIO
from unittest.mock import AsyncMock, Mock

import pytest

from vault.database import get_db_connection
from vault.exceptions import (
    AuthError,
    FileTooLargeError,
    IncompleteUploadError,
    NotFoundError,
    PermissionDeniedError,
    RemoteUnavailableError,
    ScanWindowExceededError,
)
from vault.ledger import FileLedger
from vault.services.transfer_service import TransferService
from vault.types import DownloadStrategy, FileKind

CHANNEL = "c-100"
TOKEN = "Bot secret-token"


@pytest.fixture
def workspace_dir(tmp_path):
    return tmp_path / "workspace"


@pytest.fixture
def service(temp_db, fake_discord, workspace_dir):
    return TransferService(fake_discord, FileLedger(), workspace_dir=str(workspace_dir))


async def upload(service, data, settings, filename="data.bin"):
    return await service.upload_file(
        data=BytesIO(data),
        size=len(data),
        filename=filename,
        mime_type="application/octet-stream",
        remote_channel_id=CHANNEL,
        token=TOKEN,
        settings=settings,
    )


class TestUpload:
    @pytest.mark.asyncio
    async def test_at_threshold_is_single(self, service, fake_discord, small_settings):
        result = await upload(service, b"x" * 10, small_settings)

        assert result.kind == FileKind.SINGLE
        assert result.part_count == 1
        assert fake_discord.upload_calls == ["data.bin"]

        stored = service.ledger.get_file(result.file_id)
        assert stored.upload_complete is True
        assert stored.remote_message_id is not None
        assert service.ledger.get_parts_for_file(result.file_id) == []

    @pytest.mark.asyncio
    async def test_above_threshold_is_chunked(self, service, fake_discord, small_settings):
        result = await upload(service, b"a" * 25, small_settings)

        assert result.kind == FileKind.CHUNKED
        assert result.part_count == 3
        assert fake_discord.upload_calls == ["data.bin.part1", "data.bin.part2", "data.bin.part3"]

        parts = service.ledger.get_parts_for_file(result.file_id)
        assert [p.size_bytes for p in parts] == [10, 10, 5]
        assert all(p.upload_complete for p in parts)
        assert service.ledger.get_file(result.file_id).upload_complete is True

    @pytest.mark.asyncio
    async def test_path_components_stripped_from_remote_name(self, service, fake_discord, small_settings):
        result = await upload(service, b"tiny", small_settings, filename="dir/sub/notes.txt")

        assert result.filename == "notes.txt"
        stored = service.ledger.get_file(result.file_id)
        assert stored.original_filename == "dir/sub/notes.txt"
        assert fake_discord.upload_calls == ["notes.txt"]

    @pytest.mark.asyncio
    async def test_part_failure_stops_upload(self, service, fake_discord, small_settings):
        fake_discord.fail_on["data.bin.part2"] = RemoteUnavailableError("connection reset")

        with pytest.raises(RemoteUnavailableError):
            await upload(service, b"b" * 25, small_settings)

        assert fake_discord.upload_calls == ["data.bin.part1", "data.bin.part2"]
        logical = service.ledger.list_files_by_channel(CHANNEL)[0]
        assert logical.upload_complete is False

        parts = service.ledger.get_parts_for_file(logical.file_id)
        assert [(p.part_number, p.upload_complete) for p in parts] == [(1, True), (2, False)]

    @pytest.mark.asyncio
    async def test_too_large(self, service, fake_discord, small_settings):
        with pytest.raises(FileTooLargeError):
            await upload(service, b"z" * 1001, small_settings)
        assert fake_discord.upload_calls == []

    @pytest.mark.asyncio
    async def test_missing_token(self, service, small_settings):
        with pytest.raises(AuthError):
            await service.upload_file(BytesIO(b"x"), 1, "a.txt", None, CHANNEL, "", small_settings)

    @pytest.mark.asyncio
    async def test_pacing_between_windows(self, service, small_settings, monkeypatch):
        sleep = AsyncMock()
        monkeypatch.setattr("vault.services.transfer_service.asyncio.sleep", sleep)

        settings = replace(small_settings, pacing_delay_seconds=0.5, part_concurrency=2)
        result = await upload(service, b"c" * 45, settings)

        assert result.part_count == 5
        assert sleep.await_count == 2
        sleep.assert_awaited_with(0.5)

    @pytest.mark.asyncio
    async def test_no_pacing_before_first_part(self, service, small_settings, monkeypatch):
        sleep = AsyncMock()
        monkeypatch.setattr("vault.services.transfer_service.asyncio.sleep", sleep)

        await upload(service, b"c" * 15, replace(small_settings, pacing_delay_seconds=0.5))

        assert sleep.await_count == 1

    @pytest.mark.asyncio
    async def test_concurrent_window_keeps_part_order(self, service, fake_discord, small_settings):
        settings = replace(small_settings, part_concurrency=3)
        data = bytes(range(35))
        result = await upload(service, data, settings)

        assert sorted(fake_discord.upload_calls) == sorted(
            f"data.bin.part{n}" for n in range(1, 5)
        )
        downloaded = await service.download_file(result.file_id, TOKEN, settings)
        assert downloaded.data == data

    @pytest.mark.asyncio
    async def test_concurrent_failure_skips_later_windows(self, service, fake_discord, small_settings):
        fake_discord.fail_on["data.bin.part1"] = RemoteUnavailableError("connection reset")
        settings = replace(small_settings, part_concurrency=2)

        with pytest.raises(RemoteUnavailableError):
            await upload(service, b"w" * 35, settings)

        assert sorted(fake_discord.upload_calls) == ["data.bin.part1", "data.bin.part2"]
        logical = service.ledger.list_files_by_channel(CHANNEL)[0]
        assert logical.upload_complete is False

    @pytest.mark.asyncio
    async def test_history_recorded(self, temp_db, fake_discord, small_settings, workspace_dir):
        history = Mock()
        service = TransferService(fake_discord, FileLedger(), history, workspace_dir=str(workspace_dir))

        result = await upload(service, b"d" * 25, small_settings)

        history.record_upload.assert_called_once()
        logical, part_count, channel = history.record_upload.call_args.args
        assert logical.file_id == result.file_id
        assert part_count == 3
        assert channel == CHANNEL


class TestDownload:
    @pytest.mark.asyncio
    async def test_single_round_trip(self, service, small_settings):
        result = await upload(service, b"hello", small_settings)

        downloaded = await service.download_file(result.file_id, TOKEN, small_settings)

        assert downloaded.data == b"hello"
        assert downloaded.strategy == DownloadStrategy.DIRECT
        assert downloaded.file_id == result.file_id

    @pytest.mark.asyncio
    async def test_chunked_round_trip_uses_ledger(self, service, small_settings):
        data = bytes(range(97))
        result = await upload(service, data, small_settings)

        downloaded = await service.download_file(result.file_id, TOKEN, small_settings)

        assert downloaded.data == data
        assert downloaded.strategy == DownloadStrategy.LEDGER

    @pytest.mark.asyncio
    async def test_missing_part_rows_fall_back_to_scan(self, service, small_settings):
        data = b"0123456789abcdefghijKLMNO"
        result = await upload(service, data, small_settings)

        with get_db_connection() as conn:
            conn.execute("DELETE FROM file_parts WHERE file_id = ?", (result.file_id,))
            conn.commit()

        downloaded = await service.download_file(result.file_id, TOKEN, small_settings)

        assert downloaded.data == data
        assert downloaded.strategy == DownloadStrategy.SCAN

    @pytest.mark.asyncio
    async def test_incomplete_upload(self, service, fake_discord, small_settings):
        fake_discord.fail_on["data.bin.part3"] = RemoteUnavailableError("down")
        with pytest.raises(RemoteUnavailableError):
            await upload(service, b"e" * 25, small_settings)

        logical = service.ledger.list_files_by_channel(CHANNEL)[0]
        with pytest.raises(IncompleteUploadError):
            await service.download_file(logical.file_id, TOKEN, small_settings)

    @pytest.mark.asyncio
    async def test_unknown_file(self, service, small_settings):
        with pytest.raises(NotFoundError):
            await service.download_file(404, TOKEN, small_settings)

    @pytest.mark.asyncio
    async def test_workspace_released(self, service, small_settings, workspace_dir):
        result = await upload(service, b"f" * 25, small_settings)
        await service.download_file(result.file_id, TOKEN, small_settings)

        assert list(workspace_dir.iterdir()) == []

    @pytest.mark.asyncio
    async def test_workspace_released_on_fetch_failure(self, service, fake_discord, small_settings, workspace_dir):
        result = await upload(service, b"g" * 25, small_settings)
        fake_discord.blobs.clear()

        with pytest.raises(NotFoundError):
            await service.download_file(result.file_id, TOKEN, small_settings)

        assert list(workspace_dir.iterdir()) == []


class TestSharedDownload:
    @pytest.mark.asyncio
    async def test_private_file_rejected(self, service, small_settings):
        result = await upload(service, b"secret", small_settings)

        with pytest.raises(PermissionDeniedError):
            await service.download_shared(result.share_id, TOKEN, small_settings)

    @pytest.mark.asyncio
    async def test_public_file(self, service, small_settings):
        result = await upload(service, b"public", small_settings)
        service.ledger.set_visibility(result.file_id, True)

        downloaded = await service.download_shared(result.share_id, TOKEN, small_settings)
        assert downloaded.data == b"public"

    @pytest.mark.asyncio
    async def test_unknown_share_id(self, service, small_settings):
        with pytest.raises(NotFoundError):
            await service.download_shared("nope", TOKEN, small_settings)


class TestScanFallback:
    @pytest.mark.asyncio
    async def test_reorders_listing(self, service, fake_discord, small_settings):
        fake_discord.add_message(CHANNEL, "report.part1", b"AAAAAAAAAA")
        fake_discord.add_message(CHANNEL, "report.part3", b"CCC")
        fake_discord.add_message(CHANNEL, "report.part2", b"BBBBBBBBBB")

        result = await service.download_by_name(CHANNEL, TOKEN, "report", True, small_settings)

        assert result.data == b"AAAAAAAAAABBBBBBBBBBCCC"
        assert result.strategy == DownloadStrategy.SCAN
        assert result.file_id is None

    @pytest.mark.asyncio
    async def test_numeric_order_beyond_nine_parts(self, service, fake_discord, small_settings):
        for number in range(11, 0, -1):
            fake_discord.add_message(CHANNEL, f"f.part{number}", f"[{number}]".encode())

        result = await service.download_by_name(CHANNEL, TOKEN, "f", True, small_settings)

        assert result.data == b"".join(f"[{n}]".encode() for n in range(1, 12))

    @pytest.mark.asyncio
    async def test_newest_duplicate_wins(self, service, fake_discord, small_settings):
        fake_discord.add_message(CHANNEL, "dup.bin.part1", b"old1")
        fake_discord.add_message(CHANNEL, "dup.bin.part2", b"old2")
        fake_discord.add_message(CHANNEL, "dup.bin.part1", b"new1")
        fake_discord.add_message(CHANNEL, "dup.bin.part2", b"new2")

        result = await service.download_by_name(CHANNEL, TOKEN, "dup.bin", True, small_settings)

        assert result.data == b"new1new2"

    @pytest.mark.asyncio
    async def test_ignores_unrelated_attachments(self, service, fake_discord, small_settings):
        fake_discord.add_message(CHANNEL, "a.bin.part1", b"1")
        fake_discord.add_message(CHANNEL, "a.bin.partial", b"x")
        fake_discord.add_message(CHANNEL, "other.bin.part2", b"x")
        fake_discord.add_text_message(CHANNEL)
        fake_discord.add_message(CHANNEL, "a.bin.part2", b"2")

        result = await service.download_by_name(CHANNEL, TOKEN, "a.bin", True, small_settings)

        assert result.data == b"12"

    @pytest.mark.asyncio
    async def test_no_parts(self, service, fake_discord, small_settings):
        fake_discord.add_message(CHANNEL, "unrelated.txt", b"x")

        with pytest.raises(NotFoundError) as exc_info:
            await service.download_by_name(CHANNEL, TOKEN, "report", True, small_settings)
        assert not isinstance(exc_info.value, ScanWindowExceededError)

    @pytest.mark.asyncio
    async def test_gap_within_window(self, service, fake_discord, small_settings):
        fake_discord.add_message(CHANNEL, "r.part1", b"1")
        fake_discord.add_message(CHANNEL, "r.part3", b"3")

        with pytest.raises(NotFoundError) as exc_info:
            await service.download_by_name(CHANNEL, TOKEN, "r", True, small_settings)
        assert not isinstance(exc_info.value, ScanWindowExceededError)

    @pytest.mark.asyncio
    async def test_gap_with_full_window(self, service, fake_discord, small_settings):
        fake_discord.add_message(CHANNEL, "r.part1", b"1")
        fake_discord.add_message(CHANNEL, "r.part2", b"2")
        fake_discord.add_message(CHANNEL, "r.part3", b"3")
        fake_discord.add_text_message(CHANNEL)

        settings = replace(small_settings, message_list_limit=3)
        with pytest.raises(ScanWindowExceededError) as exc_info:
            await service.download_by_name(CHANNEL, TOKEN, "r", True, settings)

        assert exc_info.value.missing_parts == [1]

    @pytest.mark.asyncio
    async def test_no_parts_with_full_window(self, service, fake_discord, small_settings):
        for _ in range(3):
            fake_discord.add_text_message(CHANNEL)

        settings = replace(small_settings, message_list_limit=3)
        with pytest.raises(ScanWindowExceededError) as exc_info:
            await service.download_by_name(CHANNEL, TOKEN, "r", True, settings)

        assert exc_info.value.missing_parts == []

    @pytest.mark.asyncio
    async def test_zero_and_padded_part_numbers_ignored(self, service, fake_discord, small_settings):
        fake_discord.add_message(CHANNEL, "report.part0", b"JUNK")
        fake_discord.add_message(CHANNEL, "report.part1", b"A")
        fake_discord.add_message(CHANNEL, "report.part2", b"B")
        fake_discord.add_message(CHANNEL, "report.part01", b"X")

        result = await service.download_by_name(CHANNEL, TOKEN, "report", True, small_settings)

        assert result.data == b"AB"


class TestDownloadByName:
    @pytest.mark.asyncio
    async def test_single_file_by_name(self, service, fake_discord, small_settings):
        fake_discord.add_message(CHANNEL, "photo.png", b"old", "image/png")
        fake_discord.add_message(CHANNEL, "photo.png", b"new", "image/png")

        result = await service.download_by_name(CHANNEL, TOKEN, "photo.png", False, small_settings)

        assert result.data == b"new"
        assert result.mime_type == "image/png"
        assert result.strategy == DownloadStrategy.DIRECT

    @pytest.mark.asyncio
    async def test_single_file_not_found(self, service, small_settings):
        with pytest.raises(NotFoundError):
            await service.download_by_name(CHANNEL, TOKEN, "missing.txt", False, small_settings)

    @pytest.mark.asyncio
    async def test_requires_token(self, service, small_settings):
        with pytest.raises(AuthError):
            await service.download_by_name(CHANNEL, "", "x", False, small_settings)
