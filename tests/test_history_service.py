"""Tests for HistoryService."""

from io import BytesIO

import pytest

from vault.ledger import FileLedger
from vault.schemas.history import DownloadDetails, UploadDetails
from vault.services.history_service import HistoryService
from vault.services.transfer_service import TransferService
from vault.types import DownloadStrategy, FileKind, OperationType

CHANNEL = "c-100"
TOKEN = "Bot secret-token"


@pytest.fixture
def history(temp_db):
    return HistoryService()


@pytest.fixture
def service(history, fake_discord, tmp_path):
    return TransferService(fake_discord, FileLedger(), history, workspace_dir=str(tmp_path / "ws"))


class TestHistoryService:
    @pytest.mark.asyncio
    async def test_upload_and_download_recorded(self, service, history, small_settings):
        result = await service.upload_file(
            BytesIO(b"y" * 25), 25, "log.txt", "text/plain", CHANNEL, TOKEN, small_settings
        )
        await service.download_file(result.file_id, TOKEN, small_settings)

        entries = history.list_recent()
        assert len(entries) == 2

        download, upload = entries
        assert isinstance(upload.details, UploadDetails)
        assert upload.details.kind == FileKind.CHUNKED
        assert upload.details.part_count == 3
        assert upload.details.share_id == result.share_id
        assert upload.file_id == result.file_id

        assert isinstance(download.details, DownloadDetails)
        assert download.details.strategy == DownloadStrategy.LEDGER
        assert download.details.size == 25
        assert download.details.channel_id == CHANNEL

    @pytest.mark.asyncio
    async def test_filter_and_limit(self, service, history, small_settings):
        for index in range(3):
            await service.upload_file(
                BytesIO(b"z"), 1, f"f{index}.txt", None, CHANNEL, TOKEN, small_settings
            )

        assert len(history.list_recent(limit=2)) == 2
        assert history.list_recent(operation_type=OperationType.DOWNLOAD) == []
        assert len(history.list_recent(operation_type=OperationType.UPLOAD)) == 3

    def test_empty_history(self, history):
        assert history.list_recent() == []
