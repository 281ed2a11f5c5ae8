"""API tests for the vault service using FastAPI's TestClient."""

import io
import zipfile

import pytest
from fastapi.testclient import TestClient

from vault import service_locator
from vault.events import EventBus
from vault.exceptions import RateLimitError, RemoteUnavailableError
from vault.main import app
from vault.settings import SettingsRegistry

CHANNEL = "c-100"
TOKEN = "Bot secret-token"
AUTH = {"X-Channel-Token": TOKEN}


@pytest.fixture
def discord(fake_discord):
    return fake_discord


@pytest.fixture
def client(temp_db, discord, small_settings, tmp_path, monkeypatch):
    monkeypatch.setattr("vault.config.WORKSPACE_DIR", str(tmp_path / "ws"))
    service_locator.set_discord_client(discord)
    service_locator.set_settings_registry(SettingsRegistry(small_settings))
    service_locator.set_event_bus(EventBus())

    with TestClient(app) as test_client:
        yield test_client

    service_locator.reset()


def upload(client, data, filename="data.bin"):
    return client.post(
        "/files",
        files={"file": (filename, data, "application/octet-stream")},
        data={"channel_id": CHANNEL},
        headers=AUTH,
    )


class TestHealth:
    def test_root(self, client):
        assert client.get("/").json()["message"] == "ChannelVault API"

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "service": "vault"}

    def test_ready(self, client):
        response = client.get("/ready")
        assert response.status_code == 200
        assert response.json()["ready"] is True

    def test_request_id_header(self, client):
        assert "X-Request-ID" in client.get("/health").headers

    def test_request_id_propagated_from_client(self, client):
        response = client.get("/health", headers={"X-Request-ID": "req-42"})
        assert response.headers["X-Request-ID"] == "req-42"


class TestFileRoutes:
    def test_upload_and_download_chunked(self, client):
        data = bytes(range(25))
        response = upload(client, data)

        assert response.status_code == 201
        body = response.json()
        assert body["kind"] == "chunked"
        assert body["part_count"] == 3

        download = client.get(f"/files/{body['file_id']}/download", headers=AUTH)
        assert download.status_code == 200
        assert download.content == data
        assert download.headers["X-Download-Strategy"] == "ledger"
        assert "data.bin" in download.headers["Content-Disposition"]

    def test_upload_requires_token(self, client):
        response = client.post(
            "/files",
            files={"file": ("a.txt", b"x", "text/plain")},
            data={"channel_id": CHANNEL},
        )
        assert response.status_code == 401

    def test_file_too_large(self, client):
        response = upload(client, b"x" * 1001)
        assert response.status_code == 413
        assert response.json()["code"] == "FILE_TOO_LARGE"

    def test_download_unknown_file(self, client):
        response = client.get("/files/999/download", headers=AUTH)
        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"

    def test_incomplete_upload_conflict(self, client, discord):
        discord.fail_on["data.bin.part2"] = RemoteUnavailableError("connection reset")
        response = upload(client, b"y" * 25)
        assert response.status_code == 503
        assert response.json()["code"] == "REMOTE_UNAVAILABLE"

        file_id = client.get(f"/channels/{CHANNEL}/files").json()["files"][0]["file_id"]
        response = client.get(f"/files/{file_id}/download", headers=AUTH)
        assert response.status_code == 409
        assert response.json()["code"] == "UPLOAD_INCOMPLETE"

    def test_rate_limit_passes_retry_after(self, client, discord):
        discord.fail_on["a.txt"] = RateLimitError("Rate limited", retry_after=2.5)
        response = upload(client, b"x", filename="a.txt")
        assert response.status_code == 429
        assert response.json()["code"] == "RATE_LIMITED"
        assert response.headers["Retry-After"] == "2.5"

    def test_download_by_name_scan(self, client, discord):
        discord.add_message(CHANNEL, "old.log.part2", b"world")
        discord.add_message(CHANNEL, "old.log.part1", b"hello ")

        response = client.post(
            "/files/download-by-name",
            json={"channel_id": CHANNEL, "filename": "old.log", "chunked": True},
            headers=AUTH,
        )
        assert response.status_code == 200
        assert response.content == b"hello world"
        assert response.headers["X-Download-Strategy"] == "scan"

    def test_download_by_name_window_exceeded(self, client, discord):
        client.patch("/settings", json={"message_list_limit": 2})
        discord.add_message(CHANNEL, "r.part1", b"1")
        discord.add_message(CHANNEL, "r.part2", b"2")
        discord.add_text_message(CHANNEL)

        response = client.post(
            "/files/download-by-name",
            json={"channel_id": CHANNEL, "filename": "r", "chunked": True},
            headers=AUTH,
        )
        assert response.status_code == 404
        assert response.json()["code"] == "SCAN_WINDOW_EXCEEDED"

    def test_visibility_and_share(self, client):
        body = upload(client, b"shared bytes", filename="s.txt").json()

        assert client.get(f"/shared/{body['share_id']}").status_code == 403

        response = client.patch(f"/files/{body['file_id']}/visibility", json={"is_public": True})
        assert response.status_code == 200
        assert response.json()["is_public"] is True

        meta = client.get(f"/shared/{body['share_id']}").json()
        assert meta["filename"] == "s.txt"

        download = client.get(f"/shared/{body['share_id']}/download", headers=AUTH)
        assert download.content == b"shared bytes"

    def test_visibility_unknown_file(self, client):
        response = client.patch("/files/999/visibility", json={"is_public": True})
        assert response.status_code == 404

    def test_delete(self, client):
        body = upload(client, b"gone").json()

        response = client.delete(f"/files/{body['file_id']}")
        assert response.status_code == 200
        assert response.json()["deleted"] is True
        assert client.delete(f"/files/{body['file_id']}").status_code == 404


class TestChannelRoutes:
    def test_list_files(self, client):
        upload(client, b"one", filename="one.txt")
        upload(client, b"two", filename="two.txt")

        files = client.get(f"/channels/{CHANNEL}/files").json()["files"]
        assert [f["filename"] for f in files] == ["two.txt", "one.txt"]
        assert client.get("/channels/unknown/files").json()["files"] == []

    def test_list_attachments_reports_parts(self, client):
        upload(client, b"z" * 15, filename="big.bin")
        upload(client, b"plain", filename="notes.txt")

        response = client.get(f"/channels/{CHANNEL}/attachments", headers=AUTH)
        assert response.status_code == 200

        attachments = response.json()["attachments"]
        assert attachments[0]["filename"] == "notes.txt"
        assert attachments[0]["part_of"] is None
        parts = [(a["part_of"], a["part_number"]) for a in attachments[1:]]
        assert parts == [("big.bin", 2), ("big.bin", 1)]

    def test_list_attachments_requires_token(self, client):
        assert client.get(f"/channels/{CHANNEL}/attachments").status_code == 401


class TestBatchRoutes:
    def test_batch_upload_runs_in_background(self, client, discord):
        discord.fail_on["b.bin.part1"] = RemoteUnavailableError("down")
        response = client.post(
            "/batches/upload",
            files=[
                ("files", ("a.txt", b"aaa", "text/plain")),
                ("files", ("b.bin", b"b" * 20, "application/octet-stream")),
            ],
            data={"channel_id": CHANNEL},
            headers=AUTH,
        )
        assert response.status_code == 202
        batch_id = response.json()["batch_id"]

        batch = client.get(f"/batches/{batch_id}").json()
        assert batch["status"] == "completed_with_errors"
        assert batch["completed_files"] == 1
        assert [item["status"] for item in batch["items"]] == ["completed", "failed"]

        events = client.get(f"/batches/{batch_id}/events").json()["events"]
        assert events[-1]["type"] == "batch_complete"
        assert any(e["type"] == "batch_error" for e in events)

        later = client.get(f"/batches/{batch_id}/events", params={"since": len(events)}).json()
        assert later["events"] == []

    def test_batch_download_zip(self, client):
        first = upload(client, b"same name 1", filename="dup.txt").json()
        second = upload(client, b"same name 2", filename="dup.txt").json()

        response = client.post(
            "/batches/download",
            json={"channel_id": CHANNEL, "file_ids": [first["file_id"], second["file_id"], 999]},
            headers=AUTH,
        )
        assert response.status_code == 200
        assert response.headers["X-Batch-Status"] == "completed_with_errors"

        archive = zipfile.ZipFile(io.BytesIO(response.content))
        assert sorted(archive.namelist()) == ["dup.txt", "dup.txt (1)"]
        assert archive.read("dup.txt") == b"same name 1"

    def test_batch_download_requires_ids(self, client):
        response = client.post("/batches/download", json={"channel_id": CHANNEL, "file_ids": []}, headers=AUTH)
        assert response.status_code == 422

    def test_unknown_batch(self, client):
        assert client.get("/batches/999").status_code == 404
        assert client.get("/batches/999/events").status_code == 404

    def test_list_batches(self, client):
        client.post("/batches/download", json={"channel_id": CHANNEL, "file_ids": [1]}, headers=AUTH)
        batches = client.get("/batches").json()["batches"]
        assert len(batches) == 1
        assert batches[0]["operation_type"] == "batch_download"


class TestSettingsRoutes:
    def test_get_settings(self, client):
        body = client.get("/settings").json()
        assert body["version"] == 1
        assert body["chunk_size_bytes"] == 10

    def test_patch_settings(self, client):
        response = client.patch("/settings", json={"chunk_size_bytes": 20})
        assert response.status_code == 200
        assert response.json()["version"] == 2

        body = upload(client, b"q" * 25).json()
        assert body["part_count"] == 2

    def test_patch_invalid(self, client):
        response = client.patch("/settings", json={"chunk_size_bytes": 500})
        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_SETTINGS"
        assert client.get("/settings").json()["version"] == 1


class TestHistoryRoutes:
    def test_history_lists_operations(self, client):
        body = upload(client, b"h" * 12).json()
        client.get(f"/files/{body['file_id']}/download", headers=AUTH)

        entries = client.get("/history").json()["entries"]
        assert [e["details"]["operation_type"] for e in entries] == ["download", "upload"]

        uploads = client.get("/history", params={"operation_type": "upload"}).json()["entries"]
        assert len(uploads) == 1
        assert uploads[0]["details"]["part_count"] == 2

    def test_invalid_operation_type(self, client):
        assert client.get("/history", params={"operation_type": "bogus"}).status_code == 422
