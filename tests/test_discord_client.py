"""Tests for DiscordClient against a local aiohttp server."""

import pytest
import pytest_asyncio
from aiohttp import web, test_utils

from vault.discord_client import DiscordClient
from vault.exceptions import (
    AuthError,
    NotFoundError,
    PermissionDeniedError,
    RateLimitError,
    RemoteProtocolError,
    RemoteUnavailableError,
)

TOKEN = "Bot secret-token"


def build_app(received):
    async def post_message(request):
        received["headers"] = dict(request.headers)
        form = await request.post()
        upload = form["files[0]"]
        received["filename"] = upload.filename
        received["content_type"] = upload.content_type
        received["data"] = upload.file.read()
        return web.json_response({"id": "555", "attachments": []})

    async def list_messages(request):
        received["limit"] = request.query.get("limit")
        return web.json_response([
            {
                "id": "2",
                "attachments": [
                    {
                        "id": "a2",
                        "filename": "data.bin.part2",
                        "url": "http://cdn/2",
                        "size": 5,
                        "content_type": "application/octet-stream",
                    }
                ],
            },
            {"id": "1", "attachments": []},
        ])

    async def get_message(request):
        message_id = request.match_info["message_id"]
        if message_id == "missing":
            return web.json_response({"message": "Unknown Message"}, status=404)
        return web.json_response({
            "id": message_id,
            "attachments": [
                {"id": "a1", "filename": "doc.txt", "url": "http://cdn/doc", "size": "3"}
            ],
        })

    async def blob(request):
        received["blob_headers"] = dict(request.headers)
        return web.Response(body=b"attachment-bytes")

    async def error(request):
        kind = request.match_info["kind"]
        if kind == "401":
            return web.json_response({"message": "401: Unauthorized"}, status=401)
        if kind == "403":
            return web.json_response({"message": "Missing Access"}, status=403)
        if kind == "429-body":
            return web.json_response({"message": "You are being rate limited.", "retry_after": 1.5}, status=429)
        if kind == "429-header":
            return web.Response(status=429, headers={"Retry-After": "3"})
        if kind == "bad-json":
            return web.Response(text="not json", status=200)
        return web.json_response({"message": "Internal"}, status=500)

    app = web.Application()
    app.router.add_post("/api/v10/channels/{channel_id}/messages", post_message)
    app.router.add_get("/api/v10/channels/{channel_id}/messages", list_messages)
    app.router.add_get("/api/v10/channels/{channel_id}/messages/{message_id}", get_message)
    app.router.add_get("/api/v10/errors/{kind}", error)
    app.router.add_get("/blob", blob)
    return app


@pytest.fixture
def received():
    return {}


@pytest_asyncio.fixture
async def server(received):
    test_server = test_utils.TestServer(build_app(received))
    await test_server.start_server()
    yield test_server
    await test_server.close()


@pytest_asyncio.fixture
async def client(server):
    discord = DiscordClient(base_url=str(server.make_url("/api/v10")), timeout=5)
    yield discord
    await discord.close()


class TestUpload:
    @pytest.mark.asyncio
    async def test_upload_sends_single_attachment(self, client, received):
        message_id = await client.upload_attachment("42", TOKEN, b"hello", "notes.txt", "text/plain")

        assert message_id == "555"
        assert received["filename"] == "notes.txt"
        assert received["content_type"] == "text/plain"
        assert received["data"] == b"hello"
        assert received["headers"]["Authorization"] == TOKEN

    @pytest.mark.asyncio
    async def test_empty_token_makes_no_request(self, client, received):
        with pytest.raises(AuthError):
            await client.upload_attachment("42", "", b"hello", "notes.txt")
        assert received == {}


class TestReads:
    @pytest.mark.asyncio
    async def test_list_recent_messages(self, client, received):
        messages = await client.list_recent_messages("42", TOKEN, 50)

        assert received["limit"] == "50"
        assert [m.message_id for m in messages] == ["2", "1"]
        attachment = messages[0].attachments[0]
        assert attachment.filename == "data.bin.part2"
        assert attachment.size == 5
        assert messages[1].attachments == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("requested,sent", [(500, "100"), (0, "1"), (-3, "1")])
    async def test_list_limit_clamped(self, client, received, requested, sent):
        await client.list_recent_messages("42", TOKEN, requested)
        assert received["limit"] == sent

    @pytest.mark.asyncio
    async def test_get_message(self, client):
        message = await client.get_message("42", TOKEN, "77")
        assert message.message_id == "77"
        assert message.attachments[0].url == "http://cdn/doc"
        assert message.attachments[0].size == 3
        assert message.attachments[0].content_type is None

    @pytest.mark.asyncio
    async def test_get_missing_message(self, client):
        with pytest.raises(NotFoundError):
            await client.get_message("42", TOKEN, "missing")

    @pytest.mark.asyncio
    async def test_fetch_bytes_sends_no_credential(self, client, server, received):
        body = await client.fetch_bytes(str(server.make_url("/blob")))

        assert body == b"attachment-bytes"
        assert "Authorization" not in received["blob_headers"]


class TestErrorMapping:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("kind,error", [
        ("401", AuthError),
        ("403", PermissionDeniedError),
        ("500", RemoteProtocolError),
    ])
    async def test_status_codes(self, client, kind, error):
        with pytest.raises(error):
            await client._request_json("GET", f"/errors/{kind}")

    @pytest.mark.asyncio
    async def test_server_error_keeps_status(self, client):
        with pytest.raises(RemoteProtocolError) as exc_info:
            await client._request_json("GET", "/errors/500")
        assert exc_info.value.status_code == 500
        assert not isinstance(exc_info.value, RemoteUnavailableError)

    @pytest.mark.asyncio
    async def test_rate_limit_from_body(self, client):
        with pytest.raises(RateLimitError) as exc_info:
            await client._request_json("GET", "/errors/429-body")
        assert exc_info.value.retry_after == 1.5

    @pytest.mark.asyncio
    async def test_rate_limit_from_header(self, client):
        with pytest.raises(RateLimitError) as exc_info:
            await client._request_json("GET", "/errors/429-header")
        assert exc_info.value.retry_after == 3.0

    @pytest.mark.asyncio
    async def test_invalid_json(self, client):
        with pytest.raises(RemoteProtocolError):
            await client._request_json("GET", "/errors/bad-json")

    @pytest.mark.asyncio
    async def test_unreachable_host(self):
        discord = DiscordClient(base_url="http://127.0.0.1:1/api/v10", timeout=2)
        try:
            with pytest.raises(RemoteUnavailableError):
                await discord.list_recent_messages("42", TOKEN, 10)
        finally:
            await discord.close()
