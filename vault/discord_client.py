"""HTTP client for storing and reading attachments in Discord channels."""

import asyncio
from typing import Any, Dict, List, Optional

import aiohttp

from common.constants import MESSAGE_LIST_MAX
from common.logging_config import get_logger
from common.types import RemoteAttachment, RemoteMessage
from vault import config
from vault.exceptions import (
    AuthError,
    NotFoundError,
    PermissionDeniedError,
    RateLimitError,
    RemoteProtocolError,
    RemoteUnavailableError,
)

logger = get_logger(__name__)


class DiscordClient:
    """
    Async client for the Discord REST API.
    Handles session management and maps every transport or HTTP failure
    onto the vault exception taxonomy.
    """

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None):
        """Initialize client with lazy session."""
        self._base_url = (base_url or config.DISCORD_API_BASE_URL).rstrip("/")
        self._timeout = timeout if timeout is not None else config.REMOTE_TIMEOUT
        self._session: Optional[aiohttp.ClientSession] = None

    def _ensure_session(self) -> aiohttp.ClientSession:
        """Ensure HTTP session is established."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._timeout)
            )
            logger.info(f"Opened HTTP session to {self._base_url}")
        return self._session

    async def close(self) -> None:
        """Close HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    @staticmethod
    def _auth_headers(token: str) -> Dict[str, str]:
        if not token:
            raise AuthError("Missing channel credential")
        return {"Authorization": token}

    async def upload_attachment(
        self,
        channel_id: str,
        token: str,
        data: bytes,
        filename: str,
        mime_type: str = "application/octet-stream"
    ) -> str:
        """
        Post one message carrying a single attachment.

        Args:
            channel_id: Remote channel identifier
            token: Channel credential, sent unmodified
            data: Attachment payload
            filename: Attachment name as it will appear in the channel
            mime_type: Attachment content type

        Returns:
            Identifier of the created message

        Raises:
            AuthError, PermissionDeniedError, NotFoundError, RateLimitError,
            RemoteProtocolError, RemoteUnavailableError
        """
        headers = self._auth_headers(token)
        form = aiohttp.FormData()
        form.add_field("files[0]", data, filename=filename, content_type=mime_type)

        payload = await self._request_json(
            "POST", f"/channels/{channel_id}/messages", headers=headers, data=form
        )
        message_id = str(payload.get("id", "")) if isinstance(payload, dict) else ""
        if not message_id:
            raise RemoteProtocolError("Upload response did not include a message id")

        logger.info(f"Uploaded attachment {filename} ({len(data)} bytes) as message {message_id}")
        return message_id

    async def list_recent_messages(self, channel_id: str, token: str, limit: int) -> List[RemoteMessage]:
        """
        Return up to `limit` most recent messages of a channel, newest first.
        """
        headers = self._auth_headers(token)
        limit = max(1, min(int(limit), MESSAGE_LIST_MAX))

        payload = await self._request_json(
            "GET",
            f"/channels/{channel_id}/messages",
            headers=headers,
            params={"limit": str(limit)},
        )
        if not isinstance(payload, list):
            raise RemoteProtocolError("Message listing was not a list")

        messages = [_parse_message(item) for item in payload]
        logger.debug(f"Listed {len(messages)} messages in channel {channel_id} (limit={limit})")
        return messages

    async def get_message(self, channel_id: str, token: str, message_id: str) -> RemoteMessage:
        """
        Fetch one message so its attachments carry fresh download URLs.
        """
        headers = self._auth_headers(token)
        payload = await self._request_json(
            "GET", f"/channels/{channel_id}/messages/{message_id}", headers=headers
        )
        if not isinstance(payload, dict):
            raise RemoteProtocolError(f"Message {message_id} response was not an object")
        return _parse_message(payload)

    async def fetch_bytes(self, url: str) -> bytes:
        """
        Download an attachment body. Attachment URLs are pre-signed, so no
        credential is sent.
        """
        session = self._ensure_session()
        try:
            async with session.get(url) as response:
                if response.status >= 400:
                    await self._raise_for_status(response)
                body = await response.read()
        except aiohttp.ClientError as e:
            raise RemoteUnavailableError(f"Attachment download failed: {e}") from e
        except asyncio.TimeoutError as e:
            raise RemoteUnavailableError("Attachment download timed out") from e

        logger.debug(f"Fetched {len(body)} bytes from attachment URL")
        return body

    async def _request_json(self, method: str, path: str, **kwargs) -> Any:
        session = self._ensure_session()
        url = f"{self._base_url}{path}"
        try:
            async with session.request(method, url, **kwargs) as response:
                if response.status >= 400:
                    await self._raise_for_status(response)
                try:
                    return await response.json(content_type=None)
                except ValueError as e:
                    raise RemoteProtocolError(
                        f"Invalid JSON from {method} {path}", status_code=response.status
                    ) from e
        except aiohttp.ClientError as e:
            raise RemoteUnavailableError(f"Remote request {method} {path} failed: {e}") from e
        except asyncio.TimeoutError as e:
            raise RemoteUnavailableError(f"Remote request {method} {path} timed out") from e

    @staticmethod
    async def _raise_for_status(response: aiohttp.ClientResponse) -> None:
        status = response.status
        body: Dict[str, Any] = {}
        try:
            parsed = await response.json(content_type=None)
            if isinstance(parsed, dict):
                body = parsed
        except ValueError:
            pass

        message = body.get("message") or response.reason or f"HTTP {status}"

        if status == 401:
            raise AuthError(f"Remote rejected credential: {message}")
        if status == 403:
            raise PermissionDeniedError(f"Remote denied access: {message}")
        if status == 404:
            raise NotFoundError(f"Remote resource not found: {message}")
        if status == 429:
            retry_after = body.get("retry_after")
            if retry_after is None:
                retry_after = response.headers.get("Retry-After")
            retry_after = float(retry_after) if retry_after is not None else None
            logger.warning(f"Rate limited by remote, retry_after={retry_after}")
            raise RateLimitError(f"Rate limited: {message}", retry_after=retry_after)

        raise RemoteProtocolError(f"Remote error {status}: {message}", status_code=status)


def _parse_message(payload: Dict[str, Any]) -> RemoteMessage:
    attachments = [
        RemoteAttachment(
            attachment_id=str(item.get("id", "")),
            filename=item.get("filename", ""),
            url=item.get("url", ""),
            size=int(item.get("size", 0)),
            content_type=item.get("content_type"),
        )
        for item in payload.get("attachments", [])
    ]
    return RemoteMessage(message_id=str(payload.get("id", "")), attachments=attachments)
