"""Upload and download orchestration between clients and the remote channel."""

import asyncio
import os
from dataclasses import dataclass
from typing import BinaryIO, List, Optional, Tuple

from common.chunking import (
    is_chunked,
    join_into,
    missing_part_numbers,
    parse_part_number,
    part_filename,
    read_range,
    sort_by_part_number,
    split,
)
from common.logging_config import get_logger
from common.types import ByteRange, RemoteAttachment, RemoteMessage
from common.workspace import transfer_workspace
from vault import config
from vault.discord_client import DiscordClient
from vault.exceptions import (
    AuthError,
    FileTooLargeError,
    IncompleteUploadError,
    NotFoundError,
    PermissionDeniedError,
    ScanWindowExceededError,
)
from vault.ledger import FileLedger, FileMeta
from vault.repositories.file_repository import LogicalFile
from vault.repositories.part_repository import Part
from vault.settings import TransferSettings
from vault.types import DownloadStrategy, FileKind
from vault.utils import guess_mime_type

logger = get_logger(__name__)


@dataclass
class UploadResult:
    file_id: int
    share_id: str
    filename: str
    kind: FileKind
    size: int
    part_count: int


@dataclass
class DownloadResult:
    filename: str
    mime_type: str
    data: bytes
    strategy: DownloadStrategy
    file_id: Optional[int] = None


class TransferService:
    def __init__(
        self,
        client: DiscordClient,
        ledger: Optional[FileLedger] = None,
        history=None,
        workspace_dir: Optional[str] = None
    ):
        self.client = client
        self.ledger = ledger or FileLedger()
        self.history = history
        self.workspace_dir = workspace_dir if workspace_dir is not None else config.WORKSPACE_DIR

    async def upload_file(
        self,
        data: BinaryIO,
        size: int,
        filename: str,
        mime_type: Optional[str],
        remote_channel_id: str,
        token: str,
        settings: TransferSettings,
        channel_name: Optional[str] = None
    ) -> UploadResult:
        """
        Store a file in a remote channel, splitting it into parts when it is
        larger than the chunk threshold.

        Args:
            data: Seekable binary source holding exactly `size` bytes
            size: Total file size in bytes
            filename: Client-supplied file name
            mime_type: Content type (guessed from the name when None)
            remote_channel_id: Destination channel
            token: Channel credential
            settings: Transfer settings snapshot for this upload
            channel_name: Display name used when the channel is first seen

        Returns:
            UploadResult describing the stored logical file

        Raises:
            FileTooLargeError: If size exceeds max_file_size_bytes
            AuthError: If the credential is missing
            Any remote error from the client, unchanged; the file row stays incomplete
        """
        if not token:
            raise AuthError("Missing channel credential")

        if size > settings.max_file_size_bytes:
            raise FileTooLargeError(
                f"File is {size} bytes, maximum is {settings.max_file_size_bytes} bytes"
            )

        channel = self.ledger.resolve_channel(remote_channel_id, channel_name)

        remote_name = os.path.basename(filename) or "upload.bin"
        mime_type = mime_type or guess_mime_type(remote_name)
        kind = FileKind.CHUNKED if is_chunked(size, settings.chunk_threshold_bytes) else FileKind.SINGLE

        file_id = self.ledger.create_file(
            FileMeta(
                filename=remote_name,
                original_filename=filename,
                size_bytes=size,
                mime_type=mime_type,
                kind=kind,
                channel_id=channel.channel_id,
            )
        )

        logger.info(
            f"Upload started [file_id={file_id}] {remote_name} size={size} kind={kind.value} "
            f"channel={remote_channel_id} settings_version={settings.version}"
        )

        if kind == FileKind.SINGLE:
            data.seek(0)
            payload = data.read(size)
            message_id = await self.client.upload_attachment(
                remote_channel_id, token, payload, remote_name, mime_type
            )
            self.ledger.mark_file_complete(file_id, message_id)
            part_count = 1
        else:
            ranges = split(size, settings.chunk_size_bytes)
            await self._upload_parts(file_id, data, ranges, remote_name, mime_type, remote_channel_id, token, settings)
            self.ledger.mark_file_complete(file_id)
            part_count = len(ranges)

        stored = self.ledger.get_file(file_id)
        logger.info(f"Upload complete [file_id={file_id}] {remote_name} parts={part_count}")

        if self.history is not None:
            self.history.record_upload(stored, part_count, remote_channel_id)

        return UploadResult(
            file_id=file_id,
            share_id=stored.share_id,
            filename=remote_name,
            kind=kind,
            size=size,
            part_count=part_count,
        )

    async def _upload_parts(
        self,
        file_id: int,
        data: BinaryIO,
        ranges: List[ByteRange],
        remote_name: str,
        mime_type: str,
        remote_channel_id: str,
        token: str,
        settings: TransferSettings
    ) -> None:
        numbered = list(enumerate(ranges, start=1))
        total = len(numbered)
        window_size = settings.part_concurrency

        for start in range(0, total, window_size):
            if start > 0 and settings.pacing_delay_seconds > 0:
                await asyncio.sleep(settings.pacing_delay_seconds)

            window = [
                (part_number, read_range(data, byte_range))
                for part_number, byte_range in numbered[start:start + window_size]
            ]
            results = await asyncio.gather(
                *(
                    self._upload_part(file_id, part_number, payload, total, remote_name, mime_type,
                                      remote_channel_id, token)
                    for part_number, payload in window
                ),
                return_exceptions=True
            )

            # Parts of one window may finish in any order; report the lowest failing part.
            for (part_number, _), result in zip(window, results):
                if isinstance(result, BaseException):
                    logger.error(
                        f"Upload aborted [file_id={file_id}] at part {part_number}/{total}: {result}"
                    )
                    raise result

    async def _upload_part(
        self,
        file_id: int,
        part_number: int,
        payload: bytes,
        total: int,
        remote_name: str,
        mime_type: str,
        remote_channel_id: str,
        token: str
    ) -> None:
        part_id = self.ledger.create_part(file_id, part_number, len(payload))
        message_id = await self.client.upload_attachment(
            remote_channel_id, token, payload, part_filename(remote_name, part_number), mime_type
        )
        self.ledger.mark_part_complete(part_id, message_id)
        logger.info(f"Uploaded part {part_number}/{total} [file_id={file_id}] size={len(payload)}")

    async def download_file(self, file_id: int, token: str, settings: TransferSettings) -> DownloadResult:
        logical = self.ledger.get_file(file_id)
        if logical is None:
            raise NotFoundError(f"File {file_id} not found")
        return await self._download_logical(logical, token, settings)

    async def download_shared(self, share_id: str, token: str, settings: TransferSettings) -> DownloadResult:
        logical = self.ledger.get_file_by_share_id(share_id)
        if logical is None:
            raise NotFoundError(f"Shared file {share_id} not found")
        if not logical.is_public:
            raise PermissionDeniedError("File is not shared publicly")
        return await self._download_logical(logical, token, settings)

    async def download_by_name(
        self,
        remote_channel_id: str,
        token: str,
        filename: str,
        chunked: bool,
        settings: TransferSettings
    ) -> DownloadResult:
        """
        Retrieve a file by name alone, without any ledger rows.

        Args:
            remote_channel_id: Channel to search
            token: Channel credential
            filename: Attachment name, or the base name of its parts when chunked
            chunked: Whether to look for '{filename}.partN' attachments
            settings: Transfer settings snapshot (listing window)

        Raises:
            NotFoundError: If the file or one of its parts is not in the listing
            ScanWindowExceededError: If parts are missing and the listing was full
        """
        if not token:
            raise AuthError("Missing channel credential")

        if chunked:
            parts = await self._scan_parts(remote_channel_id, token, filename, settings)
            data = await self._assemble(filename, parts)
            mime_type = guess_mime_type(filename)
        else:
            messages = await self.client.list_recent_messages(
                remote_channel_id, token, settings.message_list_limit
            )
            attachment = _find_attachment(messages, filename)
            if attachment is None:
                raise NotFoundError(
                    f'File "{filename}" not found in the last {len(messages)} messages'
                )
            data = await self.client.fetch_bytes(attachment.url)
            mime_type = attachment.content_type or guess_mime_type(filename)

        result = DownloadResult(
            filename=filename,
            mime_type=mime_type,
            data=data,
            strategy=DownloadStrategy.SCAN if chunked else DownloadStrategy.DIRECT,
        )
        logger.info(f"Downloaded {filename} by name from channel {remote_channel_id} size={len(data)}")

        if self.history is not None:
            self.history.record_download(result, remote_channel_id)

        return result

    async def _download_logical(self, logical: LogicalFile, token: str, settings: TransferSettings) -> DownloadResult:
        if not token:
            raise AuthError("Missing channel credential")
        if not logical.upload_complete:
            raise IncompleteUploadError(f"Upload of file {logical.file_id} never completed")

        channel = self.ledger.get_channel(logical.channel_id)
        remote_channel_id = channel.remote_channel_id

        if logical.kind == FileKind.SINGLE:
            message = await self.client.get_message(remote_channel_id, token, logical.remote_message_id)
            attachment = _find_attachment([message], logical.filename) or _first_attachment(message)
            data = await self.client.fetch_bytes(attachment.url)
            strategy = DownloadStrategy.DIRECT
        else:
            ledger_parts = self.ledger.get_parts_for_file(logical.file_id)
            if _ledger_parts_usable(ledger_parts, logical.size_bytes):
                logger.debug(f"Using ledger parts for file {logical.file_id}")
                parts = await self._resolve_ledger_parts(remote_channel_id, token, logical.filename, ledger_parts)
                strategy = DownloadStrategy.LEDGER
            else:
                logger.debug(f"Ledger parts unusable for file {logical.file_id}, scanning channel")
                parts = await self._scan_parts(remote_channel_id, token, logical.filename, settings)
                strategy = DownloadStrategy.SCAN
            data = await self._assemble(logical.filename, parts)

        result = DownloadResult(
            filename=logical.filename,
            mime_type=logical.mime_type,
            data=data,
            strategy=strategy,
            file_id=logical.file_id,
        )
        logger.info(
            f"Download complete [file_id={logical.file_id}] {logical.filename} "
            f"size={len(data)} strategy={strategy.value}"
        )

        if self.history is not None:
            self.history.record_download(result, remote_channel_id)

        return result

    async def _resolve_ledger_parts(
        self,
        remote_channel_id: str,
        token: str,
        remote_name: str,
        ledger_parts: List[Part]
    ) -> List[Tuple[int, RemoteAttachment]]:
        resolved = []
        for part in ledger_parts:
            message = await self.client.get_message(remote_channel_id, token, part.remote_message_id)
            expected = part_filename(remote_name, part.part_number)
            attachment = _find_attachment([message], expected) or _first_attachment(message)
            resolved.append((part.part_number, attachment))
        return resolved

    async def _scan_parts(
        self,
        remote_channel_id: str,
        token: str,
        base_filename: str,
        settings: TransferSettings
    ) -> List[Tuple[int, RemoteAttachment]]:
        """
        Discover the parts of a chunked file from recent channel history.

        Messages come newest first, so the first attachment seen for a part
        number wins when a file was uploaded more than once.
        """
        limit = settings.message_list_limit
        messages = await self.client.list_recent_messages(remote_channel_id, token, limit)

        found = {}
        for message in messages:
            for attachment in message.attachments:
                part_number = parse_part_number(base_filename, attachment.filename)
                if part_number is None or part_number in found:
                    continue
                found[part_number] = attachment

        logger.debug(
            f"Scan of {len(messages)} messages found parts {sorted(found)} of {base_filename}"
        )

        window_full = len(messages) >= limit
        if not found:
            if window_full:
                raise ScanWindowExceededError(
                    f'No parts of "{base_filename}" among the last {limit} messages; '
                    f"they may be outside the listing window"
                )
            raise NotFoundError(f'No parts of "{base_filename}" found in the last {len(messages)} messages')

        missing = missing_part_numbers(found)
        if missing:
            if window_full:
                raise ScanWindowExceededError(
                    f'Parts {missing} of "{base_filename}" are not among the last {limit} messages; '
                    f"older parts may be outside the listing window",
                    missing_parts=missing,
                )
            raise NotFoundError(f'Parts {missing} of "{base_filename}" are missing from the channel')

        return sort_by_part_number(list(found.items()), key=lambda item: item[0])

    async def _assemble(self, base_filename: str, parts: List[Tuple[int, RemoteAttachment]]) -> bytes:
        total = len(parts)
        with transfer_workspace(base_dir=self.workspace_dir) as workspace:
            part_paths = []
            for part_number, attachment in parts:
                body = await self.client.fetch_bytes(attachment.url)
                part_path = workspace / f"part{part_number}"
                part_path.write_bytes(body)
                part_paths.append(part_path)
                logger.info(f"Fetched part {part_number}/{total} of {base_filename} size={len(body)}")

            output_path = workspace / "assembled"
            with open(output_path, "wb") as sink:
                written = join_into((path.read_bytes() for path in part_paths), sink)

            logger.debug(f"Assembled {base_filename} from {total} parts ({written} bytes)")
            return output_path.read_bytes()


def _ledger_parts_usable(parts: List[Part], expected_size: int) -> bool:
    if not parts:
        return False
    if [part.part_number for part in parts] != list(range(1, len(parts) + 1)):
        return False
    if not all(part.upload_complete and part.remote_message_id for part in parts):
        return False
    return sum(part.size_bytes for part in parts) == expected_size


def _find_attachment(messages: List[RemoteMessage], filename: str) -> Optional[RemoteAttachment]:
    for message in messages:
        for attachment in message.attachments:
            if attachment.filename == filename:
                return attachment
    return None


def _first_attachment(message: RemoteMessage) -> RemoteAttachment:
    if not message.attachments:
        raise NotFoundError(f"Message {message.message_id} has no attachment")
    return message.attachments[0]
