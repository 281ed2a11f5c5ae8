"""Local bookkeeping of channels, logical files and their parts."""

from dataclasses import dataclass
from typing import List, Optional

from common.logging_config import get_logger
from vault.repositories.channel_repository import Channel, ChannelRepository
from vault.repositories.file_repository import FileRepository, LogicalFile
from vault.repositories.part_repository import Part, PartRepository
from vault.types import FileKind

logger = get_logger(__name__)


@dataclass
class FileMeta:
    filename: str
    original_filename: str
    size_bytes: int
    mime_type: str
    kind: FileKind
    channel_id: int
    is_public: bool = False


class FileLedger:
    """
    Facade over the repositories used by the transfer orchestrator.

    Every write runs on its own connection and commits before returning, so a
    crash mid-transfer leaves the rows of finished steps durable and the file
    row visibly incomplete.
    """

    def __init__(self):
        self.channel_repo = ChannelRepository()
        self.file_repo = FileRepository()
        self.part_repo = PartRepository()

    def resolve_channel(self, remote_channel_id: str, name: Optional[str] = None) -> Channel:
        channel = self.channel_repo.get_by_remote_id(remote_channel_id)
        if channel is None:
            return self.channel_repo.create_channel(remote_channel_id, name)

        self.channel_repo.touch_last_used(channel.channel_id)
        return channel

    def get_channel(self, channel_id: int) -> Optional[Channel]:
        return self.channel_repo.get_by_id(channel_id)

    def create_file(self, meta: FileMeta) -> int:
        created = self.file_repo.create_file(
            filename=meta.filename,
            original_filename=meta.original_filename,
            size_bytes=meta.size_bytes,
            mime_type=meta.mime_type,
            kind=meta.kind,
            channel_id=meta.channel_id,
            is_public=meta.is_public,
        )
        return created.file_id

    def mark_file_complete(self, file_id: int, remote_message_id: Optional[str] = None) -> None:
        self.file_repo.mark_complete(file_id, remote_message_id)

    def create_part(self, file_id: int, part_number: int, size_bytes: int) -> int:
        return self.part_repo.create_part(file_id, part_number, size_bytes).part_id

    def mark_part_complete(self, part_id: int, remote_message_id: str) -> None:
        self.part_repo.mark_complete(part_id, remote_message_id)

    def get_parts_for_file(self, file_id: int) -> List[Part]:
        return self.part_repo.get_parts_by_file(file_id)

    def get_file(self, file_id: int) -> Optional[LogicalFile]:
        return self.file_repo.get_by_id(file_id)

    def get_file_by_share_id(self, share_id: str) -> Optional[LogicalFile]:
        return self.file_repo.get_by_share_id(share_id)

    def list_files_by_channel(self, remote_channel_id: str, limit: int = 100) -> List[LogicalFile]:
        channel = self.channel_repo.get_by_remote_id(remote_channel_id)
        if channel is None:
            return []
        return self.file_repo.list_by_channel(channel.channel_id, limit)

    def set_visibility(self, file_id: int, is_public: bool) -> bool:
        return self.file_repo.set_visibility(file_id, is_public)

    def delete_file(self, file_id: int) -> bool:
        return self.file_repo.delete_file(file_id)
