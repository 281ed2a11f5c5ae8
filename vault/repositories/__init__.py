"""Repository layer for data access."""

from vault.repositories.channel_repository import ChannelRepository
from vault.repositories.file_repository import FileRepository
from vault.repositories.part_repository import PartRepository
from vault.repositories.batch_repository import BatchRepository
from vault.repositories.history_repository import HistoryRepository

__all__ = [
    "ChannelRepository",
    "FileRepository",
    "PartRepository",
    "BatchRepository",
    "HistoryRepository",
]
