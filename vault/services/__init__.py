"""Service layer for transfer, batch and history logic."""

from vault.services.batch_service import BatchService
from vault.services.history_service import HistoryService
from vault.services.transfer_service import TransferService

__all__ = [
    "BatchService",
    "HistoryService",
    "TransferService",
]
