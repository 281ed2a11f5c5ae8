"""Vault-specific enums and status derivation."""

from enum import Enum
from typing import Iterable


class FileKind(str, Enum):
    SINGLE = "single"
    CHUNKED = "chunked"


class BatchStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    COMPLETED_WITH_ERRORS = "completed_with_errors"
    FAILED = "failed"


class ItemStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


class OperationType(str, Enum):
    UPLOAD = "upload"
    DOWNLOAD = "download"
    BATCH_UPLOAD = "batch_upload"
    BATCH_DOWNLOAD = "batch_download"


TERMINAL_ITEM_STATUSES = (ItemStatus.COMPLETED, ItemStatus.FAILED)


def derive_batch_status(total: int, item_statuses: Iterable[ItemStatus]) -> BatchStatus:
    """
    Compute a batch's status from its items.

    completed iff every one of `total` items completed; completed_with_errors once
    all items are terminal with at least one failure; in_progress once any item has
    started; pending otherwise.

    Args:
        total: Number of files the batch was created for
        item_statuses: Statuses of the items recorded so far

    Returns:
        Derived batch status
    """
    statuses = [ItemStatus(s) for s in item_statuses]

    if not statuses:
        return BatchStatus.PENDING

    all_terminal = len(statuses) >= total and all(s in TERMINAL_ITEM_STATUSES for s in statuses)
    if all_terminal:
        if all(s == ItemStatus.COMPLETED for s in statuses):
            return BatchStatus.COMPLETED
        return BatchStatus.COMPLETED_WITH_ERRORS

    if any(s != ItemStatus.PENDING for s in statuses):
        return BatchStatus.IN_PROGRESS

    return BatchStatus.PENDING


class DownloadStrategy(str, Enum):
    DIRECT = "direct"
    LEDGER = "ledger"
    SCAN = "scan"
