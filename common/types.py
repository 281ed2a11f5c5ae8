"""Shared data type definitions (ByteRange, RemoteAttachment, RemoteMessage)."""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(frozen=True)
class ByteRange:
    """
    One contiguous slice of a file: [offset, offset + length).
    """
    offset: int
    length: int

    @property
    def end(self) -> int:
        return self.offset + self.length


@dataclass(frozen=True)
class RemoteAttachment:
    """
    Attachment metadata as reported by the remote channel.
    """
    attachment_id: str
    filename: str
    url: str
    size: int
    content_type: Optional[str] = None


@dataclass(frozen=True)
class RemoteMessage:
    """
    A remote message together with its attachments.
    """
    message_id: str
    attachments: List[RemoteAttachment] = field(default_factory=list)
