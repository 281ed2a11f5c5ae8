"""Chunk codec: split a byte stream into ordered ranges and join parts back."""

import re
from typing import BinaryIO, Callable, Iterable, List, Optional, Sequence, TypeVar

from common.constants import PART_SUFFIX
from common.types import ByteRange

T = TypeVar("T")


def split(total_size: int, chunk_size: int) -> List[ByteRange]:
    """
    Partition [0, total_size) into contiguous ranges of chunk_size bytes.

    Every range has length chunk_size except the last, which holds the
    remainder (or a full chunk when total_size divides evenly). A zero
    total_size yields no ranges.

    Args:
        total_size: Number of bytes in the source
        chunk_size: Maximum bytes per range, must be positive

    Returns:
        Ranges in ascending offset order
    """
    return [
        ByteRange(offset=offset, length=min(chunk_size, total_size - offset))
        for offset in range(0, total_size, chunk_size)
    ]


def join(ordered_parts: Iterable[bytes]) -> bytes:
    """
    Concatenate parts that are already in ascending part order.
    """
    return b"".join(ordered_parts)


def join_into(ordered_parts: Iterable[bytes], sink: BinaryIO) -> int:
    """
    Write parts, already in ascending part order, into a binary sink.

    Args:
        ordered_parts: Part payloads in sequence order
        sink: Writable binary file object

    Returns:
        Total number of bytes written
    """
    written = 0
    for part in ordered_parts:
        sink.write(part)
        written += len(part)
    return written


def read_range(source: BinaryIO, byte_range: ByteRange) -> bytes:
    """Read exactly one range from a seekable source."""
    source.seek(byte_range.offset)
    return source.read(byte_range.length)


def is_chunked(size: int, threshold: int) -> bool:
    """A file is chunked only when strictly larger than the threshold."""
    return size > threshold


def part_filename(original_filename: str, part_number: int) -> str:
    """
    Remote attachment name for a part: '{original}.part{N}', N 1-based and unpadded.
    """
    return f"{original_filename}{PART_SUFFIX}{part_number}"


def parse_part_number(base_filename: str, filename: str) -> Optional[int]:
    """
    Recover the part number from an attachment name.

    Args:
        base_filename: Original filename the parts were cut from
        filename: Candidate attachment name

    Returns:
        The integer after '{base}.part', or None when the name is not a part of base
    """
    prefix = f"{base_filename}{PART_SUFFIX}"
    if not filename.startswith(prefix):
        return None

    suffix = filename[len(prefix):]
    # 1-based and never zero-padded, so part0 and part01 are not parts
    if not re.fullmatch(r"[1-9][0-9]*", suffix):
        return None

    return int(suffix)


def sort_by_part_number(items: Sequence[T], key: Callable[[T], int]) -> List[T]:
    """
    Order items by their numeric part number.

    Lexical order would put part10 before part2, so the key must be the parsed integer.
    """
    return sorted(items, key=key)


def missing_part_numbers(part_numbers: Iterable[int]) -> List[int]:
    """
    Part numbers absent from the contiguous run 1..max(part_numbers).
    """
    present = set(part_numbers)
    if not present:
        return []
    return [n for n in range(1, max(present) + 1) if n not in present]
