"""Progress display and size formatting for CLI transfers."""

import sys
from typing import Optional

from cli.constants import GREEN, RESET

READ_CHUNK_SIZE = 64 * 1024


class TransferProgress:
    """
    Single-line progress indicator for one upload or download.

    The total may be unknown (0), in which case only the byte count is shown.
    """

    def __init__(self, verb: str, filename: str, total: int = 0, stream=None):
        self.verb = verb
        self.filename = filename
        self.total = total
        self.done = 0
        self._stream = stream or sys.stdout
        self._closed = False

    def advance(self, count: int) -> None:
        self.done += count
        if self.total > 0:
            percent = min(self.done / self.total, 1.0) * 100
            line = (
                f"\r{self.verb} {self.filename}: {format_file_size(self.done)} / "
                f"{format_file_size(self.total)} ({GREEN}{percent:.1f}%{RESET})"
            )
        else:
            line = f"\r{self.verb} {self.filename}: {format_file_size(self.done)}"
        self._stream.write(line)
        self._stream.flush()

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self._stream.write('\n')
            self._stream.flush()


class ProgressFileWrapper:
    """Read-only file object that reports upload progress as the body is consumed."""

    def __init__(self, file_path: str, file_size: int, filename: str, stream=None):
        self._file = open(file_path, 'rb')
        self.progress = TransferProgress("Uploading", filename, file_size, stream)

    def read(self, size: int = -1) -> bytes:
        chunk = self._file.read(size if size and size > 0 else READ_CHUNK_SIZE)
        if chunk:
            self.progress.advance(len(chunk))
        else:
            self.progress.close()
        return chunk

    def fileno(self) -> int:
        # httpx sizes multipart bodies through os.fstat
        return self._file.fileno()

    def close(self) -> None:
        self._file.close()

    def __enter__(self) -> 'ProgressFileWrapper':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def format_file_size(size_bytes: Optional[int]) -> str:
    """
    Human-readable size in binary units, e.g. "512 B" or "1.50 MiB".
    """
    size_bytes = size_bytes or 0
    if size_bytes < 1024:
        return f"{size_bytes} B"

    size = float(size_bytes)
    for unit in ('KiB', 'MiB', 'GiB', 'TiB'):
        size /= 1024.0
        if size < 1024.0:
            return f"{size:.2f} {unit}"

    return f"{size / 1024.0:.2f} PiB"
