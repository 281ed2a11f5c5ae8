"""Scoped temporary workspace for a single transfer."""

import shutil
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Optional

from common.logging_config import get_logger

logger = get_logger(__name__)


@contextmanager
def transfer_workspace(prefix: str = "channelvault-", base_dir: Optional[str] = None) -> Generator[Path, None, None]:
    """
    Create a private temporary directory and remove it on every exit path.

    A failure while removing the directory is logged and never replaces the
    outcome of the transfer that used it.

    Args:
        prefix: Directory name prefix
        base_dir: Parent directory (system temp dir when None)

    Yields:
        Path to the workspace directory
    """
    if base_dir is not None:
        Path(base_dir).mkdir(parents=True, exist_ok=True)

    workspace = Path(tempfile.mkdtemp(prefix=prefix, dir=base_dir))
    logger.debug(f"Acquired transfer workspace {workspace}")
    try:
        yield workspace
    finally:
        try:
            shutil.rmtree(workspace)
            logger.debug(f"Released transfer workspace {workspace}")
        except OSError as e:
            logger.warning(f"Could not remove transfer workspace {workspace}: {e}")
