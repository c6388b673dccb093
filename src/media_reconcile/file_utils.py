"""Local implementations of the folder listing and text reading collaborators.

The engine only depends on the call shapes ``list_files(folder_path)`` and
``read_text_file(path, cancel_event)``; these are the defaults used by the
service and the CLI when running against a local filesystem.
"""

import logging
import threading
from pathlib import Path

from media_reconcile.errors import OperationCancelled
from media_reconcile.path_utils import to_posix
from media_reconcile.retry_utils import retry

logger = logging.getLogger(__name__)


def list_files(folder_path: str, recursive: bool = True) -> list[str]:
    """List files under a folder as sorted folder-relative POSIX paths.

    Args:
        folder_path: Folder to list
        recursive: Whether to descend into subdirectories

    Returns:
        Relative paths; empty if the folder does not exist
    """
    directory = Path(folder_path)
    if not directory.is_dir():
        return []

    entries = directory.rglob("*") if recursive else directory.glob("*")
    results: list[str] = []
    for file_path in entries:
        if not file_path.is_file():
            continue
        results.append(file_path.relative_to(directory).as_posix())

    return sorted(results)


def read_text_file(
    path: str,
    cancel_event: threading.Event | None = None,
    timeout: float = 3.0,
    interval: float = 0.5,
) -> str:
    """Read a descriptor file, retrying transient OS errors.

    Args:
        path: File to read
        cancel_event: Abandons the read with OperationCancelled once set
        timeout: Maximum time to keep retrying (seconds)
        interval: Delay between attempts (seconds)

    Raises:
        OSError: If the file stays unreadable after retries
        OperationCancelled: If cancel_event is set
    """
    if cancel_event is not None and cancel_event.is_set():
        raise OperationCancelled(f"Cancelled before reading {to_posix(path)}")

    # A missing file is not transient
    if not Path(path).exists():
        raise FileNotFoundError(f"No such file: {path}")

    @retry(
        timeout=timeout,
        interval=interval,
        log_interval=timeout,
        exceptions=(OSError,),
        cancel_event=cancel_event,
    )
    def read_file() -> str:
        return Path(path).read_text(encoding="utf-8", errors="replace")

    return read_file()
