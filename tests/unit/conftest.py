"""Unit test specific configuration and fixtures."""

import time
from collections.abc import Generator
from pathlib import Path
from unittest.mock import patch

import pytest
from diskcache import Cache  # type: ignore[import-untyped]

from media_reconcile.metadata_store import MediaMetadataStore
from media_reconcile.models import FileMapping, MediaFolder
from media_reconcile.task_registry import TaskRegistry


@pytest.fixture(autouse=True)
def patch_time_sleep() -> Generator[None, None, None]:
    """Patch time.sleep to be instant for retry logic, but preserve test timing.

    This speeds up retry logic while allowing tests that need real timing to work.
    """
    original_sleep = time.sleep

    def selective_sleep(duration: float) -> None:
        # Allow short sleeps used in test timing logic
        if duration >= 0.05:
            return original_sleep(duration)
        # Make very short sleeps (retry intervals) instant
        return None

    with patch.object(time, "sleep", side_effect=selective_sleep):
        yield


@pytest.fixture
def registry() -> TaskRegistry:
    return TaskRegistry()


@pytest.fixture
def metadata_store(tmp_path: Path) -> Generator[MediaMetadataStore, None, None]:
    """Metadata store over a temporary diskcache directory."""
    store = MediaMetadataStore(Cache(str(tmp_path / "store")))
    yield store
    store.close()


@pytest.fixture
def show_folder_files() -> list[str]:
    """File list of a small show folder, relative to the folder."""
    return [
        "Season 01/S01E01.mkv",
        "Season 01/S01E01.srt",
        "Season 01/S01E01.en.forced.srt",
        "Season 01/S01E01.nfo",
        "Season 01/S01E01.jpg",
        "Season 01/S01E02.mkv",
        "Season 01/S01E02.mka",
        "Season 02/S02E01.mp4",
        "tvshow.nfo",
        "poster.jpg",
    ]


@pytest.fixture
def show_folder(show_folder_files: list[str]) -> MediaFolder:
    return MediaFolder(
        path="/media/Breaking Bad",
        files=show_folder_files,
        mappings=[
            FileMapping("/media/Breaking Bad/Season 01/S01E01.mkv", 1, 1),
            FileMapping("/media/Breaking Bad/Season 01/S01E02.mkv", 1, 2),
        ],
    )
