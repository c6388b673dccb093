"""Persisted media folder metadata backed by a diskcache Cache."""

import dataclasses
import logging

from diskcache import Cache  # type: ignore[import-untyped]

from media_reconcile.models import MediaFolder
from media_reconcile.path_utils import to_posix

logger = logging.getLogger(__name__)


class MediaMetadataStore:
    """Stores show metadata and file mappings per media folder.

    The file list is volatile and is never persisted; folders come back with
    ``files=None`` and are refreshed by the caller.
    """

    def __init__(self, cache: Cache):
        self.cache = cache

    @staticmethod
    def _key(folder_path: str) -> str:
        return f"media_folder:{to_posix(folder_path)}"

    def get(self, folder_path: str) -> MediaFolder | None:
        folder = self.cache.get(self._key(folder_path))
        if folder is None:
            return None
        if not isinstance(folder, MediaFolder):
            logger.warning(f"Ignoring unexpected cache entry for {folder_path}")
            return None
        return folder

    def put(self, folder: MediaFolder) -> None:
        stored = dataclasses.replace(
            folder,
            path=to_posix(folder.path),
            files=None,
            mappings=list(folder.mappings),
        )
        self.cache.set(self._key(folder.path), stored)
        logger.debug(
            f"Stored metadata for {stored.path} ({len(stored.mappings)} mapping(s))"
        )

    def delete(self, folder_path: str) -> bool:
        """Remove a folder's metadata; returns False if nothing was stored."""
        return bool(self.cache.delete(self._key(folder_path)))

    def __contains__(self, folder_path: object) -> bool:
        if not isinstance(folder_path, str):
            return False
        return self._key(folder_path) in self.cache

    def close(self) -> None:
        self.cache.close()
