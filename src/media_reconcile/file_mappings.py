"""Operations on the persisted file-to-episode mapping set.

A mapping set never holds two entries for the same (season, episode) pair or
for the same absolute path. Every function here returns a new list.
"""

import logging
from collections.abc import Iterable

from media_reconcile.models import FileMapping, RecognizeItem
from media_reconcile.path_utils import to_posix

logger = logging.getLogger(__name__)


def upsert_mapping(
    mappings: Iterable[FileMapping], mapping: FileMapping
) -> list[FileMapping]:
    """Insert mapping, dropping any entry that collides on path or episode.

    Args:
        mappings: Existing mapping set
        mapping: Mapping to insert (last write wins on both keys)

    Returns:
        New mapping list with mapping appended
    """
    result: list[FileMapping] = []
    for existing in mappings:
        same_path = existing.absolute_path == mapping.absolute_path
        same_episode = (
            existing.season_number == mapping.season_number
            and existing.episode_number == mapping.episode_number
        )
        if same_path or same_episode:
            logger.debug(
                f"Replacing mapping {existing.absolute_path} "
                f"(S{existing.season_number}E{existing.episode_number}) with "
                f"{mapping.absolute_path} "
                f"(S{mapping.season_number}E{mapping.episode_number})"
            )
            continue
        result.append(existing)
    result.append(mapping)
    return result


def find_by_path(mappings: Iterable[FileMapping], path: str) -> FileMapping | None:
    path = to_posix(path)
    for mapping in mappings:
        if mapping.absolute_path == path:
            return mapping
    return None


def find_by_episode(
    mappings: Iterable[FileMapping], season_number: int, episode_number: int
) -> FileMapping | None:
    for mapping in mappings:
        if (
            mapping.season_number == season_number
            and mapping.episode_number == episode_number
        ):
            return mapping
    return None


def apply_recognize_items(
    mappings: Iterable[FileMapping], items: Iterable[RecognizeItem]
) -> list[FileMapping]:
    """Fold recognized items into the mapping set in item order."""
    result = list(mappings)
    for item in items:
        result = upsert_mapping(
            result,
            FileMapping(
                absolute_path=to_posix(item.path),
                season_number=item.season,
                episode_number=item.episode,
            ),
        )
    return result


def apply_renames(
    mappings: Iterable[FileMapping], renames: dict[str, str]
) -> list[FileMapping]:
    """Move mappings whose path was renamed to the new path.

    Args:
        mappings: Existing mapping set
        renames: Old absolute path -> new absolute path

    Returns:
        New mapping list, still free of path and episode collisions
    """
    normalized = {to_posix(old): to_posix(new) for old, new in renames.items()}
    result: list[FileMapping] = []
    for mapping in mappings:
        new_path = normalized.get(mapping.absolute_path)
        if new_path is not None:
            mapping = FileMapping(
                absolute_path=new_path,
                season_number=mapping.season_number,
                episode_number=mapping.episode_number,
            )
        result = upsert_mapping(result, mapping)
    return result
