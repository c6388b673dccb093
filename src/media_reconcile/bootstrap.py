"""Bootstrap canonical show metadata from sidecar .nfo descriptors.

Used when a media folder has no catalog identifier yet. The folder-level
descriptor yields the show skeleton; every per-item descriptor contributes one
episode and, when its video can be located, one file mapping. The result is
returned to the caller and never persisted here.
"""

import dataclasses
import logging
import threading
from collections.abc import Callable

from media_reconcile.errors import DescriptorParseError, OperationCancelled
from media_reconcile.file_mappings import upsert_mapping
from media_reconcile.file_matcher import match_associated_files
from media_reconcile.models import (
    CanonicalSeason,
    CanonicalShow,
    FileMapping,
    MediaFolder,
)
from media_reconcile.nfo_utils import (
    extract_season_names,
    extract_season_posters,
    is_folder_descriptor,
    is_nfo_file,
    parse_descriptor,
    parse_episode_descriptor,
    show_from_element,
)
from media_reconcile.path_utils import (
    DEFAULT_EXTENSION_TABLE,
    ExtensionTable,
    absolute_in_folder,
    basename,
    relative_to_folder,
    to_posix,
)

logger = logging.getLogger(__name__)

ReadTextFile = Callable[[str, threading.Event | None], str]


def _check_cancelled(cancel_event: threading.Event | None, folder_path: str) -> None:
    if cancel_event is not None and cancel_event.is_set():
        logger.info(f"Bootstrap cancelled, discarding partial metadata: {folder_path}")
        raise OperationCancelled(f"Bootstrap of {folder_path} was cancelled")


def find_folder_descriptor(
    folder: MediaFolder, descriptor_name: str = "tvshow.nfo"
) -> str | None:
    """Return the folder-level descriptor from the file list, if any.

    A descriptor directly inside the folder wins over one in a subfolder.
    """
    candidates = [
        f for f in folder.files or [] if is_folder_descriptor(f, descriptor_name)
    ]
    if not candidates:
        return None
    candidates.sort(key=lambda f: relative_to_folder(folder.path, f).count("/"))
    return candidates[0]


def resolve_original_filename(files: list[str], original_filename: str) -> str | None:
    """Find the file-list entry whose path ends with original_filename."""
    wanted = to_posix(original_filename).lstrip("/")
    if not wanted:
        return None
    for file_path in files:
        normalized = to_posix(file_path)
        if normalized == wanted or normalized.endswith("/" + wanted):
            return file_path
    return None


def _video_beside_descriptor(
    folder: MediaFolder, descriptor_path: str, extension_table: ExtensionTable
) -> str | None:
    """Return the video sharing the descriptor's base name, if any."""
    for tagged in match_associated_files(
        folder.path, folder.files, descriptor_path, extension_table
    ):
        if tagged.kind == "video":
            return tagged.path
    return None


def bootstrap_from_descriptors(
    folder: MediaFolder,
    read_text_file: ReadTextFile,
    cancel_event: threading.Event | None = None,
    descriptor_name: str = "tvshow.nfo",
    extension_table: ExtensionTable = DEFAULT_EXTENSION_TABLE,
) -> MediaFolder | None:
    """Build canonical metadata for a folder from its .nfo files.

    Args:
        folder: Media folder with its file list loaded
        read_text_file: Collaborator returning a descriptor's text
        cancel_event: When set, the bootstrap stops and nothing is returned
        descriptor_name: File name of the folder-level descriptor
        extension_table: Table used to locate videos beside descriptors

    Returns:
        A new MediaFolder carrying the show and resolved mappings, the folder
        unchanged if it already has a show, or None if it is not recognizable

    Raises:
        OperationCancelled: If cancel_event was set during the bootstrap
    """
    if folder.show is not None:
        logger.debug(f"Folder already has show metadata: {folder.path}")
        return folder

    descriptor = find_folder_descriptor(folder, descriptor_name)
    if descriptor is None:
        logger.debug(f"No {descriptor_name} found in {folder.path}")
        return None

    _check_cancelled(cancel_event, folder.path)
    descriptor_path = absolute_in_folder(folder.path, descriptor)
    try:
        show_root = parse_descriptor(
            read_text_file(descriptor_path, cancel_event), descriptor_path
        )
        show = show_from_element(show_root, descriptor_path)
    except (OSError, DescriptorParseError) as e:
        logger.error(f"Folder descriptor unusable, folder not recognizable: {e}")
        return None

    season_names = extract_season_names(show_root)
    season_posters = extract_season_posters(show_root)
    logger.info(f"Recognized show '{show.name}' (id {show.id}) from {descriptor_path}")

    episode_descriptors = [
        f
        for f in folder.files or []
        if is_nfo_file(f) and not is_folder_descriptor(f, descriptor_name)
    ]
    if not episode_descriptors:
        # Folder identity is known, episodes are not
        return dataclasses.replace(folder, show=show)

    seasons: dict[int, CanonicalSeason] = {}
    mappings: list[FileMapping] = list(folder.mappings)

    for relative_path in episode_descriptors:
        _check_cancelled(cancel_event, folder.path)
        episode_path = absolute_in_folder(folder.path, relative_path)

        try:
            parsed = parse_episode_descriptor(
                read_text_file(episode_path, cancel_event), episode_path
            )
        except (OSError, DescriptorParseError) as e:
            logger.error(f"Skipping episode descriptor {episode_path}: {e}")
            continue

        if parsed is None:
            continue

        episode = parsed.episode
        season = seasons.get(episode.season_number)
        if season is None:
            season = CanonicalSeason(
                season_number=episode.season_number,
                name=season_names.get(episode.season_number, ""),
                poster_path=season_posters.get(episode.season_number, ""),
            )
            seasons[episode.season_number] = season

        existing = season.find_episode(episode.episode_number)
        if existing is not None:
            logger.warning(
                f"Duplicate descriptor for S{episode.season_number}"
                f"E{episode.episode_number}, using {basename(episode_path)}"
            )
            season.episodes.remove(existing)
        season.episodes.append(episode)

        video_path = None
        if parsed.original_filename:
            matched = resolve_original_filename(
                folder.files or [], parsed.original_filename
            )
            if matched is not None:
                video_path = absolute_in_folder(folder.path, matched)
            else:
                logger.warning(
                    f"Original file '{parsed.original_filename}' from "
                    f"{episode_path} not found in {folder.path}"
                )
        if video_path is None:
            video_path = _video_beside_descriptor(
                folder, relative_path, extension_table
            )

        if video_path is None:
            logger.warning(f"No video file resolved for descriptor {episode_path}")
            continue

        mappings = upsert_mapping(
            mappings,
            FileMapping(
                absolute_path=video_path,
                season_number=episode.season_number,
                episode_number=episode.episode_number,
            ),
        )

    for season in seasons.values():
        season.episodes.sort(key=lambda e: e.episode_number)
    show.seasons = sorted(seasons.values(), key=lambda s: s.season_number)

    logger.info(
        f"Bootstrapped {sum(len(s.episodes) for s in show.seasons)} episode(s) "
        f"and {len(mappings)} file mapping(s) for {folder.path}"
    )
    return dataclasses.replace(folder, show=show, mappings=mappings)
