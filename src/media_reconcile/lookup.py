"""Rule-based lookup of episode video files by file name."""

import re

from media_reconcile.models import CanonicalShow, RecognizeItem, Resolver
from media_reconcile.path_utils import (
    DEFAULT_EXTENSION_TABLE,
    ExtensionTable,
    basename,
)

_TAGGED_ID = re.compile(r"[\[{]tmdb(?:id)?[-=](\d+)[\]}]", re.IGNORECASE)
_TRAILING_ID = re.compile(r"\((\d+)\)\s*$")
_YEAR = re.compile(r"(?:19|20)\d{2}")


def episode_keyword(season_number: int, episode_number: int) -> str:
    """Return the SxxEyy keyword for an episode (e.g. "S01E02")."""
    return f"S{season_number:02d}E{episode_number:02d}"


def lookup(
    files: list[str],
    season_number: int,
    episode_number: int,
    extension_table: ExtensionTable = DEFAULT_EXTENSION_TABLE,
) -> str | None:
    """Find the video file for an episode by its SxxEyy keyword.

    Args:
        files: Folder file list in POSIX format
        season_number: Season number to look for
        episode_number: Episode number to look for
        extension_table: Table deciding which files are videos

    Returns:
        First video file whose name contains the keyword (case-insensitive),
        or None
    """
    keyword = episode_keyword(season_number, episode_number)
    for file_path in files:
        if not extension_table.is_video(file_path):
            continue
        if keyword in basename(file_path).upper():
            return file_path
    return None


def recognize_media_files(
    show: CanonicalShow | None,
    files: list[str] | None,
    resolver: Resolver = lookup,
) -> list[RecognizeItem]:
    """Turn resolver answers for every canonical episode into recognize items.

    Episodes the resolver cannot place are left out. The items can be staged
    in a recognize task and confirmed like any hand-made plan.
    """
    if show is None or not files:
        return []

    items = []
    for season in show.seasons:
        for episode in season.episodes:
            path = resolver(files, season.season_number, episode.episode_number)
            if path:
                items.append(
                    RecognizeItem(
                        season=season.season_number,
                        episode=episode.episode_number,
                        path=path,
                    )
                )
    return items


def catalog_id_from_folder_name(folder_name: str) -> int | None:
    """Extract a catalog id embedded in a folder name.

    Recognizes "{tmdb-1396}", "[tmdbid=1396]" style tags and a trailing
    "(1396)". A trailing four-digit value between 1900 and 2099 is read as a
    release year, not an id.
    """
    match = _TAGGED_ID.search(folder_name)
    if match is None:
        match = _TRAILING_ID.search(folder_name)
        if match is not None and _YEAR.fullmatch(match.group(1)):
            return None
    if match is None:
        return None

    catalog_id = int(match.group(1))
    return catalog_id if catalog_id > 0 else None
