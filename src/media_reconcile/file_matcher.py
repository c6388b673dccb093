"""Find the files that belong to an anchor (video) file in a media folder."""

import logging

from media_reconcile.models import TaggedFile
from media_reconcile.path_utils import (
    DEFAULT_EXTENSION_TABLE,
    ExtensionTable,
    absolute_in_folder,
    relative_to_folder,
    strip_extension,
    tag_to_kind,
)

logger = logging.getLogger(__name__)


def match_associated_files(
    media_folder_path: str,
    files: list[str] | None,
    anchor_path: str,
    extension_table: ExtensionTable = DEFAULT_EXTENSION_TABLE,
) -> list[TaggedFile]:
    """Return every file sharing the anchor's relative base name.

    A candidate matches when its folder-relative path without the final
    extension equals the anchor's. Matching is name based: the anchor does not
    have to appear in the file list, and it is never part of the result.

    Args:
        media_folder_path: Absolute POSIX path of the media folder
        files: Folder file list, relative or absolute (None/empty allowed)
        anchor_path: Path of the anchor file, relative or absolute
        extension_table: Extension -> tag table used to classify matches

    Returns:
        Tagged files in file-list order, with absolute paths and no new_path
    """
    if not files:
        return []

    anchor_relative = relative_to_folder(media_folder_path, anchor_path)
    anchor_key = strip_extension(anchor_relative)

    matches: list[TaggedFile] = []
    seen: set[str] = set()
    for file_path in files:
        relative = relative_to_folder(media_folder_path, file_path)
        if relative == anchor_relative or relative in seen:
            continue
        if strip_extension(relative) != anchor_key:
            continue

        seen.add(relative)
        kind = tag_to_kind(extension_table.tag_of(relative))
        matches.append(
            TaggedFile(kind=kind, path=absolute_in_folder(media_folder_path, relative))
        )

    logger.debug(f"Matched {len(matches)} associated file(s) for {anchor_path}")
    return matches
