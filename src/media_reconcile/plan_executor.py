"""Apply approved plans through injected filesystem primitives.

Nothing here touches the disk directly: renames go through an
``execute_rename(folder, from_path, to_path)`` callable that raises on failure.
"""

import logging
from collections.abc import Callable, Iterable

from media_reconcile.file_mappings import apply_recognize_items, apply_renames
from media_reconcile.models import (
    ExecutionSummary,
    FileMapping,
    RecognizeItem,
    RenameItem,
    SeasonModel,
)
from media_reconcile.path_utils import absolute_in_folder, relative_to_folder
from media_reconcile.validations import validate_rename_plan

logger = logging.getLogger(__name__)

ExecuteRename = Callable[[str, str, str], object]


def collect_renames(seasons: Iterable[SeasonModel]) -> list[RenameItem]:
    """Derive the rename list from a previewed season tree.

    Videos come first so a failed video rename is reported before its
    subtitles and other siblings. Files with an unchanged new path are kept
    so execution can count them as skipped.
    """
    videos: list[RenameItem] = []
    others: list[RenameItem] = []
    for season in seasons:
        for episode in season.episodes:
            for tagged in episode.files:
                if tagged.new_path is None:
                    continue
                item = RenameItem(from_path=tagged.path, to_path=tagged.new_path)
                (videos if tagged.kind == "video" else others).append(item)
    return [*videos, *others]


def execute_renames(
    folder_path: str,
    renames: list[RenameItem],
    execute_rename: ExecuteRename,
    files: list[str] | None = None,
) -> ExecutionSummary:
    """Validate the plan, then run each rename independently.

    Args:
        folder_path: Absolute POSIX path of the media folder
        renames: Plan items, usually from collect_renames
        execute_rename: Filesystem primitive, raises on failure
        files: Current folder file list used for existence checks

    Returns:
        Aggregated outcome; a rejected plan reports every item as failed
    """
    summary = ExecutionSummary()
    pending: list[RenameItem] = []
    for item in renames:
        if item.from_path == item.to_path:
            summary.skipped += 1
        else:
            pending.append(item)

    errors = validate_rename_plan(folder_path, files, pending)
    if errors:
        for error in errors:
            logger.error(f"Rename plan rejected: {error}")
        summary.failed = len(pending)
        summary.errors.extend(errors)
        return summary

    for item in pending:
        try:
            execute_rename(folder_path, item.from_path, item.to_path)
        except Exception as e:
            logger.error(f"Failed to rename {item.from_path} -> {item.to_path}: {e}")
            summary.failed += 1
            summary.errors.append(
                f"Failed to rename {item.from_path} to {item.to_path}: {e}"
            )
            continue

        summary.succeeded += 1
        summary.renamed[item.from_path] = item.to_path

    logger.info(f"Rename plan for {folder_path}: {summary}")
    return summary


def apply_recognize_plan(
    mappings: Iterable[FileMapping], items: Iterable[RecognizeItem]
) -> list[FileMapping]:
    """Fold recognized items into the mapping set, last write wins."""
    items = list(items)
    result = apply_recognize_items(mappings, items)
    logger.info(f"Applied {len(items)} recognized item(s), {len(result)} mapping(s)")
    return result


def apply_renames_to_mappings(
    mappings: Iterable[FileMapping], renamed: dict[str, str]
) -> list[FileMapping]:
    return apply_renames(mappings, renamed)


def apply_renames_to_files(
    folder_path: str, files: list[str], renamed: dict[str, str]
) -> list[str]:
    """Replace renamed entries in a file list, keeping each entry's form.

    Relative entries stay relative to the folder and absolute ones stay
    absolute.
    """
    result = []
    for file_path in files:
        absolute = absolute_in_folder(folder_path, file_path)
        new_path = renamed.get(absolute)
        if new_path is None:
            result.append(file_path)
        elif file_path.startswith("/"):
            result.append(new_path)
        else:
            result.append(relative_to_folder(folder_path, new_path))
    return result
