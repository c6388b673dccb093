"""Checks run over a rename plan before any file is touched.

Every check returns a list of human-readable errors; an empty list means the
plan passed that check.
"""

from collections import Counter

from media_reconcile.models import RenameItem
from media_reconcile.path_utils import (
    absolute_in_folder,
    is_abnormal_path,
    is_within_folder,
)


def _absolute(folder_path: str, files: list[str]) -> set[str]:
    return {absolute_in_folder(folder_path, f) for f in files}


def check_abnormal_paths(renames: list[RenameItem]) -> list[str]:
    errors = []
    for item in renames:
        for path in (item.from_path, item.to_path):
            if is_abnormal_path(path):
                errors.append(f"Abnormal path: {path}")
    return errors


def check_within_folder(folder_path: str, renames: list[RenameItem]) -> list[str]:
    errors = []
    for item in renames:
        for path in (item.from_path, item.to_path):
            if not is_within_folder(folder_path, path):
                errors.append(f"Path is not within media folder {folder_path}: {path}")
    return errors


def check_duplicated_paths(renames: list[RenameItem]) -> list[str]:
    """Reject two items renaming the same file or onto the same target."""
    errors = []
    sources = Counter(item.from_path for item in renames)
    targets = Counter(item.to_path for item in renames)
    for path, count in sources.items():
        if count > 1:
            errors.append(f"Duplicated source path ({count}x): {path}")
    for path, count in targets.items():
        if count > 1:
            errors.append(f"Duplicated destination path ({count}x): {path}")
    return errors


def check_identical_paths(renames: list[RenameItem]) -> list[str]:
    return [
        f"Source and destination are identical: {item.from_path}"
        for item in renames
        if item.from_path == item.to_path
    ]


def check_chaining_conflicts(renames: list[RenameItem]) -> list[str]:
    """Reject a destination that is also the source of another item.

    Such chains depend on execution order and can overwrite a file before it
    has been moved.
    """
    sources = {item.from_path for item in renames}
    return [
        f"Destination is also a rename source: {item.to_path}"
        for item in renames
        if item.to_path in sources and item.to_path != item.from_path
    ]


def check_source_exists(
    folder_path: str, files: list[str], renames: list[RenameItem]
) -> list[str]:
    existing = _absolute(folder_path, files)
    return [
        f"Source file does not exist: {item.from_path}"
        for item in renames
        if item.from_path not in existing
    ]


def check_destination_free(
    folder_path: str, files: list[str], renames: list[RenameItem]
) -> list[str]:
    existing = _absolute(folder_path, files)
    return [
        f"Destination file already exists: {item.to_path}"
        for item in renames
        if item.to_path in existing and item.to_path != item.from_path
    ]


def validate_rename_plan(
    folder_path: str, files: list[str] | None, renames: list[RenameItem]
) -> list[str]:
    """Run every rename check and collect all errors.

    Args:
        folder_path: Absolute POSIX path of the media folder
        files: Current folder file list; existence checks are skipped if None
        renames: Plan items with absolute POSIX paths

    Returns:
        All errors found, empty when the plan may be executed
    """
    errors = [
        *check_abnormal_paths(renames),
        *check_within_folder(folder_path, renames),
        *check_duplicated_paths(renames),
        *check_identical_paths(renames),
        *check_chaining_conflicts(renames),
    ]
    if files is not None:
        errors.extend(check_source_exists(folder_path, files, renames))
        errors.extend(check_destination_free(folder_path, files, renames))
    return errors
