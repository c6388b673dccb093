"""In-memory registry of pending batch tasks (rename and recognize plans).

Tasks move ``pending -> finalized`` exactly once. Callers only ever hold task
ids; the registry hands out copies so no caller can mutate a live task.
"""

import dataclasses
import logging
import threading
import uuid
from collections.abc import Callable

from media_reconcile.errors import (
    EmptyTaskError,
    TaskNotFoundError,
    TaskValidationError,
)
from media_reconcile.models import (
    BatchTask,
    RecognizeItem,
    RenameItem,
    TaskItem,
    TaskKind,
)
from media_reconcile.path_utils import (
    DEFAULT_EXTENSION_TABLE,
    ExtensionTable,
    absolute_in_folder,
    is_abnormal_path,
    is_within_folder,
    to_posix,
)

logger = logging.getLogger(__name__)

TASK_KINDS: tuple[TaskKind, ...] = ("rename", "recognize")

_EMPTY_TASK_MESSAGES: dict[TaskKind, str] = {
    "rename": "No files in task",
    "recognize": "No recognized files in task",
}


def _copy_task(task: BatchTask) -> BatchTask:
    return dataclasses.replace(task, items=list(task.items))


def _is_index(value: object) -> bool:
    # bool is an int subclass but never a valid season or episode number
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def _is_path(value: object) -> bool:
    return isinstance(value, str) and bool(value.strip())


class TaskRegistry:
    """Store of pending tasks keyed by opaque id."""

    def __init__(self, extension_table: ExtensionTable = DEFAULT_EXTENSION_TABLE):
        self.extension_table = extension_table
        self._tasks: dict[str, BatchTask] = {}
        self._lock = threading.Lock()

    def _new_id(self) -> str:
        task_id = str(uuid.uuid4())
        while task_id in self._tasks:
            task_id = str(uuid.uuid4())
        return task_id

    def _get_live(self, task_id: str) -> BatchTask:
        task = self._tasks.get(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    def begin(
        self, kind: TaskKind, media_folder_path: str, video_only: bool = True
    ) -> str:
        """Create an empty pending task and return its id.

        Raises:
            TaskValidationError: If the folder path is empty or kind is unknown
        """
        if kind not in TASK_KINDS:
            raise TaskValidationError(f"Unknown task kind: {kind}")
        if not _is_path(media_folder_path):
            raise TaskValidationError("Invalid path")

        with self._lock:
            task_id = self._new_id()
            self._tasks[task_id] = BatchTask(
                id=task_id,
                kind=kind,
                media_folder_path=to_posix(media_folder_path.strip()),
                video_only=video_only,
            )

        logger.info(f"Began {kind} task {task_id} for {media_folder_path}")
        return task_id

    def _validate_rename(self, task: BatchTask, item: RenameItem) -> RenameItem:
        if not _is_path(item.from_path) or not _is_path(item.to_path):
            raise TaskValidationError("Rename item needs both from and to paths")

        from_path = to_posix(item.from_path)
        to_path = to_posix(item.to_path)
        for path in (from_path, to_path):
            if is_abnormal_path(path):
                raise TaskValidationError(f"Abnormal path: {path}")

        from_path = absolute_in_folder(task.media_folder_path, from_path)
        to_path = absolute_in_folder(task.media_folder_path, to_path)
        for path in (from_path, to_path):
            if not is_within_folder(task.media_folder_path, path):
                raise TaskValidationError(
                    f"Path is not within media folder {task.media_folder_path}: "
                    f"{path}"
                )
            if task.video_only and not self.extension_table.is_video(path):
                raise TaskValidationError(f"Not a video file: {path}")

        return RenameItem(from_path=from_path, to_path=to_path)

    def _validate_recognize(
        self, task: BatchTask, item: RecognizeItem
    ) -> RecognizeItem:
        if not _is_index(item.season):
            raise TaskValidationError(f"Invalid season number: {item.season!r}")
        if not _is_index(item.episode):
            raise TaskValidationError(f"Invalid episode number: {item.episode!r}")
        if not _is_path(item.path):
            raise TaskValidationError("Recognize item needs a path")

        path = to_posix(item.path.strip())
        if is_abnormal_path(path):
            raise TaskValidationError(f"Abnormal path: {path}")

        return RecognizeItem(
            season=item.season,
            episode=item.episode,
            path=absolute_in_folder(task.media_folder_path, path),
        )

    def add(self, task_id: str, item: TaskItem) -> int:
        """Validate and append one item; the task is untouched on failure.

        Duplicate items are kept, their order is meaningful downstream.

        Returns:
            The task's item count after the append

        Raises:
            TaskNotFoundError: If no pending task has this id
            TaskValidationError: If the item does not fit the task
        """
        with self._lock:
            task = self._get_live(task_id)

            normalized: TaskItem
            if task.kind == "rename":
                if not isinstance(item, RenameItem):
                    raise TaskValidationError("Rename tasks only accept rename items")
                normalized = self._validate_rename(task, item)
            else:
                if not isinstance(item, RecognizeItem):
                    raise TaskValidationError(
                        "Recognize tasks only accept recognize items"
                    )
                normalized = self._validate_recognize(task, item)

            task.items.append(normalized)
            count = len(task.items)

        logger.debug(f"Added item to task {task_id}: {normalized}")
        return count

    def end(
        self,
        task_id: str,
        on_finalize: Callable[[BatchTask], None] | None = None,
    ) -> BatchTask:
        """Finalize a task and remove it from the registry.

        Args:
            task_id: Id returned by begin
            on_finalize: Notified with the finalized task before it is removed;
                if it raises, the task stays pending and unchanged

        Returns:
            The finalized task

        Raises:
            TaskNotFoundError: If the id is unknown or already finalized
            EmptyTaskError: If the task has no items
        """
        with self._lock:
            task = self._get_live(task_id)
            if not task.items:
                raise EmptyTaskError(_EMPTY_TASK_MESSAGES[task.kind])

            finalized = dataclasses.replace(
                task, status="finalized", items=list(task.items)
            )
            if on_finalize is not None:
                on_finalize(finalized)
            del self._tasks[task_id]

        logger.info(
            f"Finalized {finalized.kind} task {task_id} "
            f"with {len(finalized.items)} item(s)"
        )
        return finalized

    def get(self, task_id: str) -> BatchTask:
        """Return a copy of a pending task.

        Raises:
            TaskNotFoundError: If no pending task has this id
        """
        with self._lock:
            return _copy_task(self._get_live(task_id))

    def pending_tasks(self, kind: TaskKind | None = None) -> list[BatchTask]:
        """Return copies of pending tasks, optionally filtered by kind."""
        with self._lock:
            return [
                _copy_task(task)
                for task in self._tasks.values()
                if kind is None or task.kind == kind
            ]

    def discard(self, task_id: str) -> BatchTask:
        """Drop a pending task without finalizing it.

        Raises:
            TaskNotFoundError: If no pending task has this id
        """
        with self._lock:
            task = self._get_live(task_id)
            del self._tasks[task_id]
        logger.info(f"Discarded {task.kind} task {task_id}")
        return task

    def __len__(self) -> int:
        return len(self._tasks)
