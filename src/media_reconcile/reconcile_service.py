"""Transport-agnostic operation handlers over the reconciliation engine.

Handlers turn engine exceptions into ``TaskResult``/``ServiceResult`` values so
callers can retry or tolerate failures without exception handling. Only
``OperationCancelled`` propagates.
"""

import dataclasses
import logging
import threading
from collections.abc import Callable

from diskcache import Cache  # type: ignore[import-untyped]

from media_reconcile import file_utils
from media_reconcile.bootstrap import ReadTextFile, bootstrap_from_descriptors
from media_reconcile.config import Settings
from media_reconcile.errors import (
    EmptyTaskError,
    OperationCancelled,
    TaskNotFoundError,
    TaskValidationError,
)
from media_reconcile.file_matcher import match_associated_files
from media_reconcile.metadata_store import MediaMetadataStore
from media_reconcile.models import (
    BatchTask,
    CanonicalShow,
    MediaFolder,
    RecognizeItem,
    RecognizePlanSource,
    RenameItem,
    RenamePlanSource,
    SeasonModel,
    SeasonSource,
    ServiceResult,
    TaggedFile,
    TaskItem,
    TaskKind,
    TaskResult,
)
from media_reconcile.lookup import (
    catalog_id_from_folder_name,
    lookup,
    recognize_media_files,
)
from media_reconcile.path_utils import basename, to_posix
from media_reconcile.plan_executor import (
    ExecuteRename,
    apply_recognize_plan,
    apply_renames_to_files,
    apply_renames_to_mappings,
    collect_renames,
    execute_renames,
)
from media_reconcile.season_builder import build_season_models
from media_reconcile.task_registry import TaskRegistry

logger = logging.getLogger(__name__)

ListFiles = Callable[[str], list[str]]
ResolveCatalogEntry = Callable[[int], CanonicalShow]
PlanReadyNotifier = Callable[[BatchTask], None]

TASK_NOT_FOUND = "Task not found"


class ReconcileService:
    """Operation handlers with constructor-injected collaborators."""

    def __init__(
        self,
        settings: Settings,
        registry: TaskRegistry | None = None,
        store: MediaMetadataStore | None = None,
        list_files: ListFiles = file_utils.list_files,
        read_text_file: ReadTextFile | None = None,
        resolve_catalog_entry: ResolveCatalogEntry | None = None,
        on_plan_ready: PlanReadyNotifier | None = None,
    ):
        self.settings = settings
        self.extension_table = settings.extension_table()
        self.registry = (
            registry if registry is not None else TaskRegistry(self.extension_table)
        )
        self.store = (
            store
            if store is not None
            else MediaMetadataStore(Cache(str(settings.cache_dir)))
        )
        self.list_files = list_files
        self.read_text_file = read_text_file or self._read_descriptor
        self.resolve_catalog_entry = resolve_catalog_entry
        self.on_plan_ready = on_plan_ready

    def close(self) -> None:
        """Close the metadata store."""
        self.store.close()

    def _read_descriptor(
        self, path: str, cancel_event: threading.Event | None = None
    ) -> str:
        return file_utils.read_text_file(
            path,
            cancel_event,
            timeout=self.settings.descriptor_read_timeout_seconds,
            interval=self.settings.descriptor_read_retry_interval_seconds,
        )

    def _safe_list_files(self, folder_path: str) -> list[str] | None:
        try:
            return self.list_files(folder_path)
        except OSError as e:
            logger.error(f"Failed to list files in {folder_path}: {e}")
            return None

    # Task lifecycle

    def begin_task(
        self, kind: TaskKind, folder_path: str, video_only: bool = True
    ) -> TaskResult:
        try:
            task_id = self.registry.begin(kind, folder_path, video_only=video_only)
        except TaskValidationError as e:
            return TaskResult(success=False, error=str(e))
        except Exception as e:
            logger.exception(f"Failed to begin {kind} task for {folder_path!r}")
            return TaskResult(success=False, error=f"Failed to begin task: {e}")
        return TaskResult(success=True, task_id=task_id)

    def add_item(self, task_id: str, item: TaskItem) -> TaskResult:
        try:
            count = self.registry.add(task_id, item)
        except TaskNotFoundError:
            return TaskResult(success=False, task_id=task_id, error=TASK_NOT_FOUND)
        except TaskValidationError as e:
            return TaskResult(success=False, task_id=task_id, error=str(e))
        except Exception as e:
            logger.exception(f"Failed to add item to task {task_id}")
            return TaskResult(
                success=False, task_id=task_id, error=f"Failed to add item: {e}"
            )
        return TaskResult(success=True, task_id=task_id, item_count=count)

    def end_task(self, task_id: str) -> TaskResult:
        """Finalize a task and hand the plan to the notifier.

        Ending an unknown or already finalized task is reported as
        "Task not found", so retrying a finalize is safe.
        """
        try:
            task = self.registry.end(task_id, on_finalize=self.on_plan_ready)
        except TaskNotFoundError:
            return TaskResult(success=False, task_id=task_id, error=TASK_NOT_FOUND)
        except EmptyTaskError as e:
            return TaskResult(success=False, task_id=task_id, error=str(e))
        except OperationCancelled:
            raise
        except Exception as e:
            logger.exception(f"Failed to finalize task {task_id}")
            return TaskResult(
                success=False, task_id=task_id, error=f"Failed to finalize task: {e}"
            )

        return TaskResult(
            success=True,
            task_id=task_id,
            item_count=len(task.items),
            items=task.items,
        )

    def pending_tasks(self, kind: TaskKind | None = None) -> list[BatchTask]:
        return self.registry.pending_tasks(kind)

    def discard_task(self, task_id: str) -> TaskResult:
        try:
            task = self.registry.discard(task_id)
        except TaskNotFoundError:
            return TaskResult(success=False, task_id=task_id, error=TASK_NOT_FOUND)
        return TaskResult(success=True, task_id=task_id, item_count=len(task.items))

    # Reconciliation

    def match_associated_files(
        self, folder_path: str, files: list[str] | None, anchor_path: str
    ) -> list[TaggedFile]:
        return match_associated_files(
            to_posix(folder_path), files, anchor_path, self.extension_table
        )

    def build_season_models(
        self,
        show: CanonicalShow | None,
        folder_path: str,
        files: list[str] | None,
        source: SeasonSource,
        cancel_event: threading.Event | None = None,
    ) -> list[SeasonModel]:
        return build_season_models(
            show,
            to_posix(folder_path),
            files,
            source,
            extension_table=self.extension_table,
            cancel_event=cancel_event,
        )

    def bootstrap(
        self, folder: MediaFolder, cancel_event: threading.Event | None = None
    ) -> MediaFolder | None:
        """Build show metadata from descriptors; None if not recognizable."""
        return bootstrap_from_descriptors(
            folder,
            self.read_text_file,
            cancel_event=cancel_event,
            descriptor_name=self.settings.folder_descriptor_name,
            extension_table=self.extension_table,
        )

    def _enrich_from_catalog(self, folder: MediaFolder) -> MediaFolder:
        if folder.show is None or not folder.show.id:
            return folder
        if self.resolve_catalog_entry is None:
            return folder

        try:
            show = self.resolve_catalog_entry(folder.show.id)
        except Exception as e:
            logger.warning(
                f"Catalog lookup for id {folder.show.id} failed, "
                f"keeping local metadata: {e}"
            )
            return folder

        logger.info(f"Loaded catalog metadata for '{show.name}' (id {show.id})")
        return dataclasses.replace(folder, show=show)

    def _recognize_by_folder_name(self, folder: MediaFolder) -> MediaFolder | None:
        """Resolve a catalog id embedded in the folder name, if any."""
        if self.resolve_catalog_entry is None:
            return None

        catalog_id = catalog_id_from_folder_name(basename(folder.path))
        if catalog_id is None:
            logger.debug(f"No catalog id in folder name: {folder.path}")
            return None

        try:
            show = self.resolve_catalog_entry(catalog_id)
        except Exception as e:
            logger.warning(f"Catalog lookup for id {catalog_id} failed: {e}")
            return None

        logger.info(
            f"Recognized '{show.name}' (id {show.id}) from folder name "
            f"{basename(folder.path)}"
        )
        return dataclasses.replace(folder, show=show)

    def open_media_folder(
        self, folder_path: str, cancel_event: threading.Event | None = None
    ) -> MediaFolder:
        """Load a folder with a fresh file list and the best known metadata.

        Stored metadata wins. Otherwise the folder is bootstrapped from its
        descriptors, then recognized by a catalog id in its name. Folders with
        a known show are persisted.

        Raises:
            OperationCancelled: If cancel_event is set during the bootstrap
        """
        folder_path = to_posix(folder_path)
        folder = self.store.get(folder_path) or MediaFolder(path=folder_path)
        folder = dataclasses.replace(folder, files=self._safe_list_files(folder_path))

        if folder.show is None:
            bootstrapped = self.bootstrap(folder, cancel_event)
            if bootstrapped is not None:
                folder = self._enrich_from_catalog(bootstrapped)
            else:
                recognized = self._recognize_by_folder_name(folder)
                if recognized is None:
                    logger.info(f"Folder is not recognizable: {folder_path}")
                    return folder
                folder = recognized

        self.store.put(folder)
        return folder

    def preview_task(self, task_id: str) -> list[SeasonModel] | None:
        """Season preview of a pending task, None if the task is unknown."""
        try:
            task = self.registry.get(task_id)
        except TaskNotFoundError:
            logger.warning(f"Cannot preview unknown task {task_id}")
            return None

        folder = self.store.get(task.media_folder_path) or MediaFolder(
            path=task.media_folder_path
        )
        files = self._safe_list_files(task.media_folder_path)

        source: SeasonSource
        if task.kind == "recognize":
            source = RecognizePlanSource(
                items=[i for i in task.items if isinstance(i, RecognizeItem)]
            )
        else:
            source = RenamePlanSource(
                items=[i for i in task.items if isinstance(i, RenameItem)],
                mappings=folder.mappings,
            )

        return self.build_season_models(
            folder.show, task.media_folder_path, files, source
        )

    def _expect_kind(self, task_id: str, kind: TaskKind) -> BatchTask | ServiceResult:
        try:
            task = self.registry.get(task_id)
        except TaskNotFoundError:
            return ServiceResult(success=False, error=TASK_NOT_FOUND)
        if task.kind != kind:
            return ServiceResult(
                success=False, error=f"Task {task_id} is not a {kind} task"
            )
        return task

    def stage_lookup_recognition(
        self, folder_path: str, cancel_event: threading.Event | None = None
    ) -> TaskResult:
        """Stage a recognize task from the SxxEyy naming rules.

        Every canonical episode the rules can place becomes one item. The
        task stays pending until confirm_recognize or discard_task.

        Raises:
            OperationCancelled: If cancel_event is set while opening the folder
        """
        folder = self.open_media_folder(folder_path, cancel_event)
        if folder.show is None:
            return TaskResult(
                success=False, error=f"Folder is not recognizable: {folder.path}"
            )

        table = self.extension_table
        items = recognize_media_files(
            folder.show,
            folder.files,
            lambda files, season, episode: lookup(files, season, episode, table),
        )
        if not items:
            return TaskResult(success=False, error="No episode files matched")

        begun = self.begin_task("recognize", folder.path)
        if begun.task_id is None:
            return begun

        count = 0
        for item in items:
            added = self.add_item(begun.task_id, item)
            if added.success:
                count = added.item_count
            else:
                logger.warning(f"Skipping looked-up file {item.path}: {added.error}")

        logger.info(f"Staged {count} looked-up file(s) in task {begun.task_id}")
        return TaskResult(success=True, task_id=begun.task_id, item_count=count)

    def confirm_recognize(self, task_id: str) -> ServiceResult:
        """Finalize a recognize task and persist its file mappings."""
        task = self._expect_kind(task_id, "recognize")
        if isinstance(task, ServiceResult):
            return task

        result = self.end_task(task_id)
        if not result.success:
            return ServiceResult(success=False, error=result.error)

        items = [i for i in result.items if isinstance(i, RecognizeItem)]
        folder = self.store.get(task.media_folder_path) or MediaFolder(
            path=task.media_folder_path
        )
        mappings = apply_recognize_plan(folder.mappings, items)
        self.store.put(dataclasses.replace(folder, mappings=mappings))
        return ServiceResult(
            success=True, message=f"Recognized {len(items)} file(s)"
        )

    def confirm_rename(
        self, task_id: str, execute_rename: ExecuteRename
    ) -> ServiceResult:
        """Finalize a rename task and run it, siblings included.

        Renames are executed item by item; the result reports how many
        succeeded and failed instead of failing as a whole.
        """
        task = self._expect_kind(task_id, "rename")
        if isinstance(task, ServiceResult):
            return task

        seasons = self.preview_task(task_id) or []
        result = self.end_task(task_id)
        if not result.success:
            return ServiceResult(success=False, error=result.error)

        renames = collect_renames(seasons)
        # Items without a mapped episode still get renamed, without siblings
        previewed = {r.from_path for r in renames}
        renames.extend(
            i
            for i in result.items
            if isinstance(i, RenameItem) and i.from_path not in previewed
        )

        files = self._safe_list_files(task.media_folder_path)
        summary = execute_renames(
            task.media_folder_path, renames, execute_rename, files
        )

        if summary.renamed:
            folder = self.store.get(task.media_folder_path)
            if folder is not None:
                mappings = apply_renames_to_mappings(folder.mappings, summary.renamed)
                self.store.put(dataclasses.replace(folder, mappings=mappings))
            if files is not None:
                files = apply_renames_to_files(
                    task.media_folder_path, files, summary.renamed
                )

        return ServiceResult(
            success=summary.success,
            message=str(summary),
            error="; ".join(summary.errors) or None,
            files=files,
        )
