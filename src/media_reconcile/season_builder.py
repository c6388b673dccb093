"""Merge canonical metadata and file sources into a Season -> Episode -> File tree.

Four sources produce the same output shape:

- ``PersistedSource``: canonical episodes with their persisted FileMappings
- ``RecognizePlanSource``: items of a pending recognize task
- ``RenamePlanSource``: items of a pending rename task, previewed with new paths
- ``LookupSource``: a rule-based resolver asked for every canonical episode

Season and episode numbers, never list positions, are the merge keys.
Seasons and episodes referenced by a plan but missing from the canonical
metadata are synthesized with their number and empty names.
"""

import dataclasses
import logging
import threading
from collections.abc import Iterator

from media_reconcile.errors import OperationCancelled
from media_reconcile.file_mappings import find_by_episode, find_by_path
from media_reconcile.file_matcher import match_associated_files
from media_reconcile.models import (
    CanonicalEpisode,
    CanonicalSeason,
    CanonicalShow,
    EpisodeModel,
    LookupSource,
    PersistedSource,
    RecognizePlanSource,
    RenamePlanSource,
    SeasonModel,
    SeasonSource,
    TaggedFile,
)
from media_reconcile.path_utils import (
    DEFAULT_EXTENSION_TABLE,
    ExtensionTable,
    absolute_in_folder,
    sibling_path,
)

logger = logging.getLogger(__name__)


class _SeasonTree:
    """Accumulates episode models keyed by (season number, episode number)."""

    def __init__(self, show: CanonicalShow | None):
        self.show = show
        self._seasons: dict[int, CanonicalSeason] = {}
        self._episodes: dict[int, dict[int, EpisodeModel]] = {}

    def ensure_season(self, season_number: int) -> CanonicalSeason:
        season = self._seasons.get(season_number)
        if season is not None:
            return season

        canonical = self.show.find_season(season_number) if self.show else None
        season = canonical or CanonicalSeason(season_number=season_number)
        self._seasons[season_number] = season
        self._episodes[season_number] = {}
        return season

    def canonical_episode(
        self, season_number: int, episode_number: int
    ) -> CanonicalEpisode | None:
        if self.show is None:
            return None
        return self.show.find_episode(season_number, episode_number)

    def put(
        self, season_number: int, episode_number: int, model: EpisodeModel
    ) -> None:
        self.ensure_season(season_number)
        episodes = self._episodes[season_number]
        if episode_number in episodes:
            logger.warning(
                f"S{season_number}E{episode_number} referenced more than once, "
                f"keeping the last entry"
            )
        episodes[episode_number] = model

    def to_models(self) -> list[SeasonModel]:
        models: list[SeasonModel] = []
        for season_number in sorted(self._seasons):
            episodes = self._episodes[season_number]
            # Strip the canonical episode list, the tree holds the episodes
            season = dataclasses.replace(self._seasons[season_number], episodes=[])
            models.append(
                SeasonModel(
                    season=season,
                    episodes=[episodes[number] for number in sorted(episodes)],
                )
            )
        return models


def placeholder_episode(season_number: int, episode_number: int) -> CanonicalEpisode:
    """Zero-valued episode carrying only the requested numbers."""
    return CanonicalEpisode(season_number=season_number, episode_number=episode_number)


def build_episode_files(
    media_folder_path: str,
    files: list[str] | None,
    anchor_path: str,
    new_anchor_path: str | None = None,
    extension_table: ExtensionTable = DEFAULT_EXTENSION_TABLE,
) -> list[TaggedFile]:
    """Return the anchor video followed by its associated files.

    When new_anchor_path is given every file gets a previewed new_path; the
    siblings mirror the anchor's new stem.
    """
    anchor = absolute_in_folder(media_folder_path, anchor_path)
    siblings = match_associated_files(
        media_folder_path, files, anchor, extension_table
    )
    if new_anchor_path is None:
        return [TaggedFile(kind="video", path=anchor), *siblings]

    new_anchor = absolute_in_folder(media_folder_path, new_anchor_path)
    return [
        TaggedFile(kind="video", path=anchor, new_path=new_anchor),
        *(
            dataclasses.replace(s, new_path=sibling_path(anchor, new_anchor, s.path))
            for s in siblings
        ),
    ]


def _iter_canonical(
    show: CanonicalShow | None,
) -> Iterator[tuple[int, CanonicalEpisode]]:
    if show is None:
        return
    for season in show.seasons:
        for episode in season.episodes:
            yield season.season_number, episode


def _from_persisted(
    tree: _SeasonTree,
    media_folder_path: str,
    files: list[str] | None,
    source: PersistedSource,
    extension_table: ExtensionTable,
) -> None:
    for season in tree.show.seasons if tree.show else []:
        tree.ensure_season(season.season_number)

    for season_number, episode in _iter_canonical(tree.show):
        mapping = find_by_episode(
            source.mappings, season_number, episode.episode_number
        )
        episode_files = (
            build_episode_files(
                media_folder_path,
                files,
                mapping.absolute_path,
                extension_table=extension_table,
            )
            if mapping is not None
            else []
        )
        tree.put(
            season_number,
            episode.episode_number,
            EpisodeModel(episode=episode, files=episode_files),
        )


def _from_recognize_plan(
    tree: _SeasonTree,
    media_folder_path: str,
    files: list[str] | None,
    source: RecognizePlanSource,
    extension_table: ExtensionTable,
) -> None:
    items = sorted(source.items, key=lambda item: (item.season, item.episode))
    for item in items:
        episode = tree.canonical_episode(item.season, item.episode)
        if episode is None:
            logger.debug(
                f"No canonical episode for S{item.season}E{item.episode}, "
                f"using placeholder for {item.path}"
            )
            episode = placeholder_episode(item.season, item.episode)

        tree.put(
            item.season,
            item.episode,
            EpisodeModel(
                episode=episode,
                files=build_episode_files(
                    media_folder_path,
                    files,
                    item.path,
                    extension_table=extension_table,
                ),
            ),
        )


def _from_rename_plan(
    tree: _SeasonTree,
    media_folder_path: str,
    files: list[str] | None,
    source: RenamePlanSource,
    extension_table: ExtensionTable,
) -> None:
    known_files = {absolute_in_folder(media_folder_path, f) for f in files or []}

    resolved = []
    for item in source.items:
        from_path = absolute_in_folder(media_folder_path, item.from_path)
        if from_path not in known_files:
            logger.warning(f"Rename source not in folder, skipping: {from_path}")
            continue

        mapping = find_by_path(source.mappings, from_path)
        if mapping is None:
            logger.warning(
                f"Rename source not mapped to an episode, skipping: {from_path}"
            )
            continue

        resolved.append(
            (mapping.season_number, mapping.episode_number, from_path, item)
        )

    resolved.sort(key=lambda entry: (entry[0], entry[1]))
    for season_number, episode_number, from_path, item in resolved:
        episode = tree.canonical_episode(
            season_number, episode_number
        ) or placeholder_episode(season_number, episode_number)

        tree.put(
            season_number,
            episode_number,
            EpisodeModel(
                episode=episode,
                files=build_episode_files(
                    media_folder_path,
                    files,
                    from_path,
                    new_anchor_path=item.to_path,
                    extension_table=extension_table,
                ),
            ),
        )


def _from_lookup(
    tree: _SeasonTree,
    media_folder_path: str,
    files: list[str] | None,
    source: LookupSource,
    extension_table: ExtensionTable,
    cancel_event: threading.Event | None,
) -> None:
    for season in tree.show.seasons if tree.show else []:
        tree.ensure_season(season.season_number)

    file_list = list(files or [])
    for season_number, episode in _iter_canonical(tree.show):
        if cancel_event is not None and cancel_event.is_set():
            raise OperationCancelled(f"Lookup for {media_folder_path} was cancelled")

        path = source.resolver(file_list, season_number, episode.episode_number)
        episode_files = (
            build_episode_files(
                media_folder_path, files, path, extension_table=extension_table
            )
            if path
            else []
        )
        tree.put(
            season_number,
            episode.episode_number,
            EpisodeModel(episode=episode, files=episode_files),
        )


def build_season_models(
    show: CanonicalShow | None,
    media_folder_path: str,
    files: list[str] | None,
    source: SeasonSource,
    extension_table: ExtensionTable = DEFAULT_EXTENSION_TABLE,
    cancel_event: threading.Event | None = None,
) -> list[SeasonModel]:
    """Build the ordered season preview for a media folder.

    Args:
        show: Canonical show metadata (None when unknown)
        media_folder_path: Absolute POSIX path of the media folder
        files: Folder file list, relative or absolute
        source: One of the four season sources
        extension_table: Extension -> tag table for associated files
        cancel_event: Abandons a LookupSource build with OperationCancelled

    Returns:
        Seasons ascending by number, episodes ascending by number
    """
    tree = _SeasonTree(show)

    if isinstance(source, PersistedSource):
        _from_persisted(tree, media_folder_path, files, source, extension_table)
    elif isinstance(source, RecognizePlanSource):
        _from_recognize_plan(tree, media_folder_path, files, source, extension_table)
    elif isinstance(source, RenamePlanSource):
        _from_rename_plan(tree, media_folder_path, files, source, extension_table)
    elif isinstance(source, LookupSource):
        _from_lookup(
            tree, media_folder_path, files, source, extension_table, cancel_event
        )
    else:
        raise TypeError(f"Unsupported season source: {type(source).__name__}")

    return tree.to_models()
