"""Data models for media-reconcile."""

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Literal

# Semantic kind of a file inside a media folder. "file" is the generic kind
# for anything the extension table does not classify.
FileKind = Literal["video", "subtitle", "audio", "descriptor", "poster", "file"]

TaskKind = Literal["rename", "recognize"]
TaskStatus = Literal["pending", "finalized"]


@dataclass
class CanonicalEpisode:
    """Episode metadata from the catalog or a sidecar descriptor."""

    season_number: int
    episode_number: int
    id: int = 0
    name: str = ""
    overview: str = ""
    air_date: str = ""
    vote_average: float = 0.0
    runtime: int = 0
    still_path: str = ""


@dataclass
class CanonicalSeason:
    """Season metadata; episodes are keyed by episode number."""

    season_number: int
    id: int = 0
    name: str = ""
    overview: str = ""
    poster_path: str = ""
    air_date: str = ""
    episodes: list[CanonicalEpisode] = field(default_factory=list)

    def find_episode(self, episode_number: int) -> CanonicalEpisode | None:
        for episode in self.episodes:
            if episode.episode_number == episode_number:
                return episode
        return None


@dataclass
class CanonicalShow:
    """Show metadata; seasons are keyed by season number (0 = specials)."""

    id: int = 0
    name: str = ""
    original_name: str = ""
    overview: str = ""
    poster_path: str = ""
    backdrop_path: str = ""
    vote_average: float = 0.0
    status: str = ""
    seasons: list[CanonicalSeason] = field(default_factory=list)

    def find_season(self, season_number: int) -> CanonicalSeason | None:
        for season in self.seasons:
            if season.season_number == season_number:
                return season
        return None

    def find_episode(
        self, season_number: int, episode_number: int
    ) -> CanonicalEpisode | None:
        season = self.find_season(season_number)
        if season is None:
            return None
        return season.find_episode(episode_number)


@dataclass(frozen=True)
class FileMapping:
    """Which on-disk file currently represents which episode."""

    absolute_path: str
    season_number: int
    episode_number: int


@dataclass
class MediaFolder:
    """A media folder identified by its absolute POSIX path."""

    path: str
    # None means the file list was never loaded, [] means an empty folder
    files: list[str] | None = None
    show: CanonicalShow | None = None
    mappings: list[FileMapping] = field(default_factory=list)


@dataclass(frozen=True)
class TaggedFile:
    """A file tagged by kind; new_path is only set while a rename is staged."""

    kind: FileKind
    path: str
    new_path: str | None = None


@dataclass
class EpisodeModel:
    """Preview row for one episode."""

    episode: CanonicalEpisode
    files: list[TaggedFile] = field(default_factory=list)


@dataclass
class SeasonModel:
    """Preview group for one season, episodes ascending by number."""

    season: CanonicalSeason
    episodes: list[EpisodeModel] = field(default_factory=list)


@dataclass(frozen=True)
class RenameItem:
    """One staged rename of an episode video."""

    from_path: str
    to_path: str


@dataclass(frozen=True)
class RecognizeItem:
    """One staged file-to-episode recognition."""

    season: int
    episode: int
    path: str


TaskItem = RenameItem | RecognizeItem


@dataclass
class BatchTask:
    """A staged multi-item operation owned by the task registry."""

    id: str
    kind: TaskKind
    media_folder_path: str
    status: TaskStatus = "pending"
    items: list[TaskItem] = field(default_factory=list)
    # Rename tasks for episode videos only accept video extensions
    video_only: bool = True


# Season model sources, dispatched once at the top of build_season_models.


@dataclass
class PersistedSource:
    """Build from persisted FileMappings."""

    mappings: list[FileMapping] = field(default_factory=list)


@dataclass
class RecognizePlanSource:
    """Build from the items of a pending recognize task."""

    items: list[RecognizeItem] = field(default_factory=list)


@dataclass
class RenamePlanSource:
    """Build from the items of a pending rename task."""

    items: list[RenameItem] = field(default_factory=list)
    mappings: list[FileMapping] = field(default_factory=list)


# lookup(files, season_number, episode_number) -> path or None
Resolver = Callable[[list[str], int, int], str | None]


@dataclass
class LookupSource:
    """Build by asking a rule-based resolver for every canonical episode."""

    resolver: Resolver


SeasonSource = PersistedSource | RecognizePlanSource | RenamePlanSource | LookupSource


@dataclass
class TaskResult:
    """Result of a task lifecycle operation."""

    success: bool
    task_id: str | None = None
    error: str | None = None
    item_count: int = 0
    items: list[TaskItem] = field(default_factory=list)


@dataclass
class ServiceResult:
    """Result of a non-task service operation."""

    success: bool
    message: str = ""
    error: str | None = None
    exception: Exception | None = None
    # Folder file list after the operation, when the operation refreshed it
    files: list[str] | None = None


@dataclass
class ExecutionSummary:
    """Aggregated outcome of applying a plan item by item."""

    succeeded: int = 0
    failed: int = 0
    skipped: int = 0
    errors: list[str] = field(default_factory=list)
    # Old absolute path -> new absolute path for every successful rename
    renamed: dict[str, str] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return self.failed == 0

    def __str__(self) -> str:
        text = f"{self.succeeded} succeeded, {self.failed} failed"
        if self.skipped:
            text += f", {self.skipped} skipped"
        return text
