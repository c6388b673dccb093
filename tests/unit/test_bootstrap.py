"""Unit tests for bootstrapping show metadata from .nfo descriptors."""

import threading
from collections.abc import Callable

import pytest

from media_reconcile.bootstrap import (
    bootstrap_from_descriptors,
    find_folder_descriptor,
    resolve_original_filename,
)
from media_reconcile.errors import OperationCancelled
from media_reconcile.models import CanonicalShow, FileMapping, MediaFolder
from tests.conftest import (
    SAMPLE_EPISODE_2_NFO,
    SAMPLE_EPISODE_NFO,
    SAMPLE_INVALID_NFO,
    SAMPLE_MOVIE_NFO,
    SAMPLE_SPECIAL_NFO,
    SAMPLE_TVSHOW_NFO,
)

FOLDER = "/media/Breaking Bad"

ReadText = Callable[[str, threading.Event | None], str]


def make_reader(contents: dict[str, str]) -> ReadText:
    """Reader over relative path -> text; unknown paths raise FileNotFoundError."""

    def read_text_file(path: str, cancel_event: threading.Event | None = None) -> str:
        relative = path.removeprefix(f"{FOLDER}/")
        if relative not in contents:
            raise FileNotFoundError(path)
        return contents[relative]

    return read_text_file


@pytest.fixture
def descriptor_contents() -> dict[str, str]:
    return {
        "tvshow.nfo": SAMPLE_TVSHOW_NFO,
        "Season 01/S01E01.nfo": SAMPLE_EPISODE_NFO,
        "Season 01/S01E02.nfo": SAMPLE_EPISODE_2_NFO,
        "Season 01/bad.nfo": SAMPLE_INVALID_NFO,
        "Specials/special.nfo": SAMPLE_SPECIAL_NFO,
        "extras/movie.nfo": SAMPLE_MOVIE_NFO,
    }


@pytest.fixture
def nfo_folder(descriptor_contents: dict[str, str]) -> MediaFolder:
    return MediaFolder(
        path=FOLDER,
        files=[
            *descriptor_contents,
            "Season 01/Breaking.Bad.S01E01.720p.mkv",
            "Season 01/S01E02.mkv",
        ],
    )


class TestBootstrapFromDescriptors:
    """Test bootstrap_from_descriptors."""

    def test_full_bootstrap(
        self, nfo_folder: MediaFolder, descriptor_contents: dict[str, str]
    ) -> None:
        result = bootstrap_from_descriptors(
            nfo_folder, make_reader(descriptor_contents)
        )

        assert result is not None
        assert result is not nfo_folder
        assert result.show is not None
        assert result.show.id == 1396
        assert result.show.name == "Breaking Bad"
        assert [s.season_number for s in result.show.seasons] == [0, 1]

        season_1 = result.show.seasons[1]
        assert season_1.name == "Season One"
        assert season_1.poster_path == "/1BP4xYv9ZG4ZVHkL7ocOziBbSYH.jpg"
        assert [e.episode_number for e in season_1.episodes] == [1, 2]
        assert [e.name for e in season_1.episodes] == ["Pilot", "Cat's in the Bag..."]

        assert result.mappings == [
            FileMapping(f"{FOLDER}/Season 01/Breaking.Bad.S01E01.720p.mkv", 1, 1),
            FileMapping(f"{FOLDER}/Season 01/S01E02.mkv", 1, 2),
        ]
        # Input folder is not modified
        assert nfo_folder.show is None
        assert nfo_folder.mappings == []

    def test_special_without_video_has_no_mapping(
        self, nfo_folder: MediaFolder, descriptor_contents: dict[str, str]
    ) -> None:
        result = bootstrap_from_descriptors(
            nfo_folder, make_reader(descriptor_contents)
        )
        assert result is not None and result.show is not None
        specials = result.show.find_season(0)
        assert specials is not None
        assert [e.name for e in specials.episodes] == ["Good Cop Bad Cop"]
        assert all(m.season_number != 0 for m in result.mappings)

    def test_existing_show_is_returned_unchanged(self) -> None:
        folder = MediaFolder(path=FOLDER, files=["tvshow.nfo"], show=CanonicalShow())
        read = make_reader({})
        assert bootstrap_from_descriptors(folder, read) is folder

    def test_no_folder_descriptor(self) -> None:
        folder = MediaFolder(path=FOLDER, files=["S01E01.mkv", "S01E01.nfo"])
        result = bootstrap_from_descriptors(folder, make_reader({}))
        assert result is None

    def test_missing_file_list(self) -> None:
        folder = MediaFolder(path=FOLDER)
        assert bootstrap_from_descriptors(folder, make_reader({})) is None

    def test_malformed_folder_descriptor_aborts(self) -> None:
        folder = MediaFolder(path=FOLDER, files=["tvshow.nfo", "S01E01.nfo"])
        read = make_reader(
            {"tvshow.nfo": SAMPLE_INVALID_NFO, "S01E01.nfo": SAMPLE_EPISODE_NFO}
        )
        assert bootstrap_from_descriptors(folder, read) is None

    def test_unreadable_folder_descriptor_aborts(self) -> None:
        folder = MediaFolder(path=FOLDER, files=["tvshow.nfo"])
        assert bootstrap_from_descriptors(folder, make_reader({})) is None

    def test_folder_descriptor_only_is_partial_bootstrap(self) -> None:
        existing = [FileMapping(f"{FOLDER}/S01E01.mkv", 1, 1)]
        folder = MediaFolder(
            path=FOLDER, files=["tvshow.nfo", "S01E01.mkv"], mappings=existing
        )
        result = bootstrap_from_descriptors(
            folder, make_reader({"tvshow.nfo": SAMPLE_TVSHOW_NFO})
        )
        assert result is not None and result.show is not None
        assert result.show.name == "Breaking Bad"
        assert result.show.seasons == []
        assert result.mappings == existing

    def test_unreadable_episode_descriptor_is_skipped(self) -> None:
        folder = MediaFolder(
            path=FOLDER, files=["tvshow.nfo", "gone.nfo", "S01E02.nfo", "S01E02.mkv"]
        )
        read = make_reader(
            {"tvshow.nfo": SAMPLE_TVSHOW_NFO, "S01E02.nfo": SAMPLE_EPISODE_2_NFO}
        )
        result = bootstrap_from_descriptors(folder, read)
        assert result is not None and result.show is not None
        assert [e.episode_number for e in result.show.seasons[0].episodes] == [2]
        assert result.mappings == [FileMapping(f"{FOLDER}/S01E02.mkv", 1, 2)]

    def test_duplicate_episode_descriptor_last_wins(self) -> None:
        folder = MediaFolder(
            path=FOLDER, files=["tvshow.nfo", "a/S01E02.nfo", "b/S01E02.nfo"]
        )
        renamed = SAMPLE_EPISODE_2_NFO.replace("Cat's in the Bag...", "Renamed")
        read = make_reader(
            {
                "tvshow.nfo": SAMPLE_TVSHOW_NFO,
                "a/S01E02.nfo": SAMPLE_EPISODE_2_NFO,
                "b/S01E02.nfo": renamed,
            }
        )
        result = bootstrap_from_descriptors(folder, read)
        assert result is not None and result.show is not None
        episodes = result.show.seasons[0].episodes
        assert [e.name for e in episodes] == ["Renamed"]

    def test_existing_mappings_are_merged(
        self, nfo_folder: MediaFolder, descriptor_contents: dict[str, str]
    ) -> None:
        stale = FileMapping(f"{FOLDER}/old/S01E02.mkv", 1, 2)
        other = FileMapping(f"{FOLDER}/S03E01.mkv", 3, 1)
        nfo_folder.mappings = [stale, other]

        result = bootstrap_from_descriptors(
            nfo_folder, make_reader(descriptor_contents)
        )
        assert result is not None
        assert stale not in result.mappings
        assert other in result.mappings
        assert FileMapping(f"{FOLDER}/Season 01/S01E02.mkv", 1, 2) in result.mappings

    def test_custom_descriptor_name(self) -> None:
        folder = MediaFolder(path=FOLDER, files=["series.nfo"])
        result = bootstrap_from_descriptors(
            folder,
            make_reader({"series.nfo": SAMPLE_TVSHOW_NFO}),
            descriptor_name="series.nfo",
        )
        assert result is not None and result.show is not None

    def test_cancel_before_start(
        self, nfo_folder: MediaFolder, descriptor_contents: dict[str, str]
    ) -> None:
        cancel_event = threading.Event()
        cancel_event.set()
        with pytest.raises(OperationCancelled):
            bootstrap_from_descriptors(
                nfo_folder, make_reader(descriptor_contents), cancel_event
            )

    def test_cancel_during_episode_reads(
        self, nfo_folder: MediaFolder, descriptor_contents: dict[str, str]
    ) -> None:
        cancel_event = threading.Event()
        inner = make_reader(descriptor_contents)
        calls: list[str] = []

        def read_and_cancel(path: str, event: threading.Event | None = None) -> str:
            calls.append(path)
            cancel_event.set()
            return inner(path, event)

        with pytest.raises(OperationCancelled):
            bootstrap_from_descriptors(nfo_folder, read_and_cancel, cancel_event)
        # Only the folder descriptor was read before the cancellation
        assert calls == [f"{FOLDER}/tvshow.nfo"]


class TestHelpers:
    """Test descriptor lookup helpers."""

    def test_find_folder_descriptor_prefers_shallowest(self) -> None:
        folder = MediaFolder(
            path=FOLDER, files=["extras/tvshow.nfo", "tvshow.nfo", "S01E01.nfo"]
        )
        assert find_folder_descriptor(folder) == "tvshow.nfo"

    def test_find_folder_descriptor_none(self) -> None:
        assert find_folder_descriptor(MediaFolder(path=FOLDER, files=[])) is None

    def test_resolve_original_filename(self) -> None:
        files = ["Season 1/ax.mkv", "Season 1/x.mkv"]
        assert resolve_original_filename(files, "x.mkv") == "Season 1/x.mkv"
        assert resolve_original_filename(files, "Season 1/x.mkv") == "Season 1/x.mkv"
        assert resolve_original_filename(files, "y.mkv") is None
        assert resolve_original_filename(files, "") is None
