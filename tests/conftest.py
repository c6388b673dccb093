"""Shared test configuration and fixtures."""

import tempfile
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import pytest

from media_reconcile.config import Settings
from media_reconcile.models import (
    CanonicalEpisode,
    CanonicalSeason,
    CanonicalShow,
)

# Inline test data constants
SAMPLE_TVSHOW_NFO = """<?xml version="1.0" encoding="utf-8"?>
<tvshow>
  <title>Breaking Bad</title>
  <originaltitle>Breaking Bad</originaltitle>
  <plot>A high school chemistry teacher diagnosed with inoperable lung cancer turns to manufacturing and selling methamphetamine in order to secure his family's future.</plot>
  <uniqueid type="imdb">tt0903747</uniqueid>
  <uniqueid type="tmdb" default="true">1396</uniqueid>
  <id>81189</id>
  <ratings>
    <rating name="imdb">
      <value>9.5</value>
    </rating>
    <rating name="themoviedb" default="true">
      <value>8.9</value>
    </rating>
  </ratings>
  <thumb aspect="poster">https://image.tmdb.org/t/p/original/ggFHVNu6YYI5L9pCfOacjizRGt.jpg</thumb>
  <thumb aspect="poster" season="1" type="season">https://image.tmdb.org/t/p/w500/1BP4xYv9ZG4ZVHkL7ocOziBbSYH.jpg</thumb>
  <fanart>
    <thumb>https://image.tmdb.org/t/p/original/tsRy63Mu5cu8etL1X7ZLyf7UP1M.jpg</thumb>
  </fanart>
  <namedseason number="1">Season One</namedseason>
  <premiered>2008-01-20</premiered>
  <status>Ended</status>
  <studio>AMC</studio>
</tvshow>
"""  # noqa: E501

SAMPLE_EPISODE_NFO = """<?xml version="1.0" encoding="utf-8"?>
<episodedetails>
  <title>Pilot</title>
  <plot>Walter White, a struggling high school chemistry teacher, is diagnosed with advanced lung cancer.</plot>
  <uniqueid type="tvdb">349232</uniqueid>
  <uniqueid type="tmdb" default="true">62085</uniqueid>
  <aired>2008-01-21</aired>
  <premiered>2008-01-20</premiered>
  <season>1</season>
  <episode>1</episode>
  <runtime>58</runtime>
  <rating>8.2</rating>
  <thumb>https://image.tmdb.org/t/p/original/ydlY3iPfeOAvu8gVqrxPoMvzNCn.jpg</thumb>
  <original_filename>Breaking.Bad.S01E01.720p.mkv</original_filename>
</episodedetails>
"""  # noqa: E501

SAMPLE_EPISODE_2_NFO = """<?xml version="1.0" encoding="utf-8"?>
<episodedetails>
  <title>Cat's in the Bag...</title>
  <id>62086</id>
  <aired>2008-01-27</aired>
  <season>1</season>
  <episode>2</episode>
  <runtime>48</runtime>
</episodedetails>
"""

SAMPLE_SPECIAL_NFO = """<?xml version="1.0" encoding="utf-8"?>
<episodedetails>
  <title>Good Cop Bad Cop</title>
  <tmdbid>62161</tmdbid>
  <season>0</season>
  <episode>1</episode>
  <original_filename>Specials/missing-special.mkv</original_filename>
</episodedetails>
"""

SAMPLE_INVALID_NFO = """<?xml version="1.0" encoding="utf-8"?>
<episodedetails>
  <title>Broken XML Test</title>
  <season>1
  <!-- Missing closing tag for season -->
</episodedetails>
"""

SAMPLE_MOVIE_NFO = """<?xml version="1.0" encoding="utf-8"?>
<movie>
  <title>Not An Episode</title>
</movie>
"""

# Map of sample names to content
SAMPLE_DATA = {
    "tvshow.nfo": SAMPLE_TVSHOW_NFO,
    "episode.nfo": SAMPLE_EPISODE_NFO,
    "episode_2.nfo": SAMPLE_EPISODE_2_NFO,
    "special.nfo": SAMPLE_SPECIAL_NFO,
    "invalid.nfo": SAMPLE_INVALID_NFO,
    "movie.nfo": SAMPLE_MOVIE_NFO,
}


@pytest.fixture
def test_data_dir() -> Generator[Path, None, None]:
    """Create a temporary test data directory for all tests."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


def create_test_settings(test_data_dir: Path, **kwargs: Any) -> Settings:
    """Create test settings with safe defaults and custom overrides.

    Args:
        test_data_dir: Temporary test directory path
        **kwargs: Settings overrides (e.g., extra_video_extensions=".dv")

    Returns:
        Settings object with safe test defaults and any custom overrides
    """
    params = {
        "cache_dir": test_data_dir / "cache",
        "descriptor_read_timeout_seconds": 0.1,
        "descriptor_read_retry_interval_seconds": 0.01,
        **kwargs,
    }
    return Settings(**params)


@pytest.fixture
def test_settings(test_data_dir: Path) -> Settings:
    """Standard test settings using temporary test data directory."""
    return create_test_settings(test_data_dir)


@pytest.fixture
def create_test_files() -> Generator[Callable[[str, Path], Path], None, None]:
    """Factory fixture to create test files from inline data with cleanup."""
    created_files = []

    def _create_file(sample_name: str, dest_path: Path) -> Path:
        """Create a test file from inline sample data."""
        if sample_name not in SAMPLE_DATA:
            raise ValueError(f"Unknown sample: {sample_name}")

        dest_path.parent.mkdir(parents=True, exist_ok=True)
        dest_path.write_text(SAMPLE_DATA[sample_name])
        created_files.append(dest_path)
        return dest_path

    yield _create_file

    # Cleanup
    for file_path in created_files:
        if file_path.exists():
            file_path.unlink()


@pytest.fixture
def sample_show() -> CanonicalShow:
    """Show with a specials season and two regular seasons."""
    return CanonicalShow(
        id=1396,
        name="Breaking Bad",
        seasons=[
            CanonicalSeason(
                season_number=0,
                name="Specials",
                episodes=[CanonicalEpisode(0, 1, id=62161, name="Good Cop Bad Cop")],
            ),
            CanonicalSeason(
                season_number=1,
                name="Season 1",
                episodes=[
                    CanonicalEpisode(1, 1, id=62085, name="Pilot"),
                    CanonicalEpisode(1, 2, id=62086, name="Cat's in the Bag..."),
                ],
            ),
            CanonicalSeason(
                season_number=2,
                name="Season 2",
                episodes=[CanonicalEpisode(2, 1, id=62092, name="Seven Thirty-Seven")],
            ),
        ],
    )
