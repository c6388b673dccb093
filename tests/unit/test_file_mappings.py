"""Unit tests for the file mapping set operations."""

from media_reconcile.file_mappings import (
    apply_recognize_items,
    apply_renames,
    find_by_episode,
    find_by_path,
    upsert_mapping,
)
from media_reconcile.models import FileMapping, RecognizeItem


class TestUpsertMapping:
    """Test the last-write-wins invariant on both keys."""

    def test_insert_into_empty_set(self) -> None:
        mapping = FileMapping("/m/e1.mkv", 1, 1)
        assert upsert_mapping([], mapping) == [mapping]

    def test_same_episode_replaces_previous_file(self) -> None:
        old = FileMapping("/m/e1.mkv", 1, 1)
        new = FileMapping("/m/e1.v2.mkv", 1, 1)
        assert upsert_mapping([old], new) == [new]

    def test_same_path_replaces_previous_episode(self) -> None:
        old = FileMapping("/m/e1.mkv", 1, 1)
        new = FileMapping("/m/e1.mkv", 1, 2)
        assert upsert_mapping([old], new) == [new]

    def test_collision_on_both_keys_removes_both(self) -> None:
        by_path = FileMapping("/m/a.mkv", 1, 1)
        by_episode = FileMapping("/m/b.mkv", 1, 2)
        unrelated = FileMapping("/m/c.mkv", 1, 3)
        new = FileMapping("/m/a.mkv", 1, 2)
        assert upsert_mapping([by_path, by_episode, unrelated], new) == [
            unrelated,
            new,
        ]

    def test_does_not_mutate_input(self) -> None:
        existing = [FileMapping("/m/e1.mkv", 1, 1)]
        upsert_mapping(existing, FileMapping("/m/e2.mkv", 1, 1))
        assert existing == [FileMapping("/m/e1.mkv", 1, 1)]


class TestFind:
    """Test mapping lookups."""

    def test_find_by_path(self) -> None:
        mappings = [FileMapping("/m/e1.mkv", 1, 1), FileMapping("/m/e2.mkv", 1, 2)]
        assert find_by_path(mappings, "/m/e2.mkv") == mappings[1]
        assert find_by_path(mappings, "\\m\\e1.mkv") == mappings[0]
        assert find_by_path(mappings, "/m/e3.mkv") is None

    def test_find_by_episode(self) -> None:
        mappings = [FileMapping("/m/s0.mkv", 0, 1), FileMapping("/m/e1.mkv", 1, 1)]
        assert find_by_episode(mappings, 0, 1) == mappings[0]
        assert find_by_episode(mappings, 1, 1) == mappings[1]
        assert find_by_episode(mappings, 2, 1) is None


def test_apply_recognize_items_in_order() -> None:
    existing = [FileMapping("/m/old.mkv", 1, 1)]
    items = [
        RecognizeItem(season=1, episode=1, path="/m/new.mkv"),
        RecognizeItem(season=1, episode=2, path="/m/e2.mkv"),
        RecognizeItem(season=1, episode=3, path="/m/e2.mkv"),
    ]
    assert apply_recognize_items(existing, items) == [
        FileMapping("/m/new.mkv", 1, 1),
        FileMapping("/m/e2.mkv", 1, 3),
    ]


def test_apply_renames_moves_paths() -> None:
    mappings = [FileMapping("/m/e1.mkv", 1, 1), FileMapping("/m/e2.mkv", 1, 2)]
    result = apply_renames(mappings, {"/m/e1.mkv": "/m/S01E01.mkv"})
    assert result == [
        FileMapping("/m/S01E01.mkv", 1, 1),
        FileMapping("/m/e2.mkv", 1, 2),
    ]


def test_apply_renames_swap_keeps_both_mappings() -> None:
    mappings = [FileMapping("/m/a.mkv", 1, 1), FileMapping("/m/b.mkv", 1, 2)]
    result = apply_renames(mappings, {"/m/a.mkv": "/m/b.mkv", "/m/b.mkv": "/m/a.mkv"})
    assert sorted(result, key=lambda m: m.episode_number) == [
        FileMapping("/m/b.mkv", 1, 1),
        FileMapping("/m/a.mkv", 1, 2),
    ]
