import logging

import pytest

from treemirror.path_cursor import PathCursor, copy_sibling_prefix


def test_initial_path_drops_trailing_separator() -> None:
    cursor = PathCursor("/data/photos/", separator="/")

    assert cursor.path == "/data/photos"
    assert cursor.top == len("/data/photos")


def test_root_only_path_is_kept() -> None:
    cursor = PathCursor("/", separator="/")

    assert cursor.path == "/"


def test_sibling_walk_returns_to_original_path() -> None:
    cursor = PathCursor("/data/photos", separator="/")

    cursor.push_segment("/*")
    for name in ["a.jpg", "a_much_longer_name.jpg", "b"]:
        cursor.pop_last_segment()
        cursor.push_segment(name)
        assert cursor.path == f"/data/photos/{name}"
    cursor.pop_full_directory()

    assert cursor.path == "/data/photos"


def test_pop_full_directory_undoes_a_pushed_subdirectory() -> None:
    cursor = PathCursor("C:\\Users\\me", separator="\\")

    cursor.push_segment("\\Documents")
    cursor.pop_full_directory()

    assert cursor.path == "C:\\Users\\me"


def test_pop_last_segment_keeps_separator() -> None:
    cursor = PathCursor("/a/b/c", separator="/")

    cursor.pop_last_segment()

    assert cursor.path == "/a/b/"


def test_pops_without_separator_stop_at_start() -> None:
    last = PathCursor("C:", separator="\\")
    full = PathCursor("C:", separator="\\")

    last.pop_last_segment()
    full.pop_full_directory()

    assert last.path == ""
    assert full.path == ""
    assert full.top == 0


def test_pops_on_empty_cursor_are_noops() -> None:
    cursor = PathCursor(separator="/")

    cursor.pop_last_segment()
    cursor.pop_full_directory()

    assert cursor.path == ""
    assert cursor.top == 0


def test_copy_sibling_prefix_appends_source_leaf() -> None:
    source = PathCursor("/home/me/Documents", separator="/")
    destination = PathCursor("/mnt/backup", separator="/")

    assert copy_sibling_prefix(source, destination) is True

    assert destination.path == "/mnt/backup/Documents"
    assert source.path == "/home/me/Documents"


def test_push_truncates_at_capacity_and_warns(caplog: pytest.LogCaptureFixture) -> None:
    cursor = PathCursor("abc", capacity=5, separator="/")

    with caplog.at_level(logging.WARNING, logger="treemirror.path_cursor"):
        fitted = cursor.push_segment("/defg")

    assert fitted is False
    assert cursor.path == "abc/d"
    assert cursor.remaining == 0
    assert "truncated" in caplog.text


def test_push_that_fits_exactly_is_not_truncated() -> None:
    cursor = PathCursor("ab", capacity=4, separator="/")

    assert cursor.push_segment("/c") is True
    assert cursor.path == "ab/c"


def test_capacity_must_be_positive() -> None:
    with pytest.raises(ValueError):
        PathCursor("/a", capacity=0)
