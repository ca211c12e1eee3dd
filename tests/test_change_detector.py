import os
from pathlib import Path
import shutil

import pytest

from treemirror.change_detector import (
    ContentComparer,
    contents_equal,
    last_write_ns,
    should_copy,
    tolerance_ns_for,
)


SECOND_NS = 1_000_000_000


def _write(path: Path, content: bytes, mtime_seconds: int | None = None) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)
    if mtime_seconds is not None:
        os.utime(path, ns=(mtime_seconds * SECOND_NS, mtime_seconds * SECOND_NS))


def test_missing_destination_always_copies(tmp_path: Path) -> None:
    source = tmp_path / "a.txt"
    _write(source, b"data", mtime_seconds=100)

    assert last_write_ns(tmp_path / "missing.txt") == 0
    assert should_copy(source, tmp_path / "missing.txt") is True


def test_copy_with_metadata_stops_further_copies(tmp_path: Path) -> None:
    source = tmp_path / "a.txt"
    destination = tmp_path / "b.txt"
    _write(source, b"data", mtime_seconds=100)

    assert should_copy(source, destination) is True
    shutil.copy2(source, destination)

    assert should_copy(source, destination) is False


def test_difference_inside_tolerance_is_not_a_change(tmp_path: Path) -> None:
    source = tmp_path / "a.txt"
    destination = tmp_path / "b.txt"
    _write(source, b"data", mtime_seconds=105)
    _write(destination, b"other", mtime_seconds=100)

    assert should_copy(source, destination) is False


def test_difference_beyond_tolerance_in_either_direction_copies(tmp_path: Path) -> None:
    source = tmp_path / "a.txt"
    destination = tmp_path / "b.txt"
    _write(source, b"data", mtime_seconds=100)
    _write(destination, b"data", mtime_seconds=111)

    assert should_copy(source, destination) is True
    assert should_copy(destination, source) is True


def test_custom_tolerance(tmp_path: Path) -> None:
    source = tmp_path / "a.txt"
    destination = tmp_path / "b.txt"
    _write(source, b"data", mtime_seconds=100)
    _write(destination, b"data", mtime_seconds=103)

    assert should_copy(source, destination, tolerance_ns=tolerance_ns_for(2)) is True
    assert should_copy(source, destination, tolerance_ns=tolerance_ns_for(5)) is False


def test_tolerance_finer_than_fat_resolution_is_rejected() -> None:
    with pytest.raises(ValueError):
        tolerance_ns_for(1)


def test_contents_equal_for_identical_files(tmp_path: Path) -> None:
    _write(tmp_path / "a.bin", b"same bytes")
    _write(tmp_path / "b.bin", b"same bytes")

    assert contents_equal(tmp_path / "a.bin", tmp_path / "b.bin") is True


def test_contents_differ_by_one_byte(tmp_path: Path) -> None:
    _write(tmp_path / "a.bin", b"same bytes")
    _write(tmp_path / "b.bin", b"same bytez")

    assert contents_equal(tmp_path / "a.bin", tmp_path / "b.bin") is False


def test_size_mismatch_is_not_equal(tmp_path: Path) -> None:
    _write(tmp_path / "a.bin", b"prefix and more")
    _write(tmp_path / "b.bin", b"prefix")

    assert contents_equal(tmp_path / "a.bin", tmp_path / "b.bin") is False


def test_unopenable_file_is_not_equal(tmp_path: Path) -> None:
    _write(tmp_path / "a.bin", b"data")

    assert contents_equal(tmp_path / "a.bin", tmp_path / "missing.bin") is False
    assert contents_equal(tmp_path / "missing.bin", tmp_path / "a.bin") is False


def test_comparer_streams_multiple_chunks(tmp_path: Path) -> None:
    payload = bytes(range(256)) * 4
    changed = bytearray(payload)
    changed[-1] ^= 0xFF
    _write(tmp_path / "a.bin", payload)
    _write(tmp_path / "b.bin", payload)
    _write(tmp_path / "c.bin", bytes(changed))

    comparer = ContentComparer(chunk_size=64)

    assert comparer.equal(tmp_path / "a.bin", tmp_path / "b.bin") is True
    assert comparer.equal(tmp_path / "a.bin", tmp_path / "c.bin") is False
    assert comparer.equal(tmp_path / "b.bin", tmp_path / "a.bin") is True


def test_empty_files_are_equal(tmp_path: Path) -> None:
    _write(tmp_path / "a.bin", b"")
    _write(tmp_path / "b.bin", b"")

    assert contents_equal(tmp_path / "a.bin", tmp_path / "b.bin") is True


def test_comparer_requires_positive_chunk_size() -> None:
    with pytest.raises(ValueError):
        ContentComparer(chunk_size=0)
