from __future__ import annotations

import os


NANOSECONDS_PER_SECOND = 1_000_000_000
# FAT records write times with 2 second resolution.
MIN_TOLERANCE_SECONDS = 2
DEFAULT_TOLERANCE_SECONDS = 10
DEFAULT_TOLERANCE_NS = DEFAULT_TOLERANCE_SECONDS * NANOSECONDS_PER_SECOND
COMPARE_CHUNK_SIZE = 1024 * 1024


def tolerance_ns_for(seconds: float) -> int:
    if seconds < MIN_TOLERANCE_SECONDS:
        raise ValueError(
            f"Timestamp tolerance must be at least {MIN_TOLERANCE_SECONDS} seconds, got {seconds}"
        )
    return int(seconds * NANOSECONDS_PER_SECOND)


def last_write_ns(path: str | os.PathLike[str]) -> int:
    try:
        return os.stat(path).st_mtime_ns
    except OSError:
        return 0


def should_copy(
    source: str | os.PathLike[str],
    destination: str | os.PathLike[str],
    tolerance_ns: int = DEFAULT_TOLERANCE_NS,
    source_last_write_ns: int | None = None,
) -> bool:
    # A missing destination reads as time 0, so new files always copy.
    source_time = last_write_ns(source) if source_last_write_ns is None else source_last_write_ns
    destination_time = last_write_ns(destination)
    return abs(source_time - destination_time) > tolerance_ns


# Byte-for-byte comparison; buffers are reused across calls.
class ContentComparer:
    def __init__(self, chunk_size: int = COMPARE_CHUNK_SIZE) -> None:
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self._source_buffer = bytearray(chunk_size)
        self._destination_buffer = bytearray(chunk_size)

    def equal(self, source: str | os.PathLike[str], destination: str | os.PathLike[str]) -> bool:
        # Anything that stops a full comparison counts as "not equal".
        try:
            with open(source, "rb") as source_handle, open(destination, "rb") as destination_handle:
                source_size = os.fstat(source_handle.fileno()).st_size
                destination_size = os.fstat(destination_handle.fileno()).st_size
                if source_size != destination_size:
                    return False
                return self._stream_equal(source_handle, destination_handle)
        except OSError:
            return False

    def _stream_equal(self, source_handle, destination_handle) -> bool:
        source_view = memoryview(self._source_buffer)
        destination_view = memoryview(self._destination_buffer)
        while True:
            source_read = source_handle.readinto(self._source_buffer)
            destination_read = destination_handle.readinto(self._destination_buffer)
            if source_read != destination_read:
                return False
            if not source_read:
                return True
            if source_view[:source_read] != destination_view[:destination_read]:
                return False


def contents_equal(source: str | os.PathLike[str], destination: str | os.PathLike[str]) -> bool:
    return ContentComparer().equal(source, destination)
