from __future__ import annotations

import logging
import os


log = logging.getLogger(__name__)

# CreateDirectory on Windows rejects paths longer than MAX_PATH - 12.
DEFAULT_PATH_CAPACITY = 248 if os.name == "nt" else 4096


class PathCursor:
    """Bounded path builder moved in lockstep with its counterpart during a walk.

    The buffer is allocated once; ``top`` marks the end of the valid prefix.
    Appends past ``capacity`` are truncated, never raised.
    """

    __slots__ = ("_buffer", "_top", "capacity", "separator")

    def __init__(self, initial: str = "", capacity: int = DEFAULT_PATH_CAPACITY, separator: str = os.sep) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self.capacity = capacity
        self.separator = separator
        self._buffer: list[str] = [""] * capacity
        self._top = 0
        if initial:
            self.push_segment(_strip_trailing_separators(initial, separator))

    @property
    def top(self) -> int:
        return self._top

    @property
    def remaining(self) -> int:
        return self.capacity - self._top

    @property
    def path(self) -> str:
        return "".join(self._buffer[: self._top])

    def __str__(self) -> str:
        return self.path

    def __repr__(self) -> str:
        return f"PathCursor({self.path!r}, capacity={self.capacity})"

    def push_segment(self, text: str) -> bool:
        # False when the text was cut at capacity.
        count = min(len(text), self.capacity - self._top)
        if count:
            self._buffer[self._top : self._top + count] = text[:count]
            self._top += count
        if count < len(text):
            log.warning("Path truncated at %s characters: %s", self.capacity, self.path)
            return False
        return True

    def _scan_back_to_separator(self) -> int:
        index = self._top - 1
        while index > 0 and self._buffer[index] != self.separator:
            index -= 1
        return index

    def pop_last_segment(self) -> None:
        # "a/b/c" -> "a/b/" so the next sibling name can be pushed.
        if self._top == 0:
            return
        index = self._scan_back_to_separator()
        if self._buffer[index] == self.separator:
            self._top = index + 1
        else:
            self._top = 0

    def pop_full_directory(self) -> None:
        # "a/b/c" -> "a/b"
        if self._top == 0:
            return
        self._top = self._scan_back_to_separator()

    def copy_sibling_prefix(self, destination: PathCursor) -> bool:
        # Appends the last component, separator included.
        if self._top == 0:
            return True
        index = self._scan_back_to_separator()
        return destination.push_segment("".join(self._buffer[index : self._top]))


def copy_sibling_prefix(source: PathCursor, destination: PathCursor) -> bool:
    return source.copy_sibling_prefix(destination)


def _strip_trailing_separators(path: str, separator: str) -> str:
    stripped = path.rstrip(separator)
    return stripped or path
