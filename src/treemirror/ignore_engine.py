from __future__ import annotations

import os
from typing import Iterable

import pathspec


class IgnoreEngine:
    def __init__(self, patterns: Iterable[str]) -> None:
        self.patterns = [pattern for pattern in patterns if pattern.strip()]
        self._spec = pathspec.PathSpec.from_lines("gitignore", self.patterns)

    def __bool__(self) -> bool:
        return bool(self.patterns)

    def is_ignored(self, relative_path: str, is_dir: bool = False) -> bool:
        unix_path = relative_path.replace(os.sep, "/")
        candidate = f"{unix_path}/" if is_dir and not unix_path.endswith("/") else unix_path
        return self._spec.match_file(candidate)


def build_ignore_engine(*pattern_groups: Iterable[str]) -> IgnoreEngine:
    patterns: list[str] = []
    for group in pattern_groups:
        patterns.extend(group)
    return IgnoreEngine(patterns)
