from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class ErrorKind(str, Enum):
    DIRECTORY_CREATE_FAILED = "directory-create-failed"
    DIRECTORY_ENUMERATE_FAILED = "directory-enumerate-failed"
    COPY_FAILED = "copy-failed"
    PATH_TOO_LONG = "path-too-long"


class MirrorOutcome(str, Enum):
    COMPLETED = "completed"
    SKIPPED = "skipped"
    CANCELLED = "cancelled"


@dataclass(slots=True, frozen=True)
class DirectoryEntry:
    name: str
    is_directory: bool
    last_write_ns: int = 0


@dataclass(slots=True, frozen=True)
class MirrorError:
    kind: ErrorKind
    path: str
    detail: str


@dataclass(slots=True)
class RunReport:
    files_checked: int = 0
    folders_checked: int = 0
    should_copy_count: int = 0
    copy_success_count: int = 0
    error_count: int = 0
    ignored_count: int = 0
    cancelled: bool = False
    messages: list[str] = field(default_factory=list)
    errors: list[MirrorError] = field(default_factory=list)

    def record_error(self, kind: ErrorKind, path: str, message: str, detail: str = "") -> None:
        self.error_count += 1
        self.messages.append(message)
        self.errors.append(MirrorError(kind=kind, path=path, detail=detail))

    @property
    def has_failures(self) -> bool:
        return bool(self.error_count) or self.cancelled
