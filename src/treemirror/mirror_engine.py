from __future__ import annotations

from dataclasses import dataclass
import logging
import os
from pathlib import Path
import shutil
import tempfile
from typing import Callable, Iterator

from treemirror.change_detector import (
    DEFAULT_TOLERANCE_SECONDS,
    ContentComparer,
    should_copy,
    tolerance_ns_for,
)
from treemirror.ignore_engine import IgnoreEngine
from treemirror.models import DirectoryEntry, ErrorKind, MirrorOutcome, RunReport
from treemirror.path_cursor import DEFAULT_PATH_CAPACITY, PathCursor


log = logging.getLogger(__name__)

ENUMERATION_MARKER = "*"

Copier = Callable[[str, str], None]


@dataclass(slots=True)
class MirrorRunOptions:
    tolerance_seconds: float = DEFAULT_TOLERANCE_SECONDS
    path_capacity: int = DEFAULT_PATH_CAPACITY
    should_cancel: Callable[[], bool] | None = None


def safe_copy(source_file: str, destination_file: str) -> None:
    destination_dir = os.path.dirname(destination_file)
    with tempfile.NamedTemporaryFile(delete=False, dir=destination_dir, prefix=".treemirror-") as tmp:
        tmp_path = Path(tmp.name)
    try:
        shutil.copy2(source_file, tmp_path)
        tmp_path.replace(destination_file)
    finally:
        if tmp_path.exists():
            tmp_path.unlink(missing_ok=True)


def _to_entry(dir_entry: os.DirEntry[str]) -> DirectoryEntry:
    is_directory = dir_entry.is_dir(follow_symlinks=False)
    last_write_ns = 0
    if not is_directory:
        try:
            last_write_ns = dir_entry.stat().st_mtime_ns
        except OSError:
            last_write_ns = 0
    return DirectoryEntry(name=dir_entry.name, is_directory=is_directory, last_write_ns=last_write_ns)


def _describe(exc: OSError) -> str:
    return exc.strerror or str(exc)


# Both cursors name the same directory on entry to mirror() and are back there on return.
class MirrorWalker:
    def __init__(
        self,
        report: RunReport,
        options: MirrorRunOptions | None = None,
        ignore_engine: IgnoreEngine | None = None,
        copier: Copier = safe_copy,
    ) -> None:
        self.report = report
        self.options = options or MirrorRunOptions()
        self.ignore_engine = ignore_engine
        self.copier = copier
        self.tolerance_ns = tolerance_ns_for(self.options.tolerance_seconds)
        self._comparer = ContentComparer()
        self._source_root_top: int | None = None

    def _open_directory(self, directory: str) -> Iterator[os.DirEntry[str]]:
        return os.scandir(directory)

    def _cancel_requested(self) -> bool:
        return bool(self.options.should_cancel and self.options.should_cancel())

    def _relative_path(self, source: PathCursor) -> str:
        root_top = self._source_root_top or 0
        return source.path[root_top + 1 :]

    def _record_error(self, kind: ErrorKind, path: str, message: str, detail: str = "") -> None:
        self.report.record_error(kind, path, message, detail)
        log.error("%s", message)

    def _skip_subtree(self, kind: ErrorKind, path: str, message: str, detail: str = "") -> MirrorOutcome:
        self._record_error(kind, path, message, detail)
        return MirrorOutcome.SKIPPED

    def mirror(self, source: PathCursor, destination: PathCursor) -> MirrorOutcome:
        if self._source_root_top is None:
            self._source_root_top = source.top
        try:
            return self._mirror_directory(source, destination)
        finally:
            if self._source_root_top == source.top:
                self._source_root_top = None

    def _mirror_directory(self, source: PathCursor, destination: PathCursor) -> MirrorOutcome:
        marker = f"{source.separator}{ENUMERATION_MARKER}"
        if source.remaining < len(marker) or destination.remaining < len(marker):
            return self._skip_subtree(
                ErrorKind.PATH_TOO_LONG,
                source.path,
                f"[ERROR] Path too long to descend into '{source.path}'. "
                "This folder and sub folders will not be backed up",
            )

        destination_dir = destination.path
        try:
            os.mkdir(destination_dir)
        except FileExistsError:
            pass
        except OSError as exc:
            return self._skip_subtree(
                ErrorKind.DIRECTORY_CREATE_FAILED,
                destination_dir,
                f"[ERROR] Could not create dir '{destination_dir}': {_describe(exc)}. "
                "This folder and sub folders will not be backed up",
                _describe(exc),
            )

        source_dir = source.path
        try:
            scan = self._open_directory(source_dir)
        except OSError as exc:
            return self._skip_subtree(
                ErrorKind.DIRECTORY_ENUMERATE_FAILED,
                source_dir,
                f"[ERROR] Could not list folder '{source_dir}': {_describe(exc)}. "
                "This folder/sub-folders and all files will not be backed up",
                _describe(exc),
            )

        source.push_segment(marker)
        destination.push_segment(marker)
        try:
            with scan:
                outcome = self._mirror_entries(scan, source_dir, source, destination)
        finally:
            source.pop_full_directory()
            destination.pop_full_directory()

        if outcome is MirrorOutcome.COMPLETED:
            self.report.folders_checked += 1
        return outcome

    def _mirror_entries(
        self,
        scan: Iterator[os.DirEntry[str]],
        source_dir: str,
        source: PathCursor,
        destination: PathCursor,
    ) -> MirrorOutcome:
        while True:
            if self._cancel_requested():
                self.report.cancelled = True
                return MirrorOutcome.CANCELLED
            try:
                dir_entry = next(scan)
            except StopIteration:
                return MirrorOutcome.COMPLETED
            except OSError as exc:
                # Entries already handled stay handled; the rest of this folder is lost.
                self._record_error(
                    ErrorKind.DIRECTORY_ENUMERATE_FAILED,
                    source_dir,
                    f"[ERROR] Listing of folder '{source_dir}' stopped early: {_describe(exc)}",
                    _describe(exc),
                )
                return MirrorOutcome.COMPLETED

            if dir_entry.name in (".", ".."):
                continue
            entry = _to_entry(dir_entry)

            source.pop_last_segment()
            destination.pop_last_segment()
            source_fits = source.push_segment(entry.name)
            destination_fits = destination.push_segment(entry.name)
            if not (source_fits and destination_fits):
                self._record_error(
                    ErrorKind.PATH_TOO_LONG,
                    source.path,
                    f"[ERROR] Path too long, '{source.path}' was cut short and not backed up",
                )
                continue

            if self.ignore_engine and self.ignore_engine.is_ignored(
                self._relative_path(source), is_dir=entry.is_directory
            ):
                self.report.ignored_count += 1
                continue

            if entry.is_directory:
                if self.mirror(source, destination) is MirrorOutcome.CANCELLED:
                    return MirrorOutcome.CANCELLED
            elif dir_entry.is_symlink() and dir_entry.is_dir():
                log.debug("Not following directory link %s", source.path)
            else:
                self._mirror_file(entry, source.path, destination.path)

    def _mirror_file(self, entry: DirectoryEntry, source_file: str, destination_file: str) -> None:
        report = self.report
        report.files_checked += 1
        if not should_copy(
            source_file,
            destination_file,
            tolerance_ns=self.tolerance_ns,
            source_last_write_ns=entry.last_write_ns or None,
        ):
            return

        report.should_copy_count += 1
        try:
            self.copier(source_file, destination_file)
        except OSError as exc:
            if self._comparer.equal(source_file, destination_file):
                report.should_copy_count -= 1
                log.debug("Copy of %s failed but destination already matches", source_file)
                return
            self._record_error(
                ErrorKind.COPY_FAILED,
                source_file,
                f"[ERROR] {_describe(exc)}\n[PATH] '{source_file}' Was not copied.",
                _describe(exc),
            )
            return

        report.copy_success_count += 1
        log.info("Copied %s", source_file)


def validate_roots(source_root: Path, destination_root: Path) -> None:
    source_resolved = source_root.resolve()
    destination_resolved = destination_root.resolve()

    if source_resolved == destination_resolved:
        raise ValueError(f"Invalid mapping: source and destination are equal: {source_root}")

    if source_resolved in destination_resolved.parents:
        raise ValueError(
            f"Invalid mapping: destination is inside source, which can recurse: {destination_root}"
        )


def mirrored_root(source_root: Path, destination_root: Path) -> Path:
    # <destination>/<source leaf name>
    source_name = Path(os.path.normpath(source_root)).name
    if not source_name:
        raise ValueError(f"Cannot infer source name for destination folder: {source_root}")
    return destination_root / source_name


def mirror_tree(
    source_root: Path,
    destination_root: Path,
    options: MirrorRunOptions | None = None,
    report: RunReport | None = None,
    ignore_engine: IgnoreEngine | None = None,
    copier: Copier = safe_copy,
) -> RunReport:
    options = options or MirrorRunOptions()
    report = report if report is not None else RunReport()

    if not source_root.is_dir():
        raise ValueError(f"Source directory does not exist or is not a directory: {source_root}")
    if not destination_root.is_dir():
        raise ValueError(f"Destination directory does not exist or is not a directory: {destination_root}")
    validate_roots(source_root, mirrored_root(source_root, destination_root))

    source = PathCursor(os.path.normpath(source_root), capacity=options.path_capacity)
    destination = PathCursor(os.path.normpath(destination_root), capacity=options.path_capacity)
    if not source.copy_sibling_prefix(destination):
        raise ValueError(f"Destination path is too long: {destination.path}")

    walker = MirrorWalker(report, options, ignore_engine=ignore_engine, copier=copier)
    outcome = walker.mirror(source, destination)
    log.debug("Mirror of %s finished: %s", source_root, outcome.value)
    return report
