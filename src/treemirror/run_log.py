from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
import logging
from pathlib import Path
import shutil

from treemirror.models import RunReport


PACKAGE_LOGGER = "treemirror"
LOG_FORMAT = "%(asctime)s %(levelname)s %(message)s"
BYTES_PER_GB = 1024 * 1024 * 1024


@dataclass(slots=True, frozen=True)
class DiskSpace:
    free_gb: int
    total_gb: int


def read_disk_space(path: Path) -> DiskSpace | None:
    try:
        usage = shutil.disk_usage(path)
    except OSError:
        logging.getLogger(f"{PACKAGE_LOGGER}.run").warning("Could not read free space for %s", path)
        return None
    return DiskSpace(free_gb=usage.free // BYTES_PER_GB, total_gb=usage.total // BYTES_PER_GB)


def _format_timestamp(moment: datetime) -> str:
    return f"{moment.month}-{moment.day}-{moment.year} at {moment.hour}:{moment.minute}:{moment.second}"


def log_file_name(started_at: datetime, attempt: int = 0) -> str:
    stem = (
        f"log_{started_at.month}-{started_at.day}-{started_at.year}"
        f"_{started_at.hour}-{started_at.minute}-{started_at.second}"
    )
    return f"{stem}.txt" if attempt == 0 else f"{stem}_{attempt}.txt"


def render_counters(report: RunReport) -> list[str]:
    lines = [
        f"{report.files_checked} files checked",
        f"{report.folders_checked} folders checked",
        f"{report.copy_success_count} out of {report.should_copy_count} files copied.",
        f"{report.error_count} errors occurred.",
    ]
    if report.ignored_count:
        lines.append(f"{report.ignored_count} entries ignored")
    if report.cancelled:
        lines.append("Backup was cancelled before it finished.")
    return lines


def render_summary(report: RunReport, elapsed_seconds: float, disk: DiskSpace | None = None) -> list[str]:
    lines = ["Backup Complete!!", f"Time elapsed: {elapsed_seconds:.3f} seconds"]
    lines.extend(render_counters(report))
    if disk is not None:
        lines.append(f"{disk.free_gb} free GB")
        lines.append(f"{disk.total_gb} total GB")
    return lines


# One file per run; package log records are routed into it while open.
class RunLog:
    def __init__(self, log_dir: Path, started_at: datetime | None = None) -> None:
        self.started_at = started_at or datetime.now()
        self.log_file, self._handler = self._create_handler(log_dir, self.started_at)
        self._package_logger = logging.getLogger(PACKAGE_LOGGER)
        self._previous_level = self._package_logger.level
        self.logger = logging.getLogger(f"{PACKAGE_LOGGER}.run")

    @staticmethod
    def _create_handler(log_dir: Path, started_at: datetime) -> tuple[Path, logging.FileHandler]:
        log_dir.mkdir(parents=True, exist_ok=True)
        attempt = 0
        while True:
            candidate = log_dir / log_file_name(started_at, attempt)
            try:
                handler = logging.FileHandler(
                    candidate, mode="x", encoding="utf-8", errors="backslashreplace"
                )
            except FileExistsError:
                attempt += 1
                continue
            handler.setFormatter(logging.Formatter(LOG_FORMAT))
            return candidate, handler

    def __enter__(self) -> "RunLog":
        self._package_logger.addHandler(self._handler)
        if self._package_logger.level == logging.NOTSET or self._package_logger.level > logging.INFO:
            self._package_logger.setLevel(logging.INFO)
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._package_logger.removeHandler(self._handler)
        self._package_logger.setLevel(self._previous_level)
        self._handler.close()

    def write_start(self, source: Path, destination: Path) -> None:
        self.logger.info("[BACKUP START] Backup started on %s", _format_timestamp(self.started_at))
        self.logger.info("[PATHS] %s -> %s", source, destination)

    def write_report(self, report: RunReport, elapsed_seconds: float, disk: DiskSpace | None) -> None:
        self.logger.info("[STATS]\n\t%s", "\n\t".join(render_counters(report)))
        self.logger.info("[END] Backup ended on %s", _format_timestamp(datetime.now()))
        self.logger.info("[BACKUP_END]\n\t\t%s", "\n\t\t".join(render_summary(report, elapsed_seconds, disk)))
