from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path
import logging
import time
from typing import Iterable

from treemirror.config import BackupConfig, default_log_dir, validate_paths
from treemirror.ignore_engine import build_ignore_engine
from treemirror.mirror_engine import MirrorRunOptions, mirror_tree, mirrored_root, validate_roots
from treemirror.models import RunReport
from treemirror.run_log import DiskSpace, RunLog, read_disk_space, render_summary


EXIT_SUCCESS = 0
EXIT_RUNTIME_OR_CONFIG_ERROR = 1
EXIT_PARTIAL_FAILURES = 2
EXIT_INVALID_CONFIG = 3


@dataclass(slots=True)
class BackupResult:
    source: Path
    destination: Path
    report: RunReport
    elapsed_seconds: float = 0.0
    disk: DiskSpace | None = None
    log_file: Path | None = None

    def summary_lines(self) -> list[str]:
        return render_summary(self.report, self.elapsed_seconds, self.disk)


def build_config(
    source: Path,
    destination: Path,
    log_dir: Path | None = None,
    tolerance_seconds: float | None = None,
    excludes: Iterable[str] = (),
) -> BackupConfig:
    config = BackupConfig(source=source, destination=destination, log_dir=log_dir, excludes=list(excludes))
    if tolerance_seconds is not None:
        config.tolerance_seconds = tolerance_seconds
    return config


def run_backup(
    config: BackupConfig,
    options: MirrorRunOptions | None = None,
    logger: logging.Logger | None = None,
) -> tuple[int, BackupResult | None]:
    log = logger or logging.getLogger("treemirror.run")

    try:
        validate_paths(config)
        destination_root = mirrored_root(config.source, config.destination)
        validate_roots(config.source, destination_root)
    except ValueError as exc:
        log.error("Config/runtime error: %s", exc)
        return EXIT_INVALID_CONFIG, None

    options = replace(options or MirrorRunOptions(), tolerance_seconds=config.tolerance_seconds)
    ignore_engine = build_ignore_engine(config.excludes)

    try:
        run_log = RunLog(config.log_dir or default_log_dir())
    except OSError as exc:
        log.error("Log couldn't be created, backup not started: %s", exc)
        return EXIT_RUNTIME_OR_CONFIG_ERROR, None

    result = BackupResult(
        source=config.source,
        destination=destination_root,
        report=RunReport(),
        log_file=run_log.log_file,
    )
    with run_log:
        run_log.write_start(config.source, destination_root)
        started = time.perf_counter()
        try:
            mirror_tree(
                config.source,
                config.destination,
                options=options,
                report=result.report,
                ignore_engine=ignore_engine or None,
            )
        except ValueError as exc:
            log.error("Backup not started: %s", exc)
            return EXIT_INVALID_CONFIG, None
        result.elapsed_seconds = time.perf_counter() - started
        result.disk = read_disk_space(config.destination)
        run_log.write_report(result.report, result.elapsed_seconds, result.disk)

    log.info(
        "%s -> %s | checked=%s copied=%s/%s errors=%s",
        config.source,
        destination_root,
        result.report.files_checked,
        result.report.copy_success_count,
        result.report.should_copy_count,
        result.report.error_count,
    )
    exit_code = EXIT_PARTIAL_FAILURES if result.report.has_failures else EXIT_SUCCESS
    return exit_code, result
