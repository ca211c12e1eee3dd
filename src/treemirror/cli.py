from __future__ import annotations

import argparse
import importlib
import logging
from pathlib import Path
import sys

from treemirror.change_detector import tolerance_ns_for
from treemirror.config import BackupConfig, default_config_path, load_config, validate_paths
from treemirror.mirror_engine import mirrored_root, validate_roots
from treemirror.run_log import LOG_FORMAT
from treemirror.run_service import (
    EXIT_INVALID_CONFIG,
    EXIT_RUNTIME_OR_CONFIG_ERROR,
    EXIT_SUCCESS,
    BackupResult,
    build_config,
    run_backup,
)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="treemirror", description="Incremental one-way folder backup")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Mirror the source folder into the destination")
    run_parser.add_argument("--config", type=Path, help=f"Default paths file (default: ./{default_config_path().name})")
    run_parser.add_argument("--source", type=Path)
    run_parser.add_argument("--dest", type=Path)
    run_parser.add_argument("--log-dir", type=Path)
    run_parser.add_argument("--exclude", action="append", default=[], help="Gitignore-style pattern to skip")
    run_parser.add_argument("--tolerance-seconds", type=float)
    run_parser.add_argument(
        "--interactive",
        action="store_true",
        help="Pick folders with a dialog when no valid paths are configured",
    )
    run_parser.add_argument("--notify", action="store_true", help="Show a message box when the backup ends")
    run_parser.add_argument("-v", "--verbose", action="store_true")

    validate_parser = subparsers.add_parser("validate-config", help="Validate a default paths file")
    validate_parser.add_argument("--config", type=Path)

    return parser


def _load_dialogs():
    try:
        return importlib.import_module("treemirror.dialogs")
    except ImportError as exc:
        print(f"Folder dialogs are unavailable: {exc}", file=sys.stderr)
        return None


def _print_result(result: BackupResult) -> None:
    report = result.report
    print(
        f"{result.source} -> {result.destination} | checked={report.files_checked} "
        f"folders={report.folders_checked} copied={report.copy_success_count}/{report.should_copy_count} "
        f"errors={report.error_count}"
    )
    for message in report.messages:
        print(message, file=sys.stderr)
    if result.log_file is not None:
        print(f"Log: {result.log_file}")


def _resolve_config(args: argparse.Namespace) -> BackupConfig | None:
    if args.source or args.dest:
        if not (args.source and args.dest):
            print("--source and --dest must be given together", file=sys.stderr)
            return None
        config = build_config(args.source, args.dest)
        try:
            validate_paths(config)
        except ValueError as exc:
            print(f"Invalid paths: {exc}", file=sys.stderr)
            return None
        return config

    config_path = args.config or default_config_path()
    try:
        config = load_config(config_path)
        validate_paths(config)
        return config
    except ValueError as exc:
        if not args.interactive:
            print(f"Invalid config: {exc}", file=sys.stderr)
            return None

    dialogs = _load_dialogs()
    if dialogs is None:
        return None
    chosen = dialogs.choose_backup_paths()
    if chosen is None:
        print("No folders selected, backup not started", file=sys.stderr)
        return None
    return build_config(*chosen)


def cmd_validate(config_path: Path | None) -> int:
    config_path = config_path or default_config_path()
    try:
        config = load_config(config_path)
        validate_paths(config)
        destination_root = mirrored_root(config.source, config.destination)
        validate_roots(config.source, destination_root)
    except ValueError as exc:
        print(f"Invalid config: {exc}", file=sys.stderr)
        return EXIT_INVALID_CONFIG

    print(f"Valid config: {config_path}")
    print(f"  - {config.source} -> {destination_root}")
    print(f"  - toleranceSeconds={config.tolerance_seconds:g} excludes={len(config.excludes)}")
    return EXIT_SUCCESS


def cmd_run(args: argparse.Namespace) -> int:
    config = _resolve_config(args)
    if config is None:
        return EXIT_INVALID_CONFIG

    if args.log_dir:
        config.log_dir = args.log_dir
    if args.tolerance_seconds is not None:
        try:
            tolerance_ns_for(args.tolerance_seconds)
        except ValueError as exc:
            print(f"Invalid config: {exc}", file=sys.stderr)
            return EXIT_INVALID_CONFIG
        config.tolerance_seconds = args.tolerance_seconds
    config.excludes.extend(args.exclude)

    exit_code, result = run_backup(config)

    if result is None:
        print("Backup not started", file=sys.stderr)
        return exit_code

    _print_result(result)
    if args.notify:
        dialogs = _load_dialogs()
        if dialogs is None:
            return EXIT_RUNTIME_OR_CONFIG_ERROR
        dialogs.show_summary("Complete", result.summary_lines())
    return exit_code


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command == "validate-config":
        return cmd_validate(args.config)
    if args.command == "run":
        if args.verbose:
            logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
        return cmd_run(args)

    parser.print_help()
    return EXIT_RUNTIME_OR_CONFIG_ERROR


if __name__ == "__main__":
    raise SystemExit(main())
