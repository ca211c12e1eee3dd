from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import json
import yaml

from treemirror.change_detector import DEFAULT_TOLERANCE_SECONDS, MIN_TOLERANCE_SECONDS


DEFAULT_CONFIG_NAME = "treemirror.yaml"


@dataclass(slots=True)
class BackupConfig:
    source: Path
    destination: Path
    log_dir: Path | None = None
    tolerance_seconds: float = DEFAULT_TOLERANCE_SECONDS
    excludes: list[str] = field(default_factory=list)


def default_config_path() -> Path:
    return Path.cwd() / DEFAULT_CONFIG_NAME


def default_state_dir() -> Path:
    return Path.home() / ".treemirror"


def default_log_dir() -> Path:
    return default_state_dir() / "logs"


def _as_path(value: Any, field_name: str) -> Path:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{field_name} must be a non-empty string path")
    return Path(value.strip()).expanduser()


def _as_tolerance(value: Any) -> float:
    if value is None:
        return DEFAULT_TOLERANCE_SECONDS
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError("toleranceSeconds must be a number")
    if value < MIN_TOLERANCE_SECONDS:
        raise ValueError(f"toleranceSeconds must be at least {MIN_TOLERANCE_SECONDS}")
    return float(value)


def _as_list_of_strings(value: Any, field_name: str) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list) or any(not isinstance(item, str) for item in value):
        raise ValueError(f"{field_name} must be a list of strings")
    return [item for item in value if item.strip()]


def _parse_pair_line(text: str) -> dict[str, Any]:
    # Legacy form: "<source>,<destination>" on the first line.
    lines = text.splitlines()
    first_line = lines[0] if lines else ""
    source, separator, destination = first_line.partition(",")
    if not separator:
        raise ValueError("Default paths file must contain '<source>,<destination>'")
    return {"source": source, "destination": destination}


def _load_raw_config(config_path: Path) -> dict[str, Any]:
    if not config_path.exists():
        raise ValueError(f"Config file does not exist: {config_path}")

    suffix = config_path.suffix.lower()
    text = config_path.read_text(encoding="utf-8")
    if suffix in {".yml", ".yaml"}:
        loaded = yaml.safe_load(text)
    elif suffix == ".json":
        loaded = json.loads(text)
    elif suffix == ".txt":
        loaded = _parse_pair_line(text)
    else:
        raise ValueError("Config file must be .yaml/.yml, .json or .txt")

    if not isinstance(loaded, dict):
        raise ValueError("Config root must be an object")
    return loaded


def load_config(config_path: Path) -> BackupConfig:
    raw = _load_raw_config(config_path)
    raw_log_dir = raw.get("logDir")
    return BackupConfig(
        source=_as_path(raw.get("source"), "source"),
        destination=_as_path(raw.get("destination"), "destination"),
        log_dir=_as_path(raw_log_dir, "logDir") if raw_log_dir else None,
        tolerance_seconds=_as_tolerance(raw.get("toleranceSeconds")),
        excludes=_as_list_of_strings(raw.get("excludes"), "excludes"),
    )


def validate_paths(config: BackupConfig) -> None:
    if not config.source.is_dir():
        raise ValueError(f"Source directory does not exist: {config.source}")
    if not config.destination.is_dir():
        raise ValueError(f"Destination directory does not exist: {config.destination}")
