"""Configuration for ci-status runs (flags, .ci-status.yml and defaults)."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, TypeVar

import yaml

from .errors import ConfigError
from .forge.client import DEFAULT_REQUEST_TIMEOUT
from .models import State

CONFIG_FILENAME = ".ci-status.yml"

DEFAULT_PENDING_DESC = "Running..."
DEFAULT_SUCCESS_DESC = "Passed"
DEFAULT_FAILURE_DESC = "Failed"
TIMEOUT_DESC = "Timed out"

_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")
_UNIT_SECONDS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}

T = TypeVar("T")


@dataclass
class RunConfig:
    """Settings for ``ci-status run``."""

    context: str
    command: str
    args: List[str] = field(default_factory=list)
    forge: Optional[str] = None
    commit: Optional[str] = None
    url: Optional[str] = None
    pending_desc: str = DEFAULT_PENDING_DESC
    success_desc: str = DEFAULT_SUCCESS_DESC
    failure_desc: str = DEFAULT_FAILURE_DESC
    timeout: Optional[float] = None
    silent: bool = False
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT


@dataclass
class SetConfig:
    """Settings for ``ci-status set``."""

    context: str
    state: State = State.PENDING
    description: str = ""
    url: Optional[str] = None
    commit: Optional[str] = None
    forge: Optional[str] = None
    silent: bool = False
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT


@dataclass
class FileConfig:
    """Project defaults read from .ci-status.yml. ``None`` means unset."""

    path: Optional[Path] = None
    forge: Optional[str] = None
    url: Optional[str] = None
    timeout: Optional[float] = None
    silent: Optional[bool] = None
    request_timeout: Optional[float] = None
    pending_desc: Optional[str] = None
    success_desc: Optional[str] = None
    failure_desc: Optional[str] = None


def load_config(config_path: Path | None = None, *, required: bool = False) -> FileConfig:
    """Load project defaults.

    ``config_path`` may be a directory (searched for .ci-status.yml) or a file.
    A missing file yields empty defaults unless ``required`` is set.
    """
    config_file = _resolve_config_path(config_path or Path.cwd())
    if not config_file.exists():
        if required:
            raise ConfigError(f"Config file not found: {config_file}")
        return FileConfig()

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{config_file.name} must contain a mapping at the root")

    descriptions = _as_dict(data.get("descriptions"))
    return FileConfig(
        path=config_file,
        forge=_as_str(data.get("forge")),
        url=_as_str(data.get("url")),
        timeout=_as_duration(data.get("timeout"), "timeout"),
        silent=_as_bool(data.get("silent")),
        request_timeout=_as_duration(data.get("request_timeout"), "request_timeout"),
        pending_desc=_as_str(descriptions.get("pending")),
        success_desc=_as_str(descriptions.get("success")),
        failure_desc=_as_str(descriptions.get("failure")),
    )


def parse_duration(value: str | float | int | None) -> Optional[float]:
    """Parse ``100ms``, ``1m30s``, ``2h`` or a bare number of seconds.

    Returns ``None`` for empty or zero durations, meaning "no deadline".
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise ConfigError(f"Invalid duration: {value!r}")
    if isinstance(value, (int, float)):
        seconds = float(value)
    else:
        text = value.strip()
        if not text:
            return None
        try:
            seconds = float(text)
        except ValueError:
            seconds = _parse_unit_duration(text)
    if not math.isfinite(seconds) or seconds < 0:
        raise ConfigError(f"Duration must be a finite, non-negative value: {value!r}")
    return seconds or None


def first_set(*values: Optional[T]) -> Optional[T]:
    """Return the first value that is not ``None``."""
    for value in values:
        if value is not None:
            return value
    return None


def _parse_unit_duration(text: str) -> float:
    position = 0
    total = 0.0
    for match in _DURATION_PART.finditer(text):
        if match.start() != position:
            break
        total += float(match.group(1)) * _UNIT_SECONDS[match.group(2)]
        position = match.end()
    if position == 0 or position != len(text):
        raise ConfigError(f"Invalid duration: {text!r}")
    return total


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded if loaded is not None else {}


def _as_dict(value: Any) -> Dict[str, Any]:
    if isinstance(value, dict):
        return value
    return {}


def _as_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return str(value)


def _as_bool(value: Any) -> Optional[bool]:
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1", "on"}:
            return True
        if lowered in {"false", "no", "0", "off"}:
            return False
    raise ConfigError(f"Expected a boolean, got {value!r}")


def _as_duration(value: Any, key: str) -> Optional[float]:
    if value is None:
        return None
    if not isinstance(value, (str, int, float)) or isinstance(value, bool):
        raise ConfigError(f"{key} must be a duration, got {value!r}")
    return parse_duration(value)


__all__ = [
    "CONFIG_FILENAME",
    "DEFAULT_FAILURE_DESC",
    "DEFAULT_PENDING_DESC",
    "DEFAULT_SUCCESS_DESC",
    "FileConfig",
    "RunConfig",
    "SetConfig",
    "TIMEOUT_DESC",
    "first_set",
    "load_config",
    "parse_duration",
]
