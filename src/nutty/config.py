"""NuttyConfig: project-local config for the block store and identifier tools.

Default layout (all relative to the project root):

    nutty.toml            # project config (git-tracked)
    .nutty/
        blocks.jsonl      # content blocks, one JSON object per line

nutty.toml example:

    [nutty]
    name = "my-notes"
    # store_path = ".nutty/blocks.jsonl"   # default

    [time]
    # timezone = "Europe/Berlin"   # zone for decoded id timestamps; default: local

    [logging]
    # level = "WARNING"
"""

from __future__ import annotations

import json
import tomllib
from dataclasses import dataclass, field
from datetime import tzinfo
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

_CONFIG_FILENAME = "nutty.toml"
_DEFAULT_STORE_PATH = ".nutty/blocks.jsonl"
_DEFAULT_LOG_LEVEL = "WARNING"
_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConfigError(ValueError):
    """nutty.toml is present but unusable."""


@dataclass
class TimeConfig:
    timezone: str = ""   # IANA name; empty = the decoding machine's local zone


@dataclass
class LoggingConfig:
    level: str = _DEFAULT_LOG_LEVEL


@dataclass
class NuttyConfig:
    """Resolved configuration for a nutty project."""

    root: Path                      # directory that contains nutty.toml
    name: str = ""
    store_path: Path = field(default_factory=Path)
    time: TimeConfig = field(default_factory=TimeConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @property
    def config_path(self) -> Path:
        return self.root / _CONFIG_FILENAME

    @property
    def tzinfo(self) -> tzinfo | None:
        """Zone for NuttyId timestamps, or None to use the local zone."""
        if not self.time.timezone:
            return None
        return ZoneInfo(self.time.timezone)


def load_config(root: Path | str | None = None) -> NuttyConfig:
    """Load nutty.toml from root (or search upward from cwd if root is None)."""
    root_path = _find_root(Path(root) if root else Path.cwd())
    config_path = root_path / _CONFIG_FILENAME

    raw: dict[str, Any] = {}
    if config_path.exists():
        with config_path.open("rb") as f:
            try:
                raw = tomllib.load(f)
            except tomllib.TOMLDecodeError as exc:
                msg = f"{config_path}: {exc}"
                raise ConfigError(msg) from exc

    nutty_section = raw.get("nutty", {})
    time_section = raw.get("time", {})
    log_section = raw.get("logging", {})

    timezone = str(time_section.get("timezone", ""))
    if timezone:
        _check_timezone(timezone, config_path)

    level = str(log_section.get("level", _DEFAULT_LOG_LEVEL)).upper()
    if level not in _LOG_LEVELS:
        msg = f"{config_path}: unknown log level {level!r}"
        raise ConfigError(msg)

    return NuttyConfig(
        root=root_path,
        name=nutty_section.get("name", root_path.name),
        store_path=root_path / nutty_section.get("store_path", _DEFAULT_STORE_PATH),
        time=TimeConfig(timezone=timezone),
        logging=LoggingConfig(level=level),
    )


def _find_root(start: Path) -> Path:
    """Nearest directory at or above start holding nutty.toml; start if none does."""
    found = (d for d in (start, *start.parents) if (d / _CONFIG_FILENAME).is_file())
    return next(found, start)


def _check_timezone(timezone: str, config_path: Path) -> None:
    try:
        ZoneInfo(timezone)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        msg = f"{config_path}: unknown timezone {timezone!r}"
        raise ConfigError(msg) from exc


def init_config(root: Path, name: str | None = None, timezone: str | None = None) -> Path:
    """Write nutty.toml at root and return its path.

    Defaults are written commented out. A given timezone is validated and
    written as a live setting. Raises FileExistsError if the file exists.
    """
    config_path = root / _CONFIG_FILENAME
    if config_path.exists():
        msg = f"nutty.toml already exists at {config_path}"
        raise FileExistsError(msg)
    if timezone:
        _check_timezone(timezone, config_path)

    # JSON string escapes are valid TOML basic-string escapes
    time_line = (
        f"timezone = {json.dumps(timezone)}"
        if timezone
        else '# timezone = "Europe/Berlin"   # zone for decoded id timestamps (default: local)'
    )
    lines = [
        "[nutty]",
        f"name = {json.dumps(name or root.name)}",
        f"# store_path = {json.dumps(_DEFAULT_STORE_PATH)}",
        "",
        "[time]",
        time_line,
        "",
        "[logging]",
        f"# level = {json.dumps(_DEFAULT_LOG_LEVEL)}",
    ]
    config_path.write_text("\n".join(lines) + "\n")
    return config_path
