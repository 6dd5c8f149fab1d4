from __future__ import annotations

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Mapping, Optional
import logging
import os
import uuid

import yaml

from .types import FAILURE_NOTIFICATION


class ConfigError(ValueError):
    """Raised when a reporter configuration file is malformed."""


_TRUE_STRINGS = ("1", "true", "yes", "on")
_FALSE_STRINGS = ("0", "false", "no", "off", "")


def _parse_bool(raw: str, fallback: bool) -> bool:
    value = raw.strip().lower()
    if value in _TRUE_STRINGS:
        return True
    if value in _FALSE_STRINGS:
        return False
    return fallback


def _env_bool(name: str, fallback: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return fallback
    return _parse_bool(raw, fallback)


def _parse_level(raw: Any, fallback: int) -> int:
    if isinstance(raw, int) and not isinstance(raw, bool):
        return raw
    text = str(raw).strip()
    if text.isdigit():
        return int(text)
    level = logging.getLevelName(text.upper())
    return level if isinstance(level, int) else fallback


@dataclass(frozen=True)
class ReporterConfig:
    """
    Configuration for the reporter's logging and broadcast behavior.

    Parameters
    ----------
    log_dir
        Directory where the run log and JSONL event log are written.
    run_id
        Identifier stamped on every log line. If "auto", a UUID4 prefix is generated.
    console_level
        Logging level for console output.
    file_level
        Logging level for file output.
    write_log_file
        If True, the text block is also written to <log_dir>/run_<run_id>.log.
    write_jsonl
        If True, every reported failure is appended to <log_dir>/events_<run_id>.jsonl.
    rich_console
        Render console output with Rich; otherwise a plain stream handler on stderr.
    notification_name
        Topic the reporter publishes failure payloads on.
    env_prefix
        Prefix for environment-variable overrides, e.g. "EZERR_".

    Usage example
    -------------
        cfg = ReporterConfig(log_dir=Path("logs"), write_jsonl=True)
    """

    log_dir: Path = Path("logs")
    run_id: str = "auto"

    console_level: int = 20  # logging.INFO
    file_level: int = 10  # logging.DEBUG

    write_log_file: bool = True
    write_jsonl: bool = False
    rich_console: bool = True

    notification_name: str = FAILURE_NOTIFICATION

    env_prefix: str = field(default="", repr=False)

    def resolved_run_id(self) -> str:
        """Return a non-auto run id."""
        if self.run_id != "auto":
            return self.run_id
        return uuid.uuid4().hex[:10]

    @classmethod
    def from_env(cls, *, default: Optional["ReporterConfig"] = None) -> "ReporterConfig":
        """
        Create config from environment variables.

        Supported variables (prefix controlled by env_prefix on `default`):
        - <PFX>LOG_DIR: path
        - <PFX>WRITE_LOG_FILE: "1"/"0"
        - <PFX>WRITE_JSONL: "1"/"0"
        - <PFX>RICH_CONSOLE: "1"/"0"
        - <PFX>CONSOLE_LEVEL: level name or number

        Unrecognized values fall back to `default`.

        Usage example
        -------------
            cfg = ReporterConfig.from_env(default=ReporterConfig(env_prefix="EZERR_"))
        """
        base = default if default is not None else cls()
        pfx = base.env_prefix

        log_dir = Path(os.getenv(f"{pfx}LOG_DIR", str(base.log_dir)))
        write_log_file = _env_bool(f"{pfx}WRITE_LOG_FILE", base.write_log_file)
        write_jsonl = _env_bool(f"{pfx}WRITE_JSONL", base.write_jsonl)
        rich_console = _env_bool(f"{pfx}RICH_CONSOLE", base.rich_console)
        console_level = _parse_level(os.getenv(f"{pfx}CONSOLE_LEVEL", base.console_level), base.console_level)

        return cls(
            log_dir=log_dir,
            run_id=base.run_id,
            console_level=console_level,
            file_level=base.file_level,
            write_log_file=write_log_file,
            write_jsonl=write_jsonl,
            rich_console=rich_console,
            notification_name=base.notification_name,
            env_prefix=pfx,
        )

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ReporterConfig":
        """
        Create config from a parsed mapping (e.g. the ``ezerr`` section of a YAML file).

        Unknown keys raise ConfigError.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"Unknown ezerr config keys: {', '.join(unknown)}")

        base = cls()
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            if value is None:
                continue
            if key == "log_dir":
                kwargs[key] = Path(str(value))
            elif key in ("console_level", "file_level"):
                kwargs[key] = _parse_level(value, getattr(base, key))
            elif key in ("write_log_file", "write_jsonl", "rich_console"):
                kwargs[key] = value if isinstance(value, bool) else _parse_bool(str(value), getattr(base, key))
            else:
                kwargs[key] = str(value)
        return cls(**kwargs)


def load_config(root: Path) -> ReporterConfig:
    """
    Load reporter config from a project root if present.

    Search order:
    1) ``ezerr.yaml``
    2) ``config.yaml`` (``ezerr:`` section)

    Returns the default config when neither file has an ``ezerr`` section.
    """

    for filename in ("ezerr.yaml", "config.yaml"):
        config_path = root / filename
        if not config_path.exists():
            continue
        try:
            data = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as error:
            raise ConfigError(f"Could not parse {config_path}: {error}") from error
        if not isinstance(data, dict):
            raise ConfigError(f"{config_path} must contain a YAML mapping.")
        section = data.get("ezerr")
        if section is None:
            continue
        if not isinstance(section, dict):
            raise ConfigError(f"'ezerr' section in {config_path} must be a mapping.")
        return ReporterConfig.from_mapping(section)
    return ReporterConfig()
