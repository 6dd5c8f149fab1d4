from __future__ import annotations

import json
import logging
import sys
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping, Optional

from rich.logging import RichHandler

from .bus import Notification
from .config import ReporterConfig

LOGGER_NAME = "ezerr"


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _jsonable(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    return value


@dataclass
class JsonlEventLogger:
    """
    Writes structured events as JSON lines.

    Each line is a dict that includes at least:
    - time_utc
    - run_id
    - event
    - level
    plus the fields of the payload it was given.

    Instances are callable, so they can be subscribed to a NotificationCenter
    directly; each failure notification becomes one "failure_reported" line.

    Usage example
    -------------
        ev = JsonlEventLogger(path=Path("logs/events_abc.jsonl"), run_id="abc")
        center.subscribe(ev)
    """
    path: Path
    run_id: str
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def write(
        self,
        *,
        event: str,
        level: str,
        payload: Optional[Mapping[str, Any]] = None,
        message: Optional[str] = None,
    ) -> None:
        record: dict[str, Any] = {
            "time_utc": _utc_now_iso(),
            "run_id": self.run_id,
            "event": event,
            "level": level,
        }
        if message:
            record["message"] = message
        if payload:
            for key, value in payload.items():
                record.setdefault(key, _jsonable(value))

        line = json.dumps(record, ensure_ascii=False) + "\n"
        with self._lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("a", encoding="utf-8") as f:
                f.write(line)

    def __call__(self, note: Notification) -> None:
        self.write(event="failure_reported", level="ERROR", payload=note.info)


class _RunContextFilter(logging.Filter):
    def __init__(self, *, run_id: str) -> None:
        super().__init__()
        self._run_id = run_id

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003
        # Ensure `run_id` and `site` exist for formatter
        if not hasattr(record, "run_id"):
            setattr(record, "run_id", self._run_id)
        if not hasattr(record, "site"):
            setattr(record, "site", "-")
        return True


def configure_logging(*, cfg: ReporterConfig) -> tuple[logging.Logger, Optional[JsonlEventLogger]]:
    """
    Configure console + file logging, plus optional JSONL event logger.

    Returns
    -------
    logger
        A configured logger named "ezerr"; the reporter's text sink.
    event_logger
        JsonlEventLogger if cfg.write_jsonl else None. Not subscribed yet.

    Usage example
    -------------
        logger, event_logger = configure_logging(cfg=cfg)
        logger.info("Hello")
    """
    run_id = cfg.resolved_run_id()
    log_dir = cfg.log_dir

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG)
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()
    logger.propagate = False

    # On handlers, so records propagated from child loggers get the fields too
    context_filter = _RunContextFilter(run_id=run_id)

    console_handler: logging.Handler
    if cfg.rich_console:
        console_handler = RichHandler(show_path=False, markup=False)
        console_fmt = "%(message)s"
    else:
        console_handler = logging.StreamHandler(sys.stderr)
        console_fmt = "[%(levelname)s] %(message)s"

    console_handler.setLevel(cfg.console_level)
    console_handler.addFilter(context_filter)
    console_handler.setFormatter(logging.Formatter(console_fmt))
    logger.addHandler(console_handler)

    if cfg.write_log_file:
        log_dir.mkdir(parents=True, exist_ok=True)
        # File handler (always plain)
        file_path = log_dir / f"run_{run_id}.log"
        file_handler = logging.FileHandler(file_path, encoding="utf-8")
        file_handler.setLevel(cfg.file_level)
        file_handler.addFilter(context_filter)
        file_handler.setFormatter(
            logging.Formatter(
                fmt="%(asctime)sZ | run=%(run_id)s | site=%(site)s | %(levelname)s | %(message)s",
                datefmt="%Y-%m-%dT%H:%M:%S",
            )
        )
        logger.addHandler(file_handler)

    event_logger = None
    if cfg.write_jsonl:
        event_logger = JsonlEventLogger(path=log_dir / f"events_{run_id}.jsonl", run_id=run_id)

    logger.debug("Logging configured (run_id=%s, log_dir=%s)", run_id, str(log_dir))
    return logger, event_logger
