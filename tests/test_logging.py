from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path

from rich.logging import RichHandler

from ezerr.bus import Notification
from ezerr.config import ReporterConfig
from ezerr.logging import JsonlEventLogger, configure_logging


def _cfg(tmp_path: Path, **overrides) -> ReporterConfig:
    values = dict(
        log_dir=tmp_path / "logs",
        run_id="testrun",
        write_jsonl=False,
        console_level=logging.CRITICAL,  # keep test output quiet
        file_level=logging.DEBUG,
    )
    values.update(overrides)
    return ReporterConfig(**values)


def test_jsonl_event_logger_writes_valid_lines(tmp_path: Path) -> None:
    path = tmp_path / "logs" / "events_abc.jsonl"
    ev = JsonlEventLogger(path=path, run_id="abc")

    ev.write(event="started", level="INFO", message="hello")
    ev.write(event="failure_reported", level="ERROR", payload={"domain": "Disk", "code": 5})

    assert path.exists()
    lines = path.read_text(encoding="utf-8").strip().splitlines()
    assert len(lines) == 2

    a = json.loads(lines[0])
    assert a["run_id"] == "abc"
    assert a["event"] == "started"
    assert a["level"] == "INFO"
    assert a["message"] == "hello"
    assert "time_utc" in a

    b = json.loads(lines[1])
    assert b["event"] == "failure_reported"
    assert b["domain"] == "Disk"
    assert b["code"] == 5


def test_jsonl_event_logger_as_observer_serializes_timestamp(tmp_path: Path) -> None:
    path = tmp_path / "events.jsonl"
    ev = JsonlEventLogger(path=path, run_id="abc")
    when = datetime(2026, 5, 6, 7, 8, 9, tzinfo=timezone.utc)

    ev(Notification(name="ezerr.failure_found", info={"domain": "Disk", "timestamp": when}))

    line = json.loads(path.read_text(encoding="utf-8"))
    assert line["event"] == "failure_reported"
    assert line["level"] == "ERROR"
    assert line["timestamp"] == when.isoformat()


def test_configure_logging_creates_log_file_and_writes(tmp_path: Path) -> None:
    cfg = _cfg(tmp_path)

    logger, event_logger = configure_logging(cfg=cfg)
    assert event_logger is None

    log_path = cfg.log_dir / "run_testrun.log"
    assert log_path.exists()

    # No extra={"site": ...}: the filter injects the default
    logger.info("hello world")

    text = log_path.read_text(encoding="utf-8")
    assert "hello world" in text
    assert "run=testrun" in text
    assert "site=-" in text


def test_configure_logging_site_extra_is_used_in_file(tmp_path: Path) -> None:
    cfg = _cfg(tmp_path)
    logger, _ = configure_logging(cfg=cfg)

    logger.error("boom", extra={"site": "service.py:47"})

    text = (cfg.log_dir / "run_testrun.log").read_text(encoding="utf-8")
    assert "boom" in text
    assert "site=service.py:47" in text


def test_configure_logging_without_file(tmp_path: Path) -> None:
    cfg = _cfg(tmp_path, write_log_file=False)
    logger, _ = configure_logging(cfg=cfg)

    logger.error("nowhere on disk")

    assert not (cfg.log_dir / "run_testrun.log").exists()
    assert not any(isinstance(h, logging.FileHandler) for h in logger.handlers)


def test_configure_logging_console_handler_choice(tmp_path: Path) -> None:
    logger, _ = configure_logging(cfg=_cfg(tmp_path, rich_console=True))
    assert any(isinstance(h, RichHandler) for h in logger.handlers)

    logger, _ = configure_logging(cfg=_cfg(tmp_path, rich_console=False))
    assert not any(isinstance(h, RichHandler) for h in logger.handlers)
    assert any(type(h) is logging.StreamHandler for h in logger.handlers)


def test_configure_logging_is_idempotent(tmp_path: Path) -> None:
    configure_logging(cfg=_cfg(tmp_path))
    logger, _ = configure_logging(cfg=_cfg(tmp_path))

    assert len(logger.handlers) == 2
    assert all(len(h.filters) == 1 for h in logger.handlers)


def test_child_logger_records_get_context_fields(tmp_path: Path) -> None:
    cfg = _cfg(tmp_path)
    logger, _ = configure_logging(cfg=cfg)

    logger.getChild("bus").error("from a child")

    text = (cfg.log_dir / "run_testrun.log").read_text(encoding="utf-8")
    assert "run=testrun | site=- | ERROR | from a child" in text


def test_configure_logging_returns_event_logger_when_enabled(tmp_path: Path) -> None:
    cfg = _cfg(tmp_path, write_jsonl=True)
    _, event_logger = configure_logging(cfg=cfg)
    assert event_logger is not None
    assert event_logger.path == cfg.log_dir / "events_testrun.jsonl"
    assert event_logger.run_id == "testrun"
