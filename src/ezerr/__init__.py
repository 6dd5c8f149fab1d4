"""
ezerr: log and broadcast failures found at call sites.

Key primitives
--------------
- ErrorReporter: report() / report_and_return() / bail() a possibly-absent failure
- FailureInfo: the immutable record built for each reported failure
- NotificationCenter: explicit publish/subscribe registry for failure payloads
- ReporterConfig: logging + broadcast configuration
- configure_logging(): console + file logging, optional JSONL event logger
- returns_on_failure / early_exit / guard: early-exit helpers
"""

from .bus import Notification, NotificationCenter, Subscription
from .config import ConfigError, ReporterConfig, load_config
from .context import capture_call_site, designated_task, designated_thread, on_main_thread
from .guards import EarlyReturn, early_exit, guard, returns_on_failure
from .logging import JsonlEventLogger, configure_logging
from .reporter import ErrorReporter, ReportOutcome
from .subscribers import FailureCollector
from .types import FAILURE_NOTIFICATION, NO_DETAIL, AppError, CallSite, Failure, FailureInfo, is_reportable
from .version import __version__

__all__ = [
    "AppError",
    "CallSite",
    "ConfigError",
    "EarlyReturn",
    "ErrorReporter",
    "FAILURE_NOTIFICATION",
    "Failure",
    "FailureCollector",
    "FailureInfo",
    "JsonlEventLogger",
    "NO_DETAIL",
    "Notification",
    "NotificationCenter",
    "ReportOutcome",
    "ReporterConfig",
    "Subscription",
    "__version__",
    "capture_call_site",
    "configure_logging",
    "designated_task",
    "designated_thread",
    "early_exit",
    "guard",
    "is_reportable",
    "load_config",
    "on_main_thread",
    "returns_on_failure",
]
