from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

from .bus import NotificationCenter
from .config import ReporterConfig
from .context import MainContextPredicate, capture_call_site, on_main_thread
from .guards import EarlyReturn
from .logging import configure_logging
from .types import CallSite, FailureInfo, is_reportable


class ReportOutcome(str, Enum):
    """Result of `ErrorReporter.report_and_return`; truthy when the caller should return."""
    CONTINUE = "continue"
    RETURN = "return"

    def __bool__(self) -> bool:
        return self is ReportOutcome.RETURN


@dataclass
class ErrorReporter:
    """
    Logs and broadcasts failures found at call sites.

    Design notes
    ------------
    - Holds no per-report state; each call builds one FailureInfo and drops it.
    - The logger is the text sink, the center is the broadcast channel.
    - Absent or domain-less failures are ignored, so calls need no guard.

    Usage example
    -------------
        reporter = ErrorReporter.from_config(ReporterConfig(log_dir=Path("logs")))
        if reporter.report(err, "Connection failed"):
            ...
        if reporter.report_and_return(err, "Load cache", cleanup=lambda: callback(err)):
            return
    """

    cfg: ReporterConfig
    logger: logging.Logger
    center: NotificationCenter
    is_main_context: MainContextPredicate = on_main_thread

    @classmethod
    def from_config(
        cls,
        cfg: Optional[ReporterConfig] = None,
        *,
        center: Optional[NotificationCenter] = None,
        is_main_context: Optional[MainContextPredicate] = None,
    ) -> "ErrorReporter":
        """
        Configure logging and build a reporter around `center` (a new one if omitted).

        When cfg.write_jsonl is set, the JSONL event logger is subscribed to the
        reporter's notification name.

        Logging is configured on the process-wide "ezerr" logger. Calling this
        again replaces its handlers, so every reporter built earlier writes to
        the text sink of the most recent configuration.
        """
        cfg = cfg if cfg is not None else ReporterConfig()
        logger, event_logger = configure_logging(cfg=cfg)
        if center is None:
            center = NotificationCenter(logger=logger.getChild("bus"))
        if event_logger is not None:
            center.subscribe(event_logger, cfg.notification_name)
        return cls(
            cfg=cfg,
            logger=logger,
            center=center,
            is_main_context=is_main_context if is_main_context is not None else on_main_thread,
        )

    def report(
        self,
        err: Any,
        detail: Optional[str] = None,
        *,
        call_site: Optional[CallSite] = None,
        stacklevel: int = 1,
    ) -> bool:
        """
        Log and broadcast `err` if it is a reportable failure.

        Returns
        -------
        reported
            True if a failure was found (and emitted), False otherwise.
        """
        if not is_reportable(err):
            return False

        info = FailureInfo.from_failure(
            err,
            detail=detail,
            call_site=call_site if call_site is not None else capture_call_site(stacklevel),
            on_main_thread=self.is_main_context(),
        )
        self._emit(info)
        return True

    def report_and_return(
        self,
        err: Any,
        detail: Optional[str] = None,
        cleanup: Optional[Callable[[], Any]] = None,
        *,
        call_site: Optional[CallSite] = None,
        stacklevel: int = 1,
    ) -> ReportOutcome:
        """
        Report `err`, run `cleanup`, and tell the caller to return.

        Usage example
        -------------
            if reporter.report_and_return(err, "TumBook info from cache", lambda: auth_callback(err, False)):
                return
        """
        if not self.report(err, detail, call_site=call_site, stacklevel=stacklevel + 1):
            return ReportOutcome.CONTINUE
        if cleanup is not None:
            cleanup()
        return ReportOutcome.RETURN

    def bail(
        self,
        err: Any,
        detail: Optional[str] = None,
        cleanup: Optional[Callable[[], Any]] = None,
        *,
        value: Any = None,
        call_site: Optional[CallSite] = None,
        stacklevel: int = 1,
    ) -> None:
        """
        Report `err`, run `cleanup`, then raise EarlyReturn(value).

        Pair with `returns_on_failure` or `early_exit` from ezerr.guards; nothing
        after the call site runs when a failure is found.
        """
        if self.report_and_return(err, detail, cleanup, call_site=call_site, stacklevel=stacklevel + 1):
            raise EarlyReturn(value)

    def _emit(self, info: FailureInfo) -> None:
        site = f"{info.call_site.file}:{info.call_site.line}"
        self.logger.error("%s", info.render(), extra={"site": site})
        self.center.post(self.cfg.notification_name, info.to_payload(), sender=self)
