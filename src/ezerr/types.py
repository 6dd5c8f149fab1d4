from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Mapping, Optional, Protocol, runtime_checkable


NO_DETAIL = "No detail"

# Topic the reporter publishes on unless configured otherwise.
FAILURE_NOTIFICATION = "ezerr.failure_found"

# Payload keys; same information as the text block.
DETAIL_KEY = "detail"
DESCRIPTION_KEY = "description"
FILE_KEY = "file"
FUNCTION_KEY = "function"
LINE_KEY = "line"
MAIN_THREAD_KEY = "on_main_thread"
TIMESTAMP_KEY = "timestamp"
DOMAIN_KEY = "domain"
CODE_KEY = "code"

_BLOCK_HEADER = "* * * * * * * * [Error found]"
_BLOCK_FOOTER = "* * * * * * * * [End of error log]"


@runtime_checkable
class Failure(Protocol):
    """Anything with a domain and a code can be reported."""

    domain: str
    code: int


class AppError(Exception):
    """
    A failure value carrying a domain, a code and a human-readable description.

    Usage example
    -------------
        err = AppError("NetworkError", 42, "The operation couldn't be completed.")
        reporter.report(err, "Connection failed")
    """

    def __init__(
        self,
        domain: str,
        code: int = 0,
        description: Optional[str] = None,
        **user_info: Any,
    ) -> None:
        self.domain = domain
        self.code = code
        self.user_info: dict[str, Any] = dict(user_info)
        self._description = description
        super().__init__(self.description)

    @property
    def description(self) -> str:
        if self._description:
            return self._description
        return f"The operation couldn't be completed. ({self.domain} error {self.code}.)"

    def __repr__(self) -> str:
        return f"AppError(domain={self.domain!r}, code={self.code!r}, description={self.description!r})"


def is_reportable(err: Any) -> bool:
    """Return True if `err` is present and carries a non-empty string domain."""
    if err is None:
        return False
    domain = getattr(err, "domain", None)
    return isinstance(domain, str) and domain != ""


def _code_of(err: Any) -> int:
    code = getattr(err, "code", 0)
    if isinstance(code, bool):
        return int(code)
    if isinstance(code, int):
        return code
    try:
        return int(code)
    except (TypeError, ValueError, OverflowError):
        return 0


def _description_of(err: Any) -> str:
    description = getattr(err, "description", None)
    if isinstance(description, str) and description:
        return description
    try:
        text = str(err)
    except Exception:
        # A broken __str__ still gets the generic description.
        text = ""
    if text:
        return text
    return f"The operation couldn't be completed. ({err.domain} error {_code_of(err)}.)"


@dataclass(frozen=True)
class CallSite:
    """Where in application code a report was triggered."""
    file: str
    function: str
    line: int


@dataclass(frozen=True)
class FailureInfo:
    """
    A structured record of one reported failure.

    Built only for reportable failures; formatted, published and then dropped.

    Usage example
    -------------
        info = FailureInfo.from_failure(err, detail="Connection failed", call_site=site, on_main_thread=True)
        print(info.render())
    """
    detail: str
    description: str
    domain: str
    code: int
    call_site: CallSite
    on_main_thread: bool
    timestamp: datetime

    @staticmethod
    def from_failure(
        err: Any,
        *,
        detail: Optional[str],
        call_site: CallSite,
        on_main_thread: bool,
        timestamp: Optional[datetime] = None,
    ) -> "FailureInfo":
        if not is_reportable(err):
            raise ValueError(f"Not a reportable failure: {err!r}")
        return FailureInfo(
            detail=detail if detail else NO_DETAIL,
            description=_description_of(err),
            domain=err.domain,
            code=_code_of(err),
            call_site=call_site,
            on_main_thread=bool(on_main_thread),
            timestamp=timestamp if timestamp is not None else datetime.now(timezone.utc),
        )

    def render(self) -> str:
        """Render the fixed multi-line diagnostic block."""
        lines = [
            _BLOCK_HEADER,
            f"* Detail        : {self.detail}",
            f"* Description   : {self.description}",
            f"* Method name   : {self.call_site.function}",
            f"* File name     : {self.call_site.file}",
            f"* Line number   : {self.call_site.line}",
            f"* Main thread   : {'Yes' if self.on_main_thread else 'No'}",
            f"* Error domain  : {self.domain}",
            f"* Error code    : {self.code}",
            _BLOCK_FOOTER,
        ]
        return "\n".join(lines)

    def to_payload(self) -> Mapping[str, Any]:
        """Return the named-field payload delivered to subscribers."""
        return {
            DETAIL_KEY: self.detail,
            DESCRIPTION_KEY: self.description,
            FILE_KEY: self.call_site.file,
            FUNCTION_KEY: self.call_site.function,
            LINE_KEY: self.call_site.line,
            MAIN_THREAD_KEY: self.on_main_thread,
            TIMESTAMP_KEY: self.timestamp,
            DOMAIN_KEY: self.domain,
            CODE_KEY: self.code,
        }
