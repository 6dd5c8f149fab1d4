"""Call-site and main-context capture."""

from __future__ import annotations

import asyncio
import os
import sys
import threading
from typing import Callable

from .types import CallSite

MainContextPredicate = Callable[[], bool]

_UNKNOWN_SITE = CallSite(file="<unknown>", function="<unknown>", line=0)


def capture_call_site(stacklevel: int = 1) -> CallSite:
    """
    Describe the frame `stacklevel` levels above the caller of this function.

    `stacklevel=1` is the function that called the one calling us, the same
    convention as ``logging.Logger.log(..., stacklevel=...)``.

    Usage example
    -------------
        def report(err):
            site = capture_call_site()  # whoever called report()
    """
    try:
        frame = sys._getframe(stacklevel + 1)
    except ValueError:
        return _UNKNOWN_SITE
    code = frame.f_code
    function = getattr(code, "co_qualname", code.co_name)
    return CallSite(
        file=os.path.basename(code.co_filename),
        function=function,
        line=frame.f_lineno,
    )


def on_main_thread() -> bool:
    """Return True when called from the interpreter's main thread."""
    return threading.current_thread() is threading.main_thread()


def designated_thread(thread: threading.Thread) -> MainContextPredicate:
    """Build a predicate that treats `thread` as the main context."""

    def _is_designated() -> bool:
        return threading.current_thread() is thread

    return _is_designated


def designated_task(task: asyncio.Task) -> MainContextPredicate:
    """
    Build a predicate that treats one asyncio task as the main context.

    Outside a running event loop the predicate returns False.
    """

    def _is_designated() -> bool:
        try:
            current = asyncio.current_task()
        except RuntimeError:
            return False
        return current is task

    return _is_designated
