from __future__ import annotations

import functools
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Callable, Iterator, Optional, TypeVar

from .types import is_reportable

if TYPE_CHECKING:
    from .reporter import ErrorReporter

T = TypeVar("T")


class EarlyReturn(BaseException):
    """
    Control-flow signal raised by `ErrorReporter.bail`.

    Derives from BaseException so ``except Exception`` blocks in between do not
    swallow it.
    """

    def __init__(self, value: Any = None) -> None:
        super().__init__(value)
        self.value = value


def returns_on_failure(fn: Callable[..., T]) -> Callable[..., Optional[T]]:
    """
    Make `reporter.bail(...)` return from the decorated function.

    The function returns the value passed to ``bail(..., value=...)``.

    Usage example
    -------------
        @returns_on_failure
        def on_thing(thing, err):
            reporter.bail(err, f"Get thing from dodad: {dodad}")
            use(thing)  # not reached when err is a failure
    """

    @functools.wraps(fn)
    def _wrapper(*args: Any, **kwargs: Any) -> Optional[T]:
        try:
            return fn(*args, **kwargs)
        except EarlyReturn as signal:
            return signal.value

    return _wrapper


@contextmanager
def early_exit() -> Iterator[None]:
    """
    Skip the rest of a ``with`` block when `reporter.bail(...)` fires inside it.

    Usage example
    -------------
        with early_exit():
            reporter.bail(err, "Fetch info from cache", cleanup=lambda: callback(err, False))
            proceed()
    """
    try:
        yield
    except EarlyReturn:
        pass


def guard(
    reporter: "ErrorReporter",
    fn: Callable[[], T],
    *,
    detail: Optional[str] = None,
    default: Optional[T] = None,
) -> Optional[T]:
    """
    Execute a callable and report the failure it raises, if any.

    Returns
    -------
    value
        The callable result on success; `default` if it raised a reportable
        failure. Other exceptions propagate unchanged.

    Usage example
    -------------
        data = guard(reporter, lambda: fetch(url), detail="Connection failed", default=b"")
    """
    try:
        return fn()
    except Exception as exc:
        if not is_reportable(exc):
            raise
        reporter.report(exc, detail, stacklevel=2)
        return default
