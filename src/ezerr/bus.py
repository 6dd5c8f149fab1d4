from __future__ import annotations

import itertools
import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterator, Mapping, Optional

from .types import FAILURE_NOTIFICATION


@dataclass(frozen=True)
class Notification:
    """One broadcast: a topic name, a read-only info mapping and an optional sender."""
    name: str
    info: Mapping[str, Any]
    sender: Any = None


Observer = Callable[[Notification], None]


@dataclass(frozen=True)
class Subscription:
    """Handle returned by `NotificationCenter.subscribe`; pass it back to unsubscribe."""
    token: int
    name: Optional[str]
    observer: Observer


class NotificationCenter:
    """
    Explicit publish/subscribe registry.

    Create one at startup and hand it to every reporter that should broadcast.
    Observers are called synchronously, in subscription order, outside the
    registry lock.

    Usage example
    -------------
        center = NotificationCenter()
        sub = center.subscribe(lambda note: print(note.info["domain"]))
        center.post(FAILURE_NOTIFICATION, {"domain": "NetworkError"})
        center.unsubscribe(sub)
    """

    def __init__(self, *, logger: Optional[logging.Logger] = None) -> None:
        self._lock = threading.Lock()
        self._tokens = itertools.count(1)
        self._subscriptions: Dict[int, Subscription] = {}
        self._logger = logger if logger is not None else logging.getLogger("ezerr.bus")

    def __len__(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    def subscribe(self, observer: Observer, name: Optional[str] = FAILURE_NOTIFICATION) -> Subscription:
        """Register `observer` for topic `name` (``None`` means every topic)."""
        if not callable(observer):
            raise TypeError(f"Observer must be callable, got {observer!r}")
        with self._lock:
            sub = Subscription(token=next(self._tokens), name=name, observer=observer)
            self._subscriptions[sub.token] = sub
        return sub

    def unsubscribe(self, subscription: Subscription) -> bool:
        """Remove a subscription. Returns False if it was already gone."""
        with self._lock:
            return self._subscriptions.pop(subscription.token, None) is not None

    @contextmanager
    def subscribed(self, observer: Observer, name: Optional[str] = FAILURE_NOTIFICATION) -> Iterator[Subscription]:
        """
        Subscribe for the duration of a ``with`` block.

        Usage example
        -------------
            with center.subscribed(seen.append):
                reporter.report(err)
        """
        sub = self.subscribe(observer, name)
        try:
            yield sub
        finally:
            self.unsubscribe(sub)

    def post(self, name: str, info: Mapping[str, Any], sender: Any = None) -> None:
        """Deliver one notification to every observer of `name`."""
        with self._lock:
            targets = [s for s in self._subscriptions.values() if s.name is None or s.name == name]
        if not targets:
            return

        note = Notification(name=name, info=MappingProxyType(dict(info)), sender=sender)
        for sub in targets:
            try:
                sub.observer(note)
            except Exception:
                # Keep delivering; an observer must not break the poster.
                self._logger.exception("Observer %r failed while handling '%s'", sub.observer, name)
