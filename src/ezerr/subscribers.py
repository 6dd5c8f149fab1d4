"""Ready-made observers for a NotificationCenter."""

from __future__ import annotations

import threading
from collections import Counter
from typing import Optional

from rich.console import Console

from .bus import Notification
from .types import CODE_KEY, DETAIL_KEY, DOMAIN_KEY, FILE_KEY, LINE_KEY


class FailureCollector:
    """
    Keeps every failure notification it receives, in arrival order.

    Usage example
    -------------
        collector = FailureCollector()
        center.subscribe(collector)
        ...
        collector.print_summary()
        sys.exit(collector.exit_code())
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._notes: list[Notification] = []

    def __call__(self, note: Notification) -> None:
        with self._lock:
            self._notes.append(note)

    @property
    def notifications(self) -> list[Notification]:
        """Return a snapshot of the received notifications."""
        with self._lock:
            return list(self._notes)

    def count(self) -> int:
        with self._lock:
            return len(self._notes)

    def by_domain(self) -> dict[str, int]:
        """Return how many failures were seen per domain."""
        with self._lock:
            counts = Counter(str(n.info.get(DOMAIN_KEY)) for n in self._notes)
        return dict(counts)

    def clear(self) -> None:
        with self._lock:
            self._notes.clear()

    def render_summary(self) -> str:
        """Render a human-readable summary of collected failures."""
        notes = self.notifications
        lines: list[str] = [f"Failure summary ({len(notes)} reported)"]
        if not notes:
            return "\n".join(lines)

        for domain, n in sorted(self.by_domain().items()):
            lines.append(f"  {domain}: {n}")

        lines.append("")
        lines.append("Details:")
        for note in notes:
            info = note.info
            lines.append(
                f"  - {info.get(DOMAIN_KEY)} {info.get(CODE_KEY)} at "
                f"{info.get(FILE_KEY)}:{info.get(LINE_KEY)}: {info.get(DETAIL_KEY)}"
            )
        return "\n".join(lines)

    def print_summary(self, console: Optional[Console] = None) -> None:
        """Print the summary with Rich."""
        (console if console is not None else Console()).print(self.render_summary(), markup=False, highlight=False)

    def exit_code(self) -> int:
        """Return a conventional process exit code: 0 if nothing was reported, else 1."""
        return 0 if self.count() == 0 else 1
