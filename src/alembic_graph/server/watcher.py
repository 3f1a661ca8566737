"""alembic_graph.server.watcher - Debounced refresh on revision-file changes.

Polls file modification times under the alembic working directory and
calls a refresh callback once a burst of changes has settled. A burst
is every change seen before ``debounce`` seconds pass with no further
change.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_PATTERNS = ("**/versions/**/*.py", "**/alembic.ini", "**/env.py")


def snapshot(root: Path, patterns: Iterable[str]) -> dict[str, float]:
    """Map every file under root matching patterns to its mtime."""
    mtimes: dict[str, float] = {}
    for pattern in patterns:
        for path in root.glob(pattern):
            if "__pycache__" in path.parts or not path.is_file():
                continue
            try:
                mtimes[str(path)] = path.stat().st_mtime
            except OSError:
                # Deleted between glob and stat; the next poll sees it gone
                continue
    return mtimes


def diff_snapshots(before: dict[str, float], after: dict[str, float]) -> list[str]:
    """Paths added, removed or modified between two snapshots."""
    changed = [path for path, mtime in after.items() if before.get(path) != mtime]
    changed.extend(path for path in before if path not in after)
    return sorted(changed)


class RevisionWatcher:
    """Polls for revision-file changes and triggers a debounced refresh.

    Args:
        root: Directory to watch.
        on_change: Called with no arguments once changes settle.
        patterns: Glob patterns relative to root.
        debounce: Quiet period in seconds before on_change fires.
        interval: Seconds between polls.
    """

    def __init__(
        self,
        root: Path,
        on_change: Callable[[], object],
        patterns: Iterable[str] = DEFAULT_PATTERNS,
        debounce: float = 1.0,
        interval: float = 1.0,
    ) -> None:
        self.root = Path(root)
        self.on_change = on_change
        self.patterns = tuple(patterns)
        self.debounce = debounce
        self.interval = interval
        self._mtimes = snapshot(self.root, self.patterns)
        self._lock = threading.Lock()
        self._timer: threading.Timer | None = None
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @classmethod
    def from_config(cls, config: dict, on_change: Callable[[], object]) -> RevisionWatcher:
        """Create a watcher from the ``[watch]`` config section."""
        section = config.get("watch", {})
        return cls(
            root=Path(config.get("alembic", {}).get("directory", ".")),
            on_change=on_change,
            patterns=section.get("patterns", DEFAULT_PATTERNS),
            debounce=float(section.get("debounce", 1.0)),
            interval=float(section.get("interval", 1.0)),
        )

    @property
    def pending(self) -> bool:
        """True while a refresh is scheduled but has not fired."""
        with self._lock:
            return self._timer is not None

    def poll(self) -> list[str]:
        """Take a new snapshot and schedule a refresh if anything changed.

        Returns:
            The changed paths (empty if none).
        """
        current = snapshot(self.root, self.patterns)
        changed = diff_snapshots(self._mtimes, current)
        self._mtimes = current
        if changed:
            logger.debug("detected %d changed file(s): %s", len(changed), ", ".join(changed))
            self.schedule()
        return changed

    def schedule(self) -> None:
        """(Re)start the debounce timer."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(self.debounce, self._fire)
            self._timer.daemon = True
            self._timer.start()

    def _fire(self) -> None:
        with self._lock:
            self._timer = None
        logger.info("revision files changed, refreshing")
        try:
            self.on_change()
        except Exception:
            logger.exception("refresh after file change failed")

    def _run(self) -> None:
        while not self._stop.wait(self.interval):
            self.poll()

    def start(self) -> None:
        """Start polling in a daemon thread."""
        if self._thread is not None:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="revision-watcher", daemon=True)
        self._thread.start()
        logger.debug("watching %s for %s", self.root, ", ".join(self.patterns))

    def stop(self) -> None:
        """Stop polling and cancel any pending refresh."""
        self._stop.set()
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
        if self._thread is not None:
            self._thread.join(timeout=self.interval + 1)
            self._thread = None
