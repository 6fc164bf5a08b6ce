"""
Polling file-system watcher.

Keeps a snapshot of every tracked file under a root directory and turns
differences between successive scans into FileChangeEvents. Rapid changes
to the same path are debounced into a single event carrying the diff
between the last emitted version and the settled one.

Usage:
    watcher = FileChangeWatcher(WatcherConfig())
    watcher.start("./my-project", sink=runner.submit_change)
    ...
    watcher.stop()

Tests call poll_once() directly instead of starting the background thread.
"""

import logging
import os
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from ..core.config_manager import WatcherConfig
from ..core.errors import WatcherIOError
from .diffs import created_diff, deleted_diff, diff_lines, summarize
from .events import ChangeKind, FileChangeEvent
from .filters import SUPPORTED_EXTENSIONS, PathFilter

logger = logging.getLogger(__name__)

ChangeSink = Callable[[FileChangeEvent], None]


@dataclass
class FileState:
    """Last known state of a tracked file."""
    mtime_ns: int
    size: int
    lines: Optional[List[str]] = None


class FileChangeWatcher:
    """
    Watches a directory tree and emits debounced FileChangeEvents.

    Per-file I/O errors are logged and the file is skipped; the polling
    loop itself never exits on an error.
    """

    def __init__(
        self,
        config: Optional[WatcherConfig] = None,
        clock: Optional[Callable[[], float]] = None,
    ):
        self.config = config or WatcherConfig()
        self._clock = clock or time.time

        self._root: Optional[Path] = None
        self._filter = PathFilter()
        self._sink: Optional[ChangeSink] = None

        self._snapshot: Dict[str, FileState] = {}
        # path -> (time the current stat was first seen, stat or None if gone)
        self._pending: Dict[str, Tuple[float, Optional[tuple]]] = {}

        self._lock = threading.RLock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def root(self) -> Optional[Path]:
        return self._root

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def start(
        self,
        root: str,
        include: Optional[Iterable[str]] = None,
        exclude: Optional[Iterable[str]] = None,
        sink: Optional[ChangeSink] = None,
        background: bool = True,
    ) -> None:
        """
        Start watching a directory.

        Args:
            root: Directory to watch
            include: Include globs (default: config include_globs, empty = all)
            exclude: Extra exclude globs on top of the default excludes
            sink: Callable receiving each emitted event
            background: Run the polling loop on a daemon thread
        """
        if self.running:
            self.stop()

        root_path = Path(root).resolve()
        if not root_path.is_dir():
            raise WatcherIOError(f"Watch root is not a directory: {root_path}", str(root_path))

        with self._lock:
            self._root = root_path
            self._filter = PathFilter(
                include=include if include is not None else self.config.include_globs,
                exclude=list(self.config.exclude_globs) + list(exclude or []),
            )
            self._sink = sink
            self._snapshot = {}
            self._pending = {}
            self._take_snapshot()

        logger.info(f"[WATCHER] Watching {root_path} ({len(self._snapshot)} files)")

        if background:
            self._stop_event.clear()
            self._thread = threading.Thread(
                target=self._run, name="slopwatch-watcher", daemon=True
            )
            self._thread.start()

    def stop(self) -> None:
        """Stop watching and drop all state from the current session."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=max(1.0, self.config.poll_interval_ms / 1000.0 * 4))
            self._thread = None

        with self._lock:
            self._snapshot = {}
            self._pending = {}
            self._sink = None
            root, self._root = self._root, None

        if root is not None:
            logger.info(f"[WATCHER] Stopped watching {root}")

    def _run(self) -> None:
        interval = self.config.poll_interval_ms / 1000.0
        while not self._stop_event.wait(interval):
            try:
                self.poll_once()
            except Exception as e:
                logger.warning(f"[WATCHER] Poll failed: {e}")

    # =========================================================================
    # Polling
    # =========================================================================

    def poll_once(self) -> List[FileChangeEvent]:
        """
        Scan the tree once and emit every change whose debounce has elapsed.

        Returns:
            Events emitted by this poll
        """
        with self._lock:
            if self._root is None:
                return []

            now = self._clock()
            current = self._scan()

            for path, stat in current.items():
                known = self._snapshot.get(path)
                if known is not None and (known.mtime_ns, known.size) == stat:
                    self._pending.pop(path, None)
                    continue
                self._note_pending(path, stat, now)
            for path in self._snapshot:
                if path not in current:
                    self._note_pending(path, None, now)

            debounce = self.config.debounce_ms / 1000.0
            settled = [p for p, (seen, _) in self._pending.items() if now - seen >= debounce]

            events = []
            for path in sorted(settled):
                del self._pending[path]
                try:
                    event = self._build_event(path, current.get(path), now)
                except WatcherIOError as e:
                    logger.warning(f"[WATCHER] Skipping {e.path}: {e}")
                    continue
                if event is not None:
                    events.append(event)

            sink = self._sink

        for event in events:
            logger.debug(
                f"[WATCHER] {event.kind.value} {event.path} "
                f"(+{event.lines_added}/-{event.lines_removed})"
            )
            if sink is not None:
                sink(event)
        return events

    def _note_pending(self, path: str, stat: Optional[tuple], now: float) -> None:
        # The debounce period restarts only when the file changed again
        pending = self._pending.get(path)
        if pending is None or pending[1] != stat:
            self._pending[path] = (now, stat)

    def _build_event(self, path: str, stat, now: float) -> Optional[FileChangeEvent]:
        known = self._snapshot.get(path)

        if stat is None:
            if known is None:
                # Created and deleted within one debounce period
                return None
            del self._snapshot[path]
            kind = ChangeKind.DELETE
            entries = deleted_diff(path)
        else:
            mtime_ns, size = stat
            lines = self._read_lines(path, size)
            self._snapshot[path] = FileState(mtime_ns, size, lines)
            if known is None:
                kind = ChangeKind.CREATE
                entries = created_diff(lines or [])
            else:
                kind = ChangeKind.MODIFY
                entries = diff_lines(known.lines or [], lines or [])
                if not entries:
                    # Touched without content change
                    return None

        diff_summary, added, removed = summarize(entries)
        return FileChangeEvent(
            path=path,
            kind=kind,
            diff_summary=diff_summary,
            lines_added=added,
            lines_removed=removed,
            occurred_at=now,
        )

    def _scan(self) -> Dict[str, tuple]:
        """Map every tracked relative path to (mtime_ns, size)."""
        found = {}

        def on_error(error: OSError) -> None:
            logger.warning(f"[WATCHER] Cannot list {error.filename}: {error.strerror}")

        for dirpath, dirnames, filenames in os.walk(self._root, onerror=on_error):
            dirnames[:] = [d for d in dirnames if not self._filter.is_excluded_dir(d)]
            for filename in filenames:
                full = os.path.join(dirpath, filename)
                relative = os.path.relpath(full, self._root).replace(os.sep, "/")
                if not self._filter.matches(relative):
                    continue
                try:
                    stat = os.stat(full)
                except OSError as e:
                    logger.warning(f"[WATCHER] Cannot stat {relative}: {e}")
                    continue
                found[relative] = (stat.st_mtime_ns, stat.st_size)
        return found

    def _take_snapshot(self) -> None:
        for path, (mtime_ns, size) in self._scan().items():
            try:
                lines = self._read_lines(path, size)
            except WatcherIOError as e:
                logger.warning(f"[WATCHER] Skipping {e.path}: {e}")
                continue
            self._snapshot[path] = FileState(mtime_ns, size, lines)

    def _read_lines(self, path: str, size: int) -> Optional[List[str]]:
        """Read a tracked file, or None when it is too large to diff."""
        if size > self.config.max_file_bytes:
            return None
        try:
            with open(self._root / path, "r", encoding="utf-8", errors="replace") as f:
                return f.read().splitlines()
        except OSError as e:
            raise WatcherIOError(f"Cannot read file: {e}", path) from e

    # =========================================================================
    # Introspection
    # =========================================================================

    def is_relevant_file(self, path: str) -> bool:
        """Check whether a path would be tracked under the current filters."""
        if self._root is not None and os.path.isabs(path):
            try:
                path = os.path.relpath(path, self._root)
            except ValueError:
                return False
        return self._filter.matches(path)

    def get_project_stats(self) -> Dict[str, object]:
        with self._lock:
            return {
                "root": str(self._root) if self._root else None,
                "watched_files": len(self._snapshot),
                "pending_changes": len(self._pending),
                "running": self.running,
                "supported_extensions": sorted(SUPPORTED_EXTENSIONS),
            }
