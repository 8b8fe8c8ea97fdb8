"""Change notification for watched roots.

A :class:`WatchRegistry` owns one watchdog observer per root and shares it
between every subscriber of that root (reference counted). Filesystem
add/change/remove events, for files and directories alike, collapse into a
single "changed" notification after a short write-stabilization delay.

The registry only notifies. Re-running extraction is the subscriber's job,
typically behind a :class:`Debouncer`.
"""

from __future__ import annotations

import itertools
import logging
import threading
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .config import ALWAYS_IGNORE, DEFAULT_DEBOUNCE_SECONDS, WATCH_STABILITY_SECONDS
from .errors import WatchError
from .ignore import IgnoreRules, default_patterns

logger = logging.getLogger(__name__)

OnChange = Callable[[], None]

_CHANGE_EVENTS = {"created", "modified", "deleted", "moved"}


class _RootEventHandler(FileSystemEventHandler):
    """Filters raw watchdog events for one root and forwards the survivors."""

    def __init__(self, root: Path, rules: IgnoreRules, notify: Callable[[], None]) -> None:
        super().__init__()
        self.root = root
        self.rules = rules
        self.notify = notify

    def _relevant(self, path: Any, is_dir: bool) -> bool:
        if isinstance(path, bytes):
            path = path.decode("utf-8", errors="ignore")
        try:
            rel = Path(path).relative_to(self.root).as_posix()
        except ValueError:
            return False
        if rel in ("", "."):
            return False
        return not self.rules.ignores(rel, is_dir=is_dir)

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.event_type not in _CHANGE_EVENTS:
            return
        # Directory mtime bumps accompany the child event we already see.
        if event.is_directory and event.event_type == "modified":
            return
        paths = [event.src_path]
        dest = getattr(event, "dest_path", "")
        if dest:
            paths.append(dest)
        if any(self._relevant(p, event.is_directory) for p in paths):
            self.notify()


class _WatchEntry:
    def __init__(self, root: Path) -> None:
        self.root = root
        self.observer: Any = None
        self.subscribers: Dict[int, OnChange] = {}
        self.pending: Optional[threading.Timer] = None


class WatchRegistry:
    """Per-process registry of root watches.

    Construct one at startup, pass it to whoever needs to subscribe, and call
    :meth:`close` (or use it as a context manager) at shutdown.
    """

    def __init__(
        self,
        observer_factory: Callable[[], Any] = Observer,
        stability_seconds: float = WATCH_STABILITY_SECONDS,
        always_ignore: Iterable[str] = ALWAYS_IGNORE,
    ) -> None:
        self._observer_factory = observer_factory
        self._stability_seconds = stability_seconds
        self._rules = IgnoreRules(default_patterns(always_ignore))
        self._entries: Dict[str, _WatchEntry] = {}
        self._tokens = itertools.count(1)
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Subscription
    # ------------------------------------------------------------------

    def subscribe(self, root: Path | str, on_change: OnChange) -> Callable[[], None]:
        """Register *on_change* for *root*; returns an idempotent unsubscribe.

        Raises:
            WatchError: the watch for *root* could not be started.
        """
        key = str(Path(root).expanduser().resolve())
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                entry = self._start(key)
                self._entries[key] = entry
            token = next(self._tokens)
            entry.subscribers[token] = on_change
            logger.debug("Subscribed to %s (%d subscribers)", key, len(entry.subscribers))

        done = threading.Event()

        def unsubscribe() -> None:
            if done.is_set():
                return
            done.set()
            self._unsubscribe(key, token)

        return unsubscribe

    def _start(self, key: str) -> _WatchEntry:
        entry = _WatchEntry(Path(key))
        handler = _RootEventHandler(entry.root, self._rules, lambda: self._on_event(entry))
        observer = self._observer_factory()
        try:
            observer.schedule(handler, key, recursive=True)
            observer.start()
        except Exception as exc:
            logger.error("Could not watch %s: %s", key, exc)
            raise WatchError(key, str(exc)) from exc
        entry.observer = observer
        logger.info("Watching %s", key)
        return entry

    def _unsubscribe(self, key: str, token: int) -> None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or token not in entry.subscribers:
                return
            del entry.subscribers[token]
            if entry.subscribers:
                return
            del self._entries[key]
        self._stop(entry)

    def _stop(self, entry: _WatchEntry) -> None:
        if entry.pending is not None:
            entry.pending.cancel()
            entry.pending = None
        observer = entry.observer
        if observer is None:
            return
        observer.stop()
        if observer is not threading.current_thread():
            observer.join(timeout=2.0)
        logger.info("Stopped watching %s", entry.root)

    # ------------------------------------------------------------------
    # Notification
    # ------------------------------------------------------------------

    def _on_event(self, entry: _WatchEntry) -> None:
        if self._stability_seconds <= 0:
            self._emit(entry)
            return
        with self._lock:
            if entry.pending is not None:
                return
            timer = threading.Timer(self._stability_seconds, self._flush, args=(entry,))
            timer.daemon = True
            entry.pending = timer
        timer.start()

    def _flush(self, entry: _WatchEntry) -> None:
        with self._lock:
            entry.pending = None
        self._emit(entry)

    def _emit(self, entry: _WatchEntry) -> None:
        with self._lock:
            callbacks = list(entry.subscribers.values())
        for callback in callbacks:
            try:
                callback()
            except Exception:
                logger.exception("Change subscriber for %s failed", entry.root)

    # ------------------------------------------------------------------
    # Introspection / lifecycle
    # ------------------------------------------------------------------

    def watched_roots(self) -> List[str]:
        with self._lock:
            return sorted(self._entries)

    def subscriber_count(self, root: Path | str) -> int:
        key = str(Path(root).expanduser().resolve())
        with self._lock:
            entry = self._entries.get(key)
            return len(entry.subscribers) if entry else 0

    def close(self) -> None:
        with self._lock:
            entries = list(self._entries.values())
            self._entries.clear()
        for entry in entries:
            entry.subscribers.clear()
            self._stop(entry)

    def __enter__(self) -> "WatchRegistry":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()


class Debouncer:
    """Caller-side coalescing of change notifications.

    The first :meth:`trigger` starts a quiet period; further triggers during
    it are absorbed, and *action* runs once when it ends.
    """

    def __init__(self, action: Callable[[], None], interval: float = DEFAULT_DEBOUNCE_SECONDS) -> None:
        self.action = action
        self.interval = interval
        self._timer: Optional[threading.Timer] = None
        self._lock = threading.Lock()

    def trigger(self) -> None:
        with self._lock:
            if self._timer is not None:
                return
            self._timer = threading.Timer(self.interval, self._fire)
            self._timer.daemon = True
            self._timer.start()

    def _fire(self) -> None:
        with self._lock:
            self._timer = None
        try:
            self.action()
        except Exception:
            logger.exception("Debounced action failed")

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._timer is not None

    def cancel(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
