# filemon/monitor/provider.py
"""
Filesystem collaborator for the watcher.

The reconciler only needs three things from the disk:
- a one-level listing of a directory (``snapshot``)
- a deep listing of files for deletion detection (``list_files``)
- a "something changed" signal (``on_change``)

PhysicalFileProvider serves all three from a real directory. Change
detection uses watchdog's PollingObserver, so it behaves the same on
network shares and container mounts where native events are unreliable.
Bursts of events are coalesced by a debounce timer before listeners run.
"""

from __future__ import annotations

import os
import threading
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional, Protocol, runtime_checkable

from watchdog.events import EVENT_TYPE_MODIFIED, FileSystemEvent, FileSystemEventHandler
from watchdog.observers.polling import PollingObserver

from filemon.logging.logger import get_logger
from filemon.logging.tags import WATCHER

logger = get_logger(__name__)

ChangeListener = Callable[[], None]


class EntryKind(str, Enum):
    FILE = "file"
    DIRECTORY = "directory"


@dataclass(frozen=True)
class DirectoryEntry:
    """One item of a directory snapshot."""

    name: str
    kind: EntryKind
    physical_path: str  # Absolute path on disk
    last_modified: float  # st_mtime, epoch seconds

    @property
    def is_directory(self) -> bool:
        return self.kind is EntryKind.DIRECTORY


@runtime_checkable
class FileProvider(Protocol):
    """Protocol for the disk + change-signal collaborator."""

    def snapshot(self, relative_path: str = "") -> List[DirectoryEntry]:
        """List the direct children of a directory, sorted by name."""
        ...

    def exists(self, relative_path: str = "") -> bool:
        """Whether a path under the root exists."""
        ...

    def list_files(self) -> List[str]:
        """All files under the root as relative "/" paths."""
        ...

    def on_change(self, listener: ChangeListener) -> None:
        """Register a rescan callback."""
        ...

    def remove_listener(self, listener: ChangeListener) -> None:
        """Deregister a rescan callback."""
        ...

    def start(self) -> None:
        """Begin delivering change signals."""
        ...

    def stop(self) -> None:
        """Stop delivering change signals."""
        ...


def _resolve(root: Path, relative_path: str) -> Path:
    rel = relative_path.replace("\\", "/").strip("/")
    return root / rel if rel else root


class _Debouncer:
    """Runs ``action`` once, ``delay`` seconds after the last ``ping``."""

    def __init__(self, delay: float, action: Callable[[], None]) -> None:
        self._delay = delay
        self._action = action
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None

    def ping(self) -> None:
        if self._delay <= 0:
            self._action()
            return
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(self._delay, self._action)
            self._timer.daemon = True
            self._timer.start()

    def cancel(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None


class _RescanHandler(FileSystemEventHandler):
    def __init__(self, provider: "PhysicalFileProvider") -> None:
        self._provider = provider

    def on_any_event(self, event: FileSystemEvent) -> None:
        if not self._provider.should_rescan(event):
            return
        logger.debug(f"{WATCHER}{event.event_type}: {event.src_path}")
        self._provider.notify()


class PhysicalFileProvider:
    """
    FileProvider over a local directory.

    Usage:
        provider = PhysicalFileProvider("/srv/www", ignore_names={"output.txt"})
        provider.on_change(lambda: print("rescan"))
        provider.start()
        ...
        provider.stop()
    """

    def __init__(
        self,
        root: str | Path,
        *,
        poll_interval: float = 4.0,
        debounce_seconds: float = 1.0,
        ignore_names: Optional[set[str]] = None,
    ) -> None:
        self._root = Path(root)
        self._poll_interval = poll_interval
        self._ignore_names = set(ignore_names or ())
        self._listeners: List[ChangeListener] = []
        self._listeners_lock = threading.Lock()
        self._debouncer = _Debouncer(debounce_seconds, self._fire)
        self._observer: Optional[PollingObserver] = None

    @property
    def root(self) -> Path:
        return self._root

    # ------------------------------------------------------------------
    # Disk reads
    # ------------------------------------------------------------------

    def exists(self, relative_path: str = "") -> bool:
        return _resolve(self._root, relative_path).exists()

    def snapshot(self, relative_path: str = "") -> List[DirectoryEntry]:
        directory = _resolve(self._root, relative_path)
        entries: List[DirectoryEntry] = []
        try:
            with os.scandir(directory) as it:
                for item in it:
                    try:
                        is_dir = item.is_dir(follow_symlinks=False)
                        # Symlinked directories and special files are not tracked
                        if not is_dir and not item.is_file():
                            continue
                        mtime = item.stat().st_mtime
                    except OSError as e:
                        # Vanished between listing and stat
                        logger.warning(f"{WATCHER}Cannot stat {item.path}: {e}")
                        continue
                    entries.append(
                        DirectoryEntry(
                            name=item.name,
                            kind=EntryKind.DIRECTORY if is_dir else EntryKind.FILE,
                            physical_path=item.path,
                            last_modified=mtime,
                        )
                    )
        except OSError as e:
            logger.warning(f"{WATCHER}Cannot list {directory}: {e}")
            return []

        entries.sort(key=lambda e: e.name)
        return entries

    def list_files(self) -> List[str]:
        files: List[str] = []
        for base, _, names in os.walk(self._root):
            for name in names:
                full = Path(base) / name
                files.append(full.relative_to(self._root).as_posix())
        files.sort()
        return files

    # ------------------------------------------------------------------
    # Change signal
    # ------------------------------------------------------------------

    def on_change(self, listener: ChangeListener) -> None:
        with self._listeners_lock:
            if listener not in self._listeners:
                self._listeners.append(listener)

    def remove_listener(self, listener: ChangeListener) -> None:
        with self._listeners_lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def is_ignored(self, path: str | bytes) -> bool:
        if isinstance(path, bytes):
            path = os.fsdecode(path)
        return os.path.basename(path) in self._ignore_names

    def should_rescan(self, event: FileSystemEvent) -> bool:
        """
        Whether a watchdog event warrants a rescan.

        Ignored names never do, nor does a modified event on the root
        directory itself, which every manifest write produces.
        """
        if self.is_ignored(event.src_path):
            return False
        if event.is_directory and event.event_type == EVENT_TYPE_MODIFIED:
            src = os.path.normpath(os.fsdecode(event.src_path))
            if src == os.path.normpath(str(self._root)):
                return False
        return True

    def notify(self) -> None:
        """Schedule listeners (debounced)."""
        self._debouncer.ping()

    def _fire(self) -> None:
        with self._listeners_lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener()
            except Exception:
                logger.exception(f"{WATCHER}Change listener failed")

    def start(self) -> None:
        if self._observer is not None:
            return
        if not self._root.is_dir():
            logger.warning(f"{WATCHER}Not polling '{self._root}': directory does not exist")
            return

        observer = PollingObserver(timeout=self._poll_interval)
        observer.schedule(_RescanHandler(self), str(self._root), recursive=True)
        observer.start()
        self._observer = observer
        logger.debug(f"{WATCHER}Polling '{self._root}' every {self._poll_interval}s")

    def stop(self) -> None:
        self._debouncer.cancel()
        observer, self._observer = self._observer, None
        if observer is not None:
            observer.stop()
            observer.join(timeout=10)

    @property
    def running(self) -> bool:
        return self._observer is not None


__all__ = [
    "ChangeListener",
    "DirectoryEntry",
    "EntryKind",
    "FileProvider",
    "PhysicalFileProvider",
]
