# filemon/monitor/cache.py
"""
In-memory change-tracking cache.

Keys are paths relative to the watched root, always with "/" separators
and never starting with "/". All mutation goes through the lock; ``upsert``
runs the caller's decision function inside the critical section so the
lookup, comparison and write cannot race with another pass.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Tuple


class Change(str, Enum):
    """Outcome of a single cache decision."""

    CREATED = "created"
    UPDATED = "updated"
    TOUCHED = "touched"  # newer timestamp, same checksum
    UNCHANGED = "unchanged"

    @property
    def is_dirty(self) -> bool:
        return self in (Change.CREATED, Change.UPDATED)


@dataclass
class FileEntry:
    path: str
    last_modified: float
    checksum: Optional[str] = None


# decide(existing) -> (entry to store or None to leave as is, change kind)
Decision = Callable[[Optional[FileEntry]], Tuple[Optional[FileEntry], Change]]


def normalize_key(path: str) -> str:
    key = path.replace("\\", "/")
    while key.startswith("/"):
        key = key[1:]
    return key


class FileCache:
    """Thread-safe mapping of relative path -> FileEntry."""

    def __init__(self, entries: Iterable[FileEntry] = ()) -> None:
        self._lock = threading.Lock()
        self._entries: Dict[str, FileEntry] = {}
        for entry in entries:
            self._entries[normalize_key(entry.path)] = entry

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, path: str) -> bool:
        with self._lock:
            return normalize_key(path) in self._entries

    def get(self, path: str) -> Optional[FileEntry]:
        with self._lock:
            return self._entries.get(normalize_key(path))

    def upsert(self, path: str, decide: Decision) -> Change:
        key = normalize_key(path)
        with self._lock:
            entry, change = decide(self._entries.get(key))
            if entry is not None:
                entry.path = key
                self._entries[key] = entry
            return change

    def remove(self, path: str) -> bool:
        with self._lock:
            return self._entries.pop(normalize_key(path), None) is not None

    def entries(self) -> List[FileEntry]:
        """Snapshot of the entries, sorted by path."""
        with self._lock:
            return [self._entries[k] for k in sorted(self._entries)]

    def paths(self) -> List[str]:
        with self._lock:
            return sorted(self._entries)

    def pending(self) -> List[FileEntry]:
        """Entries still waiting for a checksum."""
        with self._lock:
            return [e for k, e in sorted(self._entries.items()) if e.checksum is None]

    def as_manifest(self) -> Dict[str, Optional[str]]:
        with self._lock:
            return {k: self._entries[k].checksum for k in sorted(self._entries)}


__all__ = ["Change", "Decision", "FileCache", "FileEntry", "normalize_key"]
