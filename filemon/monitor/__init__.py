# filemon/monitor/__init__.py
"""
Change tracking for a watched folder.

Key components:
- ChecksumEngine: serialized MD5 digests
- FileCache: thread-safe relative path -> FileEntry map
- ManifestStore: manifest parse / serialize
- PhysicalFileProvider: directory snapshots + polling change signal
- ChangeReconciler: one disk-vs-cache pass
- WatchCoordinator: lifecycle, rescans, conditional writes
"""

from .cache import Change, FileCache, FileEntry
from .checksum import ChecksumEngine
from .coordinator import WatchCoordinator
from .manifest import ManifestStore, parse_line, serialize
from .provider import (
    DirectoryEntry,
    EntryKind,
    FileProvider,
    PhysicalFileProvider,
)
from .reconciler import ChangeReconciler, ReconcileSummary

__all__ = [
    # Cache
    "Change",
    "FileCache",
    "FileEntry",
    # Checksum
    "ChecksumEngine",
    # Manifest
    "ManifestStore",
    "parse_line",
    "serialize",
    # Provider
    "DirectoryEntry",
    "EntryKind",
    "FileProvider",
    "PhysicalFileProvider",
    # Reconcile
    "ChangeReconciler",
    "ReconcileSummary",
    # Lifecycle
    "WatchCoordinator",
]
