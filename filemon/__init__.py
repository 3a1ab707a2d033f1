# filemon/__init__.py
"""
filemon - incremental content manifest for a directory tree.

Tracks every file with a recognized extension under a watched folder,
keeps its last-modified time and MD5 checksum, and rewrites a flat
``path:checksum`` manifest whenever something changed.

Usage:
    from filemon import WatchCoordinator, load_config

    config = load_config(content_root=".", folder_path="files",
                         file_extensions=[".txt"], output_file_name="output.txt")
    with WatchCoordinator(config) as watcher:
        print(watcher.manifest())
"""

from filemon.config import WatcherConfig, load_config
from filemon.exceptions import ConfigError, FileMonitorError, ManifestParseError
from filemon.monitor import (
    ChangeReconciler,
    ChecksumEngine,
    FileCache,
    FileEntry,
    ManifestStore,
    PhysicalFileProvider,
    ReconcileSummary,
    WatchCoordinator,
)

__version__ = "0.1.0"

__all__ = [
    "WatcherConfig",
    "load_config",
    "FileMonitorError",
    "ConfigError",
    "ManifestParseError",
    "ChecksumEngine",
    "FileCache",
    "FileEntry",
    "ManifestStore",
    "PhysicalFileProvider",
    "ChangeReconciler",
    "ReconcileSummary",
    "WatchCoordinator",
]
