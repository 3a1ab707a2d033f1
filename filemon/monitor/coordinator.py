# filemon/monitor/coordinator.py
"""
Watcher lifecycle.

WatchCoordinator owns the cache, the checksum engine and the manifest
store for one watched folder:

- start(): load manifest, run one pass, subscribe to change signals
- rescan(): one full pass + conditional manifest write, serialized
- stop(): unsubscribe and stop polling

The dirty flag outlives a failed write, so the next pass retries it even
when that pass itself finds nothing new.
"""

from __future__ import annotations

import threading
from typing import Any, Dict, Mapping, Optional

from filemon.config.loader import validate_config
from filemon.config.schema import WatcherConfig
from filemon.exceptions import ConfigError
from filemon.logging.logger import get_logger
from filemon.logging.tags import WATCHER
from filemon.monitor.cache import FileCache
from filemon.monitor.checksum import ChecksumEngine
from filemon.monitor.manifest import ManifestStore
from filemon.monitor.provider import FileProvider, PhysicalFileProvider
from filemon.monitor.reconciler import ChangeReconciler, ReconcileSummary

logger = get_logger(__name__)


def _ensure_config(config: WatcherConfig | Mapping[str, Any]) -> WatcherConfig:
    if isinstance(config, WatcherConfig):
        return config
    if isinstance(config, Mapping):
        return validate_config(dict(config))
    raise ConfigError(f"Expected WatcherConfig or mapping, got {type(config).__name__}")


class WatchCoordinator:
    """
    Keeps the manifest of one folder in sync with the disk.

    Usage:
        with WatchCoordinator(config) as watcher:
            ...  # rescans happen on the polling thread
            print(watcher.manifest())
    """

    def __init__(
        self,
        config: WatcherConfig | Mapping[str, Any],
        *,
        provider: Optional[FileProvider] = None,
        checksum: Optional[ChecksumEngine] = None,
        store: Optional[ManifestStore] = None,
    ) -> None:
        self._config = _ensure_config(config)
        root = self._config.root
        output = self._config.output_file_name

        self._provider = provider or PhysicalFileProvider(
            root,
            poll_interval=self._config.poll_interval,
            debounce_seconds=self._config.debounce_seconds,
            ignore_names={output, output + ".tmp"},
        )
        self._checksum = checksum or ChecksumEngine()
        self._store = store or ManifestStore(self._config)
        self._reconciler = ChangeReconciler(self._config, self._provider, self._checksum)

        self._cache = FileCache()
        self._lock = threading.Lock()
        self._has_changes = False
        self._started = False
        self._last_summary: Optional[ReconcileSummary] = None

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def config(self) -> WatcherConfig:
        return self._config

    @property
    def cache(self) -> FileCache:
        return self._cache

    @property
    def has_changes(self) -> bool:
        """True while there are cache changes not yet written to the manifest."""
        return self._has_changes

    @property
    def last_summary(self) -> Optional[ReconcileSummary]:
        return self._last_summary

    @property
    def started(self) -> bool:
        return self._started

    def manifest(self) -> Dict[str, Optional[str]]:
        """Current relative path -> checksum view of the cache."""
        return self._cache.as_manifest()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def load(self) -> None:
        with self._lock:
            self._store.load(self._cache)

    def start(self) -> None:
        if self._started:
            return

        logger.info(
            f"{WATCHER}Starting monitoring files ({self._config.describe_extensions()}) "
            f"in '{self._config.root}'"
        )

        self.load()
        if self._provider.exists():
            self.rescan()
        else:
            logger.error(f"{WATCHER}The given directory '{self._config.root}' does not exist")

        self._provider.on_change(self.rescan)
        self._provider.start()
        self._started = True

    def stop(self) -> None:
        if not self._started:
            return

        self._provider.remove_listener(self.rescan)
        self._provider.stop()
        self._started = False

        logger.info(
            f"{WATCHER}Stopped monitoring files ({self._config.describe_extensions()}) "
            f"in '{self._config.root}'"
        )

    def __enter__(self) -> "WatchCoordinator":
        self.start()
        return self

    def __exit__(self, *exc) -> None:
        self.stop()

    # ------------------------------------------------------------------
    # Passes
    # ------------------------------------------------------------------

    def rescan(self) -> Optional[ReconcileSummary]:
        """
        Run one reconciliation pass and write the manifest if needed.

        Returns:
            The pass summary, or None when the root directory is missing.
        """
        with self._lock:
            if not self._provider.exists():
                logger.warning(f"{WATCHER}Skipping rescan: '{self._config.root}' does not exist")
                return None

            summary = self._reconciler.run(self._cache)
            if summary.dirty:
                self._has_changes = True

            if self._has_changes and self._store.save(self._cache):
                self._has_changes = False

            self._last_summary = summary
            if summary.dirty:
                logger.info(f"{WATCHER}Rescan: {summary} in {summary.duration_seconds:.2f}s")
            return summary


__all__ = ["WatchCoordinator"]
