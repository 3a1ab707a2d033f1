# filemon/monitor/reconciler.py
"""
Reconciliation of disk state against the cache.

One pass:
1. Walk the root one directory level at a time via the provider
2. Per entry: skip / recurse / create / update / touch
3. Remove cache entries whose file is gone from a fresh deep listing
4. Hash every entry still missing a checksum (deferred hashing)

The reconciler mutates the cache and reports what it did. Persisting the
manifest is the coordinator's job.

Hashing only happens when a file's last-modified time moved forward, or
for entries that never got a checksum. New files are inserted without
one and picked up by step 4 of the same pass.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Set

from filemon.config.schema import WatcherConfig
from filemon.logging.logger import get_logger
from filemon.logging.tags import RECONCILE
from filemon.monitor.cache import Change, FileCache, FileEntry
from filemon.monitor.checksum import ChecksumEngine
from filemon.monitor.provider import DirectoryEntry, EntryKind, FileProvider

logger = get_logger(__name__)


@dataclass
class ReconcileSummary:
    """Counters for one reconciliation pass."""

    scanned: int = 0
    created: int = 0
    updated: int = 0
    touched: int = 0  # Timestamp moved, content identical
    deleted: int = 0
    hashed: int = 0  # Deferred checksums filled in
    hash_failures: int = 0
    created_paths: List[str] = field(default_factory=list)
    updated_paths: List[str] = field(default_factory=list)
    deleted_paths: List[str] = field(default_factory=list)
    started_at: datetime = field(default_factory=datetime.now)
    finished_at: Optional[datetime] = None

    @property
    def dirty(self) -> bool:
        """Whether the pass changed anything the manifest records."""
        return bool(self.created or self.updated or self.deleted or self.hashed)

    @property
    def duration_seconds(self) -> float:
        if self.finished_at is None:
            return 0.0
        return (self.finished_at - self.started_at).total_seconds()

    def __str__(self) -> str:
        return (
            f"scanned {self.scanned}, created {self.created}, updated {self.updated}, "
            f"touched {self.touched}, deleted {self.deleted}, hashed {self.hashed}, "
            f"hash_failures {self.hash_failures}"
        )


class ChangeReconciler:
    """
    Reconciles one watched root against a FileCache.

    Usage:
        reconciler = ChangeReconciler(config, provider, ChecksumEngine())
        summary = reconciler.run(cache)
        if summary.dirty:
            store.save(cache)
    """

    def __init__(
        self,
        config: WatcherConfig,
        provider: FileProvider,
        checksum: ChecksumEngine,
    ) -> None:
        self._config = config
        self._provider = provider
        self._checksum = checksum
        self._root = config.root

    def run(self, cache: FileCache) -> ReconcileSummary:
        summary = ReconcileSummary()

        self._walk("", cache, summary)
        self._remove_deleted(cache, summary)
        self._fill_checksums(cache, summary)

        summary.finished_at = datetime.now()
        logger.debug(f"{RECONCILE}Pass complete: {summary}")
        return summary

    # ------------------------------------------------------------------
    # Filtering
    # ------------------------------------------------------------------

    def _relative(self, physical_path: str) -> str:
        return Path(physical_path).relative_to(self._root).as_posix()

    def _is_output(self, name: str) -> bool:
        return name == self._config.output_file_name

    def is_tracked(self, rel_path: str) -> bool:
        """Whether a relative file path belongs in the manifest at all."""
        name = rel_path.rsplit("/", 1)[-1]
        if self._is_output(name):
            return False
        if not self._config.is_recognized_extension(name):
            return False
        return not self._config.is_path_excluded(rel_path)

    # ------------------------------------------------------------------
    # Step 1-2: walk
    # ------------------------------------------------------------------

    def _walk(self, relative_dir: str, cache: FileCache, summary: ReconcileSummary) -> None:
        for entry in self._provider.snapshot(relative_dir):
            if not entry.physical_path:
                continue

            rel_path = self._relative(entry.physical_path)

            if entry.kind is EntryKind.DIRECTORY:
                if self._config.is_path_excluded(rel_path + "/"):
                    continue
                self._walk(rel_path, cache, summary)
                continue

            if self._is_output(entry.name):
                continue

            summary.scanned += 1
            self._visit_file(rel_path, entry, cache, summary)

    def _visit_file(
        self,
        rel_path: str,
        entry: DirectoryEntry,
        cache: FileCache,
        summary: ReconcileSummary,
    ) -> None:
        change = cache.upsert(rel_path, self._decide(rel_path, entry))

        if change is Change.CREATED:
            summary.created += 1
            summary.created_paths.append(rel_path)
            logger.debug(f"{RECONCILE}`{rel_path}` created/restored")
        elif change is Change.UPDATED:
            summary.updated += 1
            summary.updated_paths.append(rel_path)
            logger.debug(f"{RECONCILE}`{rel_path}` updated")
        elif change is Change.TOUCHED:
            summary.touched += 1

    def _decide(self, rel_path: str, entry: DirectoryEntry):
        def decide(existing: Optional[FileEntry]):
            if existing is not None:
                if entry.last_modified <= existing.last_modified:
                    return None, Change.UNCHANGED

                new_checksum = self._checksum.digest(entry.physical_path)
                existing.last_modified = entry.last_modified
                if new_checksum is not None and new_checksum == existing.checksum:
                    return existing, Change.TOUCHED

                existing.checksum = new_checksum
                return existing, Change.UPDATED

            if not self.is_tracked(rel_path):
                return None, Change.UNCHANGED

            return FileEntry(path=rel_path, last_modified=entry.last_modified), Change.CREATED

        return decide

    # ------------------------------------------------------------------
    # Step 3: deletions
    # ------------------------------------------------------------------

    def _remove_deleted(self, cache: FileCache, summary: ReconcileSummary) -> None:
        on_disk: Set[str] = {
            p.lower() for p in self._provider.list_files() if self.is_tracked(p)
        }

        for path in cache.paths():
            if path.lower() in on_disk:
                continue
            if cache.remove(path):
                summary.deleted += 1
                summary.deleted_paths.append(path)
                logger.debug(f"{RECONCILE}`{path}` deleted")
            else:
                logger.error(f"{RECONCILE}Fail to delete `{path}`")

    # ------------------------------------------------------------------
    # Step 4: deferred checksums
    # ------------------------------------------------------------------

    def _fill_checksums(self, cache: FileCache, summary: ReconcileSummary) -> None:
        for pending in cache.pending():
            checksum = self._checksum.digest(self._root / pending.path)
            if checksum is None:
                summary.hash_failures += 1
                continue

            def fill(existing: Optional[FileEntry], value: str = checksum):
                if existing is None or existing.checksum is not None:
                    return None, Change.UNCHANGED
                existing.checksum = value
                return existing, Change.UPDATED

            if cache.upsert(pending.path, fill) is Change.UPDATED:
                summary.hashed += 1


__all__ = ["ChangeReconciler", "ReconcileSummary"]
