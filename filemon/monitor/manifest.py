# filemon/monitor/manifest.py
"""
Manifest file: parse and serialize.

Format (UTF-8, one entry per line, no trailing newline):

    relative/path/to/file.ext:0123456789abcdef0123456789abcdef

Read-side tolerance:
- blank lines are ignored
- "--BEGIN" / "--END" sentinel lines are ignored
- the legacy "checksum relative/path" form is accepted

Only the colon form is ever written. A line whose checksum field is empty
is loaded with no checksum and gets hashed on the next pass.

Bytes that are not valid UTF-8 are carried as surrogate escapes, the same
way os.scandir reports undecodable file names, so such paths round-trip
byte-exact.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, Iterator, Optional, Tuple

from filemon.config.schema import WatcherConfig
from filemon.exceptions import ManifestParseError
from filemon.logging.logger import get_logger
from filemon.logging.tags import MANIFEST
from filemon.monitor.cache import Change, FileCache, FileEntry, normalize_key

logger = get_logger(__name__)

START_STATE = "--BEGIN"
END_STATE = "--END"
DELIMITER_COLON = ":"
DELIMITER_SPACE = " "
ENCODING_ERRORS = "surrogateescape"


def parse_line(line: str, line_no: int = 0) -> Optional[Tuple[str, Optional[str]]]:
    """
    Parse one manifest line.

    Returns:
        (relative_path, checksum) or None for lines that carry no entry.

    Raises:
        ManifestParseError: The line has no delimiter or no path.
    """
    line = line.rstrip("\r\n")
    if not line.strip():
        return None
    if line in (START_STATE, END_STATE):
        return None

    if DELIMITER_COLON in line:
        path, _, checksum = line.partition(DELIMITER_COLON)
    elif DELIMITER_SPACE in line:
        checksum, _, path = line.partition(DELIMITER_SPACE)
    else:
        raise ManifestParseError(line_no, line, "no delimiter")

    path = normalize_key(path.strip())
    checksum = checksum.strip().lower()
    if not path:
        raise ManifestParseError(line_no, line, "empty path")

    return path, checksum or None


def iter_manifest(text: str) -> Iterator[Tuple[int, str]]:
    for i, line in enumerate(text.splitlines(), start=1):
        yield i, line


def serialize(cache: FileCache) -> str:
    lines = []
    for entry in cache.entries():
        lines.append(f"{normalize_key(entry.path)}{DELIMITER_COLON}{entry.checksum or ''}")
    return "\n".join(lines)


class ManifestStore:
    """
    Loads the manifest into a FileCache and writes it back.

    Usage:
        store = ManifestStore(config)
        cache = store.load()
        ...
        if not store.save(cache):
            # keep dirty, retry next pass
            ...
    """

    def __init__(self, config: WatcherConfig) -> None:
        self._config = config

    @property
    def path(self) -> Path:
        return self._config.output_path

    def load(self, cache: Optional[FileCache] = None) -> FileCache:
        """
        Populate ``cache`` (or a new one) from the manifest file.

        Never raises for I/O or parse problems: bad lines are skipped and an
        unreadable file leaves whatever was loaded so far.
        """
        cache = cache if cache is not None else FileCache()
        name = self._config.output_file_name
        root = self._config.root

        logger.debug(f"{MANIFEST}Loading `{name}`")

        if not root.is_dir():
            logger.warning(f"{MANIFEST}The given directory '{root}' does not exist")
            return cache

        try:
            # Opening in append mode creates the file when absent
            with self.path.open("a", encoding="utf-8"):
                pass
            text = self.path.read_text(encoding="utf-8-sig", errors=ENCODING_ERRORS)
        except (OSError, UnicodeError) as e:
            logger.error(f"{MANIFEST}Error while reading {name}: {e}", exc_info=True)
            return cache

        loaded = 0
        for line_no, line in iter_manifest(text):
            try:
                parsed = parse_line(line, line_no)
            except ManifestParseError as e:
                logger.error(f"{MANIFEST}Error while reading {name}: {e}")
                continue
            if parsed is None:
                continue

            rel_path, checksum = parsed
            if self._config.is_path_excluded(rel_path):
                continue

            last_modified = self._last_modified(rel_path)
            cache.upsert(rel_path, _load_decision(rel_path, checksum, last_modified))
            loaded += 1

        logger.info(f"{MANIFEST}`{name}` loaded ({loaded} entries)")
        return cache

    def _last_modified(self, rel_path: str) -> float:
        disk_path = self._config.root / rel_path
        try:
            return disk_path.stat().st_mtime
        except OSError:
            logger.warning(
                f"{MANIFEST}The given file '{disk_path}' inside '{self._config.output_file_name}' does not exist"
            )
            return 0.0

    def save(self, cache: FileCache) -> bool:
        """Overwrite the manifest with the cache contents. Returns success."""
        name = self._config.output_file_name
        logger.debug(f"{MANIFEST}Updating `{name}`")

        tmp = self.path.with_name(self.path.name + ".tmp")
        try:
            tmp.write_text(serialize(cache), encoding="utf-8", errors=ENCODING_ERRORS)
            os.replace(tmp, self.path)
        except (OSError, UnicodeError) as e:
            logger.error(f"{MANIFEST}Error while saving {name}: {e}", exc_info=True)
            try:
                tmp.unlink()
            except OSError:
                pass
            return False

        logger.info(f"{MANIFEST}`{name}` updated")
        return True

    def read_manifest(self) -> Dict[str, Optional[str]]:
        """Parse the manifest file as-is, without touching the filesystem."""
        out: Dict[str, Optional[str]] = {}
        if not self.path.is_file():
            return out

        text = self.path.read_text(encoding="utf-8-sig", errors=ENCODING_ERRORS)
        for line_no, line in iter_manifest(text):
            try:
                parsed = parse_line(line, line_no)
            except ManifestParseError as e:
                logger.warning(f"{MANIFEST}Skipping {e}")
                continue
            if parsed is not None:
                out[parsed[0]] = parsed[1]
        return out


def _load_decision(rel_path: str, checksum: Optional[str], last_modified: float):
    def decide(existing: Optional[FileEntry]):
        if existing is None:
            return FileEntry(path=rel_path, last_modified=last_modified, checksum=checksum), Change.CREATED
        existing.checksum = checksum
        existing.last_modified = last_modified
        return existing, Change.UPDATED

    return decide


__all__ = [
    "ManifestStore",
    "parse_line",
    "serialize",
    "START_STATE",
    "END_STATE",
]
