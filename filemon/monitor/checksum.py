# filemon/monitor/checksum.py
"""
Content checksums for tracked files.

MD5 is used because its values are what existing manifests already hold;
it is a change detector here, not a security boundary. Files are streamed
in 1 MiB chunks.

Each engine owns a lock and lets only one digest run at a time. The
coordinator shares a single engine across passes, which keeps hashing
strictly sequential against the watched disk.
"""

from __future__ import annotations

import hashlib
import threading
from pathlib import Path
from typing import Optional

from filemon.logging.logger import get_logger
from filemon.logging.tags import CHECKSUM

logger = get_logger(__name__)

CHUNK_SIZE = 1024 * 1024


class ChecksumEngine:
    """Serialized MD5 digests; failures come back as None."""

    def __init__(self, chunk_size: int = CHUNK_SIZE) -> None:
        self._chunk_size = chunk_size
        self._lock = threading.Lock()

    def digest(self, path: str | Path) -> Optional[str]:
        """
        Compute the lower-case hex MD5 of a file.

        Returns:
            The digest, or None if the file could not be read.
        """
        with self._lock:
            try:
                h = hashlib.md5()
                with open(path, "rb") as f:
                    for chunk in iter(lambda: f.read(self._chunk_size), b""):
                        h.update(chunk)
                return h.hexdigest()
            except OSError as e:
                logger.error(f"{CHECKSUM}Error while calculating checksum for {path}: {e}")
                return None


__all__ = ["ChecksumEngine", "CHUNK_SIZE"]
