# tests/conftest.py
"""Shared fixtures for filemon tests."""

import os
from pathlib import Path
from typing import List, Optional

import pytest

from filemon.config.schema import WatcherConfig
from filemon.monitor.checksum import ChecksumEngine


class CountingChecksumEngine(ChecksumEngine):
    """ChecksumEngine that records every digest request."""

    def __init__(self, fail_paths: Optional[set] = None):
        super().__init__()
        self.calls: List[str] = []
        self.fail_paths = fail_paths or set()

    def digest(self, path):
        self.calls.append(Path(path).name)
        if Path(path).name in self.fail_paths:
            return None
        return super().digest(path)


def write_file(path: Path, content: str, mtime: Optional[float] = None) -> Path:
    """Write a file and optionally pin its modification time."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    if mtime is not None:
        os.utime(path, (mtime, mtime))
    return path


@pytest.fixture
def root(tmp_path: Path) -> Path:
    """The watched folder (content_root/files)."""
    folder = tmp_path / "files"
    folder.mkdir()
    return folder.resolve()


@pytest.fixture
def config(tmp_path: Path, root: Path) -> WatcherConfig:
    return WatcherConfig(
        content_root=str(tmp_path),
        folder_path="/files",
        file_extensions=[".txt", "md"],
        output_file_name="output.txt",
        excluded_paths=["/ignored"],
        debounce_seconds=0,
    )


@pytest.fixture
def engine() -> CountingChecksumEngine:
    return CountingChecksumEngine()
