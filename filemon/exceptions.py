# filemon/exceptions.py
"""
Exception hierarchy for filemon.

Only ConfigError is meant to reach callers. Everything else is raised and
handled inside the monitor so that a bad line or a locked file never stops
the watcher.
"""

from __future__ import annotations


class FileMonitorError(Exception):
    """Base class for all filemon errors."""


class ConfigError(FileMonitorError):
    """Missing or invalid watcher configuration."""


class ManifestParseError(FileMonitorError):
    """A single manifest line could not be parsed."""

    def __init__(self, line_no: int, line: str, reason: str) -> None:
        self.line_no = line_no
        self.line = line
        self.reason = reason
        super().__init__(f"line {line_no}: {reason}: {line!r}")


__all__ = [
    "FileMonitorError",
    "ConfigError",
    "ManifestParseError",
]
