# filemon/logging/tags.py
"""Subsystem tags prefixed to log messages."""

WATCHER = "[WATCHER] "
MANIFEST = "[MANIFEST] "
CHECKSUM = "[CHECKSUM] "
RECONCILE = "[RECONCILE] "
CONFIG = "[CONFIG] "
CLI = "[CLI] "
