"""
filemon CLI.

Provides the `filemon` command with scan, watch and show.
"""

from filemon.cli.cli import app

__all__ = ["app"]
