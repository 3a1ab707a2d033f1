# filemon/config/schema.py
"""
Pydantic schema for the watcher configuration.

Rules:
- Strict validation, no unknown keys
- Required strings must be non-empty
- The model is frozen once built

Normalization happens in properties so the raw values stay visible in
``config show`` style output:

- folder_path   "/files" -> "files/"
- extensions    "txt"    -> ".txt" (compared case-insensitively)
- excluded      "/a/b"   -> "a/b/"
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import List, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


class WatcherConfig(BaseModel):
    content_root: str = Field(..., description="Base directory the watched folder lives in")
    folder_path: str = Field(..., description="Folder to watch, relative to content_root")
    file_extensions: List[str] = Field(..., description="Extensions to track, e.g. ['.js', '.css']")
    output_file_name: str = Field(..., description="Manifest file name, written inside the watched folder")
    excluded_paths: List[str] = Field(
        default_factory=list,
        description="Sub-paths (relative to the watched folder) that are never tracked",
    )
    poll_interval: float = Field(default=4.0, gt=0, description="Polling interval in seconds")
    debounce_seconds: float = Field(
        default=1.0, ge=0, description="Quiet period before a burst of events triggers a rescan"
    )

    model_config = ConfigDict(extra="forbid", frozen=True)

    @field_validator("content_root", "folder_path", "output_file_name")
    @classmethod
    def _not_blank(cls, value: str, info) -> str:
        if not value or not value.strip():
            raise ValueError(f"{info.field_name} cannot be empty or whitespace")
        return value

    @field_validator("file_extensions")
    @classmethod
    def _has_extensions(cls, value: List[str]) -> List[str]:
        cleaned = [ext.strip() for ext in value if ext and ext.strip()]
        if not cleaned:
            raise ValueError("file_extensions must contain at least one extension")
        return cleaned

    @field_validator("excluded_paths")
    @classmethod
    def _drop_blank_excludes(cls, value: List[str]) -> List[str]:
        return [p for p in value if p and p.strip()]

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    @property
    def normalized_folder_path(self) -> str:
        p = self.folder_path.replace("\\", "/")
        if p.startswith("/"):
            p = p[1:]
        if not p.endswith("/"):
            p += "/"
        return p

    @property
    def root(self) -> Path:
        """Absolute directory being watched."""
        content_root = Path(os.path.expanduser(self.content_root.replace("\\", "/")))
        return (content_root / self.normalized_folder_path).resolve()

    @property
    def output_path(self) -> Path:
        return self.root / self.output_file_name

    @property
    def normalized_extensions(self) -> Tuple[str, ...]:
        out = []
        for ext in self.file_extensions:
            if not ext.startswith("."):
                ext = "." + ext
            out.append(ext.lower())
        return tuple(out)

    @property
    def normalized_excluded_paths(self) -> Tuple[str, ...]:
        out = []
        for path in self.excluded_paths:
            path = path.replace("\\", "/")
            if path.startswith("/"):
                path = path[1:]
            if not path.endswith("/"):
                path += "/"
            out.append(path)
        return tuple(out)

    def is_path_excluded(self, relative_path: str) -> bool:
        """Plain prefix match against the excluded sub-paths."""
        return any(relative_path.startswith(p) for p in self.normalized_excluded_paths)

    def is_recognized_extension(self, file_name: str) -> bool:
        ext = os.path.splitext(file_name)[1]
        if not ext:
            return False
        return ext.lower() in self.normalized_extensions

    def describe_extensions(self) -> str:
        return ", ".join(self.normalized_extensions)


__all__ = ["WatcherConfig"]
