"""Sync engine data models."""

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field


class TreeEntry(BaseModel):
    """Node visited while walking the store."""

    path: str
    payload: dict[str, Any] | None = None
    is_leaf: bool = True
    error: str | None = None  # set when the leaf could not be fetched


class LocalFileEntry(BaseModel):
    """Secret file found under a local base directory."""

    file_path: Path
    relative_path: str  # POSIX, relative to the base directory
    payload: dict[str, Any]


class RemoteSnapshot(BaseModel):
    """Drained remote walk."""

    secrets: dict[str, dict[str, Any]] = Field(default_factory=dict)
    skipped: list[str] = Field(default_factory=list)


class DiffResult(BaseModel):
    """Rendered change between two payloads."""

    changed: bool
    text: str = ""
    index: str = ""  # "<old-hash>..<new-hash>"


class PullResult(BaseModel):
    """Outcome of a pull."""

    written: list[Path] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)


class PushResult(BaseModel):
    """Outcome of a push or dry run."""

    dry_run: bool = False
    pushed: list[str] = Field(default_factory=list)
    changed: list[str] = Field(default_factory=list)
    unchanged: list[str] = Field(default_factory=list)
    failed: dict[str, str] = Field(default_factory=dict)
