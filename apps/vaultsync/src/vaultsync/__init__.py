"""Sync Vault KVv2 secrets with local YAML files."""

from .diff import DiffEngine, DiffRenderer, DiffTool, resolve_diff_tool
from .errors import (
    AmbiguousPathError,
    InvalidPathError,
    MissingDirectoryError,
    PushError,
    SyncError,
    TraversalError,
)
from .models import DiffResult, LocalFileEntry, PullResult, PushResult, TreeEntry
from .paths import local_file_to_remote_path, remote_to_local_file, to_data_path
from .sync import SyncEngine
from .walker import LocalWalker, RemoteWalker

__all__ = [
    "SyncEngine",
    "RemoteWalker",
    "LocalWalker",
    "DiffEngine",
    "DiffRenderer",
    "DiffTool",
    "resolve_diff_tool",
    "DiffResult",
    "TreeEntry",
    "LocalFileEntry",
    "PullResult",
    "PushResult",
    "SyncError",
    "AmbiguousPathError",
    "InvalidPathError",
    "MissingDirectoryError",
    "TraversalError",
    "PushError",
    "to_data_path",
    "remote_to_local_file",
    "local_file_to_remote_path",
]
